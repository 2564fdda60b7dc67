from __future__ import annotations
import logging
from typing import Any, Callable, List, Set
from blinker import Signal


logger = logging.getLogger(__name__)


class DismissSubscription:
    """
    A ref-counted connection to a document-level click signal, shared by
    all elements that are being edited.

    Holders are element ids. The handler is connected when the first
    holder acquires and disconnected when the last one releases, so there
    is exactly one connection while any holder exists.
    """

    def __init__(
        self,
        signal: Signal,
        on_click: Callable[[Any, List[str]], None],
    ):
        """
        Args:
            signal: The click signal, sent with a `target` keyword.
            on_click: Called with the click target and a snapshot of the
                current holder ids.
        """
        self.signal = signal
        self.on_click = on_click
        self._holders: Set[str] = set()
        self.registrations: int = 0

    @property
    def holders(self) -> Set[str]:
        return set(self._holders)

    @property
    def connected(self) -> bool:
        return bool(self._holders)

    def __len__(self) -> int:
        return len(self._holders)

    def __contains__(self, holder: str) -> bool:
        return holder in self._holders

    def acquire(self, holder: str):
        if holder in self._holders:
            return
        self._holders.add(holder)
        if len(self._holders) == 1:
            self.signal.connect(self._on_signal)
            self.registrations += 1
            logger.debug(f"Dismiss listener registered by {holder}")

    def release(self, holder: str):
        if holder not in self._holders:
            return
        self._holders.discard(holder)
        if not self._holders:
            self.signal.disconnect(self._on_signal)
            logger.debug(f"Dismiss listener unregistered by {holder}")

    def _on_signal(self, sender, target: Any = None, **kwargs):
        # Ordered snapshot, handlers may release while we iterate.
        self.on_click(target, sorted(self._holders))
