import time
from typing import Callable, Optional, Union


class FocusGuard:
    """
    A suppression window for focus-loss handling.

    Re-attaching or re-focusing an element briefly drops focus. While the
    window is open such focus loss must not end editing. The window is a
    monotonic expiry timestamp, so it needs no timer and no cancellation.

    window_ms is either a fixed length or a callable returning it; a
    callable is read on every arm() so configuration changes apply to the
    next window.
    """

    def __init__(
        self,
        window_ms: Union[float, Callable[[], float]] = 100.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._window_ms = window_ms
        self.clock = clock
        self._expires_at: Optional[float] = None

    @property
    def window_ms(self) -> float:
        if callable(self._window_ms):
            return self._window_ms()
        return self._window_ms

    def arm(self):
        self._expires_at = self.clock() + self.window_ms / 1000.0

    def disarm(self):
        self._expires_at = None

    @property
    def active(self) -> bool:
        if self._expires_at is None:
            return False
        if self.clock() < self._expires_at:
            return True
        self._expires_at = None
        return False
