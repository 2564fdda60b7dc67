from __future__ import annotations
from typing import Any, List, Optional
from blinker import Signal


class ContentSurface:
    """
    Handle to the hosted content of a card. The interaction engine does
    not own or render it; it only attaches and detaches it, toggles its
    inert flag and moves focus into it.

    Hosts subclass this to bridge to their real content. `nodes` are the
    focusable parts of the content, the first one receives focus.
    """

    def __init__(self, nodes: Optional[List[Any]] = None):
        self.nodes: List[Any] = list(nodes or [])
        self.attached: bool = False
        self.inert: bool = True

        # Advisory, sent by the host when the content changed its size.
        self.size_changed = Signal()

    def attach(self):
        self.attached = True

    def detach(self):
        self.attached = False

    def set_inert(self, inert: bool = True):
        self.inert = inert

    def contains(self, target: Any) -> bool:
        return target is self or any(target is node for node in self.nodes)

    def focus_target(self) -> Optional[Any]:
        """The node that should receive focus, None if not focusable."""
        if self.inert or not self.attached:
            return None
        return self.nodes[0] if self.nodes else None
