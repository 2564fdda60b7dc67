from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional


ENTER = "Enter"
SPACE = " "
ESCAPE = "Escape"
SHIFT = "Shift"
ARROW_UP = "ArrowUp"
ARROW_DOWN = "ArrowDown"
ARROW_LEFT = "ArrowLeft"
ARROW_RIGHT = "ArrowRight"

ACTIVATION_KEYS = (ENTER, SPACE)


@dataclass
class PointerEvent:
    """
    A pointer event in client (device pixel) coordinates. A target of None
    lets the canvas resolve it by hit testing.
    """

    x: float
    y: float
    pointer_id: int = 1
    target: Any = None


@dataclass
class KeyEvent:
    """
    A keyboard event. A target of None is delivered to whatever currently
    holds focus.
    """

    key: str
    target: Any = None
    propagation_stopped: bool = field(default=False, compare=False)

    def stop_propagation(self):
        self.propagation_stopped = True


def arrow_vector(key: str) -> Optional[tuple]:
    """Maps an arrow key to a unit (dx, dy), None for other keys."""
    return {
        ARROW_UP: (0, -1),
        ARROW_DOWN: (0, 1),
        ARROW_LEFT: (-1, 0),
        ARROW_RIGHT: (1, 0),
    }.get(key)
