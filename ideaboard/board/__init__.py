"""
Board package: the canvas, its elements and the input protocols that move,
resize, focus and edit them.
"""

from .canvas import Canvas
from .element import InteractionElement, Mode
from .events import KeyEvent, PointerEvent
from .knob import ResizeKnob
from .region import KnobPosition
from .surface import ContentSurface


__all__ = [
    "Canvas",
    "ContentSurface",
    "InteractionElement",
    "KeyEvent",
    "KnobPosition",
    "Mode",
    "PointerEvent",
    "ResizeKnob",
]
