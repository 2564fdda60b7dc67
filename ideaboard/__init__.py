"""
Headless interaction engine for freeform idea boards: movable, resizable
content cards on a percentage-based canvas.
"""

from .board import Canvas, InteractionElement, Mode
from .core import Capabilities, Telemetry

__all__ = [
    "Canvas",
    "InteractionElement",
    "Mode",
    "Capabilities",
    "Telemetry",
]
