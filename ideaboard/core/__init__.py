"""
Resolution independent card geometry and capability model.
"""

from .capabilities import Capabilities
from .geometry import (
    Axis,
    CanvasRect,
    Delta,
    GeometryClamp,
    MoveIntent,
    ResizeIntent,
)
from .telemetry import Telemetry


__all__ = [
    "Axis",
    "Capabilities",
    "CanvasRect",
    "Delta",
    "GeometryClamp",
    "MoveIntent",
    "ResizeIntent",
    "Telemetry",
]
