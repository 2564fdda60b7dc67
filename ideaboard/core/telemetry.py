from __future__ import annotations
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Tuple


# x, y, width, height in canvas pixels
PixelBox = Tuple[float, float, float, float]

TELEMETRY_KEYS = ("x", "y", "width", "height")


@dataclass
class Telemetry:
    """
    Position and size of an element, each a percentage of the canvas
    extent along the matching axis.
    """

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def copy(self) -> Telemetry:
        return replace(self)

    def updated(self, partial: Mapping[str, float]) -> Telemetry:
        """
        Returns a copy with the values of a sparse mapping applied. Keys
        that are missing or None keep their current value.
        """
        values = {
            key: float(value)
            for key, value in partial.items()
            if key in TELEMETRY_KEYS and value is not None
        }
        return replace(self, **values)

    def rect(self) -> Tuple[float, float, float, float]:
        """returns x, y, width, height"""
        return self.x, self.y, self.width, self.height

    def isclose(self, other: Telemetry, abs_tol: float = 1e-9) -> bool:
        return all(
            math.isclose(a, b, abs_tol=abs_tol)
            for a, b in zip(self.rect(), other.rect())
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Telemetry:
        """
        Builds telemetry from its persisted shape. Values may be numbers or
        numeric strings; anything else raises a ValueError. The result is
        not sanitized, callers run it through the clamp pipeline.
        """
        values = {}
        for key in TELEMETRY_KEYS:
            if key not in data:
                raise ValueError(f"Telemetry is missing '{key}'")
            try:
                value = float(data[key])
            except (TypeError, ValueError) as e:
                raise ValueError(
                    f"Telemetry value '{key}' is not a number: {data[key]!r}"
                ) from e
            if not math.isfinite(value):
                raise ValueError(f"Telemetry value '{key}' is not finite")
            values[key] = value
        return cls(**values)
