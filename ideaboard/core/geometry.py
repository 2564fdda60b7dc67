from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional, Tuple, Union
from .telemetry import Telemetry, PixelBox
from ..config import Config


logger = logging.getLogger(__name__)


class Axis(Enum):
    """The canvas extent a percentage refers to."""

    WIDTH = "width"
    HEIGHT = "height"


@dataclass(frozen=True)
class CanvasRect:
    """The canvas bounding rectangle in device pixels."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def extent(self, axis: Axis) -> float:
        return self.width if axis is Axis.WIDTH else self.height

    def clamp_point(self, x: float, y: float) -> Tuple[float, float]:
        """Clamps a client point to the rectangle's bounds."""
        return (
            max(self.left, min(x, self.right)),
            max(self.top, min(y, self.bottom)),
        )


@dataclass(frozen=True)
class Delta:
    """A proposed change of a pixel box."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    def is_zero(self) -> bool:
        return not (self.x or self.y or self.width or self.height)


@dataclass(frozen=True)
class MoveIntent:
    """
    Translation only. Overflowing the canvas is resolved by shifting the
    element back, its size is retained.
    """


@dataclass(frozen=True)
class ResizeIntent:
    """
    Size change. Overflow is resolved by shrinking. With an aspect ratio
    (width / height) the opposite dimension is recomputed and the update
    is rejected instead of clipped when it leaves the canvas.
    """

    aspect_ratio: Optional[float] = None

    @property
    def locked(self) -> bool:
        return bool(self.aspect_ratio) and self.aspect_ratio > 0


Intent = Union[MoveIntent, ResizeIntent]


def px_to_percent(px: float, extent: float) -> float:
    if extent == 0:
        return 0.0
    return 100.0 * px / extent


def percent_to_px(percent: float, extent: float) -> float:
    return percent * extent / 100.0


def apply_aspect_ratio(
    delta: Delta, start: PixelBox, target: PixelBox, ratio: float
) -> PixelBox:
    """
    Recomputes a resize target so it keeps the given aspect ratio.

    Which knob is dragged is derived from the non-zero delta components.
    Knobs on the top side keep the bottom edge of the start box fixed,
    all others keep the top edge. Knobs that only change the height
    derive the width instead.
    """
    start_y, start_height = start[1], start[3]
    x, y, width, height = target

    if delta.x and delta.y:
        # top left
        height = width / ratio
        y = start_y + start_height - height
    elif delta.y:
        if not delta.width:
            # top
            width = height * ratio
        else:
            # top right
            height = width / ratio
            y = start_y + start_height - height
    elif delta.x:
        # bottom left, left
        height = width / ratio
        y = start_y
    else:
        if not delta.width:
            # bottom
            width = height * ratio
        else:
            # bottom right, right
            height = width / ratio
            y = start_y

    return x, y, width, height


def fit_within(
    canvas_width: float,
    canvas_height: float,
    available_width: float,
    available_height: float,
) -> Optional[Tuple[float, float]]:
    """
    Returns the largest (width, height) with the canvas aspect ratio that
    fits the available space, or None if any extent is zero.
    """
    if not (canvas_width and canvas_height):
        return None
    if not (available_width and available_height):
        return None

    if canvas_width / canvas_height > available_width / available_height:
        return (
            available_width,
            available_width * canvas_height / canvas_width,
        )
    return available_height * canvas_width / canvas_height, available_height


class GeometryClamp:
    """
    Validates telemetry updates against the live canvas rectangle.

    The rectangle is queried through get_rect once per operation and never
    cached, so percentages and the pixel minimum always refer to the
    current canvas resolution.
    """

    def __init__(
        self,
        get_rect: Callable[[], CanvasRect],
        config: Optional[Config] = None,
    ):
        self.get_rect = get_rect
        self.config: Config = config or Config()

    @property
    def min_size_px(self) -> float:
        return self.config.min_size_px

    def px_to_percent(
        self, px: float, axis: Axis, rect: Optional[CanvasRect] = None
    ) -> float:
        rect = rect or self.get_rect()
        return px_to_percent(px, rect.extent(axis))

    def percent_to_px(
        self, percent: float, axis: Axis, rect: Optional[CanvasRect] = None
    ) -> float:
        rect = rect or self.get_rect()
        return percent_to_px(percent, rect.extent(axis))

    def min_percent(
        self, axis: Axis, rect: Optional[CanvasRect] = None
    ) -> float:
        """The minimum element size along an axis, in percent."""
        return min(100.0, self.px_to_percent(self.min_size_px, axis, rect))

    def to_pixels(
        self, telemetry: Telemetry, rect: Optional[CanvasRect] = None
    ) -> PixelBox:
        """Converts telemetry to a pixel box relative to the canvas."""
        rect = rect or self.get_rect()
        return (
            percent_to_px(telemetry.x, rect.width),
            percent_to_px(telemetry.y, rect.height),
            percent_to_px(telemetry.width, rect.width),
            percent_to_px(telemetry.height, rect.height),
        )

    def sanitize_position(
        self, current: Telemetry, proposed: Mapping[str, float]
    ) -> Tuple[float, float]:
        x = proposed.get("x")
        y = proposed.get("y")
        x = current.x if x is None else x
        y = current.y if y is None else y
        return max(0.0, min(x, 100.0)), max(0.0, min(y, 100.0))

    def sanitize_size(
        self,
        current: Telemetry,
        proposed: Mapping[str, float],
        rect: Optional[CanvasRect] = None,
    ) -> Tuple[float, float]:
        rect = rect or self.get_rect()
        width = proposed.get("width")
        height = proposed.get("height")
        width = current.width if width is None else width
        height = current.height if height is None else height
        return (
            max(self.min_percent(Axis.WIDTH, rect), min(width, 100.0)),
            max(self.min_percent(Axis.HEIGHT, rect), min(height, 100.0)),
        )

    def sanitize_overflow(
        self,
        telemetry: Telemetry,
        intent: Optional[Intent] = None,
        rect: Optional[CanvasRect] = None,
    ) -> Telemetry:
        """
        Resolves x + width > 100 and y + height > 100.

        Move intents shift the position back. Everything else shrinks the
        size, but never below the minimum; what does not fit then shifts.
        An aspect locked resize leaves vertical overflow untouched, the
        aspect step has already rejected boxes leaving the canvas.
        """
        rect = rect or self.get_rect()
        result = telemetry.copy()
        retain_size = isinstance(intent, MoveIntent)
        aspect_locked = isinstance(intent, ResizeIntent) and intent.locked

        if result.x + result.width > 100:
            if retain_size:
                result.x = 100 - result.width
            else:
                result.width = max(
                    100 - result.x, self.min_percent(Axis.WIDTH, rect)
                )
                result.x = min(result.x, 100 - result.width)

        if result.y + result.height > 100:
            if retain_size:
                result.y = 100 - result.height
            elif not aspect_locked:
                result.height = max(
                    100 - result.y, self.min_percent(Axis.HEIGHT, rect)
                )
                result.y = min(result.y, 100 - result.height)

        return result

    def sanitize(
        self,
        current: Telemetry,
        proposed: Mapping[str, float],
        intent: Optional[Intent] = None,
        rect: Optional[CanvasRect] = None,
    ) -> Telemetry:
        """
        Runs a sparse percentage update through the position, size and
        overflow steps and returns the resulting telemetry.
        """
        rect = rect or self.get_rect()
        x, y = self.sanitize_position(current, proposed)
        width, height = self.sanitize_size(current, proposed, rect)
        return self.sanitize_overflow(
            Telemetry(x, y, width, height), intent, rect
        )

    def apply_delta(
        self,
        current: Telemetry,
        delta: Delta,
        intent: Optional[Intent] = None,
    ) -> Telemetry:
        """
        Applies a pixel delta to the telemetry. Returns the new telemetry,
        or an unchanged copy of current if the update is invalid.
        """
        rect = self.get_rect()
        if rect.is_degenerate:
            logger.debug("Canvas has no extent, ignoring delta")
            return current.copy()

        start = self.to_pixels(current, rect)
        x = start[0] + delta.x
        y = start[1] + delta.y
        width = start[2] + delta.width
        height = start[3] + delta.height

        if isinstance(intent, ResizeIntent) and intent.locked:
            x, y, width, height = apply_aspect_ratio(
                delta, start, (x, y, width, height), intent.aspect_ratio
            )
            if x < 0 or x + width > rect.width:
                logger.debug(f"Aspect locked resize leaves canvas: x={x}")
                return current.copy()
            if y < 0 or y + height > rect.height:
                logger.debug(f"Aspect locked resize leaves canvas: y={y}")
                return current.copy()

        if x < 0 and delta.width:
            width += x
            x = 0.0

        if y < 0 and delta.height:
            height += y
            y = 0.0

        if width < self.min_size_px or height < self.min_size_px:
            logger.debug(
                f"Rejecting size {width:.1f}x{height:.1f}px below minimum "
                f"{self.min_size_px}px"
            )
            return current.copy()

        proposed = {
            "x": px_to_percent(x, rect.width),
            "y": px_to_percent(y, rect.height),
            "width": px_to_percent(width, rect.width),
            "height": px_to_percent(height, rect.height),
        }
        return self.sanitize(current, proposed, intent, rect)
