from __future__ import annotations
from enum import Enum
from typing import Optional, Set, Tuple
from ..core.telemetry import PixelBox


class KnobPosition(Enum):
    """Compass positions of the resize knobs around an element."""

    TOP_LEFT = "top-left"
    TOP = "top"
    TOP_RIGHT = "top-right"
    LEFT = "left"
    RIGHT = "right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM = "bottom"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def resizes_horizontally(self) -> bool:
        return self in LEFT_KNOBS or self in RIGHT_KNOBS

    @property
    def resizes_vertically(self) -> bool:
        return self in TOP_KNOBS or self in BOTTOM_KNOBS

    @property
    def horizontal_factor(self) -> int:
        """-1 where dragging towards the origin grows the element."""
        return -1 if self in LEFT_KNOBS else 1

    @property
    def vertical_factor(self) -> int:
        return -1 if self in TOP_KNOBS else 1


LEFT_KNOBS: Set[KnobPosition] = {
    KnobPosition.TOP_LEFT,
    KnobPosition.LEFT,
    KnobPosition.BOTTOM_LEFT,
}

RIGHT_KNOBS: Set[KnobPosition] = {
    KnobPosition.TOP_RIGHT,
    KnobPosition.RIGHT,
    KnobPosition.BOTTOM_RIGHT,
}

TOP_KNOBS: Set[KnobPosition] = {
    KnobPosition.TOP_LEFT,
    KnobPosition.TOP,
    KnobPosition.TOP_RIGHT,
}

BOTTOM_KNOBS: Set[KnobPosition] = {
    KnobPosition.BOTTOM_LEFT,
    KnobPosition.BOTTOM,
    KnobPosition.BOTTOM_RIGHT,
}

CORNER_KNOBS: Set[KnobPosition] = (TOP_KNOBS | BOTTOM_KNOBS) & (
    LEFT_KNOBS | RIGHT_KNOBS
)

EDGE_KNOBS: Set[KnobPosition] = set(KnobPosition) - CORNER_KNOBS


def get_knob_rect(
    position: KnobPosition, box: PixelBox, knob_size: float
) -> Tuple[float, float, float, float]:
    """
    Returns the hit rectangle (x, y, w, h) of a knob for an element box,
    in the same pixel frame as the box.

    Corner knobs are squares inside the corners. Edge knobs span the
    space between them. Knobs shrink on small elements so they never
    overlap.
    """
    bx, by, w, h = box
    hw = min(knob_size, w / 3.0)
    hh = min(knob_size, h / 3.0)
    middle_w = max(0.0, w - 2.0 * hw)
    middle_h = max(0.0, h - 2.0 * hh)

    if position == KnobPosition.TOP_LEFT:
        return bx, by, hw, hh
    if position == KnobPosition.TOP_RIGHT:
        return bx + w - hw, by, hw, hh
    if position == KnobPosition.BOTTOM_LEFT:
        return bx, by + h - hh, hw, hh
    if position == KnobPosition.BOTTOM_RIGHT:
        return bx + w - hw, by + h - hh, hw, hh
    if position == KnobPosition.TOP:
        return bx + hw, by, middle_w, hh
    if position == KnobPosition.BOTTOM:
        return bx + hw, by + h - hh, middle_w, hh
    if position == KnobPosition.LEFT:
        return bx, by + hh, hw, middle_h
    return bx + w - hw, by + hh, hw, middle_h


def check_knob_hit(
    x: float,
    y: float,
    box: PixelBox,
    knob_size: float,
    positions: Optional[Set[KnobPosition]] = None,
) -> Optional[KnobPosition]:
    """Returns the knob under the point, if any."""
    for position in positions if positions is not None else KnobPosition:
        rx, ry, rw, rh = get_knob_rect(position, box, knob_size)
        if rw > 0 and rh > 0 and rx <= x < rx + rw and ry <= y < ry + rh:
            return position
    return None


def box_contains(box: PixelBox, x: float, y: float) -> bool:
    bx, by, w, h = box
    return bx <= x < bx + w and by <= y < by + h
