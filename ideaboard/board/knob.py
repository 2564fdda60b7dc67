from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Optional
from ..core.geometry import Delta
from .events import PointerEvent
from .region import KnobPosition

if TYPE_CHECKING:
    from .canvas import Canvas
    from .element import InteractionElement


logger = logging.getLogger(__name__)


class ResizeKnob:
    """
    A drag handle at one compass position of an element.

    A knob owns at most one gesture at a time. On pointer down it captures
    the pointer and remembers the element's aspect ratio; every pointer
    move is turned into a raw pixel delta for its element, and pointer up
    ends the gesture and removes the transient listeners.
    """

    def __init__(self, position: KnobPosition, element: InteractionElement):
        self.position = position
        self.element = element
        self.resizing: bool = False
        self.aspect_ratio: Optional[float] = None
        self._pointer_id: Optional[int] = None
        self._last_x: float = 0.0
        self._last_y: float = 0.0

    def __repr__(self) -> str:
        return f"ResizeKnob({self.position.value}, {self.element.id})"

    @property
    def canvas(self) -> Optional[Canvas]:
        return self.element.canvas

    def handle_pointer_down(self, event: PointerEvent):
        if event.target is not self or self.resizing:
            return
        canvas = self.canvas
        if canvas is None:
            return

        _, _, width, height = self.element.get_pixel_box()
        self.aspect_ratio = width / height if height else None
        self.resizing = True
        self._pointer_id = event.pointer_id
        self._last_x, self._last_y = event.x, event.y

        canvas.capture_pointer(event.pointer_id, self)
        canvas.pointer_moved.connect(self._on_pointer_moved)
        canvas.pointer_released.connect(self._on_pointer_released)
        logger.debug(f"{self} started resizing")

    def _on_pointer_moved(self, sender: Canvas, event: PointerEvent, **kw):
        if not self.resizing or event.target is not self:
            return

        width = height = 0.0
        if self.position.resizes_horizontally:
            width = (event.x - self._last_x) * self.position.horizontal_factor
        if self.position.resizes_vertically:
            height = (event.y - self._last_y) * self.position.vertical_factor

        # Growing towards the origin moves the element's origin with it.
        x = -width if self.position.horizontal_factor < 0 else 0.0
        y = -height if self.position.vertical_factor < 0 else 0.0

        self._last_x, self._last_y = sender.get_rect().clamp_point(
            event.x, event.y
        )

        aspect_ratio = self.aspect_ratio if self.element.shift_pressed else None
        self.element.resize_by_px(Delta(x, y, width, height), aspect_ratio)

    def _on_pointer_released(
        self, sender: Canvas, event: PointerEvent, **kw
    ):
        if not self.resizing or event.pointer_id != self._pointer_id:
            return
        self.cancel()
        self.element.handle_resize_finished()

    def cancel(self):
        """Ends the gesture and drops capture and listeners."""
        canvas = self.canvas
        if canvas is not None:
            if self._pointer_id is not None:
                canvas.release_pointer(self._pointer_id, self)
            canvas.pointer_moved.disconnect(self._on_pointer_moved)
            canvas.pointer_released.disconnect(self._on_pointer_released)
        self.resizing = False
        self.aspect_ratio = None
        self._pointer_id = None
