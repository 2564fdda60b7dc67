from __future__ import annotations
import time
import uuid
import random
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Mapping,
    Optional,
    Union,
)
from blinker import Signal
from ..config import Config
from ..core.capabilities import Capabilities
from ..core.geometry import (
    CanvasRect,
    Delta,
    GeometryClamp,
    Intent,
    MoveIntent,
    ResizeIntent,
)
from ..core.telemetry import Telemetry, PixelBox
from .action_menu import ActionMenu, ButtonKind, MenuButton
from .events import (
    ACTIVATION_KEYS,
    ESCAPE,
    SHIFT,
    KeyEvent,
    PointerEvent,
    arrow_vector,
)
from .focus import FocusGuard
from .knob import ResizeKnob
from .region import KnobPosition
from .surface import ContentSurface

# Forward declaration for type hinting
if TYPE_CHECKING:
    from .canvas import Canvas


logger = logging.getLogger(__name__)


class Mode(Enum):
    VIEW = auto()
    INTERACT = auto()


@dataclass
class _MoveSession:
    pointer_id: int
    had_focus: bool
    last_x: float
    last_y: float
    captured: bool = False
    moved: bool = False


class InteractionElement:
    """
    A movable, resizable card on the canvas.

    The element owns the card's telemetry and its interaction mode. In
    VIEW mode pointer drags move the card and the hosted content is inert.
    In INTERACT mode input is delegated to the content surface. Resizing
    is done through the knobs or, like moving, with the keyboard through
    the toggle buttons of the action menu.

    Signals:
        mode_changed(sender, mode): after every mode transition.
        telemetry_changed(sender, telemetry): after an accepted update.
        move_completed(sender): after a pointer drag that moved the card.
        resize_completed(sender): after a knob or keyboard resize.
    """

    def __init__(
        self,
        element_id: Optional[str] = None,
        telemetry: Optional[Mapping[str, Any]] = None,
        capabilities: Optional[
            Union[Capabilities, Mapping[str, bool]]
        ] = None,
        surface: Optional[ContentSurface] = None,
        canvas: Optional["Canvas"] = None,
        config: Optional[Config] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.id: str = element_id or str(uuid.uuid4())
        self.canvas: Optional["Canvas"] = canvas
        if config is None:
            config = canvas.config if canvas is not None else Config()
        self.config: Config = config
        if isinstance(capabilities, Capabilities):
            self.capabilities: Capabilities = capabilities
        else:
            self.capabilities = Capabilities.resolve(capabilities)
        self.surface: ContentSurface = surface or ContentSurface()

        self.mode: Mode = Mode.VIEW
        self.tab_stop: bool = True
        self.summary: str = ""
        self.shift_pressed: bool = False
        self.focus_guard = FocusGuard(
            lambda: self.config.focus_guard_ms, clock
        )
        self.clamp = GeometryClamp(self._get_rect, self.config)
        self.telemetry: Telemetry = Telemetry()

        # Keyboard gesture state, in pixels per key press
        self.move_delta: float = self.config.move_delta_base
        self.resize_delta: float = self.config.resize_delta_base
        self._keyboard_resized: bool = False
        self._move_session: Optional[_MoveSession] = None

        # Signals
        self.mode_changed = Signal()
        self.telemetry_changed = Signal()
        self.move_completed = Signal()
        self.resize_completed = Signal()

        self.knobs: Dict[KnobPosition, ResizeKnob] = {}
        if self.capabilities.resize:
            for position in KnobPosition:
                self.knobs[position] = ResizeKnob(position, self)

        self.action_menu = self._build_action_menu()
        self.surface.set_inert(True)
        self.load_telemetry(telemetry)

    def __repr__(self) -> str:
        return f"InteractionElement({self.id!r}, {self.mode.name})"

    def _build_action_menu(self) -> ActionMenu:
        menu = ActionMenu()
        if self.capabilities.edit:
            menu.add(MenuButton("edit", on_click=self._on_edit_clicked))
        if self.capabilities.move:
            menu.add(
                MenuButton(
                    "move",
                    ButtonKind.TOGGLE,
                    on_key_down=self._on_move_key_down,
                    on_key_up=self._on_move_key_up,
                    on_toggle=self._on_move_toggled,
                )
            )
        if self.capabilities.resize:
            menu.add(
                MenuButton(
                    "resize",
                    ButtonKind.TOGGLE,
                    on_key_down=self._on_resize_key_down,
                    on_key_up=self._on_resize_key_up,
                    on_toggle=self._on_resize_toggled,
                )
            )
        menu.add(MenuButton("bringToFront", on_click=self._on_bring_to_front))
        menu.add(MenuButton("sendToBack", on_click=self._on_send_to_back))
        if self.capabilities.delete:
            menu.add(MenuButton("delete", on_click=self._on_delete_clicked))
        return menu

    # --- Geometry ---

    def _get_rect(self) -> CanvasRect:
        if self.canvas is None:
            return CanvasRect(0.0, 0.0, 0.0, 0.0)
        return self.canvas.get_rect()

    def get_pixel_box(self) -> PixelBox:
        """Returns x, y, width, height in pixels relative to the canvas."""
        return self.clamp.to_pixels(self.telemetry)

    def get_client_box(self) -> PixelBox:
        """Returns x, y, width, height in client pixels."""
        rect = self._get_rect()
        x, y, width, height = self.clamp.to_pixels(self.telemetry, rect)
        return rect.left + x, rect.top + y, width, height

    def get_telemetry(self) -> Telemetry:
        return self.telemetry.copy()

    def load_telemetry(self, telemetry: Optional[Mapping[str, Any]] = None):
        """
        Replaces the telemetry with persisted or default values. Missing
        values get defaults, everything is run through the clamp pipeline
        keeping the size and shifting the position where it overflows.
        """
        size = self.config.default_size
        defaults = Telemetry(
            float(random.randrange(100)), float(random.randrange(100)),
            size, size,
        )
        proposed = defaults.updated(telemetry or {})
        self._apply_telemetry(
            self.clamp.sanitize(defaults, proposed.to_dict(), MoveIntent())
        )

    def set_telemetry(
        self,
        partial: Mapping[str, float],
        intent: Optional[Intent] = None,
    ) -> Telemetry:
        """
        Applies a sparse percentage update. Without an intent overflow is
        resolved by shrinking. Values are coerced with float(), anything
        non-numeric raises a ValueError.
        """
        proposed = self.telemetry.updated(partial)
        new = self.clamp.sanitize(self.telemetry, proposed.to_dict(), intent)
        self._apply_telemetry(new)
        return self.get_telemetry()

    def update_telemetry_by_px(
        self, delta: Delta, intent: Optional[Intent] = None
    ) -> bool:
        """
        Applies a pixel delta. Returns False if the update was rejected
        or changed nothing.
        """
        new = self.clamp.apply_delta(self.telemetry, delta, intent)
        return self._apply_telemetry(new)

    def move_by_px(self, dx: float, dy: float) -> bool:
        if not self.capabilities.move:
            logger.debug(f"{self} cannot move")
            return False
        return self.update_telemetry_by_px(Delta(dx, dy), MoveIntent())

    def resize_by_px(
        self, delta: Delta, aspect_ratio: Optional[float] = None
    ) -> bool:
        if not self.capabilities.resize:
            logger.debug(f"{self} cannot resize")
            return False
        return self.update_telemetry_by_px(delta, ResizeIntent(aspect_ratio))

    def _apply_telemetry(self, telemetry: Telemetry) -> bool:
        if telemetry == self.telemetry:
            return False
        self.telemetry = telemetry
        self.telemetry_changed.send(self, telemetry=telemetry.copy())
        return True

    def handle_resize_finished(self):
        self.resize_completed.send(self)

    # --- Mode and focus ---

    def contains(self, target: Any) -> bool:
        """True if target is this element or one of its parts."""
        if target is None:
            return False
        if target is self or self.action_menu.contains(target):
            return True
        if any(target is knob for knob in self.knobs.values()):
            return True
        return self.surface.contains(target)

    @property
    def has_focus(self) -> bool:
        return self.canvas is not None and self.canvas.focused is self

    def focus(self):
        if self.canvas is not None:
            self.canvas.set_focus(self)

    def set_mode(self, mode: Mode = Mode.VIEW):
        downgraded = False
        if not self.capabilities.edit:
            downgraded = mode is Mode.INTERACT
            mode = Mode.VIEW
        if downgraded:
            logger.debug(f"{self} cannot be edited, staying in view mode")

        self.mode = mode

        if mode is Mode.INTERACT or downgraded:
            self.focus_guard.arm()

        if mode is Mode.INTERACT:
            self.tab_stop = False
        else:
            if not downgraded:
                self.action_menu.hide()
            self.update_summary()
            self.tab_stop = True

        self.surface.set_inert(mode is not Mode.INTERACT)
        self.mode_changed.send(self, mode=mode)

    def update_summary(self):
        if self.canvas is None:
            return
        denominator = self.canvas.get_denominator(self.id)
        summary_text = self.canvas.get_summary_text(self.id)
        self.summary = f"{denominator}. {summary_text}"

    def handle_focus_in(self, target: Any):
        self.action_menu.show()
        self.update_summary()

    def handle_focus_out(self, related: Any):
        if self.focus_guard.active:
            return
        if self.contains(related):
            return  # Focus is still on this element or one of its parts
        self.set_mode(Mode.VIEW)

    # --- Keyboard ---

    def handle_key_down(self, event: KeyEvent):
        if event.key == SHIFT:
            self.shift_pressed = True

        if event.key == ESCAPE:
            self.set_mode(Mode.VIEW)
            self.focus()
            return

        if event.target is not self:
            return  # No delegation

        if event.key in ACTIVATION_KEYS:
            self.set_mode(Mode.INTERACT)

    def handle_key_up(self, event: KeyEvent):
        if event.key == SHIFT:
            self.shift_pressed = False

    def _on_move_key_down(self, event: KeyEvent, active: bool):
        if not active:
            return
        vector = arrow_vector(event.key)
        if vector is None:
            return
        dx, dy = vector
        self.move_by_px(dx * self.move_delta, dy * self.move_delta)
        self.move_delta += self.config.move_delta_increment
        event.stop_propagation()

    def _on_move_key_up(self, event: Optional[KeyEvent] = None):
        self.move_delta = self.config.move_delta_base

    def _on_move_toggled(self, active: bool):
        self._on_move_key_up()

    def _on_resize_key_down(self, event: KeyEvent, active: bool):
        if not active:
            return
        vector = arrow_vector(event.key)
        if vector is None:
            return
        dx, dy = vector
        delta = Delta(
            width=dx * self.resize_delta, height=dy * self.resize_delta
        )
        if self.resize_by_px(delta):
            self._keyboard_resized = True
        self.resize_delta += self.config.resize_delta_increment
        event.stop_propagation()

    def _on_resize_key_up(self, event: Optional[KeyEvent] = None):
        self.resize_delta = self.config.resize_delta_base
        if self._keyboard_resized:
            self._keyboard_resized = False
            self.handle_resize_finished()

    def _on_resize_toggled(self, active: bool):
        self._on_resize_key_up()

    # --- Pointer ---

    def handle_pointer_down(self, event: PointerEvent):
        if event.target is not self:
            return  # No delegation
        if self.mode is not Mode.VIEW or self._move_session is not None:
            return
        canvas = self.canvas
        if canvas is None:
            return

        had_focus = canvas.focused is self
        if not had_focus:
            canvas.set_focus(self)

        session = _MoveSession(event.pointer_id, had_focus, event.x, event.y)
        self._move_session = session
        canvas.pointer_released.connect(self._on_pointer_released)

        if not self.capabilities.move:
            return

        canvas.capture_pointer(event.pointer_id, self)
        session.captured = True
        canvas.pointer_moved.connect(self._on_pointer_moved)

    def _on_pointer_moved(self, sender: Canvas, event: PointerEvent, **kw):
        session = self._move_session
        if session is None or event.pointer_id != session.pointer_id:
            return
        if event.target is not self or self.mode is not Mode.VIEW:
            return

        dx = event.x - session.last_x
        dy = event.y - session.last_y
        session.last_x, session.last_y = sender.get_rect().clamp_point(
            event.x, event.y
        )
        if not (dx or dy):
            return

        session.moved = True
        self.move_by_px(dx, dy)

    def _on_pointer_released(
        self, sender: Canvas, event: PointerEvent, **kw
    ):
        session = self._move_session
        if session is None or event.pointer_id != session.pointer_id:
            return
        self._end_move_session()

        is_click = session.had_focus and not session.moved
        if is_click and event.target is self and self.mode is Mode.VIEW:
            self.set_mode(Mode.INTERACT)

        if session.moved:
            self.move_completed.send(self)

    def _end_move_session(self):
        session = self._move_session
        self._move_session = None
        canvas = self.canvas
        if session is None or canvas is None:
            return
        if session.captured:
            canvas.release_pointer(session.pointer_id, self)
        canvas.pointer_moved.disconnect(self._on_pointer_moved)
        canvas.pointer_released.disconnect(self._on_pointer_released)

    @property
    def gesture_active(self) -> bool:
        if self._move_session is not None:
            return True
        return any(knob.resizing for knob in self.knobs.values())

    # --- Action menu ---

    def _on_edit_clicked(self, button: MenuButton, from_keyboard: bool):
        if self.canvas is not None:
            self.canvas.edit_element(self.id)

    def _on_delete_clicked(self, button: MenuButton, from_keyboard: bool):
        if self.canvas is not None:
            self.canvas.request_delete(self.id)

    def _on_bring_to_front(self, button: MenuButton, from_keyboard: bool):
        next_focus = button if from_keyboard else None
        self.focus_guard.arm()
        if self.canvas is not None:
            self.canvas.bring_to_front(self.id, next_focus=next_focus)

    def _on_send_to_back(self, button: MenuButton, from_keyboard: bool):
        next_focus = button if from_keyboard else None
        self.focus_guard.arm()
        if self.canvas is not None:
            self.canvas.send_to_back(self.id, next_focus=next_focus)

    def destroy(self):
        """Ends all gestures and detaches the content surface."""
        self._end_move_session()
        self.focus_guard.disarm()
        for knob in self.knobs.values():
            if knob.resizing:
                knob.cancel()
        self.action_menu.hide()
        self.surface.detach()

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "telemetry": self.telemetry.to_dict()}
