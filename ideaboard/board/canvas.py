from __future__ import annotations
import time
import logging
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)
from blinker import Signal
from ..config import Config, get_config
from ..core.capabilities import Capabilities
from ..core.geometry import CanvasRect, fit_within, px_to_percent
from ..core.telemetry import Telemetry
from .action_menu import MenuButton
from .dismiss import DismissSubscription
from .element import InteractionElement, Mode
from .events import KeyEvent, PointerEvent
from .knob import ResizeKnob
from .region import box_contains, check_knob_hit
from .surface import ContentSurface

logger = logging.getLogger(__name__)


RectLike = Union[CanvasRect, Tuple[float, float, float, float]]


class Canvas:
    """
    The board hosting all interaction elements.

    The element list defines both the stacking order (last is on top) and
    the tab order. The canvas routes input to elements, knobs and menu
    buttons the way a browser delivers events to a document: it resolves
    targets by hit testing, bubbles key events from menu buttons to their
    element, retargets captured pointers and keeps track of focus.

    It also owns the dismiss subscription: while any element is in
    INTERACT mode, exactly one click listener ends editing for every
    element the click did not land on.
    """

    def __init__(
        self,
        get_rect: Callable[[], RectLike],
        summary_provider: Optional[Callable[[str], str]] = None,
        denominator_provider: Optional[Callable[[str], str]] = None,
        config: Optional[Config] = None,
        authoring: bool = True,
        user_can_edit: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            get_rect: Returns the live canvas bounding rectangle in client
                pixels, either a CanvasRect or (left, top, width, height).
            summary_provider: Returns the accessible summary of a card.
            denominator_provider: Returns the accessible position of a
                card, defaults to "Card N of M".
            config: Interaction tunables, defaults to the user config.
            authoring: Whether the board is being authored or played.
            user_can_edit: Whether players may edit cards in playback.
            clock: Monotonic clock used for focus-retention windows.
        """
        self._get_rect = get_rect
        self.summary_provider = summary_provider
        self.denominator_provider = denominator_provider
        self.config: Config = config or get_config()
        self.authoring = authoring
        self.user_can_edit = user_can_edit
        self.clock = clock

        self.elements: List[InteractionElement] = []
        self.focused: Any = None
        self._captures: Dict[int, Any] = {}

        # --- Signals ---
        self.element_added = Signal()
        self.element_deleted = Signal()
        self.element_moved = Signal()
        self.order_changed = Signal()
        self.telemetry_changed = Signal()
        self.editing_changed = Signal()
        self.edit_requested = Signal()
        self.delete_requested = Signal()
        self.resize_completed = Signal()

        # Document-level signals, elements connect to these transiently
        self.document_clicked = Signal()
        self.pointer_moved = Signal()
        self.pointer_released = Signal()

        self.dismiss = DismissSubscription(
            self.document_clicked, self._on_dismiss_click
        )

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[InteractionElement]:
        return iter(list(self.elements))

    def get_rect(self) -> CanvasRect:
        rect = self._get_rect()
        if isinstance(rect, CanvasRect):
            return rect
        left, top, width, height = rect
        return CanvasRect(left, top, width, height)

    # --- Element collection ---

    @property
    def order(self) -> List[str]:
        """Element ids in stacking order, bottom first."""
        return [element.id for element in self.elements]

    @property
    def active_edit_ids(self):
        return self.dismiss.holders

    def get_element(
        self, element_id: Optional[str]
    ) -> Optional[InteractionElement]:
        if not element_id:
            return None
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def add_element(
        self,
        telemetry: Optional[Union[Telemetry, Mapping[str, Any]]] = None,
        element_id: Optional[str] = None,
        surface: Optional[ContentSurface] = None,
        capabilities: Optional[
            Union[Capabilities, Mapping[str, bool]]
        ] = None,
        focus: bool = True,
    ) -> str:
        """
        Adds an element on top of the stack and returns its id.

        Telemetry may be sparse; missing values get defaults. All values
        are run through the clamp pipeline.
        """
        if element_id is not None and self.get_element(element_id):
            raise ValueError(f"Element id {element_id!r} is already in use")
        if isinstance(telemetry, Telemetry):
            telemetry = telemetry.to_dict()

        element = InteractionElement(
            element_id=element_id,
            telemetry=telemetry,
            capabilities=Capabilities.resolve(
                capabilities, self.authoring, self.user_can_edit
            ),
            surface=surface,
            canvas=self,
            config=self.config,
            clock=self.clock,
        )
        self._connect_element_signals(element)
        self.elements.append(element)
        element.surface.attach()
        logger.debug(f"Added {element} at {element.telemetry}")
        self.element_added.send(self, element_id=element.id)

        if focus:
            element.focus()
        return element.id

    def add_element_at(
        self, client_x: float, client_y: float, **kwargs: Any
    ) -> str:
        """Adds an element with its top-left corner at a client point."""
        rect = self.get_rect()
        telemetry = dict(kwargs.pop("telemetry", None) or {})
        telemetry["x"] = px_to_percent(client_x - rect.left, rect.width)
        telemetry["y"] = px_to_percent(client_y - rect.top, rect.height)
        return self.add_element(telemetry=telemetry, **kwargs)

    def delete_element(self, element_id: str) -> bool:
        """
        Removes an element. Sends element_deleted with the element that
        should receive focus next, the following sibling if there is one.
        """
        element = self.get_element(element_id)
        if element is None:
            return False

        index = self.elements.index(element)
        if index + 1 < len(self.elements):
            focus_next = self.elements[index + 1]
        elif index > 0:
            focus_next = self.elements[index - 1]
        else:
            focus_next = None

        had_focus = self.contains_focus(element)
        self.dismiss.release(element.id)
        self._disconnect_element_signals(element)
        self.elements.remove(element)
        element.destroy()
        for pointer_id, owner in list(self._captures.items()):
            if element.contains(owner):
                del self._captures[pointer_id]
        if had_focus:
            self.focused = None

        logger.debug(f"Deleted {element}")
        self.element_deleted.send(
            self, element_id=element.id, focus=focus_next
        )
        return True

    def request_delete(self, element_id: str):
        """Asks the host to confirm and perform a deletion."""
        element = self.get_element(element_id)
        if element is None or not element.capabilities.delete:
            return
        self.delete_requested.send(self, element_id=element_id)

    def edit_element(self, element_id: str) -> bool:
        element = self.get_element(element_id)
        if element is None:
            return False
        element.set_mode(Mode.INTERACT)
        if element.mode is not Mode.INTERACT:
            return False
        self.edit_requested.send(self, element_id=element_id)
        return True

    def get_telemetry(self, element_id: str) -> Optional[Telemetry]:
        element = self.get_element(element_id)
        return element.get_telemetry() if element else None

    def set_telemetry(
        self, element_id: str, partial: Mapping[str, float]
    ) -> Optional[Telemetry]:
        element = self.get_element(element_id)
        if element is None:
            return None
        return element.set_telemetry(partial)

    def snapshot(self) -> List[Dict[str, Any]]:
        """Returns [{id, telemetry}] in stacking order."""
        return [element.to_dict() for element in self.elements]

    def load(self, snapshot: Sequence[Mapping[str, Any]]) -> List[str]:
        """
        Adds elements from a snapshot. Telemetry is validated and re-run
        through the clamp pipeline rather than trusted.

        Every entry is validated before anything is added, so a malformed
        snapshot raises ValueError and leaves the canvas unchanged.
        """
        entries = []
        seen = set(self.order)
        for item in snapshot:
            telemetry = Telemetry.from_dict(item.get("telemetry") or {})
            element_id = item.get("id")
            if element_id is not None:
                if element_id in seen:
                    raise ValueError(
                        f"Element id {element_id!r} is already in use"
                    )
                seen.add(element_id)
            entries.append((element_id, telemetry))

        return [
            self.add_element(
                telemetry=telemetry, element_id=element_id, focus=False
            )
            for element_id, telemetry in entries
        ]

    # --- Stacking order ---

    def bring_to_front(self, element_id: str, next_focus: Any = None) -> bool:
        return self._restack(element_id, len(self.elements), next_focus)

    def send_to_back(self, element_id: str, next_focus: Any = None) -> bool:
        return self._restack(element_id, 0, next_focus)

    def _restack(self, element_id: str, index: int, next_focus: Any) -> bool:
        element = self.get_element(element_id)
        if element is None:
            return False

        self.elements.remove(element)
        self.elements.insert(min(index, len(self.elements)), element)

        # Re-attaching drops any focus held inside the element.
        if self.contains_focus(element):
            self.set_focus(None)
        element.surface.detach()
        element.surface.attach()

        self.set_focus(next_focus if next_focus is not None else element)
        self.order_changed.send(self, element_id=element_id)
        return True

    # --- Accessibility ---

    def get_denominator(self, element_id: str) -> str:
        if self.denominator_provider is not None:
            return self.denominator_provider(element_id)

        total = len(self.elements)
        element = self.get_element(element_id)
        if element is None:
            return "Card"
        position = self.elements.index(element) + 1
        return f"Card {position} of {total}"

    def get_summary_text(self, element_id: str) -> str:
        if self.summary_provider is None:
            return ""
        return self.summary_provider(element_id)

    def tab_order(self) -> List[Any]:
        """Focusable targets in sequential navigation order."""
        targets: List[Any] = []
        for element in self.elements:
            if element.tab_stop:
                targets.append(element)
            if element.mode is Mode.INTERACT and not element.surface.inert:
                targets.extend(element.surface.nodes)
            if element.action_menu.visible:
                targets.extend(element.action_menu.buttons)
        return targets

    def focus_next(self, reverse: bool = False) -> Any:
        targets = self.tab_order()
        if not targets:
            return None
        try:
            index = next(
                i for i, t in enumerate(targets) if t is self.focused
            )
        except StopIteration:
            index = len(targets) if reverse else -1
        index = (index - 1 if reverse else index + 1) % len(targets)
        self.set_focus(targets[index])
        return self.focused

    def get_fullscreen_size(
        self, available_width: float, available_height: float
    ) -> Optional[Tuple[float, float]]:
        """
        Returns the canvas size for fullscreen display, keeping the aspect
        ratio, or None if it cannot be computed.
        """
        rect = self.get_rect()
        return fit_within(
            rect.width, rect.height, available_width, available_height
        )

    # --- Focus ---

    def find_owner(self, target: Any) -> Optional[InteractionElement]:
        """Returns the element containing target."""
        if target is None:
            return None
        for element in self.elements:
            if element.contains(target):
                return element
        return None

    def contains_focus(self, element: InteractionElement) -> bool:
        return element.contains(self.focused)

    def set_focus(self, target: Any):
        """
        Moves focus to target, None blurs. The element losing focus is
        told where focus went, the element gaining it is told what got it.
        """
        previous = self.focused
        if previous is target:
            return
        self.focused = target

        old_owner = self.find_owner(previous)
        if old_owner is not None:
            old_owner.handle_focus_out(target)

        new_owner = self.find_owner(target)
        if new_owner is not None and self.focused is target:
            new_owner.handle_focus_in(target)

    # --- Pointer capture ---

    def capture_pointer(self, pointer_id: int, owner: Any):
        self._captures[pointer_id] = owner

    def release_pointer(self, pointer_id: int, owner: Any):
        if self._captures.get(pointer_id) is owner:
            del self._captures[pointer_id]

    def has_pointer_capture(self, pointer_id: int, owner: Any) -> bool:
        return self._captures.get(pointer_id) is owner

    # --- Input routing ---

    def hit_test(self, client_x: float, client_y: float) -> Any:
        """
        Returns the top-most target under a client point: a knob, an
        element, the content surface of an element in INTERACT mode, or
        None for empty canvas.
        """
        knob_size = self.config.knob_size_px
        for element in reversed(self.elements):
            box = element.get_client_box()
            position = check_knob_hit(
                client_x, client_y, box, knob_size, set(element.knobs)
            )
            if position is not None:
                return element.knobs[position]
            if box_contains(box, client_x, client_y):
                if element.mode is Mode.INTERACT:
                    return element.surface
                return element
        return None

    def _resolve_target(self, event: PointerEvent) -> Any:
        captor = self._captures.get(event.pointer_id)
        if captor is not None:
            event.target = captor
        elif event.target is None:
            event.target = self.hit_test(event.x, event.y)
        return event.target

    def dispatch_pointer_down(self, event: PointerEvent):
        if event.target is None:
            event.target = self.hit_test(event.x, event.y)
        target = event.target

        if target is None:
            self.set_focus(None)
            return

        if isinstance(target, ResizeKnob):
            if target.element.tab_stop:
                self.set_focus(target.element)
            target.handle_pointer_down(event)
            return

        owner = self.find_owner(target)
        if owner is None:
            return
        if target is owner:
            owner.handle_pointer_down(event)
        else:
            self.set_focus(target)

    def dispatch_pointer_move(self, event: PointerEvent):
        self._resolve_target(event)
        self.pointer_moved.send(self, event=event)

    def dispatch_pointer_up(self, event: PointerEvent):
        self._resolve_target(event)
        self.pointer_released.send(self, event=event)
        # Capture is released implicitly after pointer up.
        self._captures.pop(event.pointer_id, None)

    def dispatch_click(self, event: PointerEvent):
        target = event.target
        if target is None:
            target = self.hit_test(event.x, event.y)
        if isinstance(target, MenuButton):
            target.click(from_keyboard=False)
        self.document_clicked.send(self, target=target)

    def dispatch_key_down(self, event: KeyEvent):
        if event.target is None:
            event.target = self.focused
        owner = self.find_owner(event.target)
        if owner is None:
            return
        if isinstance(event.target, MenuButton):
            event.target.handle_key_down(event)
            if event.propagation_stopped:
                return
        owner.handle_key_down(event)

    def dispatch_key_up(self, event: KeyEvent):
        if event.target is None:
            event.target = self.focused
        owner = self.find_owner(event.target)
        if owner is None:
            return
        if isinstance(event.target, MenuButton):
            event.target.handle_key_up(event)
            if event.propagation_stopped:
                return
        owner.handle_key_up(event)

    # --- Element signals ---

    def _connect_element_signals(self, element: InteractionElement):
        element.mode_changed.connect(self._on_mode_changed)
        element.telemetry_changed.connect(self._on_telemetry_changed)
        element.move_completed.connect(self._on_move_completed)
        element.resize_completed.connect(self._on_resize_completed)

    def _disconnect_element_signals(self, element: InteractionElement):
        element.mode_changed.disconnect(self._on_mode_changed)
        element.telemetry_changed.disconnect(self._on_telemetry_changed)
        element.move_completed.disconnect(self._on_move_completed)
        element.resize_completed.disconnect(self._on_resize_completed)

    def _on_mode_changed(self, sender: InteractionElement, *, mode: Mode):
        if mode is Mode.INTERACT:
            self.dismiss.acquire(sender.id)
            content = sender.surface.focus_target()
            if content is not None:
                self.set_focus(content)
        else:
            self.dismiss.release(sender.id)
        self.editing_changed.send(self, element_id=sender.id, mode=mode)

    def _on_telemetry_changed(
        self, sender: InteractionElement, *, telemetry: Telemetry
    ):
        self.telemetry_changed.send(
            self, element_id=sender.id, telemetry=telemetry
        )

    def _on_move_completed(self, sender: InteractionElement, **kwargs):
        self.element_moved.send(self, element_id=sender.id)

    def _on_resize_completed(self, sender: InteractionElement, **kwargs):
        self.resize_completed.send(self, element_id=sender.id)

    def _on_dismiss_click(self, target: Any, holders: List[str]):
        for element_id in holders:
            element = self.get_element(element_id)
            if element is not None and not element.contains(target):
                element.set_mode(Mode.VIEW)
