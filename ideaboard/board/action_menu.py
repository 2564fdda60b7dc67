from __future__ import annotations
import logging
from enum import Enum, auto
from typing import Any, Callable, List, Optional
from .events import KeyEvent, ACTIVATION_KEYS


logger = logging.getLogger(__name__)


class ButtonKind(Enum):
    PULSE = auto()  # fires once per activation
    TOGGLE = auto()  # stays active until activated again


class MenuButton:
    """
    A focusable button of an element's action menu.

    Pulse buttons call on_click when activated. Toggle buttons flip their
    active state when activated and forward all other keys to on_key_down
    together with that state, so arrow keys can drive the element while
    the toggle is held active.
    """

    def __init__(
        self,
        button_id: str,
        kind: ButtonKind = ButtonKind.PULSE,
        on_click: Optional[Callable[[MenuButton, bool], None]] = None,
        on_key_down: Optional[Callable[[KeyEvent, bool], None]] = None,
        on_key_up: Optional[Callable[[KeyEvent], None]] = None,
        on_toggle: Optional[Callable[[bool], None]] = None,
    ):
        self.id = button_id
        self.kind = kind
        self.on_click = on_click
        self.on_key_down = on_key_down
        self.on_key_up = on_key_up
        self.on_toggle = on_toggle
        self.active: bool = False

    def __repr__(self) -> str:
        return f"MenuButton({self.id!r}, active={self.active})"

    def click(self, from_keyboard: bool = False):
        logger.debug(f"Menu button {self.id} activated")
        if self.kind is ButtonKind.TOGGLE:
            self.set_active(not self.active)
        elif self.on_click:
            self.on_click(self, from_keyboard)

    def set_active(self, active: bool):
        if self.kind is not ButtonKind.TOGGLE or self.active == active:
            return
        self.active = active
        if self.on_toggle:
            self.on_toggle(active)

    def handle_key_down(self, event: KeyEvent):
        if event.key in ACTIVATION_KEYS:
            self.click(from_keyboard=True)
            return
        if self.kind is ButtonKind.TOGGLE and self.on_key_down:
            self.on_key_down(event, self.active)

    def handle_key_up(self, event: KeyEvent):
        if self.kind is ButtonKind.TOGGLE and self.on_key_up:
            self.on_key_up(event)


class ActionMenu:
    """The accessible menu of actions shown while an element has focus."""

    def __init__(self, buttons: Optional[List[MenuButton]] = None):
        self.buttons: List[MenuButton] = list(buttons or [])
        self.visible: bool = False

    def add(self, button: MenuButton) -> MenuButton:
        self.buttons.append(button)
        return button

    def get_button(self, button_id: str) -> Optional[MenuButton]:
        for button in self.buttons:
            if button.id == button_id:
                return button
        return None

    def contains(self, target: Any) -> bool:
        return any(target is button for button in self.buttons)

    def show(self):
        self.visible = True

    def hide(self):
        self.visible = False
        for button in self.buttons:
            button.set_active(False)
