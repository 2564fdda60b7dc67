import pytest
from unittest.mock import MagicMock
from ideaboard.core.telemetry import Telemetry
from ideaboard.board.element import Mode
from ideaboard.board.events import (
    ARROW_DOWN,
    ARROW_RIGHT,
    ENTER,
    ESCAPE,
    KeyEvent,
)


@pytest.fixture
def card(add_card):
    return add_card(Telemetry(10, 10, 20, 20))


def activate(canvas, card, button_id):
    button = card.action_menu.get_button(button_id)
    canvas.set_focus(button)
    canvas.dispatch_key_down(KeyEvent(ENTER))
    canvas.dispatch_key_up(KeyEvent(ENTER))
    return button


def test_enter_on_toggle_does_not_enter_interact(canvas, card):
    button = activate(canvas, card, "move")
    assert button.active
    assert card.mode is Mode.VIEW
    assert canvas.focused is button


def test_move_delta_accelerates_and_resets(canvas, card):
    activate(canvas, card, "move")

    positions = [card.telemetry.x]
    for _ in range(4):
        event = KeyEvent(ARROW_RIGHT)
        canvas.dispatch_key_down(event)
        assert event.propagation_stopped
        positions.append(card.telemetry.x)

    steps = [b - a for a, b in zip(positions, positions[1:])]
    assert steps == pytest.approx([0.1, 0.14, 0.18, 0.22])
    assert all(b > a for a, b in zip(steps, steps[1:]))
    assert card.move_delta == pytest.approx(2.6)

    canvas.dispatch_key_up(KeyEvent(ARROW_RIGHT))
    assert card.move_delta == 1.0


def test_keyboard_move_retains_size_at_edge(canvas, add_card):
    card = add_card(Telemetry(79.95, 10, 20, 20))
    activate(canvas, card, "move")
    canvas.dispatch_key_down(KeyEvent(ARROW_RIGHT))
    canvas.dispatch_key_down(KeyEvent(ARROW_RIGHT))
    assert card.telemetry.rect() == pytest.approx((80, 10, 20, 20))


def test_inactive_toggle_ignores_arrows(canvas, card):
    button = card.action_menu.get_button("move")
    canvas.set_focus(button)
    event = KeyEvent(ARROW_RIGHT)
    canvas.dispatch_key_down(event)
    assert not event.propagation_stopped
    assert card.telemetry == Telemetry(10, 10, 20, 20)


def test_toggling_resets_delta(canvas, card):
    button = activate(canvas, card, "move")
    canvas.dispatch_key_down(KeyEvent(ARROW_RIGHT))
    assert card.move_delta == pytest.approx(1.4)
    button.click()
    assert card.move_delta == 1.0


def test_keyboard_resize(canvas, card):
    handler = MagicMock()
    canvas.resize_completed.connect(handler)
    activate(canvas, card, "resize")

    canvas.dispatch_key_down(KeyEvent(ARROW_DOWN))
    canvas.dispatch_key_down(KeyEvent(ARROW_RIGHT))

    assert card.telemetry.rect() == pytest.approx((10, 10, 20.12, 20.2))
    assert card.resize_delta == pytest.approx(1.4)
    handler.assert_not_called()

    canvas.dispatch_key_up(KeyEvent(ARROW_RIGHT))
    canvas.dispatch_key_up(KeyEvent(ARROW_RIGHT))

    assert card.resize_delta == 1.0
    handler.assert_called_once_with(canvas, element_id=card.id)


def test_keyboard_resize_below_minimum_is_dropped(canvas, add_card):
    card = add_card({"x": 10, "y": 10, "width": 4.8, "height": 20})
    activate(canvas, card, "resize")
    canvas.dispatch_key_down(KeyEvent("ArrowLeft"))
    assert card.telemetry.width == pytest.approx(4.8)


def test_escape_on_toggle_returns_to_root(canvas, card):
    button = activate(canvas, card, "resize")
    canvas.dispatch_key_down(KeyEvent(ESCAPE))
    assert canvas.focused is card
    assert not button.active
    assert card.mode is Mode.VIEW


def test_keyboard_bring_to_front_keeps_focus_on_button(canvas, add_card):
    a = add_card(Telemetry(10, 10, 20, 20))
    b = add_card(Telemetry(50, 50, 20, 20))
    button = a.action_menu.get_button("bringToFront")
    canvas.set_focus(button)

    canvas.dispatch_key_down(KeyEvent(ENTER))

    assert canvas.order == [b.id, a.id]
    assert canvas.focused is button
    assert a.action_menu.visible


def test_keyboard_send_to_back(canvas, add_card):
    a = add_card(Telemetry(10, 10, 20, 20))
    b = add_card(Telemetry(50, 50, 20, 20))
    button = b.action_menu.get_button("sendToBack")
    canvas.set_focus(button)

    canvas.dispatch_key_down(KeyEvent(ENTER))

    assert canvas.order == [b.id, a.id]
    assert canvas.focused is button


def test_edit_button_enters_interact(canvas, card):
    handler = MagicMock()
    canvas.edit_requested.connect(handler)
    activate(canvas, card, "edit")
    assert card.mode is Mode.INTERACT
    handler.assert_called_once_with(canvas, element_id=card.id)


def test_delete_button_requests_deletion(canvas, card):
    handler = MagicMock()
    canvas.delete_requested.connect(handler)
    activate(canvas, card, "delete")
    handler.assert_called_once_with(canvas, element_id=card.id)
    assert canvas.get_element(card.id) is card
