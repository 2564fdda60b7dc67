import pytest
from unittest.mock import MagicMock
from ideaboard.config import Config
from ideaboard.core.capabilities import Capabilities
from ideaboard.core.telemetry import Telemetry
from ideaboard.board.canvas import Canvas
from ideaboard.board.element import InteractionElement, Mode
from ideaboard.board.events import ENTER, ESCAPE, SPACE, KeyEvent
from ideaboard.board.region import KnobPosition


def test_new_element_is_in_view_mode(add_card):
    element = add_card(Telemetry(10, 10, 20, 20))
    assert element.mode is Mode.VIEW
    assert element.tab_stop
    assert element.surface.inert
    assert element.surface.attached
    assert len(element.id) == 36


def test_knobs_and_menu_follow_capabilities(add_card):
    full = add_card()
    assert set(full.knobs) == set(KnobPosition)
    assert [b.id for b in full.action_menu.buttons] == [
        "edit",
        "move",
        "resize",
        "bringToFront",
        "sendToBack",
        "delete",
    ]

    limited = add_card(capabilities={"resize": False, "delete": False})
    assert limited.knobs == {}
    assert [b.id for b in limited.action_menu.buttons] == [
        "edit",
        "move",
        "bringToFront",
        "sendToBack",
    ]


def test_default_telemetry_is_valid(add_card):
    for _ in range(20):
        t = add_card().telemetry
        assert t.width == pytest.approx(33.3)
        assert t.height == pytest.approx(33.3)
        assert t.x + t.width <= 100 + 1e-9
        assert t.y + t.height <= 100 + 1e-9


def test_loading_keeps_size_and_shifts_position(add_card):
    element = add_card({"x": 80, "y": 80, "width": 30, "height": 30})
    assert element.telemetry == Telemetry(70, 70, 30, 30)


def test_sparse_telemetry_gets_default_size(add_card):
    element = add_card({"x": 5, "y": 5})
    assert element.telemetry.rect() == pytest.approx((5, 5, 33.3, 33.3))


def test_focus_shows_menu_and_summary(canvas):
    canvas.summary_provider = lambda element_id: "A sunset"
    element = canvas.get_element(canvas.add_element())
    assert canvas.focused is element
    assert element.action_menu.visible
    assert element.summary == "Card 1 of 1. A sunset"


def test_enter_on_root_enters_interact(canvas, add_card):
    element = add_card(Telemetry(10, 10, 20, 20))
    handler = MagicMock()
    element.mode_changed.connect(handler)

    canvas.dispatch_key_down(KeyEvent(ENTER))

    assert element.mode is Mode.INTERACT
    assert not element.tab_stop
    assert not element.surface.inert
    assert canvas.focused is element.surface.nodes[0]
    assert canvas.active_edit_ids == {element.id}
    handler.assert_called_once_with(element, mode=Mode.INTERACT)


def test_space_on_root_enters_interact(canvas, add_card):
    element = add_card()
    canvas.dispatch_key_down(KeyEvent(SPACE))
    assert element.mode is Mode.INTERACT


def test_activation_keys_inside_content_do_nothing(canvas, add_card):
    element = add_card()
    element.set_mode(Mode.INTERACT)
    node = element.surface.nodes[0]
    element.set_mode(Mode.VIEW)
    canvas.dispatch_key_down(KeyEvent(ENTER, target=node))
    assert element.mode is Mode.VIEW


def test_escape_returns_focus_to_root(canvas, add_card):
    element = add_card()
    canvas.dispatch_key_down(KeyEvent(ENTER))

    canvas.dispatch_key_down(KeyEvent(ESCAPE))

    assert element.mode is Mode.VIEW
    assert canvas.focused is element
    assert element.tab_stop
    assert element.surface.inert
    assert canvas.active_edit_ids == set()
    assert element.action_menu.visible


def test_leaving_view_mode_hides_menu_and_updates_summary(canvas):
    texts = {"value": "before"}
    canvas.summary_provider = lambda element_id: texts["value"]
    element = canvas.get_element(canvas.add_element())
    element.set_mode(Mode.INTERACT)
    texts["value"] = "after"

    element.set_mode(Mode.VIEW)

    assert not element.action_menu.visible
    assert element.summary == "Card 1 of 1. after"


def test_focus_loss_within_guard_window_keeps_interact(
    canvas, add_card, clock
):
    element = add_card()
    element.set_mode(Mode.INTERACT)

    canvas.set_focus(None)
    assert element.mode is Mode.INTERACT

    clock.advance(150)
    canvas.set_focus(element.surface.nodes[0])
    canvas.set_focus(None)
    assert element.mode is Mode.VIEW


def test_focus_moving_to_another_card_ends_interact(
    canvas, add_card, clock
):
    a = add_card(Telemetry(10, 10, 20, 20))
    b = add_card(Telemetry(50, 50, 20, 20), focus=False)
    a.set_mode(Mode.INTERACT)
    clock.advance(150)

    canvas.set_focus(b)

    assert a.mode is Mode.VIEW
    assert canvas.active_edit_ids == set()


def test_focus_within_the_card_keeps_interact(canvas, add_card, clock):
    element = add_card(nodes=2)
    element.set_mode(Mode.INTERACT)
    clock.advance(150)

    canvas.set_focus(element.surface.nodes[1])

    assert element.mode is Mode.INTERACT


def test_interact_request_without_edit_is_downgraded(canvas, add_card):
    element = add_card(capabilities={"edit": False})
    assert element.action_menu.get_button("edit") is None

    canvas.dispatch_key_down(KeyEvent(ENTER))

    assert element.mode is Mode.VIEW
    assert element.focus_guard.active
    assert element.action_menu.visible
    assert canvas.active_edit_ids == set()


def test_playback_without_user_edit_never_interacts(rect, clock):
    canvas = Canvas(
        lambda: rect,
        config=Config(),
        authoring=False,
        user_can_edit=False,
        clock=clock,
    )
    element = canvas.get_element(canvas.add_element())
    assert element.capabilities == Capabilities(edit=False)
    assert not canvas.edit_element(element.id)
    assert element.mode is Mode.VIEW


def test_telemetry_changed_signal(add_card):
    element = add_card(Telemetry(10, 10, 20, 20))
    handler = MagicMock()
    element.telemetry_changed.connect(handler)

    element.set_telemetry({"x": 30})
    element.set_telemetry({"x": 30})

    handler.assert_called_once_with(
        element, telemetry=Telemetry(30, 10, 20, 20)
    )


def test_set_telemetry_shrinks_on_overflow(add_card):
    element = add_card(Telemetry(10, 10, 20, 20))
    t = element.set_telemetry({"x": 95})
    assert t.rect() == pytest.approx((95, 10, 5, 20))


def test_move_without_capability_is_a_noop(add_card):
    element = add_card(Telemetry(10, 10, 20, 20), capabilities={"move": False})
    assert not element.move_by_px(100, 0)
    assert element.telemetry == Telemetry(10, 10, 20, 20)


def test_client_box_includes_canvas_offset(clock):
    canvas = Canvas(lambda: (10, 20, 1000, 500), config=Config(), clock=clock)
    element = canvas.get_element(
        canvas.add_element(Telemetry(10, 10, 20, 20))
    )
    assert element.get_pixel_box() == pytest.approx((100, 50, 200, 100))
    assert element.get_client_box() == pytest.approx((110, 70, 200, 100))


def test_detached_element_has_no_extent():
    element = InteractionElement(telemetry={"x": 10, "y": 10})
    assert element.get_pixel_box() == (0, 0, 0, 0)
    assert not element.move_by_px(10, 10)


def test_to_dict(add_card):
    element = add_card(Telemetry(10, 10, 20, 20), element_id="card-1")
    assert element.to_dict() == {
        "id": "card-1",
        "telemetry": {"x": 10, "y": 10, "width": 20, "height": 20},
    }


def test_guard_window_follows_config(canvas, add_card, config, clock):
    element = add_card()
    config.set(focus_guard_ms=1000)
    element.set_mode(Mode.INTERACT)

    clock.advance(500)
    assert element.focus_guard.active
    canvas.set_focus(None)
    assert element.mode is Mode.INTERACT

    clock.advance(600)
    assert not element.focus_guard.active


def test_destroy_disarms_guard(add_card):
    element = add_card()
    element.set_mode(Mode.INTERACT)
    assert element.focus_guard.active
    element.destroy()
    assert not element.focus_guard.active
