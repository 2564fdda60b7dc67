import pytest
from ideaboard.config import Config
from ideaboard.core.geometry import CanvasRect
from ideaboard.board.canvas import Canvas
from ideaboard.board.surface import ContentSurface


class FakeClock:
    """A monotonic clock the tests advance by hand."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, ms: float):
        self.now += ms / 1000.0


@pytest.fixture
def rect():
    return CanvasRect(0.0, 0.0, 1000.0, 500.0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def canvas(rect, clock, config):
    """A 1000x500 canvas at the client origin."""
    return Canvas(lambda: rect, config=config, clock=clock)


@pytest.fixture
def add_card(canvas):
    """
    Adds a card and returns its element. Cards get a content surface with
    one focusable node unless told otherwise.
    """

    def _add(telemetry=None, nodes=1, **kwargs):
        surface = ContentSurface([object() for _ in range(nodes)])
        element_id = canvas.add_element(
            telemetry=telemetry, surface=surface, **kwargs
        )
        return canvas.get_element(element_id)

    return _add
