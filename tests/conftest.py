import pytest

from floorplan.models import EditorParams
from floorplan.core.events import EventBus
from floorplan.core.graph import WallGraph
from floorplan.services.session import EditorSession


@pytest.fixture
def params():
    """Default editor parameters"""
    return EditorParams()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def graph(params, bus):
    """Standalone graph with its own bus"""
    return WallGraph(params, bus)


@pytest.fixture
def session():
    """Fresh editor session, select tool active"""
    s = EditorSession()
    yield s
    s.dispose()


@pytest.fixture
def events(session):
    """Every event emitted on the session bus, in order"""
    seen = []
    session.bus.on("*", seen.append)
    return seen
