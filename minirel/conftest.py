import pytest

from minirel.config import EngineConfig
from minirel.database import DatabaseEngine
from minirel.generator import SchemaGenerator
from minirel.session import Session


@pytest.fixture
def engine():
    engine = DatabaseEngine(config=EngineConfig(database=":memory:"))
    yield engine
    engine.close()


@pytest.fixture
def make_session(engine):
    """Create the tables of a registry and open a session on them."""
    sessions = []

    def _make(registry):
        SchemaGenerator().create_all(engine, registry)
        session = Session(engine)
        sessions.append(session)
        return session

    yield _make
    for session in sessions:
        session.close()
