"""Test-wide setup for the table client: MAHJONG_* defaults, log routing, shared fakes."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from game.tests.mocks.room_server import FakeRoomServer
from game.tests.mocks.transport import MockTransportFactory
from shared.logging import configure_structlog

# points ClientSettings at the in-process bootstrap fake and sets log format/level
load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

configure_structlog()


@pytest.fixture(autouse=True)
def _isolated_session_context():
    """Room and player ids bound by one test must not show up in the next one's logs."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def room_server() -> FakeRoomServer:
    return FakeRoomServer()


@pytest.fixture
def transport_factory() -> MockTransportFactory:
    return MockTransportFactory()
