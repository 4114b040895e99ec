import pytest

from helpers import RecordingChannel
from registry import RoomRegistry
from relay import SignalRouter


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def relay(registry):
    return SignalRouter(registry)


@pytest.fixture
def connect(relay):
    def _connect(channel=None):
        return relay.connect(channel if channel is not None else RecordingChannel())
    return _connect
