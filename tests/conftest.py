import pytest

from data import JsonFileStore
from device import DeviceClass, DeviceRecord
from identifiers import IdentifierStore

from fakes import FakeClock, RecordingNotifier


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "known_devices.json"


@pytest.fixture
def identifier_store(store_path, clock):
    return IdentifierStore(JsonFileStore(store_path), clock=clock)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def teleport_record():
    return DeviceRecord(identifier="6523f0a1b2", display_name="Phone", ip_address="192.168.2.3",
                        device_class=DeviceClass.TELEPORT)
