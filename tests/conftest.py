"""Pytest configuration and shared fixtures."""

import asyncio
import copy
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from linak_desk.config import DeskConfig  # noqa: E402
from linak_desk.const import (  # noqa: E402
    SERVICE_CONTROL,
    SERVICE_POSITION,
    UUID_CONTROL,
    UUID_POSITION,
)

DESK_ADDRESS = "E1:AA:BB:CC:DD:EE"


class MemoryStorage:
    """In-memory ConfigStorage; hands out copies like a re-read document would."""

    def __init__(self, data: dict[str, Any] | None = None):
        self.data = copy.deepcopy(data or {})
        self.writes = 0

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self.data.get(key, default))

    def set(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)
        self.writes += 1

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.writes += 1

    def get_all(self) -> dict[str, Any]:
        return copy.deepcopy(self.data)

    def keys(self) -> list[str]:
        return list(self.data)


@dataclass
class FakeDevice:
    address: str
    name: str | None = None


@dataclass
class FakeAdvertisement:
    rssi: int = -60
    service_uuids: list[str] = field(default_factory=list)


class FakeCharacteristic:
    def __init__(self, ble: "FakeBle", service_uuid: str, uuid: str):
        self.ble = ble
        self.service_uuid = service_uuid
        self.uuid = uuid

    @property
    def value(self) -> bytes:
        return self.ble.services[self.service_uuid][self.uuid]


class FakeService:
    def __init__(self, ble: "FakeBle", uuid: str):
        self.ble = ble
        self.uuid = uuid

    def get_characteristic(self, uuid: str):
        if uuid not in self.ble.services[self.uuid]:
            return None
        return FakeCharacteristic(self.ble, self.uuid, uuid)


class FakeServiceCollection:
    def __init__(self, ble: "FakeBle"):
        self.ble = ble

    def get_service(self, uuid: str):
        if uuid not in self.ble.services:
            return None
        return FakeService(self.ble, uuid)


class FakeBle:
    """Stand-in for the bleak scanner and client, driven by test setup."""

    def __init__(self):
        self.advertised: list[tuple[float, FakeDevice, FakeAdvertisement]] = []
        self.services: dict[str, dict[str, bytes]] = {
            SERVICE_CONTROL: {UUID_CONTROL: b"\x00\x00"},
            SERVICE_POSITION: {UUID_POSITION: b"\x00\x00\x00\x00"},
        }
        self.connect_error: Exception | None = None
        self.read_error: Exception | None = None
        self.read_hangs = False
        self.find_calls = 0
        self.scanners: list = []
        self.clients: list = []
        self.scanner_cls = self._make_scanner_cls()
        self.client_cls = self._make_client_cls()

    def advertise(self, address: str, delay: float = 0.0, name: str | None = None, service_uuids=None):
        adv = FakeAdvertisement(service_uuids=list(service_uuids or []))
        self.advertised.append((delay, FakeDevice(address, name), adv))

    def set_position(self, data: bytes):
        self.services[SERVICE_POSITION][UUID_POSITION] = data

    def _make_scanner_cls(self):
        ble = self

        class Scanner:
            def __init__(self, detection_callback=None, **kwargs):
                self.detection_callback = detection_callback
                self.started = False
                self.stopped = False
                self._handles = []
                ble.scanners.append(self)

            async def __aenter__(self):
                self.started = True
                loop = asyncio.get_running_loop()
                for delay, device, adv in ble.advertised:
                    self._handles.append(loop.call_later(delay, self.detection_callback, device, adv))
                return self

            async def __aexit__(self, *exc_info):
                self.stopped = True
                for handle in self._handles:
                    handle.cancel()

            @classmethod
            async def find_device_by_filter(cls, filterfunc, timeout=10.0, **kwargs):
                ble.find_calls += 1
                for _, device, adv in ble.advertised:
                    if filterfunc(device, adv):
                        return device
                return None

        return Scanner

    def _make_client_cls(self):
        ble = self

        class Client:
            def __init__(self, device, disconnected_callback=None, timeout=10.0, **kwargs):
                self.device = device
                self.disconnected_callback = disconnected_callback
                self.timeout = timeout
                self.is_connected = False
                self.connect_calls = 0
                self.disconnect_calls = 0
                self.services = FakeServiceCollection(ble)
                ble.clients.append(self)

            async def connect(self):
                self.connect_calls += 1
                if ble.connect_error:
                    raise ble.connect_error
                self.is_connected = True

            async def disconnect(self):
                self.disconnect_calls += 1
                self.is_connected = False
                # bleak reports our own disconnects through the same callback
                if self.disconnected_callback:
                    self.disconnected_callback(self)

            def drop_link(self):
                """Simulate the desk going away."""
                self.is_connected = False
                self.disconnected_callback(self)

            async def read_gatt_char(self, char):
                if ble.read_hangs:
                    await asyncio.Event().wait()
                if ble.read_error:
                    raise ble.read_error
                return bytearray(char.value)

        return Client


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def config(storage) -> DeskConfig:
    return DeskConfig(storage)


@pytest.fixture
def ready_config(storage) -> DeskConfig:
    """Config with a desk selected and calibrated (lowest position 617mm)."""
    storage.set("device_id", DESK_ADDRESS)
    storage.set("lowest_pos_mm", 617)
    return DeskConfig(storage)


@pytest.fixture
def ble() -> FakeBle:
    fake = FakeBle()
    fake.advertise(DESK_ADDRESS, name="Desk 1234")
    return fake
