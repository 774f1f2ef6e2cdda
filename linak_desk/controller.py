"""
Linak Standing Desk Controller

Session handling and height telemetry for Linak-based desks.

Protocol reverse-engineered from:
- https://github.com/anson-vandoren/linak-desk-spec
- https://github.com/j5lien/esphome-idasen-desk-controller
"""

import asyncio
import logging
import math
import struct
import warnings
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, TypeVar

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError

from linak_desk.config import DeskConfig
from linak_desk.const import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_FIND_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    RAW_UNITS_PER_SPAN,
    SERVICE_CONTROL,
    SERVICE_POSITION,
    SPAN_MM,
    UUID_POSITION,
)
from linak_desk.exceptions import (
    DeskCommunicationError,
    DeskConfigError,
    DeskConnectionError,
    DeskLinkLostError,
    DeskNotFoundError,
)

# Suppress bleak's internal asyncio warnings (race condition in CoreBluetooth backend)
warnings.filterwarnings("ignore", message=".*invalid state.*")
logging.getLogger("bleak").setLevel(logging.ERROR)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties going away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def position_to_mm(raw: int, lowest_pos_mm: int) -> int:
    """Convert a raw position sample to millimeters above the floor."""
    return round_half_away_from_zero((SPAN_MM / RAW_UNITS_PER_SPAN) * raw + lowest_pos_mm)


def parse_height_data(data: bytes | bytearray) -> tuple[int, int]:
    """
    Parse position characteristic data.

    Returns:
        Tuple of (raw_position, speed). Speed is 0 when the desk only sent
        the position word.

    Raises:
        DeskCommunicationError: If fewer than two bytes were read
    """
    if len(data) < 2:
        raise DeskCommunicationError(f"Position value too short ({len(data)} bytes)")
    raw_position = struct.unpack_from("<H", data, 0)[0]
    speed = struct.unpack_from("<h", data, 2)[0] if len(data) >= 4 else 0
    return raw_position, speed


@dataclass
class DeskLink:
    """An open connection handed to a session action."""

    device: Any
    client: BleakClient
    service: Any
    read_timeout: float = DEFAULT_READ_TIMEOUT

    def get_service(self, service_uuid: str):
        service = self.client.services.get_service(service_uuid)
        if service is None:
            raise DeskCommunicationError(f"Service {service_uuid} not found")
        return service

    def get_characteristic(self, service_uuid: str, char_uuid: str):
        char = self.get_service(service_uuid).get_characteristic(char_uuid)
        if char is None:
            raise DeskCommunicationError(f"Characteristic {char_uuid} not found")
        return char

    async def read(self, service_uuid: str, char_uuid: str) -> bytearray:
        """Read a characteristic once. No retries."""
        char = self.get_characteristic(service_uuid, char_uuid)
        try:
            return await asyncio.wait_for(self.client.read_gatt_char(char), self.read_timeout)
        except asyncio.TimeoutError as e:
            raise DeskCommunicationError(f"Read of {char_uuid} timed out") from e
        except BleakError as e:
            raise DeskCommunicationError(f"Failed to read {char_uuid}: {e}") from e


class DeskSession:
    """
    Connect to one desk, run a single action, disconnect.

    An unsolicited disconnect while the session is open cancels the action
    and raises DeskLinkLostError. The link is closed on every exit path.
    """

    def __init__(
        self,
        device_id: str | None,
        find_timeout: float = DEFAULT_FIND_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        scanner_cls: type = BleakScanner,
        client_cls: type = BleakClient,
    ):
        self.device_id = device_id
        self.find_timeout = find_timeout
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._scanner_cls = scanner_cls
        self._client_cls = client_cls
        self._link_lost = asyncio.Event()
        self._observing = False

    def _on_disconnect(self, client: BleakClient):
        """Handle disconnection; only counts while the session is open."""
        if not self._observing:
            return
        logger.error("Device %s disconnected unexpectedly", self.device_id)
        self._link_lost.set()

    async def _find_device(self):
        target = self.device_id.upper()
        logger.debug("Searching for %s (timeout=%ss)", self.device_id, self.find_timeout)
        try:
            device = await self._scanner_cls.find_device_by_filter(
                lambda d, adv: d.address.upper() == target,
                timeout=self.find_timeout,
            )
        except BleakError as e:
            raise DeskConnectionError(f"BLE scan failed: {e}") from e
        if device is None:
            raise DeskNotFoundError(f"Desk {self.device_id} not found. Is it powered on?")
        return device

    async def _open_and_run(self, client: BleakClient, device, action: Callable[[DeskLink], Awaitable[T]]) -> T:
        try:
            await client.connect()
        except asyncio.TimeoutError as e:
            raise DeskConnectionError("Connection timed out") from e
        except BleakError as e:
            raise DeskConnectionError(f"BLE error: {e}") from e
        logger.debug("Connected to %s", self.device_id)

        link = DeskLink(device=device, client=client, service=None, read_timeout=self.read_timeout)
        link.service = link.get_service(SERVICE_CONTROL)
        return await action(link)

    async def _until_link_lost(self, work: Awaitable[T]) -> T:
        """Await work, abandoning it if the link drops first."""
        work_task = asyncio.ensure_future(work)
        lost_task = asyncio.ensure_future(self._link_lost.wait())
        try:
            done, _ = await asyncio.wait({work_task, lost_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (work_task, lost_task):
                if not task.done():
                    task.cancel()
        if work_task in done:
            return work_task.result()
        # Let the cancelled action unwind before reporting
        await asyncio.gather(work_task, return_exceptions=True)
        raise DeskLinkLostError(f"Device {self.device_id} disconnected during the session")

    async def run(self, action: Callable[[DeskLink], Awaitable[T]]) -> T:
        """
        Run an action against the desk.

        Args:
            action: Coroutine function receiving the open DeskLink

        Returns:
            Whatever the action returns

        Raises:
            DeskConfigError: If no device id is configured
            DeskNotFoundError: If the desk is not found by the scan
            DeskConnectionError: If connecting fails
            DeskLinkLostError: If the desk disconnects mid-session
            DeskCommunicationError: If a service, characteristic or read fails
        """
        if not self.device_id:
            raise DeskConfigError("No device id configured")

        device = await self._find_device()
        client = self._client_cls(
            device,
            disconnected_callback=self._on_disconnect,
            timeout=self.connect_timeout,
        )
        self._link_lost.clear()
        self._observing = True
        try:
            return await self._until_link_lost(self._open_and_run(client, device, action))
        finally:
            self._observing = False
            with suppress(BleakError):
                await client.disconnect()
            logger.debug("Disconnected from %s", self.device_id)


async def read_height(link: DeskLink, lowest_pos_mm: int) -> int:
    """Read the current desk height in mm over an open link."""
    data = await link.read(SERVICE_POSITION, UUID_POSITION)
    raw, speed = parse_height_data(data)
    height = position_to_mm(raw, lowest_pos_mm)
    logger.debug("Position raw=%d speed=%d -> %dmm", raw, speed, height)
    return height


class DeskController:
    """High-level desk operations backed by the stored config."""

    def __init__(self, config: DeskConfig, **session_options):
        self.config = config
        self._session_options = session_options

    def session(self, device_id: str | None = None) -> DeskSession:
        return DeskSession(device_id or self.config.device_id, **self._session_options)

    async def read_position_mm(self) -> int:
        """
        Connect to the desk and read its current height.

        Raises:
            DeskConfigError: If device id or lowest position is not configured
            DeskConnectionError: If the desk cannot be reached or drops the link
            DeskCommunicationError: If the read fails
        """
        device_id, lowest_pos_mm = self.config.check_ready()
        return await self.session(device_id).run(lambda link: read_height(link, lowest_pos_mm))
