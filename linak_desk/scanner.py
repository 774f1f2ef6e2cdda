"""
BLE Device Scanner

Time-boxed discovery of nearby BLE devices and operator selection of the desk.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from bleak import BleakScanner

from linak_desk.const import DEFAULT_SCAN_DURATION, LINAK_UUID_PREFIX
from linak_desk.exceptions import DeviceSelectionError

logger = logging.getLogger(__name__)


@dataclass
class ScannedDevice:
    """Information about a discovered BLE device."""

    address: str
    name: str | None = None
    rssi: int | None = None
    service_uuids: list[str] | None = None

    @property
    def is_desk(self) -> bool:
        """Check if this device appears to be a Linak desk."""
        if self.name and "desk" in self.name.lower():
            return True
        if self.service_uuids:
            return any(uuid.lower().startswith(LINAK_UUID_PREFIX) for uuid in self.service_uuids)
        return False


async def iter_devices(
    scan_duration: float = DEFAULT_SCAN_DURATION,
    scanner_cls: type = BleakScanner,
) -> AsyncIterator[ScannedDevice]:
    """
    Scan for BLE devices, yielding each address the first time it is seen.

    Stops after scan_duration seconds; anything detected later is dropped.
    Closing the iterator early stops the scan as well.

    Args:
        scan_duration: Scan duration in seconds
        scanner_cls: Scanner class (BleakScanner unless testing)
    """
    queue: asyncio.Queue[ScannedDevice] = asyncio.Queue()

    def on_detect(device, adv_data):
        queue.put_nowait(
            ScannedDevice(
                address=device.address,
                name=device.name,
                rssi=adv_data.rssi,
                service_uuids=adv_data.service_uuids or None,
            )
        )

    loop = asyncio.get_running_loop()
    deadline = loop.time() + scan_duration
    seen: set[str] = set()

    async with scanner_cls(detection_callback=on_detect):
        logger.debug("Scan started for %ss", scan_duration)
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                found = await asyncio.wait_for(queue.get(), remaining)
            except asyncio.TimeoutError:
                break
            if found.address in seen:
                continue
            seen.add(found.address)
            yield found
    logger.debug("Scan finished, %d distinct device(s)", len(seen))


async def scan_devices(
    scan_duration: float = DEFAULT_SCAN_DURATION,
    scanner_cls: type = BleakScanner,
) -> list[ScannedDevice]:
    """
    Scan for BLE devices.

    Returns:
        Distinct devices in the order they were first seen
    """
    return [device async for device in iter_devices(scan_duration, scanner_cls)]


def select_device(devices: list[ScannedDevice], answer: str) -> str:
    """
    Resolve the operator's 1-based selection to a device address.

    Raises:
        DeviceSelectionError: If the answer is not a number in [1, len(devices)]
    """
    try:
        index = int(answer.strip())
    except (AttributeError, ValueError):
        raise DeviceSelectionError(f"Can't find device with index [{answer}]") from None

    if not 1 <= index <= len(devices):
        raise DeviceSelectionError(f"Can't find device with index [{index}]")
    return devices[index - 1].address


def print_devices(devices: list[ScannedDevice]) -> None:
    """Print a numbered table of discovered devices."""
    if not devices:
        print("No devices found.")
        return

    print(f"\n{'#':>3} | {'Name':<25} | {'Address':<17} | {'RSSI':>8} | Notes")
    print("-" * 76)

    for number, device in enumerate(devices, 1):
        name = device.name or "(unknown)"
        if len(name) > 24:
            name = name[:21] + "..."
        rssi = f"{device.rssi:>5} dBm" if device.rssi is not None else f"{'?':>8}"
        notes = "DESK" if device.is_desk else ""
        print(f"{number:>3} | {name:<25} | {device.address:<17} | {rssi} | {notes}")
