"""
Linak Desk - Bluetooth Low Energy client for Linak-based standing desks.

This package discovers the desk, reads its height telemetry and keeps
named height presets in a small JSON config.
"""

from linak_desk.config import DeskConfig, Settings, load_settings
from linak_desk.controller import (
    DeskController,
    DeskLink,
    DeskSession,
    parse_height_data,
    position_to_mm,
    read_height,
)
from linak_desk.exceptions import (
    DeskCommunicationError,
    DeskConfigError,
    DeskConnectionError,
    DeskError,
    DeskLinkLostError,
    DeskNotFoundError,
    DeskUsageError,
    DeviceSelectionError,
    PresetNameError,
)
from linak_desk.presets import PresetRegistry
from linak_desk.scanner import ScannedDevice, iter_devices, scan_devices, select_device
from linak_desk.storage import ConfigStorage, JsonStorage

__all__ = [
    # Controller
    "DeskController",
    "DeskSession",
    "DeskLink",
    "read_height",
    "position_to_mm",
    "parse_height_data",
    # Scanner
    "ScannedDevice",
    "iter_devices",
    "scan_devices",
    "select_device",
    # Config
    "ConfigStorage",
    "JsonStorage",
    "DeskConfig",
    "Settings",
    "load_settings",
    "PresetRegistry",
    # Errors
    "DeskError",
    "DeskUsageError",
    "DeskConfigError",
    "PresetNameError",
    "DeviceSelectionError",
    "DeskConnectionError",
    "DeskNotFoundError",
    "DeskLinkLostError",
    "DeskCommunicationError",
]
