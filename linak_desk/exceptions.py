"""Exceptions raised by the desk client."""


class DeskError(Exception):
    """Base exception for desk client errors."""

    pass


class DeskUsageError(DeskError):
    """Raised when the operator asked for something that cannot be done as asked."""

    pass


class DeskConfigError(DeskUsageError):
    """Raised when a required config value is missing or malformed."""

    pass


class PresetNameError(DeskUsageError):
    """Raised when a preset name is empty."""

    pass


class DeviceSelectionError(DeskUsageError):
    """Raised when a scan selection does not match a discovered device."""

    pass


class DeskConnectionError(DeskError):
    """Raised when connection to desk fails."""

    pass


class DeskNotFoundError(DeskConnectionError):
    """Raised when desk cannot be found via BLE scan."""

    pass


class DeskLinkLostError(DeskConnectionError):
    """Raised when the desk disconnects while a session is still open."""

    pass


class DeskCommunicationError(DeskError):
    """Raised when BLE communication fails during operation."""

    pass
