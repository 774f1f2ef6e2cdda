"""
Desk configuration.

Typed access to the values the desk client keeps in its config document,
and the environment settings that say where that document lives.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from linak_desk.const import (
    DEFAULT_CONFIG_FILENAME,
    ENV_CONFIG_PATH,
    ENV_LOG_LEVEL,
    KEY_DEVICE_ID,
    KEY_LOWEST_POS_MM,
)
from linak_desk.exceptions import DeskConfigError
from linak_desk.storage import ConfigStorage, JsonStorage


@dataclass(frozen=True)
class Settings:
    """Process-level settings read from the environment."""

    config_path: Path
    log_level: str = "WARNING"


def load_settings() -> Settings:
    """Load settings from the environment (and a .env file, if present)."""
    load_dotenv()
    config_path = os.getenv(ENV_CONFIG_PATH) or str(Path.home() / DEFAULT_CONFIG_FILENAME)
    log_level = os.getenv(ENV_LOG_LEVEL, "WARNING").upper()
    return Settings(config_path=Path(config_path).expanduser(), log_level=log_level)


def open_storage(settings: Settings) -> JsonStorage:
    return JsonStorage(settings.config_path)


class DeskConfig:
    """Desk-specific view over a ConfigStorage."""

    def __init__(self, storage: ConfigStorage):
        self.storage = storage

    @property
    def device_id(self) -> str | None:
        return self.storage.get(KEY_DEVICE_ID) or None

    @device_id.setter
    def device_id(self, value: str) -> None:
        self.storage.set(KEY_DEVICE_ID, value)

    @property
    def lowest_pos_mm(self) -> int | None:
        """Calibration offset in mm. Older configs stored it as a string."""
        value = self.storage.get(KEY_LOWEST_POS_MM)
        if value is None or value == "":
            return None
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise DeskConfigError(f"Invalid lowest_pos_mm in config: {value!r}") from e

    @lowest_pos_mm.setter
    def lowest_pos_mm(self, value: int) -> None:
        self.storage.set(KEY_LOWEST_POS_MM, int(value))

    def require_device_id(self) -> str:
        if not self.device_id:
            raise DeskConfigError(
                'No preferred device id. Use the "scan" command and select a device to connect.'
            )
        return self.device_id

    def require_lowest_pos_mm(self) -> int:
        lowest = self.lowest_pos_mm
        if lowest is None:
            raise DeskConfigError(
                'Desk lowest position is not set. Use "lowest_pos_mm <value>" (e.g. 617).'
            )
        return lowest

    def check_ready(self) -> tuple[str, int]:
        """
        Check everything a height read needs, reporting all missing values at once.

        Returns:
            Tuple of (device_id, lowest_pos_mm)

        Raises:
            DeskConfigError: If any required value is missing
        """
        problems = []
        for require in (self.require_device_id, self.require_lowest_pos_mm):
            try:
                require()
            except DeskConfigError as e:
                problems.append(str(e))
        if problems:
            total = len(problems)
            raise DeskConfigError(
                "\n".join(f"[Config {i}/{total}] {msg}" for i, msg in enumerate(problems, 1))
            )
        return self.require_device_id(), self.require_lowest_pos_mm()

    def as_dict(self) -> dict:
        return self.storage.get_all()
