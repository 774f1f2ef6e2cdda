"""
Config storage - a string-keyed document of JSON values.

Every call reads the whole document and every mutation writes it back.
Concurrent writers can lose updates; nothing here locks the file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from linak_desk.exceptions import DeskConfigError

logger = logging.getLogger(__name__)


class ConfigStorage(Protocol):
    """Interface for the key/value document the desk client keeps its state in."""

    def get(self, key: str, default: Any = None) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...
    def delete(self, key: str) -> None: ...
    def get_all(self) -> dict[str, Any]: ...
    def keys(self) -> list[str]: ...


class JsonStorage:
    """Persists config values to a JSON file, created as `{}` on first access."""

    def __init__(self, file_path: Path | str):
        self.file_path = Path(file_path)

    def _load(self) -> dict[str, Any]:
        """Load the document, creating it (and its directory) if absent."""
        if not self.file_path.exists():
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.write_text("{}")
            logger.debug("Created empty config at %s", self.file_path)
        try:
            with open(self.file_path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise DeskConfigError(f"Config file {self.file_path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise DeskConfigError(f"Config file {self.file_path} must hold a JSON object")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        with open(self.file_path, "w") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        data.pop(key, None)
        self._save(data)

    def get_all(self) -> dict[str, Any]:
        return self._load()

    def keys(self) -> list[str]:
        return list(self._load())
