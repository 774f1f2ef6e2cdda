"""
Preset registry - named desk heights kept in the config document.

A non-positive height is a delete instruction, never a stored value.
"""

import logging
from collections.abc import Awaitable, Callable

from linak_desk.const import KEY_POSITIONS
from linak_desk.exceptions import PresetNameError
from linak_desk.storage import ConfigStorage

logger = logging.getLogger(__name__)


class PresetRegistry:
    """Saved positions by name."""

    def __init__(
        self,
        storage: ConfigStorage,
        height_reader: Callable[[], Awaitable[int]] | None = None,
    ):
        self.storage = storage
        self.height_reader = height_reader

    def list(self) -> dict[str, int]:
        """All saved positions; an empty dict when nothing is saved."""
        return dict(self.storage.get(KEY_POSITIONS, {}) or {})

    def store(self, name: str, height_mm: int) -> int | None:
        """
        Save or delete a preset.

        Returns:
            The stored height, or None if the preset was deleted
        """
        if not name:
            raise PresetNameError("Position name can not be empty")

        positions = self.list()
        if height_mm <= 0:
            positions.pop(name, None)
            self.storage.set(KEY_POSITIONS, positions)
            logger.debug("Deleted position %r", name)
            return None

        positions[name] = height_mm
        self.storage.set(KEY_POSITIONS, positions)
        logger.debug("Saved position %r = %dmm", name, height_mm)
        return height_mm

    async def save(self, name: str, height_mm: int | None = None) -> int | None:
        """Save a preset, reading the live desk height when none is given."""
        if not name:
            raise PresetNameError("Position name can not be empty")
        if height_mm is None:
            if self.height_reader is None:
                raise ValueError("No height given and no height reader configured")
            height_mm = await self.height_reader()
        return self.store(name, height_mm)

    def delete(self, name: str) -> None:
        """Delete a preset; deleting an unknown name does nothing."""
        self.store(name, 0)
