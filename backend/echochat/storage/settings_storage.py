"""
Settings Storage - Persists AppSettings as a JSON file.
Absence of the file is not an error: it means "use defaults".
"""

import json
import logging
from pathlib import Path

import aiofiles
from pydantic import ValidationError

from ..models import AppSettings
from .interface import StorageError

logger = logging.getLogger(__name__)


class SettingsStorage:
    """Loads and saves the user's AppSettings in the application data directory."""

    def __init__(self, base_dir: str = "./data", filename: str = "settings.json"):
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.base_dir / filename

    async def load(self) -> AppSettings:
        """
        Load settings.

        Returns:
            AppSettings: Stored settings, or defaults if the file is missing or unreadable
        """
        if not self.path.exists():
            return AppSettings()

        try:
            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                return AppSettings.model_validate(json.loads(await f.read()))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load settings from {self.path}, using defaults: {e}")
            return AppSettings()

    async def save(self, settings: AppSettings) -> None:
        """
        Raises:
            StorageError: if the file could not be written
        """
        content = settings.model_dump_json(indent=2)
        try:
            async with aiofiles.open(self.path, 'w', encoding='utf-8') as f:
                await f.write(content)
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e

    async def clear(self) -> None:
        """
        Delete the settings file; the next load returns defaults.

        Raises:
            StorageError: if the file exists but could not be removed
        """
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not remove {self.path}: {e}") from e
