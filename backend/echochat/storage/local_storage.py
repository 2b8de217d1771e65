"""
Local Filesystem Session Store.
Snapshots the whole session graph to one JSON file in the data directory.
"""

import asyncio
import json
import logging
import os
from pathlib import Path

import aiofiles
from pydantic import ValidationError

from ..models import ChatSession
from .interface import StorageError
from .memory_storage import InMemorySessionStore

logger = logging.getLogger(__name__)


class JsonFileSessionStore(InMemorySessionStore):
    """
    File-backed session store.

    ``save()`` writes a temporary file and renames it over the target, so a
    crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, base_dir: str = "./data", filename: str = "sessions.json"):
        """
        Args:
            base_dir: Directory for the snapshot file (created if missing)
            filename: Snapshot file name
        """
        super().__init__()
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.base_dir / filename
        self._write_lock = asyncio.Lock()

    async def load(self) -> None:
        if not self.path.exists():
            self._sessions = {}
            self._loaded = True
            return

        try:
            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                data = json.loads(await f.read())
            sessions = [ChatSession.model_validate(item) for item in data.get("sessions", [])]
        except (
            OSError, UnicodeDecodeError, json.JSONDecodeError,
            ValidationError, AttributeError, TypeError,
        ) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e

        self._sessions = {session.id: session for session in sessions}
        self._loaded = True
        logger.info(f"Loaded {len(sessions)} sessions from {self.path}")

    async def save(self) -> None:
        content = json.dumps(self._snapshot(), indent=2, ensure_ascii=False)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')

        async with self._write_lock:
            try:
                async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                    await f.write(content)
                os.replace(tmp_path, self.path)
            except OSError as e:
                raise StorageError(f"Could not write {self.path}: {e}") from e
