"""
JSON File Backing Store

Persists cache entries in a single JSON object file so they survive a
process restart. Writes go to a temporary file that replaces the original,
so readers never see a half-written document.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from ...domain.cache.exceptions import BackingStoreError
from ...domain.cache.repository_interfaces import BackingStore

logger = logging.getLogger(__name__)


class JsonFileBackingStore(BackingStore):
    """
    File-backed store.

    The whole document is loaded on first use and kept in memory; every
    mutation rewrites the file. Mutations are serialized with an asyncio
    lock and the blocking file I/O runs in a worker thread.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._data: Optional[Dict[str, str]] = None
        self._lock = asyncio.Lock()

    def _read_file(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise BackingStoreError(
                f"Failed to read cache file {self.path}: {e}",
                operation="read",
                original_error=e,
            ) from e

        if not raw.strip():
            return {}

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise BackingStoreError(
                f"Cache file {self.path} is not valid JSON",
                operation="decode",
                original_error=e,
            ) from e

        if not isinstance(document, dict):
            raise BackingStoreError(
                f"Cache file {self.path} must contain a JSON object",
                operation="decode",
            )

        return {str(k): v for k, v in document.items() if isinstance(v, str)}

    def _write_file(self, data: Dict[str, str]) -> None:
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise BackingStoreError(
                f"Failed to write cache file {self.path}: {e}",
                operation="write",
                original_error=e,
            ) from e

    async def _load(self) -> Dict[str, str]:
        if self._data is None:
            self._data = await asyncio.to_thread(self._read_file)
            logger.debug(f"Loaded {len(self._data)} cache entries from {self.path}")
        return self._data

    async def _mutate(self, key: str, value: Optional[str]) -> None:
        async with self._lock:
            data = await self._load()
            updated = dict(data)
            if value is None:
                if key not in updated:
                    return
                del updated[key]
            else:
                updated[key] = value

            await asyncio.to_thread(self._write_file, updated)
            self._data = updated

    async def get(self, key: str) -> Optional[str]:
        data = await self._load()
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._mutate(key, value)

    async def delete(self, key: str) -> None:
        await self._mutate(key, None)

    async def keys(self, prefix: str = "") -> List[str]:
        data = await self._load()
        return [key for key in data if key.startswith(prefix)]
