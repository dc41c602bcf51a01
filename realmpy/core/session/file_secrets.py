"""
JSON file secret storage implementation.

Keeps all secrets in one JSON object on disk. Uses aiofiles for
non-blocking I/O and an atomic replace so a crash mid-write never
leaves a truncated file behind.
"""
import json
import os
import asyncio
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles

from .protocols import SecretStorage
from ..logging import get_logger

logger = get_logger('secrets')


class FileSecretStorage(SecretStorage):
    """
    File-based secret storage.
    
    A file that is missing or not a JSON object reads as empty; the next
    store() rewrites it. The file is written with mode 600.
    """
    
    FILE_MODE = 0o600
    
    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._lock = asyncio.Lock()
    
    @property
    def path(self) -> Path:
        return self._path
    
    async def _read_all(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        async with aiofiles.open(self._path, 'r', encoding='utf-8') as f:
            content = await f.read()
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.warning(f"Secret file {self._path} is not valid JSON, ignoring it")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Secret file {self._path} does not hold an object, ignoring it")
            return {}
        return data
    
    async def _write_all(self, data: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + '.tmp')
        async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(data))
            await f.flush()
        os.chmod(tmp_path, self.FILE_MODE)
        os.replace(tmp_path, self._path)
    
    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            value = (await self._read_all()).get(key)
        return value if isinstance(value, str) else None
    
    async def store(self, key: str, value: str) -> None:
        async with self._lock:
            data = await self._read_all()
            data[key] = value
            await self._write_all(data)
    
    async def delete(self, key: str) -> None:
        async with self._lock:
            data = await self._read_all()
            if key in data:
                del data[key]
                await self._write_all(data)
    
    async def close(self) -> None:
        pass
