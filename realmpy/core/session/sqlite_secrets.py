"""
SQLite secret storage implementation.

Provides persistent secret storage using a SQLite database file. Uses
aiosqlite so database access never blocks the event loop.
"""
import asyncio
from pathlib import Path
from datetime import datetime
from typing import Optional, Union, List

import aiosqlite

from .protocols import SecretStorage
from ..logging import get_logger

logger = get_logger('secrets')

CREATE_VERSION_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS version (
    version INTEGER PRIMARY KEY
)
"""

CREATE_SECRETS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS secrets (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


class SQLiteSecretStorage(SecretStorage):
    """
    SQLite-based secret storage.

    Stores key/value secrets in a local SQLite database file. The file is
    created with mode 600 since it holds access tokens. The schema is
    created on first use.

    Example:
        >>> secrets = SQLiteSecretStorage("realm")
        >>> # Creates realm.session file
        >>>
        >>> await secrets.store('auth', blob)
        >>> blob = await secrets.get('auth')
    """

    EXTENSION = '.session'
    SCHEMA_VERSION = 1
    FILE_MODE = 0o600

    def __init__(
        self,
        name: Union[str, Path],
        base_path: Optional[Path] = None
    ):
        """
        Initialize SQLite secret storage.

        Args:
            name: Storage name (without extension) or full path
            base_path: Optional base directory for storage files
        """
        self._initialized = False
        self._init_lock = asyncio.Lock()

        # Determine file path
        if isinstance(name, Path) or name.endswith(self.EXTENSION):
            self._path = Path(name)
        else:
            if base_path:
                self._path = base_path / f"{name}{self.EXTENSION}"
            else:
                self._path = Path(f"{name}{self.EXTENSION}")

        # Ensure parent directory exists
        self._path.parent.mkdir(parents=True, exist_ok=True)

        if not self._path.exists():
            self._path.touch(mode=self.FILE_MODE)
        else:
            self._path.chmod(self.FILE_MODE)

    @property
    def path(self) -> Path:
        """Get storage file path."""
        return self._path

    async def _initialize(self) -> None:
        """Create the tables and version row if not present."""
        async with self._init_lock:
            if self._initialized:
                return
            async with aiosqlite.connect(self._path) as db:
                await db.execute(CREATE_VERSION_TABLE_SQL)
                await db.execute(CREATE_SECRETS_TABLE_SQL)
                async with db.execute('SELECT version FROM version LIMIT 1') as cursor:
                    row = await cursor.fetchone()
                if row is None:
                    await db.execute(
                        'INSERT INTO version (version) VALUES (?)',
                        (self.SCHEMA_VERSION,)
                    )
                await db.commit()
            self._initialized = True
            logger.debug(f"Secret storage initialized at {self._path}")

    async def get(self, key: str) -> Optional[str]:
        await self._initialize()
        async with aiosqlite.connect(self._path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                'SELECT value FROM secrets WHERE key = ?',
                (key,)
            ) as cursor:
                row = await cursor.fetchone()
        return row['value'] if row is not None else None

    async def store(self, key: str, value: str) -> None:
        await self._initialize()
        async with aiosqlite.connect(self._path) as db:
            await db.execute('''
                INSERT OR REPLACE INTO secrets (key, value, updated_at)
                VALUES (?, ?, ?)
            ''', (key, value, datetime.now().isoformat()))
            await db.commit()

    async def delete(self, key: str) -> None:
        await self._initialize()
        async with aiosqlite.connect(self._path) as db:
            await db.execute('DELETE FROM secrets WHERE key = ?', (key,))
            await db.commit()

    async def keys(self) -> List[str]:
        """List stored keys."""
        await self._initialize()
        async with aiosqlite.connect(self._path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute('SELECT key FROM secrets ORDER BY key') as cursor:
                rows = await cursor.fetchall()
        return [row['key'] for row in rows]

    async def close(self) -> None:
        """Nothing to release: every operation opens its own connection."""
        pass

    def delete_file(self) -> None:
        """Delete the storage file completely."""
        if self._path.exists():
            self._path.unlink()
        self._initialized = False
