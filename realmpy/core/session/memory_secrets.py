"""
In-memory secret storage implementation.

Provides non-persistent secret storage for testing and temporary use.
"""
from typing import Dict, Optional

from .protocols import SecretStorage


class MemorySecretStorage(SecretStorage):
    """
    In-memory secret storage.
    
    Data is lost when the object is destroyed.
    
    Example:
        >>> secrets = MemorySecretStorage()
        >>> await secrets.store('auth', '{}')
        >>> await secrets.get('auth')
        '{}'
    """
    
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self.writes = 0
    
    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)
    
    async def store(self, key: str, value: str) -> None:
        self._data[key] = value
        self.writes += 1
    
    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
    
    async def close(self) -> None:
        """Close storage (no-op for memory storage)."""
        pass
