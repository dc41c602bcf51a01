"""
Secret storage protocols.

Defines the interface for the durable blob storage the credential
store is persisted into.
"""
from typing import Protocol, Optional, runtime_checkable


@runtime_checkable
class SecretStorage(Protocol):
    """
    Protocol for secret storage implementations.
    
    A keyed, durable store of opaque strings. Implementations can use
    SQLite, a JSON file, an OS keyring, or anything else.
    """
    
    async def get(self, key: str) -> Optional[str]:
        """
        Load the value stored under key.
        
        Returns:
            Stored string, or None if absent
        """
        ...
    
    async def store(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.
        
        Must not return before the value is durable.
        """
        ...
    
    async def delete(self, key: str) -> None:
        """Delete the value stored under key."""
        ...
    
    async def close(self) -> None:
        """Close storage and release resources."""
        ...
