"""
Credential data models.

Contains the credential produced by a successful login and the
two-level store (server URL -> username -> credential) it is cached in.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple
import json

from ..exceptions import CachedSessionInvalidError


CREDENTIAL_FIELDS = ('access_token', 'user_id', 'device_id')


@dataclass(frozen=True)
class Credential:
    """
    One authenticated session on a homeserver.
    
    Attributes:
        access_token: Bearer token for authenticated calls
        user_id: Fully-qualified Matrix user ID (``@alice:example.org``)
        device_id: Device registered by the login; reusing it avoids
            creating a new device on every login
    """
    access_token: str
    user_id: str
    device_id: str
    
    def __post_init__(self):
        for name in CREDENTIAL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"Credential field '{name}' must be a non-empty string")
    
    def to_dict(self) -> Dict[str, str]:
        """
        Convert to dictionary for serialization.
        
        Returns:
            Dictionary using the homeserver's wire key names
        """
        return {
            'access_token': self.access_token,
            'user_id': self.user_id,
            'device_id': self.device_id,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Credential':
        """
        Create from dictionary.
        
        Extra keys (e.g. ``well_known`` in a login response) are ignored.
        
        Raises:
            ValueError: If a field is missing or not a non-empty string
        """
        if not isinstance(data, dict):
            raise ValueError("Credential data must be an object")
        missing = [name for name in CREDENTIAL_FIELDS if name not in data]
        if missing:
            raise ValueError(f"Credential is missing fields: {', '.join(missing)}")
        return cls(
            access_token=data['access_token'],
            user_id=data['user_id'],
            device_id=data['device_id'],
        )


class CredentialStore:
    """
    Credentials keyed by (server URL, username).
    
    Entries are kept as plain dicts exactly as they were loaded, so a
    malformed cached entry only surfaces when it is read with get().
    Server keys are expected to be normalized by the caller.
    
    Example:
        >>> store = CredentialStore()
        >>> store.put('https://realm.example/', 'alice', credential)
        >>> store.get('https://realm.example/', 'alice')
    """
    
    def __init__(self, entries: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        self._entries: Dict[str, Dict[str, Dict[str, Any]]] = entries or {}
    
    def __len__(self) -> int:
        return sum(len(users) for users in self._entries.values())
    
    def __contains__(self, key: Tuple[str, str]) -> bool:
        server, username = key
        return username in self._entries.get(server, {})
    
    def get_entry(self, server: str, username: str) -> Optional[Dict[str, Any]]:
        """Raw cached entry, or None."""
        return self._entries.get(server, {}).get(username)
    
    def get(self, server: str, username: str) -> Optional[Credential]:
        """
        Get the cached credential for a pair.
        
        Returns:
            Credential, or None when nothing is cached
            
        Raises:
            CachedSessionInvalidError: If the cached entry is malformed
        """
        entry = self.get_entry(server, username)
        if entry is None:
            return None
        try:
            return Credential.from_dict(entry)
        except ValueError as e:
            raise CachedSessionInvalidError(
                f"Cached credential for {username} on {server} is invalid: {e}"
            ) from e
    
    def put(self, server: str, username: str, credential: Credential) -> 'CredentialStore':
        """Set the credential for a pair, replacing any previous entry."""
        if server not in self._entries:
            self._entries[server] = {}
        self._entries[server][username] = credential.to_dict()
        return self
    
    def remove(self, server: str, username: str) -> bool:
        """
        Remove the entry for a pair.
        
        Returns:
            True if an entry was removed
        """
        users = self._entries.get(server)
        if not users or username not in users:
            return False
        del users[username]
        if not users:
            del self._entries[server]
        return True
    
    def entries(self) -> Iterator[Tuple[str, str, Dict[str, Any]]]:
        """Iterate over ``(server, username, raw_entry)``."""
        for server, users in self._entries.items():
            for username, entry in users.items():
                yield server, username, entry
    
    def to_dict(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return {server: dict(users) for server, users in self._entries.items()}
    
    def to_json(self) -> str:
        """
        Serialize to JSON string.
        
        Returns:
            JSON string
        """
        return json.dumps(self.to_dict())
    
    @classmethod
    def from_json(cls, json_str: str) -> 'CredentialStore':
        """
        Create from JSON string.
        
        Raises:
            ValueError: If the blob is not a two-level JSON object
                (``json.JSONDecodeError`` is a ValueError)
        """
        data = json.loads(json_str)
        if not isinstance(data, dict):
            raise ValueError("Credential store must be a JSON object")
        for server, users in data.items():
            if not isinstance(users, dict):
                raise ValueError(f"Entry for server {server!r} must be an object")
        return cls({server: dict(users) for server, users in data.items()})
