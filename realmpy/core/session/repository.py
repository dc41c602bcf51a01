"""
Credential repository.

Loads and persists the whole CredentialStore as a single JSON blob
under one secret storage key.
"""
from typing import Optional

from .models import CredentialStore
from .protocols import SecretStorage
from ..exceptions import StoreLoadCorruptError
from ..logging import get_logger

logger = get_logger('store')

DEFAULT_SECRET_KEY = 'auth'


class CredentialRepository:
    """
    Reads and writes the credential store through a SecretStorage.
    
    No state is cached between calls: every load() reads the secret
    again, so writes made by other processes are picked up.
    """
    
    def __init__(self, secrets: SecretStorage, key: str = DEFAULT_SECRET_KEY):
        """
        Initialize repository.
        
        Args:
            secrets: Durable secret storage
            key: Secret key the store blob lives under
        """
        self._secrets = secrets
        self._key = key
    
    @property
    def key(self) -> str:
        return self._key
    
    async def load(self) -> CredentialStore:
        """
        Load the store.
        
        Missing or corrupt data yields an empty store. Corruption is
        logged as a warning and never raised.
        
        Returns:
            CredentialStore (possibly empty)
        """
        blob: Optional[str] = await self._secrets.get(self._key)
        if not blob:
            logger.debug(f"No stored credentials under '{self._key}'")
            return CredentialStore()
        
        try:
            return self._parse(blob)
        except StoreLoadCorruptError as e:
            logger.warning(f"{e}; starting with an empty credential store")
            return CredentialStore()
    
    def _parse(self, blob: str) -> CredentialStore:
        try:
            return CredentialStore.from_json(blob)
        except (ValueError, TypeError) as e:
            raise StoreLoadCorruptError(
                f"Failed to parse stored credentials under '{self._key}': {e}"
            ) from e
    
    async def persist(self, store: CredentialStore) -> None:
        """Serialize and write the entire store."""
        await self._secrets.store(self._key, store.to_json())
        logger.debug(f"Persisted {len(store)} credential(s) under '{self._key}'")
