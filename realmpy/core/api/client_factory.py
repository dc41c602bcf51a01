"""
Matrix client factory.

Builds ``nio.AsyncClient`` handles, either bare (for password login) or
restored from a cached credential without touching the network.
"""
from typing import Optional

from nio import AsyncClient, AsyncClientConfig

from .config import APIConfig
from ..exceptions import CachedSessionInvalidError
from ..session.models import Credential, CREDENTIAL_FIELDS


class ClientFactory:
    """Creates Matrix client handles for a homeserver."""
    
    def __init__(self, config: Optional[APIConfig] = None):
        """
        Initialize factory.
        
        Args:
            config: API configuration (uses defaults if not provided)
        """
        self._config = config or APIConfig.default()
    
    def _client_config(self) -> AsyncClientConfig:
        # One attempt per login tier: no retries on timeouts or 429s.
        return AsyncClientConfig(
            max_limit_exceeded=0,
            max_timeouts=0,
            request_timeout=self._config.timeout.total,
            encryption_enabled=False,
            store_sync_tokens=False,
        )
    
    def create(
        self,
        base_url: str,
        credential: Optional[Credential] = None,
        user: str = '',
        device_id: Optional[str] = None
    ) -> AsyncClient:
        """
        Create a client.
        
        Args:
            base_url: Normalized homeserver URL
            credential: Credential to restore onto the client
            user: Login user for a bare client
            device_id: Device to reuse for a bare client's login
            
        Returns:
            AsyncClient handle
            
        Raises:
            CachedSessionInvalidError: If the credential has unusable fields
        """
        if credential is not None:
            for name in CREDENTIAL_FIELDS:
                value = getattr(credential, name, None)
                if not isinstance(value, str) or not value:
                    raise CachedSessionInvalidError(f"Credential field '{name}' is unusable")
            user = credential.user_id
            device_id = credential.device_id
        
        client = AsyncClient(
            base_url.rstrip('/'),
            user=user,
            device_id=device_id or '',
            config=self._client_config(),
            ssl=self._config.ssl.create_ssl_context(),
            proxy=self._config.proxy_url,
        )
        
        if credential is not None:
            client.user_id = credential.user_id
            client.device_id = credential.device_id
            client.access_token = credential.access_token
        
        return client
