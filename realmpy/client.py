"""
High-level entry point for obtaining an authenticated realm client.

Example:
    >>> context = RealmContext(SQLiteSecretStorage("realm"))
    >>> client = await acquire_session(context, "https://matrix.realm.example", "alice", "pw")
    >>> realms = await list_realms(context, client)
"""
from dataclasses import dataclass, field
from typing import List, Optional

from nio import AsyncClient

from .core.api import APIConfig, RealmDiscovery
from .core.auth import SessionAcquirer
from .core.session import SecretStorage, CredentialRepository


@dataclass
class RealmContext:
    """
    Process-lifetime context owning the secret storage.
    
    Holds one SessionAcquirer so that per-(server, username) login locks
    (``APIConfig.serialize_logins``) are shared by every call made with
    this context.
    """
    secrets: SecretStorage
    config: APIConfig = field(default_factory=APIConfig.default)
    _acquirer: Optional[SessionAcquirer] = field(default=None, init=False, repr=False)
    
    @property
    def acquirer(self) -> SessionAcquirer:
        if self._acquirer is None:
            repository = CredentialRepository(self.secrets, key=self.config.secret_key)
            self._acquirer = SessionAcquirer(repository, self.config)
        return self._acquirer


async def acquire_session(
    context: RealmContext,
    server_url: str,
    username: str,
    password: str
) -> AsyncClient:
    """
    Get an authenticated client for an account on a realm's homeserver.
    
    Reuses the cached credential when possible; otherwise logs in with
    the password, then by email, and caches the new credential.
    
    Args:
        context: Context holding the secret storage
        server_url: Homeserver URL
        username: Username or email address
        password: Account password
        
    Returns:
        Authenticated nio AsyncClient
        
    Raises:
        EmailLoginError: If no login method succeeded
        RealmConnectionError: If the homeserver was unreachable for the last login method
    """
    return await context.acquirer.acquire(server_url, username, password)


async def list_realms(context: RealmContext, client: AsyncClient) -> List[str]:
    """
    List the realms the logged-in account can open.
    
    Args:
        context: Context whose config is used for the request
        client: Client returned by acquire_session
        
    Returns:
        Realm URLs; empty when the account has none
        
    Raises:
        RealmDiscoveryError: If the realm list could not be read
        RealmConnectionError: If the homeserver was unreachable
    """
    return await RealmDiscovery(context.config).list_realms(client)
