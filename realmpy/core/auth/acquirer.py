"""
Session acquirer.

Resolves a usable Matrix client for (server, username, password) by
trying, in order:

1. the cached credential for the pair (no network call),
2. native username/password login,
3. email (third-party identifier) login.

Each tier returns a TierResult; the first success wins. Failures of the
first two tiers are logged and swallowed. The email tier is the last
one, so its error is raised to the caller.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Dict, Optional, Tuple

from nio import AsyncClient

from .tiers import Tier, TierResult, AcquisitionState
from ..api.config import APIConfig
from ..api.client_factory import ClientFactory
from ..api.password_login import PasswordLoginStrategy
from ..api.email_login import EmailLoginStrategy
from ..exceptions import RealmAuthError
from ..session.models import Credential
from ..session.repository import CredentialRepository
from ..utils import normalize_server_url, redact_token
from ..logging import get_logger

logger = get_logger('auth')


class SessionAcquirer:
    """
    Acquires authenticated clients, caching credentials between calls.

    The credential store is reloaded on every call and persisted after
    every live login, so the next call for the same pair takes the cache
    path.

    Example:
        >>> acquirer = SessionAcquirer(CredentialRepository(secrets))
        >>> client = await acquirer.acquire('https://realm.example', 'alice', 'pw')
    """

    def __init__(
        self,
        repository: CredentialRepository,
        config: Optional[APIConfig] = None,
        client_factory: Optional[ClientFactory] = None,
        password_login: Optional[PasswordLoginStrategy] = None,
        email_login: Optional[EmailLoginStrategy] = None
    ):
        """
        Initialize acquirer.

        Args:
            repository: Where the credential store is loaded from and persisted to
            config: API configuration (uses defaults if not provided)
            client_factory: Builds clients from cached credentials
            password_login: Tier 2 strategy
            email_login: Tier 3 strategy
        """
        self._repository = repository
        self._config = config or APIConfig.default()
        self._client_factory = client_factory or ClientFactory(self._config)
        self._password_login = password_login or PasswordLoginStrategy(
            self._config, self._client_factory
        )
        self._email_login = email_login or EmailLoginStrategy(self._config)
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._lock_users: Dict[Tuple[str, str], int] = {}

    @property
    def repository(self) -> CredentialRepository:
        return self._repository

    def _tiers(self) -> Tuple[Callable[[AcquisitionState], Awaitable[TierResult]], ...]:
        return (self._try_cached, self._try_password, self._try_email)

    @asynccontextmanager
    async def _pair_lock(self, server: str, username: str):
        """Hold the in-flight lock for a pair. The lock is dropped once nobody holds or awaits it."""
        key = (server, username)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def acquire(self, server_url: str, username: str, password: str) -> AsyncClient:
        """
        Get a ready-to-use client for the account.

        Args:
            server_url: Homeserver URL, with or without trailing slash
            username: Username (tier 2) or email address (tier 3)
            password: Account password

        Returns:
            Authenticated AsyncClient

        Raises:
            EmailLoginError: If every tier failed and the server rejected
                the email login
            RealmConnectionError: If every tier failed and the server could
                not be reached for the email login
        """
        server = normalize_server_url(server_url)
        if self._config.serialize_logins:
            async with self._pair_lock(server, username):
                return await self._acquire(server, username, password)
        return await self._acquire(server, username, password)

    async def _acquire(self, server: str, username: str, password: str) -> AsyncClient:
        state = AcquisitionState(
            server=server,
            username=username,
            password=password,
            store=await self._repository.load()
        )

        result: Optional[TierResult] = None
        for attempt in self._tiers():
            result = await attempt(state)
            if result.ok:
                logger.info(f"Session for {username} on {server} acquired via {result.tier.value} tier")
                return result.client
            logger.debug(f"{result.tier.value} tier failed for {username} on {server}: {result.error}")

        raise result.error

    async def _try_cached(self, state: AcquisitionState) -> TierResult:
        """Tier 1: restore the cached credential, if there is one."""
        entry = state.store.get_entry(state.server, state.username)
        if entry is None:
            return TierResult.failure(Tier.CACHED, RealmAuthError("No cached credential"))

        if isinstance(entry, dict) and isinstance(entry.get('device_id'), str) and entry['device_id']:
            state.device_id = entry['device_id']

        try:
            credential = state.store.get(state.server, state.username)
            client = self._client_factory.create(state.server, credential)
        except Exception as e:
            logger.warning(
                f"Failed to create client with stored auth for {state.username}, "
                f"logging in with password: {e}"
            )
            return TierResult.failure(Tier.CACHED, e)

        logger.debug(f"Restored cached token {redact_token(credential.access_token)} for {credential.user_id}")
        return TierResult.success(Tier.CACHED, client, credential)

    async def _try_password(self, state: AcquisitionState) -> TierResult:
        """Tier 2: native username/password login."""
        try:
            client, credential = await self._password_login.login(
                state.server,
                state.username,
                state.password,
                device_id=state.device_id
            )
        except RealmAuthError as e:
            logger.warning(f"Login with password failed for {state.username}, trying login with email: {e}")
            return TierResult.failure(Tier.PASSWORD, e)

        try:
            await self._remember(state, credential)
        except BaseException:
            await client.close()
            raise
        return TierResult.success(Tier.PASSWORD, client, credential)

    async def _try_email(self, state: AcquisitionState) -> TierResult:
        """Tier 3: email login. Its failure is terminal."""
        try:
            credential = await self._email_login.login(state.server, state.username, state.password)
        except RealmAuthError as e:
            logger.error(f"Login with email failed for {state.username}: {e}")
            return TierResult.failure(Tier.EMAIL, e)

        await self._remember(state, credential)
        client = self._client_factory.create(state.server, credential)
        return TierResult.success(Tier.EMAIL, client, credential)

    async def _remember(self, state: AcquisitionState, credential: Credential) -> None:
        state.store.put(state.server, state.username, credential)
        await self._repository.persist(state.store)
