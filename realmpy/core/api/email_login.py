"""
Email login strategy.

Logs in by third-party identifier (medium ``email``) with a raw POST to
the client-server login endpoint, so the identifier sent is exactly the
one given and the server's error body is kept intact.
"""
import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from .config import APIConfig
from .session import SessionFactory
from ..exceptions import EmailLoginError, RealmConnectionError
from ..session.models import Credential
from ..utils import normalize_server_url
from ..logging import get_logger

logger = get_logger('auth.email')

LOGIN_PATH = '_matrix/client/v3/login'


def build_email_login_body(email: str, password: str) -> Dict[str, Any]:
    """Request body for an email-identified password login."""
    return {
        'identifier': {
            'type': 'm.id.thirdparty',
            'medium': 'email',
            'address': email,
        },
        'password': password,
        'type': 'm.login.password',
    }


class EmailLoginStrategy:
    """Third-party (email) login against the homeserver."""
    
    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session_factory: Optional[Callable[[APIConfig], Awaitable[aiohttp.ClientSession]]] = None
    ):
        """
        Initialize strategy.
        
        Args:
            config: API configuration
            session_factory: Coroutine creating the HTTP session; the
                session is closed after each login
        """
        self._config = config or APIConfig.default()
        self._session_factory = session_factory or SessionFactory.create_async_session
    
    async def login(self, base_url: str, email: str, password: str) -> Credential:
        """
        Login with an email address bound to the account.
        
        Args:
            base_url: Homeserver URL
            email: Email address bound to the account
            password: Account password
            
        Returns:
            Credential from the login response
            
        Raises:
            EmailLoginError: If the server rejects the login, carrying the
                server's ``errcode``/``error`` and the HTTP status
            RealmConnectionError: If the server cannot be reached
        """
        url = f"{normalize_server_url(base_url)}{LOGIN_PATH}"
        body = build_email_login_body(email, password)
        
        session = await self._session_factory(self._config)
        try:
            async with session.post(url, json=body, proxy=self._config.proxy_url) as response:
                status = response.status
                payload = await self._read_payload(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RealmConnectionError(f"Could not reach {url}: {e}") from e
        finally:
            await session.close()
        
        if 200 <= status < 300:
            if not isinstance(payload, dict):
                raise EmailLoginError(
                    {'errcode': 'M_UNKNOWN', 'error': 'Login response is not a JSON object'},
                    status
                )
            try:
                credential = Credential.from_dict(payload)
            except ValueError as e:
                raise EmailLoginError({'errcode': 'M_UNKNOWN', 'error': str(e)}, status) from e
            logger.info(f"Email login succeeded for {credential.user_id}")
            return credential
        
        data = self._error_data(payload, status)
        logger.warning(f"Email login rejected with HTTP {status}: {data.get('errcode')} {data.get('error')}")
        raise EmailLoginError(data, status)
    
    @staticmethod
    async def _read_payload(response) -> Any:
        text = await response.text()
        try:
            return json.loads(text)
        except ValueError:
            return text
    
    @staticmethod
    def _error_data(payload: Any, status: int) -> Dict[str, Any]:
        if isinstance(payload, dict) and ('errcode' in payload or 'error' in payload):
            return payload
        message = payload.strip() if isinstance(payload, str) and payload.strip() else f"HTTP {status}"
        return {'errcode': 'M_UNKNOWN', 'error': message}
