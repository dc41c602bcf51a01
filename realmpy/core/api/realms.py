"""
Realm discovery.

The realms an account can open are listed in its
``com.cardstack.boxel.realms`` account data event as
``{"realms": [<realm url>, ...]}``. The event is read straight from the
homeserver with the client's access token.
"""
import asyncio
import json
from typing import Any, Awaitable, Callable, List, Optional
from urllib.parse import quote

import aiohttp
from nio import AsyncClient

from .config import APIConfig
from .session import SessionFactory
from ..exceptions import RealmDiscoveryError, NoRealmsFoundError, RealmConnectionError
from ..utils import normalize_server_url
from ..logging import get_logger

logger = get_logger('realms')

REALMS_EVENT_TYPE = 'com.cardstack.boxel.realms'
ACCOUNT_DATA_PATH = '_matrix/client/v3/user/{user_id}/account_data/{event_type}'


def account_data_url(base_url: str, user_id: str, event_type: str = REALMS_EVENT_TYPE) -> str:
    """URL of a global account data event for a user."""
    path = ACCOUNT_DATA_PATH.format(
        user_id=quote(user_id, safe=''),
        event_type=quote(event_type, safe='')
    )
    return f"{normalize_server_url(base_url)}{path}"


class RealmDiscovery:
    """Reads the account's realm list."""

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session_factory: Optional[Callable[[APIConfig], Awaitable[aiohttp.ClientSession]]] = None
    ):
        self._config = config or APIConfig.default()
        self._session_factory = session_factory or SessionFactory.create_async_session

    async def list_realms(self, client: AsyncClient) -> List[str]:
        """
        List the realm URLs stored on the account.

        A missing event means the account has no realms and gives an
        empty list.

        Args:
            client: Authenticated client

        Returns:
            Realm URLs, in stored order

        Raises:
            RealmDiscoveryError: If the server rejects the request or the
                event content is malformed
            RealmConnectionError: If the server cannot be reached
        """
        url = account_data_url(client.homeserver, client.user_id)
        headers = {'Authorization': f"Bearer {client.access_token}"}

        session = await self._session_factory(self._config)
        try:
            async with session.get(url, headers=headers, proxy=self._config.proxy_url) as response:
                status = response.status
                payload = await self._read_payload(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RealmConnectionError(f"Could not reach {url}: {e}") from e
        finally:
            await session.close()

        if status == 404:
            logger.info(f"No {REALMS_EVENT_TYPE} event for {client.user_id}")
            return []

        if not 200 <= status < 300:
            errcode = payload.get('errcode') if isinstance(payload, dict) else None
            message = payload.get('error') if isinstance(payload, dict) else None
            raise RealmDiscoveryError(
                message or f"Reading {REALMS_EVENT_TYPE} failed with HTTP {status}",
                error_code=errcode,
                status=status
            )

        if not isinstance(payload, dict):
            raise RealmDiscoveryError(f"{REALMS_EVENT_TYPE} content is not a JSON object", status=status)

        realms = payload.get('realms') or []
        if not isinstance(realms, list) or not all(isinstance(realm, str) for realm in realms):
            raise RealmDiscoveryError(f"{REALMS_EVENT_TYPE} 'realms' is not a list of URLs", status=status)

        logger.info(f"Found {len(realms)} realms for {client.user_id}")
        return realms

    async def first_realm(self, client: AsyncClient) -> str:
        """
        Get the realm to open by default.

        Raises:
            NoRealmsFoundError: If the account has no realms
        """
        realms = await self.list_realms(client)
        if not realms:
            raise NoRealmsFoundError()
        return realms[0]

    @staticmethod
    async def _read_payload(response) -> Any:
        text = await response.text()
        try:
            return json.loads(text)
        except ValueError:
            return text
