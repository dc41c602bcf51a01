"""
Password login strategy.

Logs in through the homeserver's native ``m.login.password`` flow using
the Matrix client library. The identifier is always ``m.id.user``, even
for a username that looks like an email address; email login is a
separate tier.
"""
from typing import Any, Dict, Optional, Tuple

from nio import AsyncClient, LoginResponse

from .config import APIConfig
from .client_factory import ClientFactory
from ..exceptions import PasswordLoginError
from ..session.models import Credential
from ..logging import get_logger

logger = get_logger('auth.password')


def build_password_login_body(
    username: str,
    password: str,
    device_name: Optional[str] = None,
    device_id: Optional[str] = None
) -> Dict[str, Any]:
    """Request body for a user-identified password login."""
    body: Dict[str, Any] = {
        'type': 'm.login.password',
        'identifier': {
            'type': 'm.id.user',
            'user': username,
        },
        'password': password,
    }
    if device_name:
        body['initial_device_display_name'] = device_name
    if device_id:
        body['device_id'] = device_id
    return body


class PasswordLoginStrategy:
    """Username/password login against the homeserver."""
    
    def __init__(
        self,
        config: Optional[APIConfig] = None,
        client_factory: Optional[ClientFactory] = None
    ):
        self._config = config or APIConfig.default()
        self._client_factory = client_factory or ClientFactory(self._config)
    
    async def login(
        self,
        base_url: str,
        username: str,
        password: str,
        device_id: Optional[str] = None
    ) -> Tuple[AsyncClient, Credential]:
        """
        Login with username and password.
        
        Args:
            base_url: Normalized homeserver URL
            username: Localpart or full user ID
            password: Account password
            device_id: Existing device to log in as, if known
            
        Returns:
            The logged-in client and the credential it was issued
            
        Raises:
            PasswordLoginError: If the login fails for any reason. The
                client is closed before raising.
        """
        try:
            client = self._client_factory.create(base_url, user=username, device_id=device_id)
        except Exception as e:
            raise PasswordLoginError(f"Could not create login client: {e}") from e
        
        body = build_password_login_body(username, password, self._config.device_name, device_id)
        try:
            response = await client.login_raw(body)
        except Exception as e:
            await client.close()
            raise PasswordLoginError(f"Password login request failed: {e}") from e
        
        if not isinstance(response, LoginResponse):
            await client.close()
            transport = getattr(response, 'transport_response', None)
            raise PasswordLoginError(
                getattr(response, 'message', None) or f"Unexpected login response: {response}",
                error_code=getattr(response, 'status_code', None),
                status=getattr(transport, 'status', None)
            )
        
        try:
            credential = Credential(
                access_token=response.access_token,
                user_id=response.user_id,
                device_id=response.device_id
            )
        except ValueError as e:
            await client.close()
            raise PasswordLoginError(f"Login response is incomplete: {e}") from e
        
        logger.info(f"Password login succeeded for {credential.user_id} (device {credential.device_id})")
        return client, credential
