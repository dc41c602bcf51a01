"""Pytest fixtures for realmpy tests."""
import json
import pytest
from unittest.mock import Mock, AsyncMock

from realmpy.core.session import Credential, MemorySecretStorage, CredentialRepository


SERVER = 'https://matrix.realm.example/'


@pytest.fixture
def server():
    """Normalized homeserver URL."""
    return SERVER


@pytest.fixture
def credential():
    """A complete credential as issued by a login."""
    return Credential(
        access_token='syt_YWxpY2U_token_1234',
        user_id='@alice:realm.example',
        device_id='ABCDEFGHIJ'
    )


@pytest.fixture
def fresh_credential():
    """A second, different credential for the same account."""
    return Credential(
        access_token='syt_YWxpY2U_token_5678',
        user_id='@alice:realm.example',
        device_id='KLMNOPQRST'
    )


@pytest.fixture
def secrets():
    """Empty in-memory secret storage."""
    return MemorySecretStorage()


@pytest.fixture
def repository(secrets):
    """Credential repository over the in-memory secrets."""
    return CredentialRepository(secrets)


@pytest.fixture
def seeded_secrets(credential):
    """Secret storage already holding a credential for alice."""
    blob = json.dumps({SERVER: {'alice': credential.to_dict()}})
    return MemorySecretStorage({'auth': blob})


@pytest.fixture
def client_factory():
    """Client factory returning a fresh mock client per call."""
    factory = Mock()
    
    def create(base_url, credential=None, user='', device_id=None):
        client = Mock()
        client.close = AsyncMock()
        client.homeserver = base_url
        if credential is not None:
            client.user_id = credential.user_id
            client.device_id = credential.device_id
            client.access_token = credential.access_token
        return client
    
    factory.create = Mock(side_effect=create)
    return factory


@pytest.fixture
def password_login():
    """Password strategy that fails unless a test configures it."""
    strategy = Mock()
    strategy.login = AsyncMock()
    return strategy


@pytest.fixture
def email_login():
    """Email strategy that fails unless a test configures it."""
    strategy = Mock()
    strategy.login = AsyncMock()
    return strategy
