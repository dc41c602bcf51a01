"""
Tests for the session acquirer.

Covers the tier order: cached credential, password login, email login.
"""
import asyncio
import json
import pytest
from unittest.mock import Mock, AsyncMock

from nio import LoginError

from realmpy.core.api import APIConfig, ClientFactory, PasswordLoginStrategy
from realmpy.core.auth import SessionAcquirer
from realmpy.core.session import CredentialRepository, MemorySecretStorage
from realmpy.core.exceptions import (
    CachedSessionInvalidError,
    PasswordLoginError,
    EmailLoginError,
    RealmConnectionError
)


def logged_in_client(credential):
    client = Mock()
    client.close = AsyncMock()
    client.access_token = credential.access_token
    client.user_id = credential.user_id
    client.device_id = credential.device_id
    return client


def stored(secrets_value):
    return json.loads(secrets_value)


@pytest.fixture
def acquirer_for(client_factory, password_login, email_login):
    """Build an acquirer over the given secrets with mock tiers."""
    def build(secrets, config=None):
        return SessionAcquirer(
            CredentialRepository(secrets),
            config=config,
            client_factory=client_factory,
            password_login=password_login,
            email_login=email_login
        )
    return build


class TestCachedTier:
    """Cached credentials short-circuit live logins."""
    
    @pytest.mark.asyncio
    async def test_cache_hit_skips_logins(self, acquirer_for, seeded_secrets, password_login, email_login, credential, server):
        """Test a cached credential needs no login call."""
        client = await acquirer_for(seeded_secrets).acquire(server, 'alice', 'pw')
        
        assert client.access_token == credential.access_token
        assert client.user_id == credential.user_id
        assert client.device_id == credential.device_id
        password_login.login.assert_not_awaited()
        email_login.login.assert_not_awaited()
        assert seeded_secrets.writes == 0
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize('url', [
        'https://matrix.realm.example',
        'https://matrix.realm.example/',
        'https://matrix.realm.example///',
    ])
    async def test_cache_hit_any_url_form(self, acquirer_for, seeded_secrets, password_login, url):
        """Test trailing slashes map to the same store key."""
        await acquirer_for(seeded_secrets).acquire(url, 'alice', 'pw')
        
        password_login.login.assert_not_awaited()
    
    @pytest.mark.asyncio
    async def test_cache_hit_with_real_factory(self, seeded_secrets, password_login, email_login, credential, server):
        """Test the default factory restores a nio client offline."""
        acquirer = SessionAcquirer(
            CredentialRepository(seeded_secrets),
            client_factory=ClientFactory(),
            password_login=password_login,
            email_login=email_login
        )
        
        client = await acquirer.acquire(server, 'alice', 'pw')
        
        try:
            assert client.access_token == credential.access_token
            assert client.device_id == credential.device_id
        finally:
            await client.close()
        password_login.login.assert_not_awaited()
    
    @pytest.mark.asyncio
    async def test_other_user_is_a_miss(self, acquirer_for, seeded_secrets, password_login, fresh_credential, server):
        """Test entries are per username."""
        password_login.login.return_value = (logged_in_client(fresh_credential), fresh_credential)
        
        await acquirer_for(seeded_secrets).acquire(server, 'bob', 'pw')
        
        password_login.login.assert_awaited_once()
        data = stored(await seeded_secrets.get('auth'))
        assert set(data[server]) == {'alice', 'bob'}
    
    @pytest.mark.asyncio
    async def test_invalid_cache_falls_through(self, acquirer_for, password_login, fresh_credential, server):
        """Test a malformed cached entry leads to password login, not an error."""
        secrets = MemorySecretStorage({'auth': json.dumps({server: {'alice': {'access_token': 42, 'device_id': 'OLDDEV'}}})})
        password_login.login.return_value = (logged_in_client(fresh_credential), fresh_credential)
        
        client = await acquirer_for(secrets).acquire(server, 'alice', 'pw')
        
        assert client.access_token == fresh_credential.access_token
        password_login.login.assert_awaited_once_with(server, 'alice', 'pw', device_id='OLDDEV')
        assert stored(await secrets.get('auth')) == {server: {'alice': fresh_credential.to_dict()}}
    
    @pytest.mark.asyncio
    async def test_factory_rejection_falls_through(self, acquirer_for, seeded_secrets, client_factory, password_login, credential, fresh_credential, server):
        """Test a client-library rejection of the cached credential falls through."""
        client_factory.create.side_effect = CachedSessionInvalidError('rejected')
        password_login.login.return_value = (logged_in_client(fresh_credential), fresh_credential)
        
        client = await acquirer_for(seeded_secrets).acquire(server, 'alice', 'pw')
        
        assert client.access_token == fresh_credential.access_token
        password_login.login.assert_awaited_once_with(server, 'alice', 'pw', device_id=credential.device_id)


class TestPasswordTier:
    """Password login is tried when nothing usable is cached."""
    
    @pytest.mark.asyncio
    async def test_password_login_persists(self, acquirer_for, secrets, password_login, email_login, credential, server):
        """Test one password login, no email login, store updated."""
        password_login.login.return_value = (logged_in_client(credential), credential)
        
        client = await acquirer_for(secrets).acquire('https://matrix.realm.example', 'alice', 'pw')
        
        assert client.user_id == credential.user_id
        password_login.login.assert_awaited_once_with(server, 'alice', 'pw', device_id=None)
        email_login.login.assert_not_awaited()
        assert secrets.writes == 1
        assert stored(await secrets.get('auth')) == {server: {'alice': credential.to_dict()}}
    
    @pytest.mark.asyncio
    async def test_next_acquisition_uses_cache(self, acquirer_for, secrets, password_login, credential, server):
        """Test write-through makes the next call take the cache path."""
        password_login.login.return_value = (logged_in_client(credential), credential)
        acquirer = acquirer_for(secrets)
        
        await acquirer.acquire(server, 'alice', 'pw')
        await acquirer.acquire(server, 'alice', 'pw')
        
        password_login.login.assert_awaited_once()
    
    @pytest.mark.asyncio
    async def test_second_login_replaces_first(self, acquirer_for, secrets, client_factory, password_login, credential, fresh_credential, server):
        """Test a later login fully replaces the earlier entry."""
        password_login.login.side_effect = [
            (logged_in_client(credential), credential),
            (logged_in_client(fresh_credential), fresh_credential),
        ]
        acquirer = acquirer_for(secrets)
        
        await acquirer.acquire(server, 'alice', 'pw')
        client_factory.create.side_effect = CachedSessionInvalidError('revoked')
        await acquirer.acquire(server + '/', 'alice', 'pw')
        
        assert stored(await secrets.get('auth')) == {server: {'alice': fresh_credential.to_dict()}}
    
    @pytest.mark.asyncio
    async def test_stale_fields_do_not_leak(self, acquirer_for, password_login, fresh_credential, server):
        """Test extra keys of an old entry are not carried over."""
        old = {'access_token': '', 'user_id': '@alice:realm.example', 'device_id': 'OLD', 'home_server': 'x'}
        secrets = MemorySecretStorage({'auth': json.dumps({server: {'alice': old}})})
        password_login.login.return_value = (logged_in_client(fresh_credential), fresh_credential)
        
        await acquirer_for(secrets).acquire(server, 'alice', 'pw')
        
        assert stored(await secrets.get('auth'))[server]['alice'] == fresh_credential.to_dict()
    
    @pytest.mark.asyncio
    async def test_corrupt_store_proceeds_to_login(self, acquirer_for, password_login, credential, server):
        """Test a corrupt blob is treated as empty and overwritten."""
        secrets = MemorySecretStorage({'auth': 'this is not json'})
        password_login.login.return_value = (logged_in_client(credential), credential)
        
        client = await acquirer_for(secrets).acquire(server, 'alice', 'pw')
        
        assert client.user_id == credential.user_id
        assert stored(await secrets.get('auth')) == {server: {'alice': credential.to_dict()}}
    
    @pytest.mark.asyncio
    async def test_persist_failure_closes_client(self, acquirer_for, password_login, email_login, credential, server):
        """Test a failing secret write is raised and the client closed."""
        secrets = MemorySecretStorage()
        secrets.store = AsyncMock(side_effect=OSError('disk full'))
        client = logged_in_client(credential)
        password_login.login.return_value = (client, credential)
        
        with pytest.raises(OSError, match='disk full'):
            await acquirer_for(secrets).acquire(server, 'alice', 'pw')
        
        client.close.assert_awaited_once()
        email_login.login.assert_not_awaited()


class TestEmailTier:
    """Email login is the last resort."""
    
    @pytest.mark.asyncio
    async def test_email_login_after_password_failure(self, acquirer_for, secrets, client_factory, password_login, email_login, credential, server):
        """Test email login result is returned and stored."""
        password_login.login.side_effect = PasswordLoginError('Invalid password', 'M_FORBIDDEN', 403)
        email_login.login.return_value = credential
        
        client = await acquirer_for(secrets).acquire(server, 'alice@realm.example', 'pw')
        
        email_login.login.assert_awaited_once_with(server, 'alice@realm.example', 'pw')
        assert client.access_token == credential.access_token
        assert client.user_id == credential.user_id
        assert client.device_id == credential.device_id
        client_factory.create.assert_called_once_with(server, credential)
        assert stored(await secrets.get('auth')) == {server: {'alice@realm.example': credential.to_dict()}}
    
    @pytest.mark.asyncio
    async def test_email_failure_is_terminal(self, acquirer_for, secrets, password_login, email_login, server):
        """Test the email error reaches the caller with payload and status."""
        password_login.login.side_effect = PasswordLoginError('Invalid password', 'M_FORBIDDEN', 403)
        email_login.login.side_effect = EmailLoginError(
            {'errcode': 'M_FORBIDDEN', 'error': 'Invalid password'}, 403
        )
        
        with pytest.raises(EmailLoginError) as exc_info:
            await acquirer_for(secrets).acquire(server, 'alice', 'pw')
        
        assert exc_info.value.data == {'errcode': 'M_FORBIDDEN', 'error': 'Invalid password'}
        assert exc_info.value.status == 403
        password_login.login.assert_awaited_once()
        email_login.login.assert_awaited_once()
        assert await secrets.get('auth') is None
    
    @pytest.mark.asyncio
    async def test_connection_failure_is_terminal(self, acquirer_for, secrets, password_login, email_login, server):
        """Test an unreachable server on the last tier is raised."""
        password_login.login.side_effect = PasswordLoginError('unreachable')
        email_login.login.side_effect = RealmConnectionError('unreachable')
        
        with pytest.raises(RealmConnectionError):
            await acquirer_for(secrets).acquire(server, 'alice', 'pw')
    
    @pytest.mark.asyncio
    async def test_email_shaped_username_tries_user_login_first(self, secrets, client_factory, email_login, credential, server):
        """Test tier 2 sends m.id.user for an email-shaped username before email login runs."""
        login_client = Mock()
        login_client.login_raw = AsyncMock(return_value=LoginError(message='Invalid password', status_code='M_FORBIDDEN'))
        login_client.close = AsyncMock()
        password_factory = Mock()
        password_factory.create = Mock(return_value=login_client)
        email_login.login.return_value = credential
        acquirer = SessionAcquirer(
            CredentialRepository(secrets),
            client_factory=client_factory,
            password_login=PasswordLoginStrategy(client_factory=password_factory),
            email_login=email_login
        )
        
        client = await acquirer.acquire(server, 'alice@realm.example', 'pw')
        
        login_client.login_raw.assert_awaited_once()
        body = login_client.login_raw.await_args.args[0]
        assert body['identifier'] == {'type': 'm.id.user', 'user': 'alice@realm.example'}
        login_client.close.assert_awaited_once()
        email_login.login.assert_awaited_once_with(server, 'alice@realm.example', 'pw')
        assert client.access_token == credential.access_token


class TestConcurrentAcquisition:
    """Concurrent calls for the same pair."""
    
    @staticmethod
    def slow_login(credentials):
        async def login(*args, **kwargs):
            await asyncio.sleep(0)
            credential = credentials.pop(0)
            return logged_in_client(credential), credential
        return login
    
    @pytest.mark.asyncio
    async def test_uncoordinated_last_write_wins(self, acquirer_for, secrets, password_login, credential, fresh_credential, server):
        """Test both calls log in and the later write is kept."""
        password_login.login.side_effect = self.slow_login([credential, fresh_credential])
        acquirer = acquirer_for(secrets)
        
        await asyncio.gather(
            acquirer.acquire(server, 'alice', 'pw'),
            acquirer.acquire(server, 'alice', 'pw'),
        )
        
        assert password_login.login.await_count == 2
        assert secrets.writes == 2
        assert stored(await secrets.get('auth')) == {server: {'alice': fresh_credential.to_dict()}}
    
    @pytest.mark.asyncio
    async def test_serialized_logins(self, acquirer_for, secrets, password_login, credential, fresh_credential, server):
        """Test serialize_logins lets the second call reuse the first login."""
        password_login.login.side_effect = self.slow_login([credential, fresh_credential])
        acquirer = acquirer_for(secrets, APIConfig(serialize_logins=True))
        
        first, second = await asyncio.gather(
            acquirer.acquire(server, 'alice', 'pw'),
            acquirer.acquire('https://matrix.realm.example', 'alice', 'pw'),
        )
        
        assert password_login.login.await_count == 1
        assert second.access_token == first.access_token == credential.access_token
        assert stored(await secrets.get('auth')) == {server: {'alice': credential.to_dict()}}
        assert acquirer._locks == {}
    
    @pytest.mark.asyncio
    async def test_serialized_lock_released_after_failure(self, acquirer_for, secrets, password_login, email_login, server):
        """Test the pair lock is dropped when the acquisition raises."""
        password_login.login.side_effect = PasswordLoginError('Invalid password')
        email_login.login.side_effect = EmailLoginError({'errcode': 'M_FORBIDDEN', 'error': 'Invalid password'}, 403)
        acquirer = acquirer_for(secrets, APIConfig(serialize_logins=True))
        
        with pytest.raises(EmailLoginError):
            await acquirer.acquire(server, 'alice', 'pw')
        
        assert acquirer._locks == {}
        assert acquirer._lock_users == {}
