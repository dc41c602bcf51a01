"""
realmpy - Cached Matrix authentication for realm servers.

Usage:
    >>> from realmpy import RealmContext, SQLiteSecretStorage, acquire_session
    >>> 
    >>> context = RealmContext(SQLiteSecretStorage("realm"))
    >>> client = await acquire_session(context, "https://matrix.realm.example", "alice", "secret")
"""
import logging
from .client import RealmContext, acquire_session, list_realms

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    ClientFactory,
    PasswordLoginStrategy,
    EmailLoginStrategy,
    RealmDiscovery,
    MatrixErrorCodes
)

# Session acquisition
from .core.auth import SessionAcquirer, Tier, TierResult

# Credential storage
from .core.session import (
    SecretStorage,
    Credential,
    CredentialStore,
    CredentialRepository,
    MemorySecretStorage,
    SQLiteSecretStorage,
    FileSecretStorage
)

# Errors
from .core.exceptions import (
    RealmException,
    RealmAuthError,
    StoreLoadCorruptError,
    CachedSessionInvalidError,
    PasswordLoginError,
    EmailLoginError,
    RealmConnectionError,
    RealmDiscoveryError,
    NoRealmsFoundError
)

from .core.utils import normalize_server_url

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for realmpy modules.
    
    This ensures that all realmpy loggers are properly configured
    to show log messages at the specified level.
    
    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'realmpy',
        'realmpy.auth',
        'realmpy.auth.password',
        'realmpy.auth.email',
        'realmpy.store',
        'realmpy.secrets',
        'realmpy.realms',
    ]
    
    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        # Ensure propagation is enabled
        logger.propagate = True


__all__ = [
    'RealmContext',
    'acquire_session',
    'list_realms',
    'SessionAcquirer',
    'Tier',
    'TierResult',
    'SecretStorage',
    'Credential',
    'CredentialStore',
    'CredentialRepository',
    'MemorySecretStorage',
    'SQLiteSecretStorage',
    'FileSecretStorage',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'ClientFactory',
    'PasswordLoginStrategy',
    'EmailLoginStrategy',
    'RealmDiscovery',
    'MatrixErrorCodes',
    'RealmException',
    'RealmAuthError',
    'StoreLoadCorruptError',
    'CachedSessionInvalidError',
    'PasswordLoginError',
    'EmailLoginError',
    'RealmConnectionError',
    'RealmDiscoveryError',
    'NoRealmsFoundError',
    'normalize_server_url',
    'setup_logging',
]
