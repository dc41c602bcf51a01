"""
Credential storage module.

Provides the credential model, the (server, username) keyed store and
the secret storage backends the store is persisted into.
"""
from .protocols import SecretStorage
from .models import Credential, CredentialStore
from .memory_secrets import MemorySecretStorage
from .sqlite_secrets import SQLiteSecretStorage
from .file_secrets import FileSecretStorage
from .repository import CredentialRepository, DEFAULT_SECRET_KEY

__all__ = [
    'SecretStorage',
    'Credential',
    'CredentialStore',
    'MemorySecretStorage',
    'SQLiteSecretStorage',
    'FileSecretStorage',
    'CredentialRepository',
    'DEFAULT_SECRET_KEY',
]
