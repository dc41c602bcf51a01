"""Homeserver API module: client factory, login strategies, realm discovery, configuration."""
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig
from .errors import MatrixErrorCodes
from .session import SessionFactory
from .client_factory import ClientFactory
from .password_login import PasswordLoginStrategy, build_password_login_body
from .email_login import EmailLoginStrategy, build_email_login_body, LOGIN_PATH
from .realms import RealmDiscovery, REALMS_EVENT_TYPE, account_data_url

__all__ = [
    # Clients
    'ClientFactory',
    'SessionFactory',
    
    # Login strategies
    'PasswordLoginStrategy',
    'build_password_login_body',
    'EmailLoginStrategy',
    'build_email_login_body',
    'LOGIN_PATH',
    
    # Realm discovery
    'RealmDiscovery',
    'REALMS_EVENT_TYPE',
    'account_data_url',
    
    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    
    # Errors
    'MatrixErrorCodes',
]
