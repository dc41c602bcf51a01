"""
API configuration module.

Provides configuration for the homeserver login clients. Both the
native Matrix client and the raw email login read from the same config.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Union
import ssl


@dataclass
class ProxyConfig:
    """
    Proxy configuration.
    
    Supports HTTP, HTTPS, and SOCKS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    
    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None
        
        if self.username and self.password:
            # Insert credentials into URL
            if '://' in self.url:
                protocol, rest = self.url.split('://', 1)
                return f"{protocol}://{self.username}:{self.password}@{rest}"
        
        return self.url


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.
    
    Allows customization of SSL behavior for self-hosted realms.
    """
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True
    
    def create_ssl_context(self) -> Union[ssl.SSLContext, bool]:
        """Create SSL context from configuration."""
        if not self.verify:
            return False  # Disable SSL verification
        
        context = ssl.create_default_context()
        
        if self.ca_file:
            context.load_verify_locations(self.ca_file)
        
        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )
        
        context.check_hostname = self.check_hostname
        
        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.
    
    Login tiers make a single attempt each, so these are the only bound
    on how long a tier can take.
    """
    total: float = 60.0
    connect: float = 15.0
    sock_read: float = 30.0
    sock_connect: float = 15.0
    
    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class APIConfig:
    """
    Complete API configuration.
    
    Centralizes all configuration options for session acquisition.
    """
    # User agent for raw HTTP calls
    user_agent: str = 'realmpy/1.0.0'
    
    # Display name of the device registered by password/email login
    device_name: str = 'realmpy'
    
    # Secret storage key holding the serialized credential store
    secret_key: str = 'auth'
    
    # Hold a per-(server, username) lock for the whole acquisition
    serialize_logins: bool = False
    
    # Sub-configurations
    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    
    # Additional headers
    extra_headers: Dict[str, str] = field(default_factory=dict)
    
    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()
    
    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'APIConfig':
        """Create configuration with proxy."""
        return cls(
            proxy=ProxyConfig(url=proxy_url),
            **kwargs
        )
    
    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )
    
    @property
    def proxy_url(self) -> Optional[str]:
        """Proxy URL with credentials, or None."""
        return self.proxy.to_aiohttp_proxy() if self.proxy else None
    
    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'ssl': self.ssl.create_ssl_context(),
        }
    
    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }
        
        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
