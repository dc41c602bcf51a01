"""
Custom exceptions for realm authentication.

Internal failures (corrupt store, unusable cached session, rejected
password login) drive the login fallback chain and are never raised to
callers of acquire_session. EmailLoginError and RealmConnectionError are
terminal and do reach the caller. Realm discovery errors are raised by the
realm lookup that follows a successful login.
"""
from typing import Optional, Any, Dict


class RealmException(Exception):
    """Base exception for all realmpy errors."""
    
    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            error_code: Matrix errcode (if available)
        """
        self.error_code = error_code
        super().__init__(message)


class StoreLoadCorruptError(RealmException):
    """The persisted credential store could not be parsed."""
    pass


class RealmAuthError(RealmException):
    """Exception raised for authentication-related errors."""
    pass


class CachedSessionInvalidError(RealmAuthError):
    """A cached credential could not be turned into a client."""
    pass


class PasswordLoginError(RealmAuthError):
    """Username/password login was rejected or did not complete."""
    
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status: Optional[int] = None
    ) -> None:
        self.status = status
        super().__init__(message, error_code)


class EmailLoginError(RealmAuthError):
    """
    Email (third-party identifier) login failed.
    
    This is the last login tier, so this error is what callers see when
    authentication is impossible. It keeps the server's payload intact.
    
    Attributes:
        data: Error body from the server, ``{'errcode': ..., 'error': ...}``
        status: HTTP status code of the response
    """
    
    def __init__(self, data: Dict[str, Any], status: int) -> None:
        """
        Initialize the exception.
        
        Args:
            data: Decoded error body
            status: HTTP status code
        """
        self.data = data
        self.status = status
        super().__init__(
            str(data.get('error') or f"Login failed with HTTP {status}"),
            data.get('errcode')
        )
    
    @property
    def errcode(self) -> Optional[str]:
        return self.error_code
    
    @property
    def error(self) -> str:
        return str(self)


class RealmConnectionError(RealmAuthError):
    """The homeserver could not be reached during the final login tier."""
    pass


class RealmDiscoveryError(RealmException):
    """The account's realm list could not be read."""
    
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status: Optional[int] = None
    ) -> None:
        self.status = status
        super().__init__(message, error_code)


class NoRealmsFoundError(RealmDiscoveryError):
    """The account has no realms."""
    
    def __init__(self) -> None:
        super().__init__("No realms found")
