"""HTTP session management using Factory Pattern."""
from .session_factory import SessionFactory

__all__ = [
    'SessionFactory',
]
