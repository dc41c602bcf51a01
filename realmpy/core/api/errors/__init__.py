"""Matrix API error codes."""
from .api_errors import MatrixErrorCodes

__all__ = [
    'MatrixErrorCodes',
]
