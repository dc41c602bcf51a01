"""Matrix error codes returned by homeserver login endpoints."""
from typing import Dict, Optional


class MatrixErrorCodes:
    """Standard Matrix ``errcode`` values relevant to login."""
    
    ERROR_CODES: Dict[str, str] = {
        'M_FORBIDDEN': 'Forbidden access, e.g. wrong username or password.',
        'M_UNKNOWN_TOKEN': 'The access token specified was not recognised.',
        'M_MISSING_TOKEN': 'No access token was specified for the request.',
        'M_USER_DEACTIVATED': 'The account has been deactivated.',
        'M_LIMIT_EXCEEDED': 'Too many requests have been sent in a short period of time. Wait a while then try again.',
        'M_BAD_JSON': 'Request contained valid JSON, but it was malformed in some way.',
        'M_NOT_JSON': 'Request did not contain valid JSON.',
        'M_NOT_FOUND': 'No resource was found for this request.',
        'M_UNRECOGNIZED': 'The server did not understand the request, e.g. an unsupported login type.',
        'M_INVALID_PARAM': 'A parameter that was specified has the wrong value.',
        'M_THREEPID_NOT_FOUND': 'No account is bound to this email address.',
        'M_UNKNOWN': 'An unknown error has occurred.',
    }
    
    @classmethod
    def get_message(cls, errcode: Optional[str]) -> str:
        """Gets the description for an errcode."""
        if not errcode:
            return "No error code supplied"
        return cls.ERROR_CODES.get(errcode, f"Unknown error: {errcode}")
    