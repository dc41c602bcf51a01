"""Utility functions."""


def normalize_server_url(url: str) -> str:
    """
    Canonicalize a homeserver URL so it ends with exactly one ``/``.
    
    Idempotent: ``https://h``, ``https://h/`` and ``https://h//`` all map
    to ``https://h/``.
    
    Raises:
        ValueError: If the URL is empty
    """
    if url is None or not url.strip():
        raise ValueError("Server URL must not be empty")
    return url.strip().rstrip('/') + '/'


def redact_token(token: str, visible: int = 4) -> str:
    """Return a token with all but its last characters hidden."""
    if not token:
        return '<empty>'
    if len(token) <= visible:
        return '*' * len(token)
    return '*' * 8 + token[-visible:]
