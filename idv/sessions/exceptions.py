class SessionError(Exception):
    """Base exception for session lifecycle errors."""


class SessionNotFoundError(SessionError):
    """Raised when a session cannot be found in the database."""


class InvalidApiKeyError(SessionError):
    """Raised when session creation is attempted with an unknown API key."""
