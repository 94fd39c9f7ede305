"""Exceptions raised by the omg client."""


class OmgError(Exception):
    """Base class for every error the client raises."""
    pass


class TransportError(OmgError):
    """Raised when an HTTP request fails or returns an unusable status."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class RateLimitExceeded(TransportError):
    """Raised when GitHub API rate limit is exceeded."""
    pass


class DecodeError(OmgError):
    """Raised when a response body cannot be decoded into the expected shape."""
    pass


class StoreError(OmgError):
    """Raised when the local SQLite store fails."""
    pass


class BufferTooSmall(OmgError):
    """Raised when a query no longer fits into the SQL text buffer."""
    pass


class GitHubError(OmgError):
    """Raised for API-level failures reported by GitHub."""
    pass


class NotFoundError(GitHubError):
    pass


class AuthenticationError(GitHubError):
    pass


class InternalError(OmgError):
    pass


class OutOfMemoryError(InternalError):
    """Raised when a response outgrows its buffer."""
    pass
