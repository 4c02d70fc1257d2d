"""Error taxonomy for repository fetching and local storage."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """User-facing categories a fetch failure is classified into."""
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    AUTHORIZATION_SCOPE = "authorization_scope"
    UNKNOWN = "unknown"


class RepositoryFetchError(Exception):
    """Base class for classified fetch failures; str() is the user-facing message."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class AuthenticationError(RepositoryFetchError):
    """Raised when the GitHub credential is invalid or expired."""
    kind = ErrorKind.AUTHENTICATION


class RateLimitError(RepositoryFetchError):
    """Raised when GitHub's API rate limit is exhausted."""
    kind = ErrorKind.RATE_LIMIT


class NetworkError(RepositoryFetchError):
    """Raised when GitHub cannot be reached (DNS, connectivity)."""
    kind = ErrorKind.NETWORK


class AuthorizationScopeError(RepositoryFetchError):
    """Raised when the credential is valid but lacks an organization (SSO) grant."""
    kind = ErrorKind.AUTHORIZATION_SCOPE


class UnknownError(RepositoryFetchError):
    kind = ErrorKind.UNKNOWN


class StorageReadError(Exception):
    """Raised when the durable store is unreadable or holds malformed data."""
