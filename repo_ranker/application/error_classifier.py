"""Map raw fetch failures onto the user-facing error taxonomy."""

import requests

from repo_ranker.domain.errors import (
    AuthenticationError,
    AuthorizationScopeError,
    NetworkError,
    RateLimitError,
    RepositoryFetchError,
    UnknownError,
)

AUTHENTICATION_MESSAGE = "Invalid GitHub token. Please check your credentials."
RATE_LIMIT_MESSAGE = "GitHub API rate limit exceeded. Please try again later."
NETWORK_MESSAGE = "Unable to connect to GitHub. Please check your internet connection."
AUTHORIZATION_SCOPE_MESSAGE = (
    "GitHub token is missing authorization for organizations that use SSO. "
    "Please re-authenticate to fix this."
)
UNKNOWN_MESSAGE = "Unknown GitHub API error occurred"

NETWORK_MARKERS = (
    "ENOTFOUND",
    "network",
    "Failed to resolve",
    "Name or service not known",
)
SAML_MARKER = "Resource protected by organization SAML enforcement"


def classify_error(error: BaseException) -> RepositoryFetchError:
    """
    Classify a fetch failure by inspecting its description.

    The first matching rule wins. Unmatched failures become UnknownError
    with the original message preserved.

    Args:
        error: Exception raised by the fetch collaborator

    Returns:
        Classified error carrying the user-facing message and the original cause
    """
    if isinstance(error, RepositoryFetchError):
        return error

    text = str(error)

    if "Bad credentials" in text:
        return AuthenticationError(AUTHENTICATION_MESSAGE, cause=error)
    if "rate limit" in text.lower():
        return RateLimitError(RATE_LIMIT_MESSAGE, cause=error)
    if isinstance(error, (requests.ConnectionError, requests.Timeout)) or any(
        marker in text for marker in NETWORK_MARKERS
    ):
        return NetworkError(NETWORK_MESSAGE, cause=error)
    if SAML_MARKER in text:
        return AuthorizationScopeError(AUTHORIZATION_SCOPE_MESSAGE, cause=error)

    return UnknownError(text or UNKNOWN_MESSAGE, cause=error)
