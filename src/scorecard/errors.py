"""Custom exception types for the service scorecard generator."""

from __future__ import annotations

from typing import Optional


class ScorecardError(Exception):
    """Base exception for all recoverable scorecard errors."""


class ConfigurationError(ScorecardError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(ScorecardError):
    """Raised when provider credentials are unavailable or invalid."""


class UnrecognizedRemoteFormat(ScorecardError):
    """Raised when a remote URL names a known host but its path matches no known layout."""


class NoRemoteFound(ScorecardError):
    """Raised when none of a working copy's remotes resolves to a repository identity."""


class ProviderRequestFailed(ScorecardError):
    """Raised when a provider REST call fails or returns a non-success status."""

    def __init__(
        self,
        url: str,
        status_code: Optional[int] = None,
        body: str = "",
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"Provider request failed: GET {url} - {body}"
        else:
            message = f"Provider request failed: GET {url} returned {status_code}"
        super().__init__(message)
