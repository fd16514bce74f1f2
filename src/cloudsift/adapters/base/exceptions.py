"""Backend-specific exceptions."""

from __future__ import annotations


class CloudSearchError(Exception):
    """Base exception for CloudSearch backend errors."""


class RemoteUnavailable(CloudSearchError):
    """Raised when the remote service cannot be reached or answers with an HTTP error."""


class RemoteRejected(CloudSearchError):
    """Raised when the remote service returns an explicit error payload.

    Only the first message is surfaced in ``str(exc)``; the full list is
    kept on ``messages``.
    """

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages) or ["Unknown error"]
        super().__init__(self.messages[0])


class QueryError(CloudSearchError):
    """Raised when a search response is missing or cannot be parsed."""


class ConfigurationError(CloudSearchError):
    """Raised when backend configuration is invalid."""
