"""
Domain exceptions shared by every layer.
See docs/Architecture.md (Domain layer) for the architectural rationale.

Adapters translate library exceptions (httpx, jose, sqlalchemy) into these so
the application layer and the HTTP entry point only ever handle this taxonomy.
"""

from typing import Optional


class ConsoleError(Exception):
    """Base class for every error the console reports to a user."""


class ConfigurationError(ConsoleError, ValueError):
    """A required setting (host, API key, collection) is missing or invalid."""


class MalformedInputError(ConsoleError, ValueError):
    """User input (a rule being saved, a search query) is rejected locally."""


class AuthenticationError(ConsoleError):
    """Credentials or a session token were rejected."""


class SessionNotFoundError(ConsoleError, LookupError):
    """No console session with that id exists for the caller."""


class UpstreamError(ConsoleError):
    """The search engine answered with a failure or could not be reached.

    Attributes:
        status_code: HTTP status returned by the engine, None for transport errors.
        retryable:   True for timeouts and connection failures.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retryable = retryable
