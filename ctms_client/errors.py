"""
Exception Types
===============
Every failure raised by the client derives from ``PlatformError``.

Low-level kinds:
    - ``TransportError``     - connection problems (``RequestTimeout`` for timeouts)
    - ``UnexpectedStatus``   - the server answered with a status we do not accept
    - ``MalformedResponse``  - the body is not JSON or lacks an expected link/field

Operation failures wrap one of the above (``raise ... from exc``) so a caller
sees a single terminal outcome per operation.

Registry misses are not errors: ``RegistryResolver`` records a
``FallbackReason`` and hands back the default template instead.
"""

from __future__ import annotations

from typing import Optional


class PlatformError(Exception):
    """Base exception for all platform client errors."""


# ---------------------------------------------------------------------------
# Low-level kinds
# ---------------------------------------------------------------------------

class TransportError(PlatformError):
    """The HTTP exchange could not be completed."""


class RequestTimeout(TransportError):
    """The request did not complete within the configured timeout."""


class UnexpectedStatus(PlatformError):
    """The server answered with a status code the operation does not accept."""

    def __init__(self, status_code: int, reason: str = "", url: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.url = url
        super().__init__(f"{status_code} {reason}".strip() + (f" for <{url}>" if url else ""))


class MalformedResponse(PlatformError):
    """The response body could not be parsed or misses an expected field."""


# ---------------------------------------------------------------------------
# Session operations
# ---------------------------------------------------------------------------

class EndpointUnreachable(PlatformError):
    """The ``/auth`` discovery document could not be fetched."""


class ProvidersUnavailable(PlatformError):
    """The identity-provider listing could not be fetched."""


class NoMatchingProvider(PlatformError):
    """No identity provider of the expected kind exposes a login link."""


class LoginRejected(PlatformError):
    """The credential login was not accepted."""


class TokenUnavailable(PlatformError):
    """The current session token could not be located or fetched."""


class LogoutFailed(PlatformError):
    """The session token could not be removed."""


# ---------------------------------------------------------------------------
# Resource operations
# ---------------------------------------------------------------------------

class PageFetchFailed(PlatformError):
    """A page of a paginated collection could not be fetched."""

    def __init__(self, url: str, detail: Optional[str] = None):
        self.url = url
        message = f"Paging failed for <{url}>"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ProcessFailed(PlatformError):
    """A process could not be started or its progress could not be read."""
