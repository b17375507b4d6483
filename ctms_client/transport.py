"""
Transport
=========
The only unit of I/O: one HTTPS request/response exchange.

``RequestContext`` carries everything a request needs (host, headers,
timeout, proxy, TLS mode) and is mutated in place as a session progresses:
most importantly, a successful login stores the session ``Cookie`` header on
it, and every later request sent through ``Transport.send`` carries it.

Redirects are never followed: the platform answers many GETs with
``303 See Other`` and a usable body, which callers treat as success.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from http import cookiejar
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests

from .errors import RequestTimeout, TransportError

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_SECONDS = 60.0

DEFAULT_HEADERS = {
    'Content-Type': 'application/json',
    'Accept': 'application/hal+json',
}


# ---------------------------------------------------------------------------
# Request / response records
# ---------------------------------------------------------------------------

@dataclass
class RequestContext:
    """Mutable request state threaded through a whole session."""

    host: str
    headers: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    path: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    proxy: Optional[str] = None
    verify_tls: bool = True

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    @property
    def cookie(self) -> Optional[str]:
        return self.headers.get('Cookie')

    def url_for(self, path: str) -> str:
        """Resolve *path* (absolute URL or host-relative path) to a full URL."""
        return urljoin(self.base_url + '/', path)


@dataclass
class HttpResult:
    """Fully received response of a single exchange."""

    status_code: int
    reason: str = ""
    url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    set_cookies: List[str] = field(default_factory=list)
    body: bytes = b""

    def status_in(self, accepted) -> bool:
        return self.status_code in accepted


class _RejectAllCookies(cookiejar.DefaultCookiePolicy):
    """Keep the session's cookie jar empty; affinity travels in headers."""

    def set_ok(self, cookie, request):
        return False

    def return_ok(self, cookie, request):
        return False


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class Transport:
    """Sends single requests on behalf of a ``RequestContext``."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or self._create_session()
        self._insecure_warned = False

    @staticmethod
    def _create_session() -> requests.Session:
        """Create a requests session without automatic cookie handling."""
        session = requests.Session()
        session.cookies.set_policy(_RejectAllCookies())
        return session

    def send(
        self,
        context: RequestContext,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> HttpResult:
        """
        Issue one request and read the response completely.

        Args:
            context: Request state; ``context.path`` is set to *path*.
            method: HTTP method.
            path: Host-relative path or absolute URL.
            json_body: Optional object serialized as the JSON request body.
            headers: Per-request header overrides, merged over ``context.headers``.

        Returns:
            The ``HttpResult`` of the exchange, whatever its status.

        Raises:
            RequestTimeout: The request exceeded ``context.timeout_seconds``.
            TransportError: Any other connection-level failure.
        """
        context.path = path
        url = context.url_for(path)

        merged = dict(context.headers)
        if headers:
            merged.update(headers)

        proxies = None
        if context.proxy:
            proxies = {'http': context.proxy, 'https': context.proxy}

        if not context.verify_tls and not self._insecure_warned:
            logger.warning(f"[HTTP] TLS certificate validation disabled for {context.host}")
            self._insecure_warned = True

        logger.debug(f"[HTTP] {method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                headers=merged,
                json=json_body,
                timeout=context.timeout_seconds,
                proxies=proxies,
                verify=context.verify_tls,
                allow_redirects=False,
            )
        except requests.Timeout as exc:
            logger.warning("[HTTP] Request has timed out")
            raise RequestTimeout(f"{method} <{url}> timed out after {context.timeout_seconds}s") from exc
        except requests.RequestException as exc:
            raise TransportError(f"{method} <{url}> failed: {exc}") from exc

        result = HttpResult(
            status_code=response.status_code,
            reason=response.reason or "",
            url=url,
            headers=dict(response.headers),
            set_cookies=self._set_cookie_values(response),
            body=response.content or b"",
        )
        logger.debug(f"[HTTP] {result.status_code} {result.reason} <- {url}")
        return result

    @staticmethod
    def _set_cookie_values(response: requests.Response) -> List[str]:
        """Return each ``Set-Cookie`` header separately.

        ``response.headers`` folds repeated headers into one comma-joined
        value, which is ambiguous for cookies carrying an ``Expires`` date,
        so the raw urllib3 headers are consulted.
        """
        raw_headers = getattr(response.raw, 'headers', None)
        if raw_headers is not None and hasattr(raw_headers, 'getlist'):
            return list(raw_headers.getlist('Set-Cookie'))
        value = response.headers.get('Set-Cookie')
        return [value] if value else []

    def close(self) -> None:
        self.session.close()
