"""
Session Manager
===============
Drives the platform's discovery-based login and logout.

Lifecycle::

    1. ``discover_auth_endpoint()``
       → GET ``/auth``; returns the discovery document + the context used.

    2. ``list_identity_providers(discovery)``
       → follows ``auth:identity-providers``.

    3. ``login(providers, credentials)``
       → POSTs the credentials to the ``mcux`` provider's login link,
         stores every ``Set-Cookie`` value as the context's ``Cookie``
         header and arms the keep-alive task.

    4. ``current_token(context)``
       → re-fetches ``/auth`` and follows the ``auth:token`` link named
         ``current``.

    5. ``logout(token)``
       → DELETEs the token's ``auth-token:removal`` link and cancels
         the keep-alive task (also when the DELETE fails).

Each step either returns its result or raises one operation-specific
``PlatformError`` subclass with the underlying cause chained. Nothing is
retried.

Security:
    - Credentials are never logged.
    - Credentials are sent as a JSON body built with ``json``, never by
      string concatenation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from ..errors import (
    EndpointUnreachable,
    LoginRejected,
    LogoutFailed,
    MalformedResponse,
    NoMatchingProvider,
    PlatformError,
    ProvidersUnavailable,
    TokenUnavailable,
    TransportError,
)
from ..hal import AuthEndpointResource, HalResource, IdentityProvider, TokenResource, identity_providers
from ..run_config import PlatformConfig
from ..transport import RequestContext, Transport
from .credentials import Credentials
from .keepalive import KeepAliveTask

logger = logging.getLogger(__name__)

OK_STATUSES = (200, 303)
DELETED_STATUSES = (204, 303)

AUTH_PATH = '/auth'
LOGIN_HEADERS = {'Content-Type': 'application/json', 'Accept': 'application/json'}


class SessionState(str, Enum):
    UNAUTHENTICATED = 'unauthenticated'
    ENDPOINT_DISCOVERED = 'endpoint-discovered'
    PROVIDERS_LISTED = 'providers-listed'
    AUTHENTICATED = 'authenticated'
    TOKEN_FETCHED = 'token-fetched'
    LOGGED_OUT = 'logged-out'


# ---------------------------------------------------------------------------
# Step results
# ---------------------------------------------------------------------------

@dataclass
class DiscoveryResult:
    resource: AuthEndpointResource
    context: RequestContext


@dataclass
class ProvidersResult:
    providers: List[IdentityProvider]
    context: RequestContext


@dataclass
class TokenResult:
    resource: TokenResource
    context: RequestContext


def concat_cookies(set_cookie_values: List[str]) -> str:
    """Join ``Set-Cookie`` values, each terminated by ``;``."""
    return ''.join(f"{value};" for value in set_cookie_values)


def select_provider(providers: List[IdentityProvider], kind: str) -> Optional[IdentityProvider]:
    """First provider of *kind*, or None."""
    for provider in providers:
        if provider.kind == kind:
            return provider
    return None


# ---------------------------------------------------------------------------
# Session Manager
# ---------------------------------------------------------------------------

class AuthSessionManager:
    """Authenticates against one platform host and owns its keep-alive task."""

    def __init__(
        self,
        config: PlatformConfig,
        transport: Optional[Transport] = None,
        keepalive_transport: Optional[Transport] = None,
    ):
        self.config = config
        self.transport = transport or Transport()
        # The keep-alive thread gets its own HTTP session; requests.Session
        # is not safe to share across threads.
        self.keepalive_transport = keepalive_transport
        self._owns_keepalive_transport = keepalive_transport is None
        self.state = SessionState.UNAUTHENTICATED
        self._keepalive: Optional[KeepAliveTask] = None

    @property
    def keepalive(self) -> Optional[KeepAliveTask]:
        return self._keepalive

    def _get_resource(self, context: RequestContext, path: str, error_cls, what: str) -> HalResource:
        """GET *path*, accept 200/303, parse HAL; wrap every failure in *error_cls*."""
        try:
            result = self.transport.send(context, 'GET', path)
        except TransportError as exc:
            logger.error(f"[SESSION] Getting {what} failed: {exc}")
            raise error_cls(f"Getting {what} failed: {exc}") from exc

        if not result.status_in(OK_STATUSES):
            logger.error(f"[SESSION] Getting {what} request failed with '{result.reason}' ({result.status_code})")
            raise error_cls(f"Getting {what} failed with {result.status_code} {result.reason}".strip())

        try:
            return HalResource.from_body(result.body)
        except MalformedResponse as exc:
            raise error_cls(f"{what} is malformed: {exc}") from exc

    # ── Step 1 ────────────────────────────────────────────────────

    def discover_auth_endpoint(self, context: Optional[RequestContext] = None) -> DiscoveryResult:
        """Fetch the ``/auth`` discovery document.

        Args:
            context: Context to reuse (e.g. an authenticated one at logout
                time). A fresh context for the configured host is created
                when omitted.

        Raises:
            EndpointUnreachable
        """
        if context is None:
            context = self.config.new_context()
        resource = self._get_resource(context, AUTH_PATH, EndpointUnreachable, "auth endpoint")
        if self.state is SessionState.UNAUTHENTICATED:
            self.state = SessionState.ENDPOINT_DISCOVERED
        return DiscoveryResult(AuthEndpointResource(resource.data), context)

    # ── Step 2 ────────────────────────────────────────────────────

    def list_identity_providers(self, discovery: DiscoveryResult) -> ProvidersResult:
        """Follow ``auth:identity-providers``.

        Raises:
            ProvidersUnavailable
        """
        href = discovery.resource.identity_providers_href
        if not href:
            raise ProvidersUnavailable("Discovery document has no 'auth:identity-providers' link")
        resource = self._get_resource(discovery.context, href, ProvidersUnavailable, "identity providers")
        providers = identity_providers(resource)
        logger.info(f"[SESSION] {len(providers)} identity provider(s) offered: "
                    f"{', '.join(p.kind for p in providers) or 'none'}")
        self.state = SessionState.PROVIDERS_LISTED
        return ProvidersResult(providers, discovery.context)

    # ── Step 3 ────────────────────────────────────────────────────

    def login(self, providers: ProvidersResult, credentials: Credentials) -> RequestContext:
        """Log in with *credentials* and capture the session cookie.

        Returns:
            The authenticated context; its ``Cookie`` header is set.

        Raises:
            NoMatchingProvider: No provider of the configured kind, or it has
                no login link.
            LoginRejected: Transport failure or a status other than 200/303.
        """
        kind = self.config.identity_provider_kind
        provider = select_provider(providers.providers, kind)
        if provider is None or not provider.login_href:
            raise NoMatchingProvider(f"No '{kind}' identity provider with a login link")

        context = providers.context
        try:
            result = self.transport.send(
                context,
                'POST',
                provider.login_href,
                json_body=credentials.as_login_body(),
                headers=LOGIN_HEADERS,
            )
        except TransportError as exc:
            logger.error(f"[AUTH] Authorization request failed: {exc}")
            raise LoginRejected(f"Authorization request failed: {exc}") from exc

        if not result.status_in(OK_STATUSES):
            logger.error(f"[AUTH] Authorization request failed with '{result.reason}' ({result.status_code})")
            raise LoginRejected(f"Authorization failed with {result.status_code} {result.reason}".strip())

        if result.set_cookies:
            context.headers['Cookie'] = concat_cookies(result.set_cookies)
        else:
            logger.warning("[AUTH] Login response carried no Set-Cookie header; no session cookie stored")
        logger.info(f"[AUTH] Logged in as '{credentials.username}' "
                    f"({len(result.set_cookies)} cookie(s) captured)")
        self.state = SessionState.AUTHENTICATED
        self._arm_keepalive(context)
        return context

    def _arm_keepalive(self, context: RequestContext) -> None:
        if self._keepalive is not None and self._keepalive.is_active:
            logger.warning("[KEEPALIVE] Replacing the task of a previous login")
            self._keepalive.cancel()
        if self.keepalive_transport is None:
            self.keepalive_transport = Transport()
        self._keepalive = KeepAliveTask(
            self.keepalive_transport,
            context,
            interval=self.config.keepalive_interval_seconds,
        )
        self._keepalive.start()

    def authenticate(self, credentials: Credentials) -> RequestContext:
        """Run discovery, provider listing and login in sequence."""
        discovery = self.discover_auth_endpoint()
        providers = self.list_identity_providers(discovery)
        return self.login(providers, credentials)

    # ── Step 4 ────────────────────────────────────────────────────

    def current_token(self, context: RequestContext) -> TokenResult:
        """Fetch the current session token via a fresh discovery document.

        Raises:
            TokenUnavailable: Discovery failed, no ``current`` token link, or
                the token could not be fetched.
        """
        try:
            discovery = self.discover_auth_endpoint(context)
        except EndpointUnreachable as exc:
            raise TokenUnavailable(f"Cannot look up the current token: {exc}") from exc

        href = discovery.resource.token_href('current')
        if not href:
            raise TokenUnavailable("Discovery document has no 'auth:token' link named 'current'")

        resource = self._get_resource(context, href, TokenUnavailable, "current token")
        self.state = SessionState.TOKEN_FETCHED
        return TokenResult(TokenResource(resource.data), context)

    # ── Step 5 ────────────────────────────────────────────────────

    def logout(self, token: TokenResult) -> None:
        """Remove the session token; the keep-alive task is cancelled either way.

        Raises:
            LogoutFailed
        """
        try:
            href = token.resource.removal_href
            if not href:
                raise LogoutFailed("Token has no 'auth-token:removal' link")

            context = token.context
            headers: Dict[str, str] = dict(LOGIN_HEADERS)
            if context.cookie is not None:
                headers['Cookie'] = context.cookie
            try:
                result = self.transport.send(context, 'DELETE', href, headers=headers)
            except TransportError as exc:
                raise LogoutFailed(f"Remove token request failed: {exc}") from exc

            if not result.status_in(DELETED_STATUSES):
                logger.error(f"[SESSION] Remove token request failed with '{result.reason}' ({result.status_code})")
                raise LogoutFailed(f"Remove token failed with {result.status_code} {result.reason}".strip())
        finally:
            self.shutdown()

        self.state = SessionState.LOGGED_OUT
        logger.info("[SESSION] Logged out")

    def end_session(self, context: RequestContext) -> None:
        """Fetch the current token and log out (keep-alive cancelled regardless)."""
        try:
            token = self.current_token(context)
        except PlatformError:
            self.shutdown()
            raise
        self.logout(token)

    def shutdown(self) -> None:
        """Cancel the keep-alive task, if any, and close its HTTP session. Idempotent."""
        if self._keepalive is not None:
            self._keepalive.cancel()
        if self._owns_keepalive_transport and self.keepalive_transport is not None:
            self.keepalive_transport.close()
            self.keepalive_transport = None
