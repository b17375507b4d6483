"""
Authentication Module
=====================
Discovery-based login against a CTMS platform host.

Architecture:
    - ``AuthSessionManager``  - discovery, provider listing, login, token, logout
    - ``KeepAliveTask``       - periodic ping armed by a successful login
    - ``Credentials``         - credential container (resolved from flags/env/prompt)

Usage::

    from ctms_client.auth import AuthSessionManager, resolve_credentials

    manager = AuthSessionManager(config)
    context = manager.authenticate(resolve_credentials())
    ...
    manager.end_session(context)
"""

from .credentials import Credentials, resolve_credentials
from .keepalive import KeepAliveTask
from .session_manager import (
    AuthSessionManager,
    DiscoveryResult,
    ProvidersResult,
    SessionState,
    TokenResult,
)

__all__ = [
    "AuthSessionManager",
    "SessionState",
    "DiscoveryResult",
    "ProvidersResult",
    "TokenResult",
    "KeepAliveTask",
    "Credentials",
    "resolve_credentials",
]
