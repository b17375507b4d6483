"""
CTMS Platform Client
A client for HAL+JSON platform services: authenticated sessions with
keep-alive, registry lookups with fallback templates, and paged collections.

CLI Usage:
    python -m ctms_client --host <host> <command> [args]

    Commands:
        registry          List every registered resource
        simple-search     Run a query-string asset search
        advanced-search   Run a search described in a JSON file
        query-processes   Quick-search orchestration processes
        start-process     Start an export process and wait for it
        folders           Print the location (folder) tree
"""

from .errors import (
    PlatformError,
    TransportError,
    RequestTimeout,
    UnexpectedStatus,
    MalformedResponse,
    EndpointUnreachable,
    ProvidersUnavailable,
    NoMatchingProvider,
    LoginRejected,
    TokenUnavailable,
    LogoutFailed,
    PageFetchFailed,
    ProcessFailed,
)
from .transport import Transport, RequestContext, HttpResult
from .hal import HalResource
from .run_config import PlatformConfig
from .registry import RegistryResolver, Resolution, FallbackReason
from .paging import PageWalker
from .folders import FolderTraversal, ItemInfo
from .auth import AuthSessionManager, SessionState, Credentials, KeepAliveTask, resolve_credentials

__all__ = [
    'Transport',
    'RequestContext',
    'HttpResult',
    'HalResource',
    'PlatformConfig',
    # Session
    'AuthSessionManager',
    'SessionState',
    'Credentials',
    'KeepAliveTask',
    'resolve_credentials',
    # Resources
    'RegistryResolver',
    'Resolution',
    'FallbackReason',
    'PageWalker',
    'FolderTraversal',
    'ItemInfo',
    # Errors
    'PlatformError',
    'TransportError',
    'RequestTimeout',
    'UnexpectedStatus',
    'MalformedResponse',
    'EndpointUnreachable',
    'ProvidersUnavailable',
    'NoMatchingProvider',
    'LoginRejected',
    'TokenUnavailable',
    'LogoutFailed',
    'PageFetchFailed',
    'ProcessFailed',
]

__version__ = '1.0.0'
