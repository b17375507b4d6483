"""
Platform Configuration
======================
Single source of truth for every client default.

Every module (CLI, session manager, transport, keep-alive) reads from this
object. Environment variables and CLI flags populate it; request contexts are
built *from* it via ``new_context()``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .transport import DEFAULT_HEADERS, RequestContext
from .utils import normalize_host

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults, the ONLY place these numbers live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "timeout_seconds": 60.0,            # per request
    "keepalive_interval_seconds": 120.0,
    "registry_version": "0",
    "identity_provider_kind": "mcux",   # the only supported login mechanism
    "verify_tls": True,
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class PlatformConfig:
    """
    Configuration consumed by every client subsystem.

    Populate via:
      - ``PlatformConfig(host="upstream")``      → defaults for the rest
      - ``PlatformConfig.from_env()``            → ``CTMS_*`` environment variables
      - ``PlatformConfig.from_cli_args(ns)``     → argparse Namespace (env as fallback)
    """

    host: str = ""
    proxy: Optional[str] = None
    verify_tls: bool = _DEFAULTS["verify_tls"]
    timeout_seconds: float = _DEFAULTS["timeout_seconds"]
    keepalive_interval_seconds: float = _DEFAULTS["keepalive_interval_seconds"]
    registry_version: str = _DEFAULTS["registry_version"]
    identity_provider_kind: str = _DEFAULTS["identity_provider_kind"]

    def __post_init__(self):
        self.host = normalize_host(self.host)
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")
        if self.keepalive_interval_seconds <= 0:
            raise ValueError(
                f"keepalive_interval_seconds must be positive, got {self.keepalive_interval_seconds}"
            )

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_env(cls, **overrides) -> "PlatformConfig":
        """Build config from ``CTMS_*`` environment variables.

        Keyword overrides that are not None win over the environment.
        """
        values = {
            "host": os.environ.get("CTMS_HOST", ""),
            "proxy": os.environ.get("CTMS_PROXY") or None,
            "verify_tls": os.environ.get("CTMS_INSECURE", "").strip().lower() not in _TRUE_VALUES,
            "timeout_seconds": float(os.environ.get("CTMS_TIMEOUT", _DEFAULTS["timeout_seconds"])),
            "registry_version": os.environ.get("CTMS_REGISTRY_VERSION", _DEFAULTS["registry_version"]),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_cli_args(cls, args) -> "PlatformConfig":
        """Build config from an argparse Namespace (``__main__.py``)."""
        return cls.from_env(
            host=getattr(args, "host", None),
            proxy=getattr(args, "proxy", None),
            verify_tls=False if getattr(args, "insecure", False) else None,
            timeout_seconds=getattr(args, "timeout", None),
            registry_version=getattr(args, "registry_version", None),
        )

    # -----------------------------------------------------------------------
    # Converters
    # -----------------------------------------------------------------------
    def new_context(self) -> RequestContext:
        """Return a fresh, unauthenticated ``RequestContext`` for ``host``."""
        if not self.host:
            raise ValueError("No platform host configured (set --host or CTMS_HOST)")
        return RequestContext(
            host=self.host,
            headers=dict(DEFAULT_HEADERS),
            timeout_seconds=self.timeout_seconds,
            proxy=self.proxy,
            verify_tls=self.verify_tls,
        )

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self) -> None:
        """Emit a structured summary to the logger."""
        logger.info("=" * 60)
        logger.info("PLATFORM CONFIG")
        logger.info("=" * 60)
        logger.info(f"  Host:             {self.host}")
        logger.info(f"  Proxy:            {self.proxy or 'none'}")
        logger.info(f"  Timeout:          {self.timeout_seconds:g}s per request")
        logger.info(f"  Keep-alive:       every {self.keepalive_interval_seconds:g}s")
        logger.info(f"  Registry Version: {self.registry_version}")
        if not self.verify_tls:
            logger.warning("  TLS Validation:   DISABLED (certificates are not checked)")
        logger.info("=" * 60)
