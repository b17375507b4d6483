"""
Credentials
===========
Credential container plus the resolution order used by the CLI:

    1. Values passed explicitly (CLI flags)
    2. Environment variables (``CTMS_USERNAME`` / ``CTMS_PASSWORD``)
    3. Interactive terminal prompt (password via ``getpass``)

Credentials are held in memory only. They are never logged or written to disk.
"""

from __future__ import annotations

import getpass
import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "CTMS"


@dataclass
class Credentials:
    """Username/password pair for the credential login."""
    username: str = ""
    password: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.username and self.password)

    def as_login_body(self) -> Dict[str, str]:
        """JSON body for the login POST."""
        return {"username": self.username, "password": self.password}

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


def resolve_credentials(
    creds: Optional[Credentials] = None,
    *,
    interactive: bool = True,
    env_prefix: str = ENV_PREFIX,
) -> Credentials:
    """Fill in missing credential fields from the environment, then a prompt.

    Returns:
        A ``Credentials`` instance (may still be incomplete if the user
        declined to enter values or *interactive* is False).
    """
    if creds is None:
        creds = Credentials()

    if creds.is_complete:
        return creds

    if not creds.username:
        creds.username = os.environ.get(f"{env_prefix}_USERNAME", "")
    if not creds.password:
        creds.password = os.environ.get(f"{env_prefix}_PASSWORD", "")

    if creds.is_complete:
        logger.info("[AUTH] Credentials resolved from environment")
        return creds

    if interactive:
        creds = _prompt_credentials(creds)

    return creds


def _prompt_credentials(creds: Credentials) -> Credentials:
    """Prompt for missing credentials in the terminal (no echo for the password)."""
    print(f"\n{'=' * 55}")
    print("  Platform Authentication Required")
    print(f"{'=' * 55}")

    if not creds.username:
        creds.username = input("  Username: ").strip()
    else:
        print(f"  Username: {creds.username}")

    if not creds.password:
        creds.password = getpass.getpass("  Password: ")

    print(f"{'=' * 55}\n")
    return creds
