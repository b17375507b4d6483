"""
HAL Views
=========
Read-only views over the parts of HAL+JSON documents this client understands.

Only the link relations and embedded keys needed by the session, registry,
paging and folder flows are exposed. Anything else is treated as absent:
a missing relation yields ``None`` / an empty list, never a guess.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import MalformedResponse
from .utils import strip_bom

# Link relations
REL_IDENTITY_PROVIDERS = 'auth:identity-providers'
REL_MCUX_LOGIN = 'auth-mcux:login'
REL_TOKEN = 'auth:token'
REL_TOKEN_REMOVAL = 'auth-token:removal'
REL_NEXT = 'next'
REL_SELF = 'self'
REL_ADVANCED_SEARCH = 'search:advanced-search'
REL_ROOT_ITEM = 'loc:root-item'
REL_COLLECTION = 'loc:collection'

# Embedded keys
EMBEDDED_IDENTITY_PROVIDER = 'auth:identity-provider'
EMBEDDED_ASSET = 'aa:asset'
EMBEDDED_PROCESS = 'orchestration:process'
EMBEDDED_COLLECTION = 'loc:collection'
EMBEDDED_ITEM = 'loc:item'


def parse_body(body: bytes) -> Any:
    """Decode a UTF-8 JSON body, dropping a leading BOM.

    Raises:
        MalformedResponse: The body is not valid UTF-8 JSON.
    """
    try:
        return json.loads(strip_bom(body.decode('utf-8')))
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedResponse(f"Response is not valid JSON: {exc}") from exc


def parse_json(result: Any) -> Any:
    """``parse_body`` applied to the body of an ``HttpResult``."""
    return parse_body(result.body)


def as_list(value: Any) -> List[Any]:
    """HAL allows a single object wherever a list is allowed."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


@dataclass(frozen=True)
class Link:
    href: str
    name: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Link"]:
        if not isinstance(raw, dict) or not raw.get('href'):
            return None
        return cls(href=raw['href'], name=raw.get('name'))


@dataclass(frozen=True)
class HalResource:
    """A parsed HAL document."""

    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_body(cls, body: bytes) -> "HalResource":
        parsed = parse_body(body)
        if not isinstance(parsed, dict):
            raise MalformedResponse("Expected a JSON object at the document root")
        return cls(parsed)

    # ── Links ─────────────────────────────────────────────────────

    def links(self, rel: str) -> List[Link]:
        raw_links = self.data.get('_links')
        if not isinstance(raw_links, dict):
            return []
        found = []
        for raw in as_list(raw_links.get(rel)):
            link = Link.from_raw(raw)
            if link is not None:
                found.append(link)
        return found

    def link(self, rel: str) -> Optional[Link]:
        """First link of relation *rel*, or None."""
        found = self.links(rel)
        return found[0] if found else None

    def href(self, rel: str) -> Optional[str]:
        link = self.link(rel)
        return link.href if link else None

    def require_href(self, rel: str) -> str:
        href = self.href(rel)
        if href is None:
            raise MalformedResponse(f"Link relation '{rel}' is missing")
        return href

    # ── Embedded ──────────────────────────────────────────────────

    @property
    def embedded(self) -> Optional[Dict[str, Any]]:
        """The whole ``_embedded`` object, or None when absent."""
        value = self.data.get('_embedded')
        return value if isinstance(value, dict) else None

    def embedded_list(self, key: str) -> List[Any]:
        embedded = self.embedded
        if embedded is None:
            return []
        return as_list(embedded.get(key))

    def embedded_resource(self, key: str) -> Optional["HalResource"]:
        embedded = self.embedded
        if embedded is None or not isinstance(embedded.get(key), dict):
            return None
        return HalResource(embedded[key])

    def get(self, *path: str, default: Any = None) -> Any:
        """Walk nested plain fields, e.g. ``get('common', 'name')``."""
        node: Any = self.data
        for key in path:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node


# ---------------------------------------------------------------------------
# Auth documents
# ---------------------------------------------------------------------------

class AuthEndpointResource(HalResource):
    """The ``/auth`` discovery document."""

    @property
    def identity_providers_href(self) -> Optional[str]:
        return self.href(REL_IDENTITY_PROVIDERS)

    def token_href(self, name: str = 'current') -> Optional[str]:
        for link in self.links(REL_TOKEN):
            if link.name == name:
                return link.href
        return None


@dataclass(frozen=True)
class IdentityProvider:
    kind: str
    login_links: List[Link] = field(default_factory=list)

    @property
    def login_href(self) -> Optional[str]:
        return self.login_links[0].href if self.login_links else None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "IdentityProvider":
        resource = HalResource(raw)
        return cls(kind=raw.get('kind', ''), login_links=resource.links(REL_MCUX_LOGIN))


def identity_providers(resource: HalResource) -> List[IdentityProvider]:
    return [
        IdentityProvider.from_raw(raw)
        for raw in resource.embedded_list(EMBEDDED_IDENTITY_PROVIDER)
        if isinstance(raw, dict)
    ]


class TokenResource(HalResource):
    """A session token document."""

    @property
    def removal_href(self) -> Optional[str]:
        return self.href(REL_TOKEN_REMOVAL)
