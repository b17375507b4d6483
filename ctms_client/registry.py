"""
Registry Resolver
=================
Looks up logical resource names (e.g. ``search:simple-search``) in the CTMS
service registry and returns the URI templates registered for them.

Registry availability is best effort. ``resolve`` never raises: an
unreachable registry, an unexpected status, an unparsable body, a missing
``resources`` map, an unknown resource name, or no href matching any
candidate service all resolve to ``[default_template]``. The reason is kept
on the ``Resolution`` returned by ``resolve_detailed``.

Nothing is cached; every call queries the registry afresh.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from .errors import MalformedResponse, PlatformError, UnexpectedStatus
from .hal import as_list, parse_json
from .transport import RequestContext, Transport

logger = logging.getLogger(__name__)

REGISTRY_SERVICE_TYPE = 'avid.ctms.registry'


class FallbackReason(str, Enum):
    UNREACHABLE = 'registry not reachable'
    BAD_STATUS = 'registry request failed'
    MALFORMED = 'registry response malformed'
    NO_RESOURCES = 'no registered resources found'
    NOT_REGISTERED = 'resource not registered'
    NO_MATCH = 'no registered href matches the requested services'


@dataclass(frozen=True)
class Resolution:
    templates: List[str]
    fallback: Optional[FallbackReason] = None

    @property
    def is_fallback(self) -> bool:
        return self.fallback is not None


def serviceroots_url(host: str, registry_version: str) -> str:
    return f"https://{host}/apis/{REGISTRY_SERVICE_TYPE};version={registry_version}/serviceroots"


def _accepted(status_code: int) -> bool:
    return 200 <= status_code < 300 or status_code == 303


def match_hrefs(entry: Any, candidates: Sequence[str]) -> List[str]:
    """
    Collect the hrefs of *entry* that contain one of *candidates*.

    *entry* is a single ``{href}`` record or a list of them. Matches keep
    encounter order and are not de-duplicated: a record matched by two
    candidates is reported twice.
    """
    found = []
    for record in as_list(entry):
        if not isinstance(record, dict):
            continue
        href = record.get('href')
        if not href:
            continue
        for candidate in candidates:
            if candidate and candidate in href:
                found.append(href)
    return found


class RegistryResolver:
    """Resolves resource names through the registry ``serviceroots`` document."""

    def __init__(self, transport: Transport):
        self.transport = transport

    def _fetch_resources(self, context: RequestContext, registry_version: str) -> Optional[Dict[str, Any]]:
        """GET ``serviceroots`` and return its ``resources`` map (None if absent).

        Raises:
            TransportError, UnexpectedStatus, MalformedResponse
        """
        url = serviceroots_url(context.host, registry_version)
        result = self.transport.send(context, 'GET', url)
        if not _accepted(result.status_code):
            raise UnexpectedStatus(result.status_code, result.reason, url)

        document = parse_json(result)
        if not isinstance(document, dict):
            raise MalformedResponse("Registry document is not a JSON object")
        resources = document.get('resources')
        return resources if isinstance(resources, dict) and resources else None

    def list_resources(self, context: RequestContext, registry_version: str = '0') -> Dict[str, List[str]]:
        """
        Enumerate every registered resource and its hrefs.

        Returns:
            Mapping resource name -> hrefs, in registry order. Empty when the
            registry has no resources.

        Raises:
            TransportError, UnexpectedStatus, MalformedResponse
        """
        resources = self._fetch_resources(context, registry_version) or {}
        listing: Dict[str, List[str]] = {}
        for name, entry in resources.items():
            listing[name] = [
                record.get('href', '')
                for record in as_list(entry)
                if isinstance(record, dict)
            ]
        logger.info(f"[REGISTRY] {len(listing)} resource(s) registered")
        return listing

    def resolve_detailed(
        self,
        context: RequestContext,
        candidates: Union[str, Sequence[str]],
        registry_version: str,
        resource_name: str,
        default_template: str,
    ) -> Resolution:
        """Like ``resolve``, but also report why a default was used."""
        if isinstance(candidates, str):
            candidates = [candidates]

        def fallback(reason: FallbackReason) -> Resolution:
            logger.info(
                f"[REGISTRY] {resource_name}: {reason.value}, "
                f"defaulting to the specified URI template"
            )
            return Resolution([default_template], reason)

        try:
            resources = self._fetch_resources(context, registry_version)
        except UnexpectedStatus as exc:
            logger.warning(f"[REGISTRY] Registry request failed: {exc}")
            return fallback(FallbackReason.BAD_STATUS)
        except MalformedResponse as exc:
            logger.warning(f"[REGISTRY] {exc}")
            return fallback(FallbackReason.MALFORMED)
        except PlatformError as exc:
            logger.warning(f"[REGISTRY] Registry not reachable: {exc}")
            return fallback(FallbackReason.UNREACHABLE)

        if resources is None:
            return fallback(FallbackReason.NO_RESOURCES)

        entry = resources.get(resource_name)
        if not entry:
            return fallback(FallbackReason.NOT_REGISTERED)

        found = match_hrefs(entry, list(candidates))
        if not found:
            return fallback(FallbackReason.NO_MATCH)

        logger.info(f"[REGISTRY] {resource_name} resolved to {len(found)} template(s)")
        return Resolution(found)

    def resolve(
        self,
        context: RequestContext,
        candidates: Union[str, Sequence[str]],
        registry_version: str,
        resource_name: str,
        default_template: str,
    ) -> List[str]:
        """
        Resolve *resource_name* to the URI templates registered for it.

        Args:
            context: Authenticated request context.
            candidates: Service identifiers (e.g. ``"avid.orchestration.ctc"``);
                an href matches when it contains one of them.
            registry_version: Registry service version to query.
            resource_name: Resource to look up, e.g. ``"search:simple-search"``.
            default_template: Returned as the single entry on any failure or miss.

        Returns:
            Matching hrefs in encounter order, or ``[default_template]``.
        """
        return self.resolve_detailed(
            context, candidates, registry_version, resource_name, default_template
        ).templates
