"""
Orchestration Processes
Querying process instances, and starting an export process while polling
its lifecycle until it leaves ``pending``/``running``.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from xml.sax.saxutils import escape

from .errors import PlatformError, ProcessFailed
from .hal import REL_SELF, HalResource
from .paging import Page, PageWalker
from .search import service_root
from .transport import RequestContext
from .utils import cut_before_last

logger = logging.getLogger(__name__)

ORCHESTRATION_SERVICE_TYPE = 'avid.orchestration.ctc'
PROCESS_QUERY_RESOURCE = 'orchestration:process-query'
PROCESS_RESOURCE = 'orchestration:process'

ACTIVE_LIFECYCLES = ('pending', 'running')
POLL_INTERVAL_SECONDS = 0.5


def default_process_query_template(host: str, service_version: str, realm: str) -> str:
    return service_root(host, ORCHESTRATION_SERVICE_TYPE, service_version, realm) + '/process-queries/{id}'


def default_process_template(host: str, service_version: str, realm: str) -> str:
    return service_root(host, ORCHESTRATION_SERVICE_TYPE, service_version, realm) + '/processes/{id}{?offset,limit,sort}'


def collection_url(template: str) -> str:
    """Strip the ``{id}`` variable (and anything after it) from a template."""
    return cut_before_last(template, '{id}')


def quick_search_query(expression: str) -> Dict[str, str]:
    """Body of a quick-search process query (the expression is XML-escaped)."""
    return {
        'query': f"<query version='1.0'><search><quick>{escape(expression)}</quick></search></query>"
    }


def query_processes(walker: PageWalker, context: RequestContext, template: str, expression: str) -> List[Page]:
    """POST a quick-search process query and collect every result page."""
    first = walker.submit(context, collection_url(template), quick_search_query(expression))
    pages = list(walker.follow(context, first))
    logger.info(f"[PROCESS] Query '{expression}' returned {len(pages)} page(s)")
    return pages


def build_process_description(
    realm: str,
    item_id: str,
    *,
    now: Optional[datetime] = None,
    process_id: Optional[str] = None,
    process_type: str = 'MAM_EXPORT_FILE',
    system_type: str = 'interplay-mam',
    creator: str = 'ctms_client',
) -> Dict[str, Any]:
    """Describe a new export process for one asset."""
    now = now or datetime.now(timezone.utc)
    timestamp = now.isoformat()
    name = re.sub(r'[ :\-]', '_', f"New process as to {timestamp}")
    return {
        'base': {
            'id': process_id or str(uuid.uuid4()),
            'type': process_type,
            'systemType': system_type,
            'systemID': realm,
        },
        'common': {
            'name': name,
            'creator': creator,
            'created': timestamp,
            'modifier': 'Service-WorkflowEngine',
            'modified': timestamp,
        },
        'attachments': [
            {
                'base': {
                    'id': item_id,
                    'type': 'Asset',
                    'systemType': system_type,
                    'systemID': realm,
                }
            }
        ],
    }


def _lifecycle(resource: HalResource) -> str:
    return resource.get('lifecycle', default='') or ''


def monitor_process(
    walker: PageWalker,
    context: RequestContext,
    process: HalResource,
    *,
    poll_interval: float = POLL_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    on_lifecycle: Optional[Callable[[str], None]] = None,
) -> str:
    """
    Poll the process' ``self`` link while its lifecycle is pending or running.

    Returns:
        The first lifecycle value outside ``ACTIVE_LIFECYCLES``.

    Raises:
        ProcessFailed: The process has no self link or cannot be fetched.
    """
    lifecycle = _lifecycle(process)
    while lifecycle in ACTIVE_LIFECYCLES:
        href = process.href(REL_SELF)
        if not href:
            raise ProcessFailed("Process has no self link to monitor")
        sleep(poll_interval)
        try:
            process = walker.fetch(context, href)
        except PlatformError as exc:
            raise ProcessFailed(f"Getting started process failed with <{href}>: {exc}") from exc
        lifecycle = _lifecycle(process)
        logger.info(f"[PROCESS] Lifecycle: {lifecycle}")
        if on_lifecycle:
            on_lifecycle(lifecycle)
    return lifecycle


def start_process(
    walker: PageWalker,
    context: RequestContext,
    template: str,
    description: Dict[str, Any],
    *,
    poll_interval: float = POLL_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    on_lifecycle: Optional[Callable[[str], None]] = None,
) -> str:
    """
    Start a process and wait until it is no longer pending or running.

    Returns:
        The final lifecycle value.

    Raises:
        ProcessFailed: The start request failed or monitoring failed.
    """
    name = description.get('common', {}).get('name', '')
    try:
        process = walker.submit(context, collection_url(template), description)
    except PlatformError as exc:
        raise ProcessFailed(f"Starting process '{name}' failed: {exc}") from exc

    lifecycle = _lifecycle(process)
    logger.info(f"[PROCESS] Process '{name}' - start initiated, lifecycle: {lifecycle}")
    if on_lifecycle:
        on_lifecycle(lifecycle)
    return monitor_process(
        walker, context, process,
        poll_interval=poll_interval, sleep=sleep, on_lifecycle=on_lifecycle,
    )
