"""
Asset Searches
Simple (query-string) and advanced (JSON description) asset searches.
Both return the complete, ordered list of result pages.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

from .errors import MalformedResponse
from .hal import REL_ADVANCED_SEARCH
from .paging import Page, PageWalker
from .transport import RequestContext
from .utils import cut_after_last, cut_before_last, quote_component, strip_bom

logger = logging.getLogger(__name__)

SIMPLE_SEARCH_RESOURCE = 'search:simple-search'
SEARCHES_RESOURCE = 'search:searches'


def service_root(host: str, service_type: str, service_version: str, realm: str) -> str:
    return f"https://{host}/apis/{service_type};version={service_version};realm={realm}"


def default_simple_search_template(host: str, service_type: str, service_version: str, realm: str) -> str:
    root = service_root(host, service_type, service_version, realm)
    return root + '/searches/simple?search={search}{&offset,limit,sort}'


def default_searches_template(host: str, service_type: str, service_version: str, realm: str) -> str:
    return service_root(host, service_type, service_version, realm) + '/searches'


def simple_search_url(template: str, expression: str) -> str:
    """Fill the ``search`` variable of a simple-search template.

    Everything after the last ``=`` (the template variables) is replaced by
    the encoded expression.
    """
    return cut_after_last(template, '=') + quote_component(expression)


def simple_search(walker: PageWalker, context: RequestContext, template: str, expression: str) -> List[Page]:
    """Run a simple search and collect every result page."""
    url = simple_search_url(template, expression)
    logger.info(f"[SEARCH] Simple search for '{expression}'")
    return walker.walk(context, url)


def load_search_description(path: str) -> Any:
    """Read an advanced-search description (JSON, optional BOM) from *path*.

    Raises:
        OSError: The file cannot be read.
        ValueError: The file is not valid JSON.
    """
    text = Path(path).read_text(encoding='utf-8')
    return json.loads(strip_bom(text))


def advanced_search(
    walker: PageWalker,
    context: RequestContext,
    searches_url: str,
    description: Any,
) -> List[Page]:
    """
    Run an advanced search.

    Args:
        walker: Page walker bound to the session transport.
        context: Authenticated request context.
        searches_url: URL of the ``search:searches`` resource.
        description: Query description, sent as the JSON body.

    Returns:
        All result pages; empty when the first response embeds nothing.

    Raises:
        MalformedResponse: The service does not offer advanced search.
    """
    searches = walker.fetch(context, searches_url)
    template = searches.href(REL_ADVANCED_SEARCH)
    if not template:
        raise MalformedResponse("Advanced search not supported")

    first = walker.submit(context, cut_before_last(template, '{'), description)
    pages = list(walker.follow(context, first))
    logger.info(f"[SEARCH] Advanced search returned {len(pages)} page(s)")
    return pages
