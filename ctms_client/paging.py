"""
Page Walker
===========
Reassembles server-paginated HAL collections into one ordered sequence.

Each response's ``_embedded`` object is one page. When a response also
carries ``_links.next`` the walk continues there; a response without an
embedded payload, or without a next link, ends the sequence.

The walk is an explicit loop over a "next URL" variable, so arbitrarily long
chains do not grow the call stack, and it is strictly sequential: the next
page is requested only after the current one has been read and parsed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List

from .errors import MalformedResponse, PageFetchFailed, TransportError, UnexpectedStatus
from .hal import REL_NEXT, HalResource, as_list
from .transport import RequestContext, Transport
from .utils import encode_spaces

logger = logging.getLogger(__name__)

OK_STATUSES = (200, 303)

Page = Dict[str, Any]


def page_items(page: Page, key: str) -> List[Any]:
    """Items stored under *key* of one page (single objects become a list)."""
    return as_list(page.get(key))


class PageWalker:
    """Follows ``next`` links and yields each page's embedded payload."""

    def __init__(self, transport: Transport):
        self.transport = transport

    def fetch(self, context: RequestContext, url: str) -> HalResource:
        """
        GET one page and parse it.

        Raises:
            PageFetchFailed: Transport failure or a status other than 200/303.
            MalformedResponse: The body is not a JSON object.
        """
        url = encode_spaces(url)
        try:
            result = self.transport.send(context, 'GET', url)
        except TransportError as exc:
            logger.warning(f"[PAGING] Paging failed for <{url}>: {exc}")
            raise PageFetchFailed(url, str(exc)) from exc

        if not result.status_in(OK_STATUSES):
            logger.warning(f"[PAGING] Paging failed for <{url}> with {result.status_code} {result.reason}")
            raise PageFetchFailed(url, f"{result.status_code} {result.reason}".strip())

        try:
            return HalResource.from_body(result.body)
        except MalformedResponse as exc:
            raise MalformedResponse(f"Page <{url}> is malformed: {exc}") from exc

    def submit(self, context: RequestContext, url: str, body: Any) -> HalResource:
        """
        POST a JSON *body* and parse the response, typically a first page.

        Raises:
            TransportError: Connection-level failure.
            UnexpectedStatus: A status other than 200/303.
            MalformedResponse: The body is not a JSON object.
        """
        result = self.transport.send(
            context, 'POST', url, json_body=body, headers={'Accept': 'application/json'}
        )
        if not result.status_in(OK_STATUSES):
            logger.warning(f"[PAGING] POST <{url}> failed with {result.status_code} {result.reason}")
            raise UnexpectedStatus(result.status_code, result.reason, url)
        return HalResource.from_body(result.body)

    def follow(self, context: RequestContext, resource: HalResource) -> Iterator[Page]:
        """
        Yield pages starting from an already-fetched first response.

        Used where the first page comes back from a POST (searches, process
        queries) or is embedded in another resource (folder collections).
        """
        page_no = 0
        while True:
            embedded = resource.embedded
            if embedded is None:
                return
            page_no += 1
            yield embedded

            next_href = resource.href(REL_NEXT)
            if not next_href:
                logger.debug(f"[PAGING] Last page reached after {page_no} page(s)")
                return
            resource = self.fetch(context, next_href)

    def iter_pages(self, context: RequestContext, start_url: str) -> Iterator[Page]:
        """Lazily yield all pages reachable from *start_url*.

        Nothing is requested until the first page is consumed.
        """
        yield from self.follow(context, self.fetch(context, start_url))

    def walk(self, context: RequestContext, start_url: str) -> List[Page]:
        """Fetch every page reachable from *start_url*, in server order."""
        pages = list(self.iter_pages(context, start_url))
        logger.info(f"[PAGING] Collected {len(pages)} page(s) from <{start_url}>")
        return pages
