"""
Folder Traversal
================
Walks a location (folder) tree and flattens it in pre-order.

Every folder is fetched once; its children come from the embedded
``loc:collection`` (first page) plus any further pages reached through the
collection's ``next`` links. Children that are collections themselves are
expanded before their following siblings, so the result lists each folder
directly followed by its whole subtree.

An explicit stack replaces recursion; deep trees do not grow the call stack.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .errors import MalformedResponse
from .hal import EMBEDDED_COLLECTION, EMBEDDED_ITEM, REL_COLLECTION, REL_ROOT_ITEM, REL_SELF, HalResource
from .paging import PageWalker, page_items
from .search import service_root
from .transport import RequestContext

logger = logging.getLogger(__name__)

LOCATIONS_RESOURCE = 'loc:locations'


def default_locations_template(host: str, service_type: str, service_version: str, realm: str) -> str:
    return service_root(host, service_type, service_version, realm) + '/locations'


@dataclass(frozen=True)
class ItemInfo:
    """One node of the folder tree."""
    name: str
    type: str
    depth: int
    href: str
    has_children: bool

    @classmethod
    def from_item(cls, item: Dict[str, Any], depth: int) -> "ItemInfo":
        resource = HalResource(item)
        return cls(
            name=resource.get('common', 'name', default='') or '',
            type=resource.get('base', 'type', default='') or '',
            depth=depth,
            href=resource.href(REL_SELF) or '',
            has_children=resource.link(REL_COLLECTION) is not None,
        )


class FolderTraversal:
    """Pre-order traversal of the location structure."""

    def __init__(self, walker: PageWalker):
        self.walker = walker

    def root_item_href(self, context: RequestContext, locations_url: str) -> str:
        """Fetch the locations resource and return its ``loc:root-item`` href."""
        locations = self.walker.fetch(context, locations_url)
        return locations.require_href(REL_ROOT_ITEM)

    def _children(self, context: RequestContext, folder: HalResource) -> List[Dict[str, Any]]:
        collection = folder.embedded_resource(EMBEDDED_COLLECTION)
        if collection is None:
            return []
        children: List[Dict[str, Any]] = []
        for page in self.walker.follow(context, collection):
            children.extend(item for item in page_items(page, EMBEDDED_ITEM) if isinstance(item, dict))
        return children

    def iter_items(self, context: RequestContext, root_href: str, depth: int = 0) -> Iterator[ItemInfo]:
        """
        Yield ``ItemInfo`` for the folder at *root_href* and everything below it.

        Args:
            context: Authenticated request context.
            root_href: Self link of the folder to start from.
            depth: Depth assigned to the starting folder.
        """
        # Stack entries: (href to fetch, depth, leaf info or None)
        stack: List[Tuple[str, int, Optional[ItemInfo]]] = [(root_href, depth, None)]
        while stack:
            href, level, leaf = stack.pop()
            if leaf is not None:
                yield leaf
                continue

            folder = self.walker.fetch(context, href)
            yield ItemInfo.from_item(folder.data, level)

            children = [ItemInfo.from_item(item, level + 1) for item in self._children(context, folder)]
            for child in reversed(children):
                if child.has_children:
                    if not child.href:
                        raise MalformedResponse(f"Folder '{child.name}' has no self link")
                    stack.append((child.href, child.depth, None))
                else:
                    stack.append((child.href, child.depth, child))

    def traverse(self, context: RequestContext, locations_url: str) -> List[ItemInfo]:
        """Resolve the root folder from *locations_url* and flatten the whole tree."""
        root_href = self.root_item_href(context, locations_url)
        items = list(self.iter_items(context, root_href))
        logger.info(f"[FOLDERS] Traversed {len(items)} item(s)")
        return items
