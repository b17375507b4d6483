"""
Text Formatting
Plain-text renderings of search results, process queries, registry
listings and folder trees for the command-line tools.
"""

from typing import Dict, List

from .folders import ItemInfo
from .hal import EMBEDDED_ASSET, EMBEDDED_PROCESS, HalResource
from .paging import Page, page_items

NO_HITS = "No hits!"


def _describe(item: dict):
    resource = HalResource(item)
    item_id = resource.get('base', 'id', default='')
    name = resource.get('common', 'name', default='')
    return item_id, '' if name is None else name


def format_pages(pages: List[Page], key: str, heading: str, label: str) -> str:
    """
    Render result pages, numbering pages and items continuously.

    Args:
        pages: Pages as returned by the page walker.
        key: Embedded key holding the items (e.g. ``aa:asset``).
        heading: Appended to every ``Page#`` line.
        label: Item label, e.g. ``Asset`` or ``ProcessItem``.
    """
    if not pages:
        return NO_HITS

    lines = []
    item_no = 0
    for page_no, page in enumerate(pages, 1):
        lines.append(f"Page#: {page_no}, {heading}")
        for item in page_items(page, key):
            if not isinstance(item, dict):
                continue
            item_no += 1
            item_id, name = _describe(item)
            lines.append(f"\t{label}#: {item_no}, id: {item_id}, name: '{name}'")
    return '\n'.join(lines)


def format_asset_pages(pages: List[Page], heading: str) -> str:
    return format_pages(pages, EMBEDDED_ASSET, heading, 'Asset')


def format_process_pages(pages: List[Page], heading: str) -> str:
    return format_pages(pages, EMBEDDED_PROCESS, heading, 'ProcessItem')


def format_registry(resources: Dict[str, List[str]]) -> str:
    if not resources:
        return "No services registered."
    lines = []
    for name, hrefs in resources.items():
        lines.append(f"Resource: '{name}'")
        for index, href in enumerate(hrefs, 1):
            lines.append(f"\t{index}. <{href}>")
    return '\n'.join(lines)


def format_folder_tree(items: List[ItemInfo]) -> str:
    lines = []
    for info in items:
        marker = '- (collection) ' if info.has_children else ''
        lines.append(f"{chr(9) * info.depth}{marker}depth: {info.depth} {info.name}")
    return '\n'.join(lines)
