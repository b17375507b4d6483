"""
Tests for folders.py: pre-order traversal across paged folder collections.
"""

import pytest

from conftest import BASE, json_result, link, status_result

from ctms_client.errors import MalformedResponse, PageFetchFailed
from ctms_client.folders import FolderTraversal, ItemInfo, default_locations_template
from ctms_client.formatting import format_folder_tree
from ctms_client.paging import PageWalker

LOCATIONS = f"{BASE}/apis/avid.mam.assets.access;version=0;realm=BEEF/locations"
ROOT = f"{LOCATIONS}/folders"
FOLDER_A = f"{LOCATIONS}/folders/A"
ROOT_PAGE_2 = f"{LOCATIONS}/folders/items?offset=2"


def _leaf(name):
    return {"common": {"name": name}, "base": {"type": "asset"}, "_links": {"self": link(f"{ROOT}/{name}")}}


def _folder(name, href, items, next_href=None):
    collection = {"_embedded": {"loc:item": items}}
    if next_href:
        collection["_links"] = {"next": link(next_href)}
    return {
        "common": {"name": name},
        "base": {"type": "folder"},
        "_links": {"self": link(href), "loc:collection": link(f"{href}/items")},
        "_embedded": {"loc:collection": collection},
    }


def _folder_ref(name, href):
    return {"common": {"name": name}, "base": {"type": "folder"},
            "_links": {"self": link(href), "loc:collection": link(f"{href}/items")}}


@pytest.fixture
def tree(transport):
    transport.add("GET", LOCATIONS, json_result({"_links": {"loc:root-item": link(ROOT)}}))
    transport.add("GET", ROOT, json_result(
        _folder("Root", ROOT, [_folder_ref("A", FOLDER_A), _leaf("b")], next_href=ROOT_PAGE_2)
    ))
    transport.add("GET", ROOT_PAGE_2, json_result({"_embedded": {"loc:item": [_leaf("c")]}}))
    transport.add("GET", FOLDER_A, json_result(_folder("A", FOLDER_A, [_leaf("a1")])))
    return transport


class TestTraversal:
    """Folders are listed directly before their subtree."""

    def test_pre_order_with_depths(self, tree, context):
        items = FolderTraversal(PageWalker(tree)).traverse(context, LOCATIONS)
        assert [(i.name, i.depth) for i in items] == [
            ("Root", 0), ("A", 1), ("a1", 2), ("b", 1), ("c", 1),
        ]
        assert [i.has_children for i in items] == [True, True, False, False, False]

    def test_each_folder_fetched_once(self, tree, context):
        FolderTraversal(PageWalker(tree)).traverse(context, LOCATIONS)
        assert len(tree.calls_to("GET", FOLDER_A)) == 1
        assert len(tree.calls_to("GET", ROOT)) == 1

    def test_lazy_iteration(self, tree, context):
        items = FolderTraversal(PageWalker(tree)).iter_items(context, ROOT, depth=3)
        first = next(items)
        assert first.name == "Root" and first.depth == 3

    def test_listing_format(self, tree, context):
        items = FolderTraversal(PageWalker(tree)).traverse(context, LOCATIONS)
        assert format_folder_tree(items).splitlines() == [
            "- (collection) depth: 0 Root",
            "\t- (collection) depth: 1 A",
            "\t\tdepth: 2 a1",
            "\tdepth: 1 b",
            "\tdepth: 1 c",
        ]


class TestFailures:
    def test_missing_root_item(self, transport, context):
        transport.add("GET", LOCATIONS, json_result({"_links": {}}))
        with pytest.raises(MalformedResponse):
            FolderTraversal(PageWalker(transport)).traverse(context, LOCATIONS)

    def test_subfolder_fetch_failure(self, tree, context):
        tree.add("GET", FOLDER_A, status_result(500, "Internal Server Error"))
        with pytest.raises(PageFetchFailed):
            FolderTraversal(PageWalker(tree)).traverse(context, LOCATIONS)


class TestItemInfo:
    def test_from_item_without_fields(self):
        info = ItemInfo.from_item({}, 2)
        assert info == ItemInfo(name="", type="", depth=2, href="", has_children=False)

    def test_default_locations_template(self):
        assert default_locations_template("upstream", "avid.mam.assets.access", "0", "BEEF") == LOCATIONS
