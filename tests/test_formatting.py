"""
Tests for formatting.py.
"""

from conftest import asset, page

from ctms_client.formatting import (
    NO_HITS,
    format_asset_pages,
    format_process_pages,
    format_registry,
)


class TestResultPages:
    """Assets and processes are numbered continuously across pages."""

    def test_asset_pages(self):
        pages = [
            page([asset("1", "one"), asset("2", "two")])["_embedded"],
            page([asset("3", "three")])["_embedded"],
        ]
        text = format_asset_pages(pages, "search expression: '*'")
        assert text.splitlines() == [
            "Page#: 1, search expression: '*'",
            "\tAsset#: 1, id: 1, name: 'one'",
            "\tAsset#: 2, id: 2, name: 'two'",
            "Page#: 2, search expression: '*'",
            "\tAsset#: 3, id: 3, name: 'three'",
        ]

    def test_single_embedded_object(self):
        pages = [{"aa:asset": asset("1", "one")}]
        assert "Asset#: 1, id: 1, name: 'one'" in format_asset_pages(pages, "x")

    def test_missing_name(self):
        pages = [{"aa:asset": [{"base": {"id": "1"}, "common": {"name": None}}]}]
        assert "name: ''" in format_asset_pages(pages, "x")

    def test_no_hits(self):
        assert format_asset_pages([], "x") == NO_HITS

    def test_process_pages(self):
        pages = [page([asset("p1", "export")], key="orchestration:process")["_embedded"]]
        text = format_process_pages(pages, "search expression: 'export'")
        assert "\tProcessItem#: 1, id: p1, name: 'export'" in text.splitlines()


class TestRegistryListing:
    def test_listing(self):
        text = format_registry({"search:simple-search": ["https://h/a", "https://h/b"]})
        assert text.splitlines() == [
            "Resource: 'search:simple-search'",
            "\t1. <https://h/a>",
            "\t2. <https://h/b>",
        ]

    def test_empty(self):
        assert format_registry({}) == "No services registered."
