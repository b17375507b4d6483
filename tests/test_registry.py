"""
Tests for registry.py: candidate matching and every fallback path.
"""

import pytest

from conftest import BASE, json_result, status_result

from ctms_client.errors import TransportError, UnexpectedStatus
from ctms_client.registry import (
    FallbackReason,
    RegistryResolver,
    match_hrefs,
    serviceroots_url,
)

REGISTRY_URL = f"{BASE}/apis/avid.ctms.registry;version=0/serviceroots"
DEFAULT = "DEFAULT"

H1 = f"{BASE}/apis/avid.mam.assets.access;version=0;realm=BEEF/searches/simple?search={{search}}"
H2 = f"{BASE}/apis/avid.pam;version=0;realm=CAFE/searches/simple?search={{search}}"

SERVICEROOTS = {
    "resources": {
        "search:simple-search": [{"href": H1}, {"href": H2}],
        "loc:locations": {"href": f"{BASE}/apis/avid.mam.assets.access;version=0;realm=BEEF/locations"},
    }
}


def _resolve(transport, context, candidates=("avid.mam.assets.access",), name="search:simple-search"):
    return RegistryResolver(transport).resolve_detailed(context, list(candidates), "0", name, DEFAULT)


# ====================================================================
# Matching
# ====================================================================

class TestMatching:
    """hrefs containing a candidate are returned in encounter order."""

    def test_single_match(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result(SERVICEROOTS))
        resolution = _resolve(transport, context)
        assert resolution.templates == [H1]
        assert not resolution.is_fallback

    def test_two_candidates_two_matches(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result(SERVICEROOTS))
        templates = RegistryResolver(transport).resolve(
            context, ["avid.pam", "avid.mam.assets.access"], "0", "search:simple-search", DEFAULT)
        assert templates == [H1, H2]

    def test_single_string_candidate(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result(SERVICEROOTS))
        templates = RegistryResolver(transport).resolve(
            context, "avid.pam", "0", "search:simple-search", DEFAULT)
        assert templates == [H2]

    def test_single_entry_not_in_list(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result(SERVICEROOTS))
        resolution = _resolve(transport, context, name="loc:locations")
        assert resolution.templates == [f"{BASE}/apis/avid.mam.assets.access;version=0;realm=BEEF/locations"]

    def test_303_counts_as_success(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result(SERVICEROOTS, status=303))
        assert _resolve(transport, context).templates == [H1]

    def test_request_uses_registry_version(self, transport, context):
        url = serviceroots_url("upstream", "2")
        transport.add("GET", url, json_result(SERVICEROOTS))
        RegistryResolver(transport).resolve(context, ["avid.pam"], "2", "search:simple-search", DEFAULT)
        assert transport.calls[0].url == url

    def test_record_matched_twice_is_reported_twice(self):
        found = match_hrefs([{"href": "https://h/apis/a.b.c"}], ["a.b", "b.c"])
        assert found == ["https://h/apis/a.b.c", "https://h/apis/a.b.c"]

    def test_records_without_href_are_skipped(self):
        assert match_hrefs([{"title": "x"}, "junk", {"href": "https://h/a"}], ["h/a"]) == ["https://h/a"]


# ====================================================================
# Fallbacks
# ====================================================================

class TestFallback:
    """Every failure or miss yields [default_template] with a reason."""

    @pytest.mark.parametrize("status", [500, 404, 401])
    def test_bad_status(self, transport, context, status):
        transport.add("GET", REGISTRY_URL, status_result(status))
        resolution = _resolve(transport, context)
        assert resolution.templates == [DEFAULT]
        assert resolution.fallback is FallbackReason.BAD_STATUS

    def test_unreachable(self, transport, context):
        transport.add("GET", REGISTRY_URL, TransportError("connection refused"))
        resolution = _resolve(transport, context)
        assert resolution.templates == [DEFAULT]
        assert resolution.fallback is FallbackReason.UNREACHABLE

    def test_malformed_body(self, transport, context):
        result = status_result(200, "OK")
        result.body = b"not json"
        transport.add("GET", REGISTRY_URL, result)
        assert _resolve(transport, context).fallback is FallbackReason.MALFORMED

    def test_body_is_not_an_object(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result([1, 2]))
        assert _resolve(transport, context).fallback is FallbackReason.MALFORMED

    @pytest.mark.parametrize("document", [{}, {"resources": {}}, {"resources": None}])
    def test_no_resources(self, transport, context, document):
        transport.add("GET", REGISTRY_URL, json_result(document))
        resolution = _resolve(transport, context)
        assert resolution.templates == [DEFAULT]
        assert resolution.fallback is FallbackReason.NO_RESOURCES

    def test_resource_not_registered(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result(SERVICEROOTS))
        resolution = _resolve(transport, context, name="orchestration:process")
        assert resolution.templates == [DEFAULT]
        assert resolution.fallback is FallbackReason.NOT_REGISTERED

    def test_no_candidate_matches(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result(SERVICEROOTS))
        resolution = _resolve(transport, context, candidates=["avid.unknown"])
        assert resolution.templates == [DEFAULT]
        assert resolution.fallback is FallbackReason.NO_MATCH

    def test_resolve_never_raises(self, transport, context):
        # no route at all
        assert RegistryResolver(transport).resolve(context, ["x"], "0", "y", DEFAULT) == [DEFAULT]


# ====================================================================
# Listing
# ====================================================================

class TestListResources:
    """list_resources enumerates the registry, raising on failure."""

    def test_listing(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result(SERVICEROOTS))
        listing = RegistryResolver(transport).list_resources(context)
        assert list(listing) == ["search:simple-search", "loc:locations"]
        assert listing["search:simple-search"] == [H1, H2]
        assert len(listing["loc:locations"]) == 1

    def test_empty_registry(self, transport, context):
        transport.add("GET", REGISTRY_URL, json_result({"resources": {}}))
        assert RegistryResolver(transport).list_resources(context) == {}

    def test_error_status_raises(self, transport, context):
        transport.add("GET", REGISTRY_URL, status_result(500, "Internal Server Error"))
        with pytest.raises(UnexpectedStatus):
            RegistryResolver(transport).list_resources(context)
