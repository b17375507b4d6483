"""
Shared fixtures: a scripted in-memory transport and small HAL builders.

``FakeTransport`` has the same ``send`` signature as ``ctms_client.transport.Transport``.
Responses are scripted per ``(method, url)``; when a route has several
responses they are served in order and the last one repeats. An entry that
is an exception instance is raised instead of returned. Requests to unrouted
URLs raise ``TransportError``.
"""

import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

from ctms_client.errors import TransportError
from ctms_client.run_config import PlatformConfig
from ctms_client.transport import HttpResult, RequestContext

HOST = "upstream"
BASE = f"https://{HOST}"


@dataclass
class Call:
    method: str
    url: str
    headers: Dict[str, str]
    json_body: Any = None


def json_result(payload: Any, status: int = 200, reason: str = "OK",
                set_cookies: Optional[List[str]] = None) -> HttpResult:
    return HttpResult(
        status_code=status,
        reason=reason,
        body=json.dumps(payload).encode("utf-8"),
        set_cookies=list(set_cookies or []),
    )


def status_result(status: int, reason: str = "") -> HttpResult:
    return HttpResult(status_code=status, reason=reason)


class FakeTransport:
    """Scripted stand-in for ``Transport``; records every request."""

    def __init__(self):
        self.routes: Dict[tuple, List[Any]] = {}
        self.calls: List[Call] = []
        self._lock = threading.Lock()

    def add(self, method: str, url: str, *responses) -> "FakeTransport":
        self.routes[(method, url)] = list(responses)
        return self

    def send(self, context: RequestContext, method: str, path: str, *,
             json_body: Any = None, headers: Optional[Dict[str, str]] = None) -> HttpResult:
        context.path = path
        url = context.url_for(path)
        merged = dict(context.headers)
        if headers:
            merged.update(headers)

        with self._lock:
            self.calls.append(Call(method, url, merged, json_body))
            queue = self.routes.get((method, url))
            if not queue:
                raise TransportError(f"no route for {method} {url}")
            response = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(response, Exception):
            raise response
        response.url = url
        return response

    def calls_to(self, method: str, url: str) -> List[Call]:
        with self._lock:
            return [c for c in self.calls if c.method == method and c.url == url]

    def close(self):
        pass


def wait_for(predicate, timeout: float = 2.0, step: float = 0.005) -> bool:
    """Poll *predicate* until it is true or *timeout* elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(step)
    return predicate()


# ── HAL builders ─────────────────────────────────────────────────

def link(href: str, name: Optional[str] = None) -> Dict[str, str]:
    value = {"href": href}
    if name is not None:
        value["name"] = name
    return value


def page(items: List[dict], key: str = "aa:asset", next_href: Optional[str] = None) -> dict:
    document = {"_embedded": {key: items}}
    if next_href:
        document["_links"] = {"next": link(next_href)}
    return document


def asset(item_id: str, name: str) -> dict:
    return {"base": {"id": item_id}, "common": {"name": name}}


# ── Auth routes ──────────────────────────────────────────────────

AUTH_URL = f"{BASE}/auth"
PROVIDERS_URL = f"{BASE}/auth/identity-providers"
LOGIN_URL = f"{BASE}/auth/mcux/login"
TOKEN_URL = f"{BASE}/auth/tokens/current"
REMOVAL_URL = f"{BASE}/auth/tokens/4711"
PING_URL = f"{BASE}/api/middleware/service/ping"

AUTH_DOCUMENT = {
    "_links": {
        "auth:identity-providers": [link(PROVIDERS_URL)],
        "auth:token": [link(f"{BASE}/auth/tokens", "collection"), link(TOKEN_URL, "current")],
    }
}

PROVIDERS_DOCUMENT = {
    "_embedded": {
        "auth:identity-provider": [
            {"kind": "oauth", "_links": {}},
            {"kind": "mcux", "_links": {"auth-mcux:login": [link(LOGIN_URL)]}},
        ]
    }
}

TOKEN_DOCUMENT = {"_links": {"auth-token:removal": [link(REMOVAL_URL)]}}


def script_login(transport: FakeTransport, cookies=("a=1", "b=2")) -> FakeTransport:
    transport.add("GET", AUTH_URL, json_result(AUTH_DOCUMENT))
    transport.add("GET", PROVIDERS_URL, json_result(PROVIDERS_DOCUMENT))
    transport.add("POST", LOGIN_URL, json_result({}, status=303, reason="See Other", set_cookies=list(cookies)))
    return transport


def script_logout(transport: FakeTransport) -> FakeTransport:
    transport.add("GET", TOKEN_URL, json_result(TOKEN_DOCUMENT))
    transport.add("DELETE", REMOVAL_URL, status_result(204, "No Content"))
    return transport


# ── Fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def context():
    return RequestContext(host=HOST)


@pytest.fixture
def config():
    return PlatformConfig(host=HOST, keepalive_interval_seconds=3600)
