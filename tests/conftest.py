"""
Pytest configuration and fixtures.
"""
import pytest
from fastapi.testclient import TestClient

from endpoint_firewall.firewall.engine import Firewall
from endpoint_firewall.main import create_app

TRUSTED_PEER = ("10.1.2.3", 50000)
UNTRUSTED_PEER = ("203.0.113.5", 50000)


class PeerOverride:
    """ASGI wrapper that sets the connection peer the app sees."""

    def __init__(self, app, peer):
        self.app = app
        self.peer = peer

    async def __call__(self, scope, receive, send):
        if scope["type"] in ("http", "websocket"):
            scope = dict(scope, client=self.peer)
        await self.app(scope, receive, send)


@pytest.fixture(scope="function")
def firewall():
    """Fail-closed firewall trusting 10.0.0.0/8 on /hello."""
    fw = Firewall(log=True)
    fw.add_path_rule("/hello", ["10.0.0.0/8"])
    return fw


@pytest.fixture(scope="function")
def fail_open_firewall():
    """Same rule as `firewall`, but unconfigured paths are allowed."""
    fw = Firewall(fail_open=True, log=True)
    fw.add_path_rule("/hello", ["10.0.0.0/8"])
    return fw


@pytest.fixture(scope="function")
def make_client():
    """
    Build a TestClient for an app around the given firewall, as seen from `peer`.

    Usage: make_client(firewall, peer=("10.1.2.3", 50000))
    """
    def _make(firewall, peer=TRUSTED_PEER, guard_all=False):
        app = create_app(firewall, guard_all=guard_all)
        return TestClient(PeerOverride(app, peer))

    return _make


@pytest.fixture(scope="function")
def peer_client():
    """TestClient for any ASGI app, as seen from `peer`."""
    def _client(app, peer, **kwargs):
        return TestClient(PeerOverride(app, peer), **kwargs)

    return _client
