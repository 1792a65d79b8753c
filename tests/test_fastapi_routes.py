"""
Tests for firewall-wrapped FastAPI routes.
"""
import pytest
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from pydantic import BaseModel

from endpoint_firewall.firewall.engine import Firewall
from endpoint_firewall.main import create_app
from endpoint_firewall.middleware.firewall import FirewallRoute

TRUSTED_PEER = ("10.1.2.3", 50000)
UNTRUSTED_PEER = ("203.0.113.5", 50000)


class Item(BaseModel):
    name: str
    quantity: int


@pytest.fixture(scope="function")
def items_app():
    """
    App with POST /items behind the firewall, recording dependency and handler calls.
    """
    calls = []

    def record_dependency():
        calls.append("dependency")
        return "dep"

    async def create_item(request: Request, item: Item, dep: str = Depends(record_dependency)):
        calls.append(f"handler:{item.name}")
        return {"name": item.name, "quantity": item.quantity}

    fw = Firewall(log=True)
    fw.add_path_rule("/items", ["10.0.0.0/8"])

    router = APIRouter(route_class=FirewallRoute)
    router.add_api_route("/items", fw.wrap(create_item), methods=["POST"])
    app = FastAPI()
    app.include_router(router)
    return app, calls


def test_denied_peer_with_invalid_body_gets_forbidden(items_app, peer_client):
    app, calls = items_app
    response = peer_client(app, UNTRUSTED_PEER).post("/items", json={"quantity": "lots"})

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.text == "Forbidden"
    assert calls == []


def test_denied_peer_with_valid_body_runs_no_dependency(items_app, peer_client):
    app, calls = items_app
    response = peer_client(app, UNTRUSTED_PEER).post("/items", json={"name": "bolt", "quantity": 3})

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert calls == []


def test_trusted_peer_reaches_dependency_and_handler(items_app, peer_client):
    app, calls = items_app
    response = peer_client(app, TRUSTED_PEER).post("/items", json={"name": "bolt", "quantity": 3})

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"name": "bolt", "quantity": 3}
    assert calls == ["dependency", "handler:bolt"]


def test_trusted_peer_still_gets_validation_errors(items_app, peer_client):
    app, calls = items_app
    response = peer_client(app, TRUSTED_PEER).post("/items", json={"quantity": "lots"})

    assert response.status_code == 422
    assert "handler:" not in " ".join(calls)


def test_guard_survives_nested_include_router(items_app, peer_client):
    app, calls = items_app
    outer = FastAPI()
    outer.include_router(app.router, prefix="")

    denied = peer_client(outer, UNTRUSTED_PEER).post("/items", json={})
    allowed = peer_client(outer, TRUSTED_PEER).post("/items", json={"name": "nut", "quantity": 1})

    assert denied.status_code == status.HTTP_403_FORBIDDEN
    assert allowed.status_code == status.HTTP_200_OK
    assert calls == ["dependency", "handler:nut"]


@pytest.mark.parametrize("route_class", [None, FirewallRoute])
def test_handler_without_request_param(route_class, peer_client):
    async def list_things():
        return {"things": ["a", "b"]}

    fw = Firewall(fail_open=True)
    fw.add_path_rule("/locked", [])

    router = APIRouter(route_class=route_class) if route_class else APIRouter()
    router.add_api_route("/things", fw.wrap(list_things), methods=["GET"])
    router.add_api_route("/locked", fw.wrap(list_things), methods=["GET"])
    app = FastAPI()
    app.include_router(router)
    client = peer_client(app, UNTRUSTED_PEER)

    things = client.get("/things")
    locked = client.get("/locked")

    assert things.status_code == status.HTTP_200_OK
    assert things.json() == {"things": ["a", "b"]}
    assert locked.status_code == status.HTTP_403_FORBIDDEN
    assert locked.text == "Forbidden"


def test_sync_handler_on_firewall_route(peer_client):
    def ping():
        return {"pong": True}

    fw = Firewall()
    fw.add_path_rule("/ping", ["10.0.0.0/8"])
    router = APIRouter(route_class=FirewallRoute)
    router.add_api_route("/ping", fw.wrap(ping), methods=["GET"])
    app = FastAPI()
    app.include_router(router)

    assert peer_client(app, TRUSTED_PEER).get("/ping").json() == {"pong": True}
    assert peer_client(app, UNTRUSTED_PEER).get("/ping").status_code == status.HTTP_403_FORBIDDEN


def test_unwrapped_endpoint_on_firewall_route_is_not_guarded(peer_client):
    async def open_endpoint():
        return {"open": True}

    router = APIRouter(route_class=FirewallRoute)
    router.add_api_route("/open", open_endpoint, methods=["GET"])
    app = FastAPI()
    app.include_router(router)

    assert peer_client(app, UNTRUSTED_PEER).get("/open").status_code == status.HTTP_200_OK


def test_http_exception_from_handler_keeps_its_status(peer_client):
    async def missing():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="no such thing")

    fw = Firewall()
    fw.add_path_rule("/missing", ["10.0.0.0/8"])
    app = create_app(fw)
    app.router.add_api_route("/missing", fw.wrap(missing), methods=["GET"], route_class_override=FirewallRoute)

    response = peer_client(app, TRUSTED_PEER).get("/missing")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "no such thing"}


def test_unhandled_exception_returns_500_with_trace_id(peer_client):
    async def boom():
        raise RuntimeError("kaboom")

    fw = Firewall()
    fw.add_path_rule("/boom", ["10.0.0.0/8"])
    app = create_app(fw)
    app.router.add_api_route("/boom", fw.wrap(boom), methods=["GET"], route_class_override=FirewallRoute)

    response = peer_client(app, TRUSTED_PEER, raise_server_exceptions=False).get("/boom")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["error"] == "RuntimeError"
    assert data["trace_id"]
