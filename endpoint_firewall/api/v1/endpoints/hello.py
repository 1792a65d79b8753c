"""
Sample guarded endpoint.
"""
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from endpoint_firewall.firewall.engine import Firewall
from endpoint_firewall.middleware.firewall import FirewallRoute


async def hello(request: Request) -> PlainTextResponse:
    return PlainTextResponse("hello")


def build_router(firewall: Firewall) -> APIRouter:
    router = APIRouter(route_class=FirewallRoute)
    router.add_api_route(
        "/hello",
        firewall.wrap(hello),
        methods=["GET"],
        response_class=PlainTextResponse,
    )
    return router
