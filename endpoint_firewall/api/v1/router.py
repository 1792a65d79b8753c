"""
API router assembly.
"""
from fastapi import APIRouter

from endpoint_firewall.api.v1.endpoints import firewall_rules, health, hello
from endpoint_firewall.firewall.engine import Firewall


def build_api_router(firewall: Firewall) -> APIRouter:
    """
    Routes for the service.

    /health is open; /hello and /api/v1/firewall/rules go through the firewall and
    need a rule for their exact path unless fail-open is set.
    """
    api_router = APIRouter()

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(hello.build_router(firewall), tags=["hello"])
    api_router.include_router(
        firewall_rules.build_router(firewall),
        prefix="/api/v1/firewall",
        tags=["firewall"],
    )
    return api_router
