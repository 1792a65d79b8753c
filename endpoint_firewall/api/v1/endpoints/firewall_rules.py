"""
Read-only view of the configured firewall rules.
"""
from fastapi import APIRouter

from endpoint_firewall.firewall.engine import Firewall
from endpoint_firewall.middleware.firewall import FirewallRoute
from endpoint_firewall.schemas.firewall import FirewallRulesResponse, PathRuleResponse


def build_router(firewall: Firewall) -> APIRouter:
    """Router exposing the rule table; the listing itself is behind the firewall."""
    router = APIRouter(route_class=FirewallRoute)

    async def list_rules() -> FirewallRulesResponse:
        """
        List configured paths and their trusted netblocks, in the order they were added.
        """
        rules = [
            PathRuleResponse(path=path, networks=[str(n) for n in firewall.rule_for(path)])
            for path in firewall.paths()
        ]
        return FirewallRulesResponse(
            fail_open=firewall.fail_open,
            log=firewall.log,
            rules=rules,
            total=len(rules),
        )

    router.add_api_route(
        "/rules",
        firewall.wrap(list_rules),
        methods=["GET"],
        response_model=FirewallRulesResponse,
    )
    return router
