"""
Firewall core: netblock matching, the rule table and the authorization decision.
"""
from endpoint_firewall.firewall.engine import Firewall
from endpoint_firewall.firewall.netblocks import ip_is_trusted, parse_network, parse_source_address
from endpoint_firewall.firewall.rules import Rules

__all__ = [
    "Firewall",
    "Rules",
    "ip_is_trusted",
    "parse_network",
    "parse_source_address",
]
