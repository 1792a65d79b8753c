"""
Endpoint-selective firewall for HTTP handlers.
"""
import logging
from typing import Callable, Iterable, List, Mapping, Optional, Tuple, Union

from endpoint_firewall.firewall.netblocks import (
    IPAddress,
    IPNetwork,
    ip_is_trusted,
    parse_source_address,
)
from endpoint_firewall.firewall.rules import Rules

logger = logging.getLogger(__name__)


class Firewall:
    """
    Software defined, endpoint-selective firewall.

    Args:
        rules: Pre-parsed mapping of path to trusted netblocks
        fail_open: False (default) to drop every request for a path with no rule,
                   True to let such requests through
        log: True to log every dropped request
    """

    def __init__(
        self,
        rules: Optional[Mapping[str, Iterable[IPNetwork]]] = None,
        fail_open: bool = False,
        log: bool = False,
    ):
        self.rules = Rules(rules, fail_open=fail_open)
        self.log = log

    @classmethod
    def from_mapping(
        cls,
        rules: Mapping[str, Iterable[str]],
        fail_open: bool = False,
        log: bool = False,
    ) -> "Firewall":
        """Build a firewall from CIDR strings, applying each path with add_path_rule."""
        firewall = cls(fail_open=fail_open, log=log)
        for path, networks in rules.items():
            firewall.add_path_rule(path, networks)
        return firewall

    @property
    def fail_open(self) -> bool:
        return self.rules.fail_open

    def add_path_rule(self, path: str, networks: Iterable[str]) -> None:
        """
        Map a list of trusted netblocks to a path.

        Raises:
            PathAlreadyConfiguredError: If the path already has a rule
            InvalidNetworkPrefixError: If a network is not valid CIDR; nothing is added
        """
        trusted = self.rules.add(path, networks)
        logger.debug(f"Added rule for {path}: {[str(n) for n in trusted]}")

    def rule_for(self, path: str) -> Optional[Tuple[IPNetwork, ...]]:
        """Trusted netblocks for a path, or None if the path has no rule."""
        return self.rules.get(path)

    def paths(self) -> List[str]:
        """Configured paths in the order they were added."""
        return list(self.rules.path_to_netblocks)

    def authorize(self, path: str, src: Union[IPAddress, str, None]) -> bool:
        """
        Decide whether a request from src to path may proceed.

        A configured path only admits addresses inside its netblocks, whatever the
        fail-open setting. fail_open only decides for paths with no rule.
        """
        if isinstance(src, str):
            src = parse_source_address(src)
        trusted = self.rules.get(path)
        if trusted is None:
            return self.rules.fail_open
        return ip_is_trusted(trusted, src)

    def wrap(self, handler: Callable) -> Callable:
        """
        Wrap the firewall around a request handler.

        On FastAPI, register the result on a FirewallRoute so the check runs before
        body parsing and dependencies.
        """
        from endpoint_firewall.middleware.firewall import wrap_handler

        return wrap_handler(self, handler)
