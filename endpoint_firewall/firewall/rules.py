"""
Rule table: path to trusted netblocks.

Paths are matched exactly. Each path can be configured once; a configured path with an
empty list of netblocks denies everyone, which is not the same as an unconfigured path.
"""
import threading
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from endpoint_firewall.core.errors import PathAlreadyConfiguredError
from endpoint_firewall.firewall.netblocks import IPNetwork, parse_network


class Rules:
    """Trusted netblocks per path plus the policy for unconfigured paths."""

    def __init__(
        self,
        path_to_netblocks: Optional[Mapping[str, Iterable[IPNetwork]]] = None,
        fail_open: bool = False,
    ):
        self.fail_open = fail_open
        self._write_lock = threading.Lock()
        table = {
            path: tuple(netblocks)
            for path, netblocks in (path_to_netblocks or {}).items()
        }
        self._table: Mapping[str, Tuple[IPNetwork, ...]] = MappingProxyType(table)

    @property
    def path_to_netblocks(self) -> Mapping[str, Tuple[IPNetwork, ...]]:
        """Read-only view of the current table."""
        return self._table

    def get(self, path: str) -> Optional[Tuple[IPNetwork, ...]]:
        return self._table.get(path)

    def add(self, path: str, networks: Iterable[str]) -> Tuple[IPNetwork, ...]:
        """
        Map a list of trusted netblocks to a path.

        Every network is parsed before the table is touched, so a bad entry leaves
        the path unconfigured. The new table is swapped in with a single assignment;
        readers never see a half-applied update.

        Raises:
            PathAlreadyConfiguredError: If the path already has a rule
            InvalidNetworkPrefixError: If any network fails to parse
        """
        if path in self._table:
            raise PathAlreadyConfiguredError(path)

        trusted: List[IPNetwork] = [parse_network(network) for network in networks]

        with self._write_lock:
            # Re-check under the lock in case another writer got there first
            if path in self._table:
                raise PathAlreadyConfiguredError(path)
            table: Dict[str, Tuple[IPNetwork, ...]] = dict(self._table)
            table[path] = tuple(trusted)
            self._table = MappingProxyType(table)
        return table[path]

    def __contains__(self, path: object) -> bool:
        return path in self._table

    def __len__(self) -> int:
        return len(self._table)
