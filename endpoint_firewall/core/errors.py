"""
Firewall error types.

Configuration errors (PathAlreadyConfiguredError, InvalidNetworkPrefixError) are raised
to whoever registers rules and are never turned into responses. SourceAddressUnresolvableError
is a request-time condition that the handler wrapper folds into a denial.
"""


class FirewallError(Exception):
    """Base class for all firewall errors."""


class PathAlreadyConfiguredError(FirewallError):
    """Raised when a path is assigned trusted netblocks a second time."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"path already has an associated list of trusted netblocks: {path}"
        )


class InvalidNetworkPrefixError(FirewallError):
    """Raised when a network string is not valid CIDR notation."""

    def __init__(self, network: str, reason: str):
        self.network = network
        self.reason = reason
        super().__init__(f"could not parse CIDR {network!r}: {reason}")


class SourceAddressUnresolvableError(FirewallError):
    """Raised when the source IP can't be determined from a request."""

    def __init__(self, raw: object = None):
        self.raw = raw
        super().__init__(f"could not get source IP from request (peer: {raw!r})")
