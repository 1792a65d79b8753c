"""Schemas for firewall rule documents and rule listings."""
from typing import Dict, List

from pydantic import BaseModel, Field, RootModel, field_validator


class FirewallRulesDocument(RootModel[Dict[str, List[str]]]):
    """
    Path to trusted netblocks, as read from FIREWALL_RULES or FIREWALL_RULES_FILE.

    Only the shape is checked here; CIDR validity is checked when the rules are added
    to a firewall so the same errors are raised wherever rules come from.
    """

    @field_validator("root")
    @classmethod
    def validate_paths(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Paths are matched exactly, so they must be absolute."""
        for path in v:
            if not path.startswith("/"):
                raise ValueError(f"Rule path must start with '/': {path!r}")
        return v


class PathRuleResponse(BaseModel):
    """Trusted netblocks for one path."""
    path: str
    networks: List[str] = Field(default_factory=list)


class FirewallRulesResponse(BaseModel):
    """Response schema for the configured rule table."""
    fail_open: bool
    log: bool
    rules: List[PathRuleResponse]
    total: int
