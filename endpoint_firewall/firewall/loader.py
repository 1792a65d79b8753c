"""
Build a firewall from application settings.
"""
import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from endpoint_firewall.core.config import Settings
from endpoint_firewall.firewall.engine import Firewall
from endpoint_firewall.schemas.firewall import FirewallRulesDocument

logger = logging.getLogger(__name__)


def load_rules_file(path: str) -> Dict[str, List[str]]:
    """
    Read a JSON rules file of the form {"/path": ["cidr", ...]}.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a valid rules document
    """
    content = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Rules file {path} is not valid JSON: {e}") from e
    return FirewallRulesDocument.model_validate(data).root


def build_firewall(
    settings: Settings,
    extra_rules: Optional[Mapping[str, List[str]]] = None,
) -> Firewall:
    """
    Create a firewall from settings.

    Rules are applied in order: FIREWALL_RULES, then FIREWALL_RULES_FILE, then extra_rules.
    A path configured by more than one source raises PathAlreadyConfiguredError.
    """
    firewall = Firewall(fail_open=settings.FIREWALL_FAIL_OPEN, log=settings.FIREWALL_LOG)

    sources = [FirewallRulesDocument.model_validate(settings.FIREWALL_RULES or {}).root]
    if settings.FIREWALL_RULES_FILE:
        sources.append(load_rules_file(settings.FIREWALL_RULES_FILE))
    if extra_rules:
        sources.append(FirewallRulesDocument.model_validate(dict(extra_rules)).root)

    for rules in sources:
        for path, networks in rules.items():
            firewall.add_path_rule(path, networks)

    logger.info(
        f"Firewall configured: {len(firewall.paths())} path rule(s), "
        f"fail_open={firewall.fail_open}, log={firewall.log}"
    )
    return firewall
