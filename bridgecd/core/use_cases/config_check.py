"""
Config check use case — validate delivery.yml and report issues.

Builds the full, unfiltered delivery tree so that every structural
error and every resolution conflict of every domain shows up at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bridgecd.core.config.loader import ConfigError, load_configuration, resolve_config_path
from bridgecd.core.engine.tree_builder import build_delivery_tree
from bridgecd.core.models.configuration import REPOSITORIES_DIR, DeliveryConfiguration
from bridgecd.core.models.diagnostics import Diagnostics


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    configuration: DeliveryConfiguration | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    service_instances: int = 0

    def to_dict(self) -> dict:
        config = self.configuration
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "domain_count": len(config.domains) if config else 0,
            "node_count": len(config.nodes) if config else 0,
            "solution_count": len(config.solutions) if config else 0,
            "service_count": len(config.services) if config else 0,
            "service_instances": self.service_instances,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate delivery configuration and report issues.

    Args:
        config_path: Project root or delivery.yml (default: search upward).

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    try:
        result.config_path = resolve_config_path(config_path)
        configuration = load_configuration(result.config_path)
        result.configuration = configuration
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    diagnostics = Diagnostics()
    tree = build_delivery_tree(
        configuration.domains,
        configuration.nodes,
        configuration.solutions,
        configuration.services,
        diagnostics,
    )
    result.service_instances = tree.service_count
    result.errors.extend(d.message for d in diagnostics.errors)
    result.warnings.extend(d.message for d in diagnostics.warnings)

    # Semantic checks
    if not configuration.domains:
        result.warnings.append("No domains defined. There is nowhere to deliver to.")

    for domain in configuration.domains:
        if not configuration.nodes_in_domain(domain.name):
            result.warnings.append(f"Domain '{domain.name}' has no nodes.")

    for solution in configuration.solutions:
        if not configuration.services_in_solution(solution.name):
            result.warnings.append(f"Solution '{solution.name}' has no services.")

    for service in configuration.services:
        if service.repository and not Path(service.repository).exists():
            result.warnings.append(
                f"Service '{service.name}' repository does not exist in "
                f"{REPOSITORIES_DIR}/: {Path(service.repository).name}"
            )

    result.valid = len(result.errors) == 0
    return result
