"""
Deliver use case — run a continuous delivery for one domain.

This is the top-level flow: it loads the configuration, builds and
filters the delivery tree, stops on configuration errors, compiles
the task lists and executes them node by node.

    load → build tree → filter → (errors? stop) → compile → execute

The preparation stages are synchronous and pure; only execution is
asynchronous.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from bridgecd.adapters.base import BridgeFactory
from bridgecd.adapters.credentials import CredentialProvider
from bridgecd.core.config.loader import ConfigError, load_configuration, resolve_config_path
from bridgecd.core.engine.compiler import compile_task_lists
from bridgecd.core.engine.orchestrator import DeliveryReport, Orchestrator
from bridgecd.core.engine.tree_builder import build_delivery_tree
from bridgecd.core.engine.tree_filter import filter_delivery_tree
from bridgecd.core.models.configuration import DeliveryConfiguration
from bridgecd.core.models.diagnostics import Diagnostics
from bridgecd.core.models.task import TaskList

logger = logging.getLogger(__name__)

ErrorKind = Literal["configuration", "delivery"]

CONFIGURATION_FAILURE = "Configuration errors detected, skipping execution."
DELIVERY_FAILURE = "Some delivery actions were unsuccessful."
NO_BRIDGE = "No bridge configured for a real delivery."


@dataclass
class DeliveryResult:
    """Result of a delivery run."""

    domain: str = ""
    config_path: Path | None = None
    configuration: DeliveryConfiguration | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    task_lists: list[TaskList] = field(default_factory=list)
    report: DeliveryReport | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {
            "domain": self.domain,
            "config_path": str(self.config_path) if self.config_path else None,
            "diagnostics": self.diagnostics.to_list(),
        }
        if self.error:
            result["error"] = self.error
            result["error_kind"] = self.error_kind
        result["nodes_planned"] = len(self.task_lists)
        result["tasks_planned"] = sum(t.total_tasks for t in self.task_lists)
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def prepare_delivery(
    configuration: DeliveryConfiguration,
    domain: str,
    diagnostics: Diagnostics,
    nodes: Iterable[str] | None = None,
    labels: Iterable[str] | None = None,
    solutions: Iterable[str] | None = None,
    services: Iterable[str] | None = None,
) -> list[TaskList]:
    """Build, filter and compile. Returns no task lists on errors."""
    tree = build_delivery_tree(
        configuration.domains,
        configuration.nodes,
        configuration.solutions,
        configuration.services,
        diagnostics,
    )
    filtered = filter_delivery_tree(
        domain,
        tree,
        configuration,
        diagnostics,
        nodes=nodes,
        labels=labels,
        solutions=solutions,
        services=services,
    )

    if diagnostics.has_errors:
        return []

    return compile_task_lists(filtered, configuration.node_map)


def run_delivery(
    domain: str,
    config_path: Path | None = None,
    nodes: Iterable[str] | None = None,
    labels: Iterable[str] | None = None,
    solutions: Iterable[str] | None = None,
    services: Iterable[str] | None = None,
    dry_run: bool = False,
    break_on_error: bool = False,
    bridge_factory: BridgeFactory | None = None,
    bridge_problem: str | None = None,
    credentials: CredentialProvider | None = None,
) -> DeliveryResult:
    """Deliver the selected services of a domain.

    Args:
        domain: Domain to deliver to (required).
        config_path: Project root or delivery.yml (default: search upward).
        nodes: Optional node-name filter.
        labels: Optional node-label filter.
        solutions: Optional solution filter.
        services: Optional service filter.
        dry_run: Report the tasks without executing them.
        break_on_error: Abort on the first failed task.
        bridge_factory: Creates the Bridge of each node.
        bridge_problem: Why no usable Bridge was found (e.g. an unknown
            bridge name); reported once the configuration is known good.
        credentials: Supplies credentials nodes do not declare.

    Returns:
        DeliveryResult; ``error_kind`` tells configuration failures
        (nothing executed) from delivery failures.
    """
    result = DeliveryResult(domain=domain)

    # ── Load configuration ───────────────────────────────────────
    try:
        result.config_path = resolve_config_path(config_path)
        result.configuration = load_configuration(result.config_path)
    except ConfigError as e:
        result.error = str(e)
        result.error_kind = "configuration"
        return result

    # ── Build, filter, compile ───────────────────────────────────
    result.task_lists = prepare_delivery(
        result.configuration,
        domain,
        result.diagnostics,
        nodes=nodes,
        labels=labels,
        solutions=solutions,
        services=services,
    )

    for diagnostic in result.diagnostics.warnings:
        logger.info("warn: %s", diagnostic.message)

    if result.diagnostics.has_errors:
        for diagnostic in result.diagnostics.errors:
            logger.info("error: %s", diagnostic.message)
        result.error = CONFIGURATION_FAILURE
        result.error_kind = "configuration"
        return result

    if bridge_problem is not None or (bridge_factory is None and not dry_run):
        result.error = bridge_problem or NO_BRIDGE
        result.error_kind = "configuration"
        return result

    # ── Execute ──────────────────────────────────────────────────
    orchestrator = Orchestrator(
        bridge_factory or _no_bridge,
        dry_run=dry_run,
        break_on_error=break_on_error,
        credentials=credentials,
    )
    result.report = asyncio.run(orchestrator.run(result.task_lists))

    if not result.report.all_ok:
        result.error = DELIVERY_FAILURE
        result.error_kind = "delivery"

    logger.info(
        "Delivery to '%s' finished: %s (%d/%d tasks succeeded)",
        domain,
        result.report.status,
        result.report.succeeded,
        result.report.total,
    )
    return result


def _no_bridge(connection):
    raise RuntimeError(f"No bridge available for node '{connection.node}'")
