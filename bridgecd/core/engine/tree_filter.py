"""
Tree filter — narrow a delivery tree to what a run asked for.

The domain is mandatory and selects exactly one domain subtree. The
node, label, solution and service filters are optional; each non-empty
filter must be satisfied (they are ANDed), an empty one passes
everything. Labels are matched against node labels.

Filtering never touches the input tree. Branches left without services
are dropped from the result, so filtering twice with the same filters
yields the same tree.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from bridgecd.core.models.configuration import DeliveryConfiguration
from bridgecd.core.models.diagnostics import Diagnostics
from bridgecd.core.models.tree import (
    DeliveryTree,
    DomainBranch,
    NodeBranch,
    SolutionBranch,
)

logger = logging.getLogger(__name__)


def _as_set(values: Iterable[str] | None) -> frozenset[str]:
    return frozenset(values) if values else frozenset()


def _report_unknown(
    kind: str,
    requested: frozenset[str],
    known: set[str],
    diagnostics: Diagnostics,
) -> None:
    for name in sorted(requested - known):
        diagnostics.error(f"Unknown {kind} '{name}' requested")


def filter_delivery_tree(
    domain: str,
    tree: DeliveryTree,
    configuration: DeliveryConfiguration,
    diagnostics: Diagnostics,
    nodes: Iterable[str] | None = None,
    labels: Iterable[str] | None = None,
    solutions: Iterable[str] | None = None,
    services: Iterable[str] | None = None,
) -> DeliveryTree:
    """Return the sub-tree matching a delivery request.

    Args:
        domain: Required domain name.
        tree: Full delivery tree (left untouched).
        configuration: Configuration the tree was built from; used to
            tell unknown filter values from values that match nothing.
        diagnostics: Sink for filter errors and warnings.
        nodes: Optional node names.
        labels: Optional node labels; a node matches if it carries any.
        solutions: Optional solution names.
        services: Optional service names.

    Returns:
        A new DeliveryTree with at most one domain.
    """
    node_filter = _as_set(nodes)
    label_filter = _as_set(labels)
    solution_filter = _as_set(solutions)
    service_filter = _as_set(services)

    if configuration.get_domain(domain) is None or domain not in tree.domains:
        diagnostics.error(f"Unknown domain '{domain}'", domain=domain)
        return DeliveryTree()

    _report_unknown("node", node_filter, {n.name for n in configuration.nodes}, diagnostics)
    _report_unknown(
        "solution", solution_filter, {s.name for s in configuration.solutions}, diagnostics
    )
    _report_unknown(
        "service", service_filter, {s.name for s in configuration.services}, diagnostics
    )

    source = tree.domains[domain]
    result = DomainBranch(name=source.name)

    for node in source.nodes.values():
        if node_filter and node.name not in node_filter:
            continue
        if label_filter and not (node.labels & label_filter):
            continue

        node_branch = NodeBranch(name=node.name, labels=node.labels)
        for solution in node.solutions.values():
            if solution_filter and solution.name not in solution_filter:
                continue
            kept = {
                name: service
                for name, service in solution.services.items()
                if not service_filter or name in service_filter
            }
            if kept:
                node_branch.solutions[solution.name] = SolutionBranch(
                    name=solution.name,
                    services=kept,
                )

        if node_branch.solutions:
            result.nodes[node.name] = node_branch

    if not result.nodes:
        diagnostics.warn(
            f"Nothing to deliver in domain '{domain}' for the given filters",
            domain=domain,
        )

    logger.debug("Filtered domain '%s' down to %d nodes", domain, len(result.nodes))
    return DeliveryTree(domains={domain: result})
