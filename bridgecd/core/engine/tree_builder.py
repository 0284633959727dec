"""
Delivery tree builder — configuration → resolved delivery tree.

For every node of every domain, every member service of every solution
is resolved against the node's context (domain, node name, labels).

Structural problems (unknown domain, unknown solution, duplicate names,
unknown deployment options) are reported as ``error`` diagnostics and
never abort construction, so one pass surfaces as many of them as
possible. Resolution conflicts are ``warn`` diagnostics.
"""

from __future__ import annotations

import logging

from bridgecd.core.engine.options import unknown_options
from bridgecd.core.engine.resolver import ResolutionContext, resolve_attributes
from bridgecd.core.models.configuration import (
    ATTRIBUTE_MAPS,
    Domain,
    Node,
    Service,
    Solution,
)
from bridgecd.core.models.diagnostics import Diagnostics
from bridgecd.core.models.tree import (
    DeliveryTree,
    DomainBranch,
    NodeBranch,
    ResolvedService,
    SolutionBranch,
)

logger = logging.getLogger(__name__)


def _check_duplicates(kind: str, names: list[str], diagnostics: Diagnostics) -> None:
    seen: set[str] = set()
    reported: set[str] = set()
    for name in names:
        if name in seen and name not in reported:
            diagnostics.error(f"Duplicate {kind} name '{name}'")
            reported.add(name)
        seen.add(name)


def _check_service(
    service: Service,
    domain_names: set[str],
    node_names: set[str],
    solution_names: set[str],
    diagnostics: Diagnostics,
) -> bool:
    """Run the structural checks of one service. False if it is unusable."""
    usable = True

    if service.solution not in solution_names:
        diagnostics.error(
            f"service '{service.name}' references unknown solution '{service.solution}'",
            service=service.name,
        )
        usable = False

    for option in unknown_options(service.deployment_options):
        diagnostics.error(
            f"service '{service.name}': unknown deployment option '{option}'",
            service=service.name,
            attribute=f"deployment_options.{option}",
        )
        usable = False

    for attribute in ATTRIBUTE_MAPS:
        for key, candidates in service.attribute_map(attribute).items():
            for candidate in candidates:
                for name in sorted(candidate.domain - domain_names):
                    diagnostics.warn(
                        f"service '{service.name}': '{attribute}': guard of "
                        f"'{key}' references unknown domain '{name}'",
                        service=service.name,
                        attribute=f"{attribute}.{key}",
                    )
                for name in sorted(candidate.node - node_names):
                    diagnostics.warn(
                        f"service '{service.name}': '{attribute}': guard of "
                        f"'{key}' references unknown node '{name}'",
                        service=service.name,
                        attribute=f"{attribute}.{key}",
                    )

    return usable


def resolve_service(
    service: Service,
    context: ResolutionContext,
    diagnostics: Diagnostics,
    seen_messages: set[str] | None = None,
) -> ResolvedService:
    """Resolve every guarded attribute of a service for one node."""
    resolved: dict[str, dict] = {}
    for attribute in ATTRIBUTE_MAPS:
        values, warnings = resolve_attributes(
            service.attribute_map(attribute),
            context,
            service=service.name,
            attribute=attribute,
        )
        resolved[attribute] = values
        for warning in warnings:
            if seen_messages is not None:
                if warning.message in seen_messages:
                    continue
                seen_messages.add(warning.message)
            diagnostics.append(warning)

    return ResolvedService(
        name=service.name,
        kind=service.kind,
        repository=service.repository,
        settings=resolved["settings"],
        preferences=resolved["preferences"],
        deployment_options=resolved["deployment_options"],
    )


def build_delivery_tree(
    domains: list[Domain],
    nodes: list[Node],
    solutions: list[Solution],
    services: list[Service],
    diagnostics: Diagnostics,
) -> DeliveryTree:
    """Build the resolved delivery tree.

    Args:
        domains: Declared domains, in declaration order.
        nodes: Declared nodes; each names its domain.
        solutions: Declared solutions.
        services: Declared services; each names its solution.
        diagnostics: Sink for warnings and structural errors.

    Returns:
        DeliveryTree covering every usable domain/node/solution/service.
    """
    domain_names = {d.name for d in domains}
    node_names = {n.name for n in nodes}
    solution_names = {s.name for s in solutions}

    _check_duplicates("domain", [d.name for d in domains], diagnostics)
    _check_duplicates("node", [n.name for n in nodes], diagnostics)
    _check_duplicates("solution", [s.name for s in solutions], diagnostics)
    _check_duplicates("service", [s.name for s in services], diagnostics)

    for node in nodes:
        if node.domain not in domain_names:
            diagnostics.error(
                f"node '{node.name}' declares unknown domain '{node.domain}'",
                node=node.name,
                domain=node.domain,
            )

    usable_services = [
        s for s in services
        if _check_service(s, domain_names, node_names, solution_names, diagnostics)
    ]

    tree = DeliveryTree()
    seen_messages: set[str] = set()

    for domain in domains:
        if domain.name in tree.domains:
            continue
        domain_branch = DomainBranch(name=domain.name)

        for node in nodes:
            if node.domain != domain.name or node.name in domain_branch.nodes:
                continue
            context = ResolutionContext(
                domain=domain.name,
                node=node.name,
                labels=node.labels,
            )
            node_branch = NodeBranch(name=node.name, labels=node.labels)

            for solution in solutions:
                if solution.name in node_branch.solutions:
                    continue
                solution_branch = SolutionBranch(name=solution.name)
                for service in usable_services:
                    if service.solution != solution.name:
                        continue
                    if service.name in solution_branch.services:
                        continue
                    solution_branch.services[service.name] = resolve_service(
                        service, context, diagnostics, seen_messages
                    )
                node_branch.solutions[solution.name] = solution_branch

            domain_branch.nodes[node.name] = node_branch

        tree.domains[domain.name] = domain_branch

    logger.debug(
        "Built delivery tree: %d domains, %d service instances, %d diagnostics",
        len(tree.domains), tree.service_count, len(diagnostics),
    )
    return tree
