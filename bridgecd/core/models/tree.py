"""
Delivery tree — the resolved domain → node → solution → service structure.

Built once per run from the configuration. Every guarded attribute is
already resolved for the node the branch belongs to. Trees are never
mutated after construction; filtering produces new trees.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ResolvedService(BaseModel):
    """A service with all attributes resolved for one node."""

    name: str
    kind: str
    repository: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    preferences: dict[str, Any] = Field(default_factory=dict)
    deployment_options: dict[str, Any] = Field(default_factory=dict)


class SolutionBranch(BaseModel):
    name: str
    services: dict[str, ResolvedService] = Field(default_factory=dict)


class NodeBranch(BaseModel):
    name: str
    labels: frozenset[str] = Field(default_factory=frozenset)
    solutions: dict[str, SolutionBranch] = Field(default_factory=dict)

    def iter_services(self):
        """Yield ``(solution, service)`` pairs in tree order."""
        for solution in self.solutions.values():
            for service in solution.services.values():
                yield solution, service


class DomainBranch(BaseModel):
    name: str
    nodes: dict[str, NodeBranch] = Field(default_factory=dict)


class DeliveryTree(BaseModel):
    """Root of the delivery tree."""

    domains: dict[str, DomainBranch] = Field(default_factory=dict)

    def iter_nodes(self):
        """Yield ``(domain, node)`` pairs in tree order."""
        for domain in self.domains.values():
            for node in domain.nodes.values():
                yield domain, node

    @property
    def service_count(self) -> int:
        return sum(
            len(solution.services)
            for _, node in self.iter_nodes()
            for solution in node.solutions.values()
        )

    @property
    def is_empty(self) -> bool:
        return not any(True for _ in self.iter_nodes())
