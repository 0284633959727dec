"""
Configuration model — domains, nodes, solutions and services.

Loaded from delivery.yml, this is the declared truth about where
services go. It is created once per run and never mutated; the engine
derives delivery trees from it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    ValidationInfo,
    field_validator,
)

from bridgecd.core.models.guarded import (
    GuardedValue,
    make_string_set,
    normalize_attribute_map,
)

SERVICE_TYPES = ("xUML", "node", "java")

# Attribute maps carried by every service, in task order.
ATTRIBUTE_MAPS = ("settings", "preferences", "deployment_options")

REPOSITORIES_DIR = "repositories"


def _named_entries(raw: Any) -> Any:
    """Accept a list of entries or a mapping keyed by entry name.

    Bare strings become ``{"name": <string>}``. Mapping order is kept.
    """
    if raw is None:
        return []
    if isinstance(raw, dict):
        entries = []
        for name, body in raw.items():
            if body is None:
                body = {}
            if isinstance(body, dict):
                entries.append({"name": name, **body})
            else:
                entries.append(body)
        return entries
    if isinstance(raw, list):
        return [{"name": e} if isinstance(e, str) else e for e in raw]
    return raw


class Domain(BaseModel):
    """A named group of nodes targeted together."""

    name: str
    description: str = ""


class Node(BaseModel):
    """A Bridge instance services are delivered to."""

    name: str
    domain: str
    host: str = "localhost"
    port: int = Field(default=8080, ge=1, le=65535)
    user: str | None = None
    password: str | None = Field(default=None, repr=False)
    labels: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("labels", mode="before")
    @classmethod
    def _labels(cls, value: Any) -> frozenset[str]:
        return make_string_set(value)

    @property
    def has_credentials(self) -> bool:
        return self.user is not None and self.password is not None


class Solution(BaseModel):
    """A set of services delivered together."""

    name: str
    description: str = ""


class Service(BaseModel):
    """A deployable service with context-guarded attributes."""

    name: str
    solution: str
    type: str | None = Field(default=None, validate_default=True)
    repository: str | None = Field(default=None, validate_default=True)
    settings: dict[str, list[GuardedValue]] = Field(default_factory=dict)
    preferences: dict[str, list[GuardedValue]] = Field(default_factory=dict)
    deployment_options: dict[str, list[GuardedValue]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("deployment_options", "deploymentOptions"),
    )

    @field_validator("type")
    @classmethod
    def _validate_type(cls, value: str | None) -> str:
        if value not in SERVICE_TYPES:
            known = "','".join(SERVICE_TYPES)
            raise ValueError(f"Service type '{value}' is unknown. Use one of '{known}'")
        return value

    @field_validator("repository")
    @classmethod
    def _check_repository(cls, value: Any, info: ValidationInfo) -> str:
        if not value or not isinstance(value, str):
            raise ValueError("Missing 'repository' field.")
        root = (info.context or {}).get("project_root")
        if root is None:
            return value
        return str((Path(root) / REPOSITORIES_DIR / value).resolve())

    @field_validator("settings", "preferences", "deployment_options", mode="before")
    @classmethod
    def _normalize_attributes(cls, value: Any) -> dict[str, list[GuardedValue]]:
        return normalize_attribute_map(value)

    @property
    def kind(self) -> str:
        """Runtime kind (alias of ``type``)."""
        assert self.type is not None  # guaranteed by validation
        return self.type

    def attribute_map(self, name: str) -> dict[str, list[GuardedValue]]:
        """Look up one of the guarded attribute maps by name."""
        if name not in ATTRIBUTE_MAPS:
            raise KeyError(name)
        return getattr(self, name)


class DeliveryConfiguration(BaseModel):
    """Root configuration — loaded from delivery.yml."""

    domains: list[Domain] = Field(default_factory=list)
    nodes: list[Node] = Field(default_factory=list)
    solutions: list[Solution] = Field(default_factory=list)
    services: list[Service] = Field(default_factory=list)

    @field_validator("domains", "nodes", "solutions", "services", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> Any:
        return _named_entries(value)

    def get_domain(self, name: str) -> Domain | None:
        for domain in self.domains:
            if domain.name == name:
                return domain
        return None

    def get_node(self, name: str) -> Node | None:
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def get_solution(self, name: str) -> Solution | None:
        for solution in self.solutions:
            if solution.name == name:
                return solution
        return None

    def get_service(self, name: str) -> Service | None:
        for service in self.services:
            if service.name == name:
                return service
        return None

    def nodes_in_domain(self, domain: str) -> list[Node]:
        """Nodes assigned to a domain, in declaration order."""
        return [n for n in self.nodes if n.domain == domain]

    def services_in_solution(self, solution: str) -> list[Service]:
        """Member services of a solution, in declaration order."""
        return [s for s in self.services if s.solution == solution]

    @property
    def node_map(self) -> dict[str, Node]:
        return {n.name: n for n in self.nodes}
