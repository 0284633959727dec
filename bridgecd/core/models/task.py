"""
Task and Receipt models — the execution contract.

Tasks are compiled from a filtered delivery tree and represent one
remote operation on one service. Receipts represent their outcome.
The orchestrator consumes task lists and produces receipts; both are
discarded after the run.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from bridgecd.core.models.configuration import Node

TaskType = Literal["deploy", "settings", "preferences", "start"]


def now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Task(BaseModel):
    """A single remote operation on a service.

    ``params`` depends on the type:
        deploy:       repository, options
        settings:     settings
        preferences:  preferences
        start:        (none)
    """

    type: TaskType
    service: str
    kind: str
    params: dict[str, Any] = Field(default_factory=dict)

    def describe(self) -> str:
        """One-line human-readable description of the task."""
        if self.type == "deploy":
            return f"deploy {self.params.get('repository')}"
        if self.type == "settings":
            keys = ", ".join(self.params.get("settings", {}))
            return f"set settings of {self.service} ({keys})"
        if self.type == "preferences":
            keys = ", ".join(self.params.get("preferences", {}))
            return f"set preferences of {self.service} ({keys})"
        return f"start {self.service}"


class TaskList(BaseModel):
    """All work for one node: one ordered task sequence per service."""

    node: Node
    domain: str = ""
    service_tasks: list[list[Task]] = Field(default_factory=list)

    @property
    def services(self) -> list[str]:
        return [seq[0].service for seq in self.service_tasks if seq]

    @property
    def total_tasks(self) -> int:
        return sum(len(seq) for seq in self.service_tasks)


class Receipt(BaseModel):
    """Result of one task.

    Dry runs produce ``skipped`` receipts; the orchestrator never
    raises for a failed task, it records a ``failed`` receipt and an
    error for the owning service sequence.
    """

    node: str
    service: str
    task: TaskType
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=now_iso)
    ended_at: str = Field(default_factory=now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, task: Task, node: str, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(
            node=node,
            service=task.service,
            task=task.type,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(cls, task: Task, node: str, error: str, **kwargs: Any) -> Receipt:
        """Create a failure receipt."""
        return cls(
            node=node,
            service=task.service,
            task=task.type,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(cls, task: Task, node: str, reason: str = "", **kwargs: Any) -> Receipt:
        """Create a skip receipt."""
        return cls(
            node=node,
            service=task.service,
            task=task.type,
            status="skipped",
            output=reason,
            **kwargs,
        )
