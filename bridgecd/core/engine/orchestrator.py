"""
Execution orchestrator — run compiled task lists against node Bridges.

Scheduling:
    - nodes are processed one after another, in task-list order
    - the service sequences of one node run concurrently
    - the tasks of one service run strictly in order

Failure policy:
    - a failing task ends its own service sequence; the other services
      of the node carry on
    - with ``break_on_error`` the failure aborts the node's whole batch
      (in-flight sequences are cancelled) and no further node is
      processed; nodes already delivered are not rolled back
    - a node whose Bridge cannot be reached is aborted on its own; the
      run carries on with the next node unless ``break_on_error`` is set
    - a dry run records what would be done and never calls a Bridge
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from bridgecd.adapters.base import Bridge, BridgeConnection, BridgeFactory
from bridgecd.adapters.credentials import CredentialProvider
from bridgecd.core.models.configuration import Node
from bridgecd.core.models.task import Receipt, Task, TaskList, now_iso

logger = logging.getLogger(__name__)


class ServiceDeliveryError(Exception):
    """A task failed; the rest of the service's sequence was skipped."""

    def __init__(self, node: str, service: str, task: str, cause: BaseException):
        super().__init__(f"node '{node}', service '{service}': {task} failed: {cause}")
        self.node = node
        self.service = service
        self.task = task
        self.cause = cause


class NodeDeliveryAborted(Exception):
    """A node could not be reached, or a break-on-error failure aborted its tasks."""

    def __init__(self, node: str, cause: BaseException):
        super().__init__(f"delivery to node '{node}' aborted: {cause}")
        self.node = node
        self.cause = cause


class MissingCredentialsError(Exception):
    """A node has no credentials and none can be acquired."""

    def __init__(self, node: str):
        super().__init__(f"No credentials for node '{node}'")
        self.node = node


@dataclass
class NodeReport:
    """Outcome of one node's task list."""

    node: str
    domain: str = ""
    errors: list[Exception | None] = field(default_factory=list)
    receipts: list[Receipt] = field(default_factory=list)
    aborted: Exception | None = None

    @property
    def failed(self) -> bool:
        return self.aborted is not None or any(e is not None for e in self.errors)

    def to_dict(self) -> dict:
        return {
            "node": self.node,
            "domain": self.domain,
            "status": "failed" if self.failed else "ok",
            "aborted": str(self.aborted) if self.aborted else None,
            "errors": [str(e) if e else None for e in self.errors],
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


@dataclass
class DeliveryReport:
    """Result of running all task lists of a delivery."""

    dry_run: bool = False
    nodes: list[NodeReport] = field(default_factory=list)
    skipped_nodes: list[str] = field(default_factory=list)

    @property
    def receipts(self) -> list[Receipt]:
        return [r for n in self.nodes for r in n.receipts]

    @property
    def errors(self) -> list[Exception]:
        """Every non-null error, node aborts included, in node order."""
        result: list[Exception] = []
        for node in self.nodes:
            result.extend(e for e in node.errors if e is not None)
            if node.aborted is not None and node.aborted not in result:
                result.append(node.aborted)
        return result

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.status == "skipped")

    @property
    def all_ok(self) -> bool:
        return not self.errors

    @property
    def status(self) -> str:
        if self.all_ok:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "dry_run": self.dry_run,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "skipped_nodes": self.skipped_nodes,
            "nodes": [n.to_dict() for n in self.nodes],
        }


class Orchestrator:
    """Executes task lists through Bridges created per node.

    Args:
        bridge_factory: Creates the Bridge for a node connection.
        dry_run: Record intended tasks without executing them.
        break_on_error: Abort the node (and the run) on the first failure.
        credentials: Asked for credentials a node does not declare.
    """

    def __init__(
        self,
        bridge_factory: BridgeFactory,
        dry_run: bool = False,
        break_on_error: bool = False,
        credentials: CredentialProvider | None = None,
    ):
        self._bridge_factory = bridge_factory
        self._dry_run = dry_run
        self._break_on_error = break_on_error
        self._credentials = credentials
        self._receipts: list[Receipt] = []

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @property
    def receipts(self) -> list[Receipt]:
        """Receipts of every task handled so far, in completion order."""
        return self._receipts

    async def _connect(self, node: Node) -> BridgeConnection:
        user, password = node.user, node.password
        if not node.has_credentials:
            if self._credentials is None:
                raise MissingCredentialsError(node.name)
            acquired = await self._credentials.acquire(node)
            user, password = acquired.user, acquired.password
        return BridgeConnection(
            node=node.name,
            host=node.host,
            port=node.port,
            user=user,
            password=password,
        )

    async def _perform(self, bridge: Bridge, task: Task) -> Any:
        if task.type == "deploy":
            return await bridge.deploy_service(
                task.params["repository"], task.params.get("options", {})
            )
        if task.type == "settings":
            return await bridge.set_service_settings(
                task.service, task.kind, task.params["settings"]
            )
        if task.type == "preferences":
            return await bridge.set_service_preferences(
                task.service, task.kind, task.params["preferences"]
            )
        return await bridge.set_service_status("start", task.service, task.kind)

    async def _run_sequence(
        self,
        bridge: Bridge | None,
        node: Node,
        tasks: Sequence[Task],
    ) -> Exception | None:
        """Run one service's tasks in order.

        Returns the error that ended the sequence, or None. Raises it
        instead when break-on-error is set.
        """
        for task in tasks:
            if bridge is None:
                receipt = Receipt.skip(task, node.name, reason=f"[dry-run] Would {task.describe()}")
                self._receipts.append(receipt)
                logger.info("⊘ %s:%s %s (dry-run)", node.name, task.service, task.type)
                continue

            started_at = now_iso()
            start_time = time.monotonic()
            try:
                output = await self._perform(bridge, task)
            except Exception as e:
                elapsed_ms = int((time.monotonic() - start_time) * 1000)
                self._receipts.append(Receipt.failure(
                    task,
                    node.name,
                    error=str(e),
                    started_at=started_at,
                    duration_ms=elapsed_ms,
                ))
                logger.error("✗ %s:%s %s → %s", node.name, task.service, task.type, e)
                error = ServiceDeliveryError(node.name, task.service, task.type, e)
                if self._break_on_error:
                    raise error from e
                return error

            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            self._receipts.append(Receipt.success(
                task,
                node.name,
                output="" if output is None else str(output),
                started_at=started_at,
                duration_ms=elapsed_ms,
            ))
            logger.info("✓ %s:%s %s (%dms)", node.name, task.service, task.type, elapsed_ms)

        return None

    async def execute(self, task_list: TaskList) -> list[Exception | None]:
        """Run every service sequence of one node concurrently.

        Returns:
            One error (or None) per service sequence, in task-list order.

        Raises:
            NodeDeliveryAborted: A task failed and break-on-error is set, or
                the Bridge of the node could not be reached.
            MissingCredentialsError: Credentials are missing and cannot
                be acquired (never raised on a dry run).
        """
        node = task_list.node
        if not task_list.service_tasks:
            return []

        bridge: Bridge | None = None
        if not self._dry_run:
            try:
                bridge = self._bridge_factory(await self._connect(node))
            except MissingCredentialsError:
                raise
            except Exception as e:
                raise NodeDeliveryAborted(node.name, e) from e

        logger.info(
            "Delivering %d services (%d tasks) to node '%s'%s",
            len(task_list.service_tasks),
            task_list.total_tasks,
            node.name,
            " [dry-run]" if self._dry_run else "",
        )

        if not self._break_on_error:
            return list(await asyncio.gather(*(
                self._run_sequence(bridge, node, tasks)
                for tasks in task_list.service_tasks
            )))

        try:
            async with asyncio.TaskGroup() as group:
                jobs = [
                    group.create_task(self._run_sequence(bridge, node, tasks))
                    for tasks in task_list.service_tasks
                ]
        except BaseExceptionGroup as failures:
            cause = failures.exceptions[0]
            raise NodeDeliveryAborted(node.name, cause) from cause

        return [job.result() for job in jobs]

    async def run(self, task_lists: Sequence[TaskList]) -> DeliveryReport:
        """Process task lists one node at a time."""
        report = DeliveryReport(dry_run=self._dry_run)

        for index, task_list in enumerate(task_lists):
            node_report = NodeReport(node=task_list.node.name, domain=task_list.domain)
            first_receipt = len(self._receipts)

            try:
                node_report.errors = await self.execute(task_list)
            except (NodeDeliveryAborted, MissingCredentialsError) as e:
                node_report.aborted = e
                logger.error("%s", e)

            node_report.receipts = self._receipts[first_receipt:]
            report.nodes.append(node_report)

            if node_report.aborted is not None and self._break_on_error:
                report.skipped_nodes = [t.node.name for t in task_lists[index + 1:]]
                if report.skipped_nodes:
                    logger.error(
                        "Break on error: not delivering to %s",
                        ", ".join(report.skipped_nodes),
                    )
                break

        return report
