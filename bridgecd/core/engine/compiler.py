"""
Task list compiler — filtered delivery tree → per-node task lists.

Per service the sequence is, in this order:
    deploy       if a repository is resolved
    settings     if the resolved settings are not empty
    preferences  if the resolved preferences are not empty
    start        always
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from bridgecd.core.engine.options import normalize_deployment_options
from bridgecd.core.models.configuration import Node
from bridgecd.core.models.task import Task, TaskList
from bridgecd.core.models.tree import DeliveryTree, ResolvedService

logger = logging.getLogger(__name__)


def compile_service_tasks(service: ResolvedService) -> list[Task]:
    """Build the ordered task sequence of one resolved service."""
    tasks: list[Task] = []

    if service.repository:
        tasks.append(Task(
            type="deploy",
            service=service.name,
            kind=service.kind,
            params={
                "repository": service.repository,
                "options": normalize_deployment_options(service.deployment_options),
            },
        ))

    if service.settings:
        tasks.append(Task(
            type="settings",
            service=service.name,
            kind=service.kind,
            params={"settings": dict(service.settings)},
        ))

    if service.preferences:
        tasks.append(Task(
            type="preferences",
            service=service.name,
            kind=service.kind,
            params={"preferences": dict(service.preferences)},
        ))

    tasks.append(Task(type="start", service=service.name, kind=service.kind))
    return tasks


def compile_task_lists(tree: DeliveryTree, nodes: Mapping[str, Node]) -> list[TaskList]:
    """Compile one TaskList per node present in the tree, in tree order.

    Args:
        tree: A (usually filtered) delivery tree.
        nodes: Node configuration by name (connection details).

    Returns:
        Task lists in traversal order.

    Raises:
        KeyError: If the tree names a node missing from ``nodes``.
    """
    task_lists: list[TaskList] = []

    for domain, node_branch in tree.iter_nodes():
        node = nodes[node_branch.name]
        task_list = TaskList(node=node, domain=domain.name)
        for _, service in node_branch.iter_services():
            task_list.service_tasks.append(compile_service_tasks(service))
        task_lists.append(task_list)
        logger.debug(
            "Compiled %d tasks for %d services on node '%s'",
            task_list.total_tasks, len(task_list.service_tasks), node.name,
        )

    return task_lists
