"""
Domain models — Pydantic types for the delivery engine.

All models are re-exported here for convenient access:

    from bridgecd.core.models import DeliveryConfiguration, DeliveryTree, Task, Receipt
"""

from bridgecd.core.models.configuration import (
    ATTRIBUTE_MAPS,
    SERVICE_TYPES,
    DeliveryConfiguration,
    Domain,
    Node,
    Service,
    Solution,
)
from bridgecd.core.models.diagnostics import Diagnostic, Diagnostics
from bridgecd.core.models.guarded import (
    GuardedValue,
    normalize_attribute_map,
    normalize_guarded_value,
    normalize_guarded_values,
)
from bridgecd.core.models.task import Receipt, Task, TaskList, TaskType
from bridgecd.core.models.tree import (
    DeliveryTree,
    DomainBranch,
    NodeBranch,
    ResolvedService,
    SolutionBranch,
)

__all__ = [
    # configuration.py
    "ATTRIBUTE_MAPS",
    "SERVICE_TYPES",
    "DeliveryConfiguration",
    "Domain",
    "Node",
    "Service",
    "Solution",
    # diagnostics.py
    "Diagnostic",
    "Diagnostics",
    # guarded.py
    "GuardedValue",
    "normalize_attribute_map",
    "normalize_guarded_value",
    "normalize_guarded_values",
    # task.py
    "Receipt",
    "Task",
    "TaskList",
    "TaskType",
    # tree.py
    "DeliveryTree",
    "DomainBranch",
    "NodeBranch",
    "ResolvedService",
    "SolutionBranch",
]
