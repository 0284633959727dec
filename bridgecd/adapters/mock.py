"""
Mock Bridge — test double for all remote operations.

Used for ``--bridge mock`` runs and in tests. Every call is recorded in
a log shared by all bridges of one MockBridgeFactory, so a whole
multi-node run can be inspected afterwards. Calls succeed unless a
failure was configured for the (operation, service) pair.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from bridgecd.adapters.base import SERVICE_STATUSES, Bridge, BridgeConnection, BridgeError


@dataclass
class BridgeCall:
    """One recorded remote call."""

    node: str
    operation: str
    service: str
    args: dict[str, Any] = field(default_factory=dict)


class MockBridge(Bridge):
    """Mock Bridge that records calls and succeeds by default."""

    def __init__(
        self,
        connection: BridgeConnection,
        call_log: list[BridgeCall] | None = None,
        failures: dict[tuple[str, str], str] | None = None,
        delay: float = 0.0,
    ):
        super().__init__(connection)
        self._call_log = call_log if call_log is not None else []
        self._failures = failures if failures is not None else {}
        self._delay = delay

    @property
    def call_log(self) -> list[BridgeCall]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def set_failure(self, operation: str, service: str, error: str = "Mock failure") -> None:
        """Configure an operation on a service to fail."""
        self._failures[(operation, service)] = error

    async def _call(self, operation: str, service: str, **args: Any) -> dict[str, Any]:
        self._call_log.append(BridgeCall(
            node=self.connection.node,
            operation=operation,
            service=service,
            args=args,
        ))
        # Always yield so concurrent sequences interleave like real I/O.
        await asyncio.sleep(self._delay)

        error = self._failures.get((operation, service))
        if error is not None:
            raise BridgeError(operation, error, error_type="Mock")
        return {"mock": True, "operation": operation, "service": service}

    async def deploy_service(self, repository: str, options: dict[str, Any]) -> Any:
        # The Bridge derives the service name from the repository file.
        service = repository.replace("\\", "/").rsplit("/", 1)[-1].rsplit(".", 1)[0]
        return await self._call("deploy", service, repository=repository, options=options)

    async def set_service_settings(
        self, service: str, kind: str, settings: dict[str, Any]
    ) -> Any:
        return await self._call("settings", service, kind=kind, settings=settings)

    async def set_service_preferences(
        self, service: str, kind: str, preferences: dict[str, Any]
    ) -> Any:
        return await self._call("preferences", service, kind=kind, preferences=preferences)

    async def set_service_status(self, status: str, service: str, kind: str) -> Any:
        if status not in SERVICE_STATUSES:
            raise BridgeError(status, f"Unknown service status '{status}'", error_type="Mock")
        return await self._call(status, service, kind=kind)


class MockBridgeFactory:
    """Creates MockBridges sharing one call log and one failure table."""

    def __init__(self, delay: float = 0.0):
        self.call_log: list[BridgeCall] = []
        self.failures: dict[tuple[str, str], str] = {}
        self.connections: list[BridgeConnection] = []
        self._delay = delay

    def __call__(self, connection: BridgeConnection) -> MockBridge:
        self.connections.append(connection)
        return MockBridge(
            connection,
            call_log=self.call_log,
            failures=self.failures,
            delay=self._delay,
        )

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def set_failure(self, operation: str, service: str, error: str = "Mock failure") -> None:
        """Configure an operation on a service to fail on every node."""
        self.failures[(operation, service)] = error

    def calls_for(self, node: str) -> list[BridgeCall]:
        return [c for c in self.call_log if c.node == node]

    def reset(self) -> None:
        """Clear call log and configured failures."""
        self.call_log.clear()
        self.failures.clear()
        self.connections.clear()
