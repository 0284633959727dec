"""
Bridge base — the protocol contract between the orchestrator and a Bridge.

A Bridge is the remote service-management endpoint of one node. The
orchestrator only talks to it through this interface; the network
client behind it (and any retry or timeout policy) is provided by the
implementation.

To plug in a Bridge client:
    1. Subclass Bridge and implement the four operations
    2. Provide a factory ``BridgeConnection -> Bridge``
    3. Register the factory in the BridgeRegistry
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, Field

SERVICE_STATUSES = ("start", "stop", "kill")


class BridgeConnection(BaseModel):
    """Where and as whom to reach the Bridge of a node."""

    node: str
    host: str = "localhost"
    port: int = 8080
    user: str | None = None
    password: str | None = Field(default=None, repr=False)

    @property
    def url(self) -> str:
        return f"https://{self.host}:{self.port}"


class BridgeError(Exception):
    """A remote operation failed.

    Attributes:
        operation: The operation that failed (deploy, settings, ...).
        error_type: Error category reported by the Bridge, if any.
        details: Structured payload of the failure, if any.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        error_type: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def __str__(self) -> str:
        if self.error_type:
            return f"{self.operation}: [{self.error_type}] {self.message}"
        return f"{self.operation}: {self.message}"


class Bridge(ABC):
    """Abstract remote-operation interface of one node.

    Every operation either completes or raises BridgeError.
    """

    def __init__(self, connection: BridgeConnection):
        self.connection = connection

    @abstractmethod
    async def deploy_service(self, repository: str, options: dict[str, Any]) -> Any:
        """Upload and deploy a repository artifact."""

    @abstractmethod
    async def set_service_settings(
        self, service: str, kind: str, settings: dict[str, Any]
    ) -> Any:
        """Replace the given settings of a deployed service."""

    @abstractmethod
    async def set_service_preferences(
        self, service: str, kind: str, preferences: dict[str, Any]
    ) -> Any:
        """Replace the given preferences of a deployed service."""

    @abstractmethod
    async def set_service_status(self, status: str, service: str, kind: str) -> Any:
        """Change the run status of a service ('start', 'stop', 'kill')."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} node={self.connection.node!r}>"


BridgeFactory = Callable[[BridgeConnection], Bridge]
