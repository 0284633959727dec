"""
Credential providers — supply Bridge user and password for a node.

Nodes may omit credentials in delivery.yml. Before any task runs on
such a node (outside dry runs) the orchestrator asks a provider. The
run blocks only at this boundary.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import click
from pydantic import BaseModel, Field

from bridgecd.core.models.configuration import Node


class Credentials(BaseModel):
    user: str
    password: str = Field(repr=False)


class CredentialProvider(ABC):
    """Source of credentials for nodes that declare none."""

    @abstractmethod
    async def acquire(self, node: Node) -> Credentials:
        """Return credentials for the node."""


class StaticCredentialProvider(CredentialProvider):
    """The same user and password for every node."""

    def __init__(self, user: str, password: str):
        self._credentials = Credentials(user=user, password=password)

    async def acquire(self, node: Node) -> Credentials:
        return self._credentials


class PromptCredentialProvider(CredentialProvider):
    """Ask on the terminal, password masked.

    Values given up front (e.g. ``--user`` on the command line) are
    not asked for again. Nodes are processed one at a time, so prompts
    never interleave. With ``err`` set, prompts go to stderr so stdout
    stays machine-readable.
    """

    def __init__(
        self,
        user: str | None = None,
        password: str | None = None,
        err: bool = False,
    ):
        self._user = user
        self._password = password
        self._err = err

    async def acquire(self, node: Node) -> Credentials:
        user = node.user or self._user
        password = node.password or self._password
        label = f"Bridge {node.name} ({node.host}:{node.port})"
        if user is None:
            user = click.prompt(f"{label} user", err=self._err)
        if password is None:
            password = click.prompt(
                f"{label} password for {user}", hide_input=True, err=self._err
            )
        return Credentials(user=user, password=password)
