"""
Diagnostics — warnings and errors collected while preparing a delivery.

The sink is append-only. Any ``error`` diagnostic present after tree
construction or filtering stops the run before a single task executes;
``warn`` diagnostics are always reported and never fatal.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Literal

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Diagnostic(BaseModel):
    """A single warning or error, attributed to what caused it."""

    level: Literal["warn", "error"]
    message: str
    domain: str | None = None
    node: str | None = None
    service: str | None = None
    attribute: str | None = None

    @property
    def is_error(self) -> bool:
        return self.level == "error"


class Diagnostics:
    """Append-only diagnostics sink."""

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def append(self, diagnostic: Diagnostic) -> None:
        self._items.append(diagnostic)
        logger.debug("[%s] %s", diagnostic.level, diagnostic.message)

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.append(diagnostic)

    def warn(self, message: str, **attribution: str | None) -> Diagnostic:
        diagnostic = Diagnostic(level="warn", message=message, **attribution)
        self.append(diagnostic)
        return diagnostic

    def error(self, message: str, **attribution: str | None) -> Diagnostic:
        diagnostic = Diagnostic(level="error", message=message, **attribution)
        self.append(diagnostic)
        return diagnostic

    @property
    def items(self) -> list[Diagnostic]:
        return list(self._items)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.level == "error"]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._items if d.level == "warn"]

    @property
    def has_errors(self) -> bool:
        return any(d.level == "error" for d in self._items)

    def to_list(self) -> list[dict]:
        return [d.model_dump(exclude_none=True) for d in self._items]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)
