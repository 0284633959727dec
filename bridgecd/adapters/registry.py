"""
Bridge registry — named Bridge factories.

The CLI picks the Bridge implementation by name. ``mock`` is always
available; real clients are contributed by installed packages through
the ``bridgecd.bridges`` entry-point group, each entry point loading to
a ``BridgeConnection -> Bridge`` factory.
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points

from bridgecd.adapters.base import BridgeFactory
from bridgecd.adapters.mock import MockBridgeFactory

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "bridgecd.bridges"


class BridgeRegistry:
    """Central registry of Bridge factories."""

    def __init__(self, with_mock: bool = True):
        self._factories: dict[str, BridgeFactory] = {}
        if with_mock:
            self.register("mock", MockBridgeFactory())

    def register(self, name: str, factory: BridgeFactory) -> None:
        """Register a factory under a name."""
        if name in self._factories:
            logger.warning("Overwriting existing bridge factory: %s", name)
        self._factories[name] = factory
        logger.debug("Registered bridge factory: %s", name)

    def unregister(self, name: str) -> None:
        self._factories.pop(name, None)

    def get(self, name: str) -> BridgeFactory | None:
        """Look up a factory by name."""
        return self._factories.get(name)

    def list_bridges(self) -> list[str]:
        return list(self._factories.keys())

    def load_entry_points(self, group: str = ENTRY_POINT_GROUP) -> int:
        """Register every factory advertised by installed packages.

        Entry points that fail to load are logged and skipped.

        Returns:
            Number of factories registered.
        """
        count = 0
        for ep in entry_points(group=group):
            try:
                factory = ep.load()
            except Exception as e:
                logger.error("Cannot load bridge '%s' (%s): %s", ep.name, ep.value, e)
                continue
            self.register(ep.name, factory)
            count += 1
        return count


def default_registry() -> BridgeRegistry:
    """Registry with the mock bridge plus all installed bridges."""
    registry = BridgeRegistry()
    registry.load_entry_points()
    return registry
