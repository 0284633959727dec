"""Adapters — Bridge bindings and credential sources.

Public re-exports for convenient access.
"""

from bridgecd.adapters.base import Bridge, BridgeConnection, BridgeError, BridgeFactory
from bridgecd.adapters.credentials import (
    CredentialProvider,
    Credentials,
    PromptCredentialProvider,
    StaticCredentialProvider,
)
from bridgecd.adapters.mock import BridgeCall, MockBridge, MockBridgeFactory
from bridgecd.adapters.registry import BridgeRegistry, default_registry

__all__ = [
    "Bridge",
    "BridgeCall",
    "BridgeConnection",
    "BridgeError",
    "BridgeFactory",
    "BridgeRegistry",
    "CredentialProvider",
    "Credentials",
    "MockBridge",
    "MockBridgeFactory",
    "PromptCredentialProvider",
    "StaticCredentialProvider",
    "default_registry",
]
