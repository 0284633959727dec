"""
Configuration loader — reads delivery.yml into the configuration model.

This is the primary entry point for loading a delivery project. It
reads YAML, validates against the Pydantic schemas, and returns a
typed DeliveryConfiguration. Any failure surfaces as a single
ConfigError before the engine runs.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from bridgecd.core.models.configuration import DeliveryConfiguration

logger = logging.getLogger(__name__)

# Default config filename
DELIVERY_CONFIG_FILE = "delivery.yml"


class ConfigError(Exception):
    """Raised when delivery configuration is invalid or missing."""


def find_project_file(start_dir: Path | None = None) -> Path | None:
    """Search for delivery.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to delivery.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / DELIVERY_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def resolve_config_path(path: Path | None) -> Path:
    """Turn a project root, a config file or None into a config file path.

    Raises:
        ConfigError: If no configuration file can be found.
    """
    if path is None:
        found = find_project_file()
        if found is None:
            raise ConfigError(f"No {DELIVERY_CONFIG_FILE} found.")
        return found

    if path.is_dir():
        path = path / DELIVERY_CONFIG_FILE

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    return path


def _format_validation_error(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        message = item["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        lines.append(f"{location}: {message}" if location else message)
    return "; ".join(lines)


def load_configuration(path: Path | None = None) -> DeliveryConfiguration:
    """Load and validate delivery configuration.

    Service repositories are resolved against the ``repositories``
    directory next to the configuration file.

    Args:
        path: Project root or explicit path to delivery.yml. If None,
            searches upward from the current directory.

    Returns:
        Validated DeliveryConfiguration.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    path = resolve_config_path(path)
    logger.debug("Loading delivery config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        configuration = DeliveryConfiguration.model_validate(
            data,
            context={"project_root": path.parent.resolve()},
        )
    except ValidationError as e:
        raise ConfigError(
            f"Invalid delivery configuration: {_format_validation_error(e)}"
        ) from e

    logger.info(
        "Loaded %d domains, %d nodes, %d solutions, %d services from %s",
        len(configuration.domains),
        len(configuration.nodes),
        len(configuration.solutions),
        len(configuration.services),
        path,
    )
    return configuration
