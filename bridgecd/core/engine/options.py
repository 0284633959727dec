"""
Deployment options — names accepted in ``deployment_options`` and their
mapping onto the flags a deploy call takes.

    startup                  launch the service after deployment
    overwrite                overwrite an existing service
    settings                 overwrite settings and preferences too
    npm_install              run 'npm install' (Node.js services)
    npm_install_run_scripts  run 'npm install' with scripts (implies npm_install)
    instance_name            deploy under a different instance name
"""

from __future__ import annotations

from typing import Any

DEFAULT_DEPLOYMENT_OPTIONS: dict[str, Any] = {
    "startup": False,
    "overwrite": False,
    "overwrite_settings": False,
    "npm_install": False,
    "npm_install_run_scripts": False,
}

KNOWN_OPTIONS = frozenset({
    "startup",
    "overwrite",
    "settings",
    "overwrite_settings",
    "npm_install",
    "npm_install_run_scripts",
    "instance_name",
})

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})


def unknown_options(names) -> list[str]:
    """Return the option names that are not understood, in given order."""
    return [n for n in names if n not in KNOWN_OPTIONS]


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def normalize_deployment_options(resolved: dict[str, Any]) -> dict[str, Any]:
    """Map resolved option values onto the deploy flags.

    Unknown names are ignored here; the tree builder reports them.
    """
    result = dict(DEFAULT_DEPLOYMENT_OPTIONS)

    for name, value in resolved.items():
        if name in ("startup", "overwrite", "npm_install"):
            result[name] = _flag(value)
        elif name in ("settings", "overwrite_settings"):
            result["overwrite_settings"] = _flag(value)
        elif name == "npm_install_run_scripts":
            result["npm_install_run_scripts"] = _flag(value)
        elif name == "instance_name" and value is not None:
            result["instance_name"] = str(value)

    if result["npm_install_run_scripts"]:
        result["npm_install"] = True

    return result
