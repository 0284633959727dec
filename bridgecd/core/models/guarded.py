"""
Guarded values — attribute candidates with applicability constraints.

Every service attribute (a setting, a preference, a deployment option)
is declared as an ordered list of candidates. Each candidate carries
three guards — domain, label, node — and a value. An empty guard
matches anything; a non-empty guard is an allow-set.

Accepted YAML shapes for one attribute:

    timeout: 30                       # one universal candidate
    configFile:                       # ordered candidates
      - value: default
        domain: local
      - value: prod.cfg
        domain: [prod]
        label: [primary, backup]
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

GUARD_FIELDS = ("domain", "label", "node")


class GuardedValue(BaseModel):
    """A single candidate value for an attribute."""

    domain: frozenset[str] = Field(default_factory=frozenset)
    label: frozenset[str] = Field(default_factory=frozenset)
    node: frozenset[str] = Field(default_factory=frozenset)
    value: Any = None

    @property
    def specificity(self) -> int:
        """Number of non-wildcard guard dimensions."""
        return sum(1 for name in GUARD_FIELDS if getattr(self, name))

    @property
    def is_universal(self) -> bool:
        return self.specificity == 0


def make_string_set(value: Any) -> frozenset[str]:
    """Normalize a guard field: None, a string or a list of strings."""
    if value is None:
        return frozenset()
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(str(v) for v in value)
    return frozenset([str(value)])


def normalize_guarded_value(raw: Any) -> GuardedValue:
    """Bring one candidate to its canonical form.

    A scalar becomes a universal candidate. A mapping is a guard object;
    unknown keys are ignored, a missing ``value`` is an error.
    """
    if isinstance(raw, GuardedValue):
        return raw

    if isinstance(raw, dict):
        if "value" not in raw:
            raise ValueError(
                f"Guarded value {raw!r} has no 'value' field"
            )
        return GuardedValue(
            domain=make_string_set(raw.get("domain")),
            label=make_string_set(raw.get("label")),
            node=make_string_set(raw.get("node")),
            value=raw["value"],
        )

    return GuardedValue(value=raw)


def normalize_guarded_values(raw: Any) -> list[GuardedValue]:
    """Normalize one attribute into its ordered candidate list."""
    if isinstance(raw, list):
        return [normalize_guarded_value(v) for v in raw]
    return [normalize_guarded_value(raw)]


def normalize_attribute_map(raw: Any) -> dict[str, list[GuardedValue]]:
    """Normalize a settings/preferences/deployment-options mapping."""
    if not raw:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected a mapping of attribute names, got {type(raw).__name__}"
        )
    return {str(key): normalize_guarded_values(value) for key, value in raw.items()}
