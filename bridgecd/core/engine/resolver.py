"""
Value resolver — pick the guarded candidate that applies to a context.

Algorithm for one attribute:
    1. Keep the candidates whose non-empty guards all admit the context
       (domain and node by membership, labels by intersection).
    2. Nothing left → NoMatchingValue; the attribute is omitted.
    3. Rank by specificity (number of non-empty guards), keep the best.
    4. Ties are broken by declaration order. Tied candidates with a
       different value are reported as conflicts; the caller turns them
       into ``warn`` diagnostics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from bridgecd.core.models.diagnostics import Diagnostic
from bridgecd.core.models.guarded import GuardedValue

logger = logging.getLogger(__name__)


class NoMatchingValue(LookupError):
    """Raised when no candidate of an attribute matches the context."""


@dataclass(frozen=True)
class ResolutionContext:
    """The concrete (domain, node, labels) a value is resolved for."""

    domain: str
    node: str
    labels: frozenset[str] = frozenset()


@dataclass
class Resolution:
    """Outcome of resolving one attribute."""

    value: Any
    candidate: GuardedValue
    conflicts: list[GuardedValue] = field(default_factory=list)


def matches(candidate: GuardedValue, context: ResolutionContext) -> bool:
    """Check whether every non-empty guard of a candidate admits the context."""
    if candidate.domain and context.domain not in candidate.domain:
        return False
    if candidate.node and context.node not in candidate.node:
        return False
    if candidate.label and not (candidate.label & context.labels):
        return False
    return True


def same_value(a: Any, b: Any) -> bool:
    """Equality that also requires the same type, so True != 1 != 1.0."""
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(same_value(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(same_value(x, y) for x, y in zip(a, b))
    return a == b


def resolve(candidates: list[GuardedValue], context: ResolutionContext) -> Resolution:
    """Pick the single applicable value among ordered candidates.

    Raises:
        NoMatchingValue: If no candidate matches the context.
    """
    matching = [c for c in candidates if matches(c, context)]
    if not matching:
        raise NoMatchingValue(f"No candidate matches {context}")

    best = max(c.specificity for c in matching)
    top = [c for c in matching if c.specificity == best]

    chosen = top[0]
    conflicts = [c for c in top[1:] if not same_value(c.value, chosen.value)]
    return Resolution(value=chosen.value, candidate=chosen, conflicts=conflicts)


def format_value(value: Any) -> str:
    """Render a value the way conflict messages show it."""
    if isinstance(value, str):
        return f"'{value}'"
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, dict):
        inner = ", ".join(f"{k}: {format_value(v)}" for k, v in value.items())
        return f"{{ {inner} }}"
    if isinstance(value, (list, tuple)):
        inner = ", ".join(format_value(v) for v in value)
        return f"[ {inner} ]"
    return str(value)


def conflict_message(
    domain: str,
    service: str,
    attribute: str,
    key: str,
    chosen: Any,
    discarded: Any,
) -> str:
    """Build the warning text for two equally specific, different values."""
    return (
        f"domain '{domain}', service '{service}': '{attribute}': "
        f"choosing {{ {key}: {format_value(chosen)} }} "
        f"over {{ {key}: {format_value(discarded)} }} "
        "even though they both match with the same quality"
    )


def resolve_attributes(
    attributes: dict[str, list[GuardedValue]],
    context: ResolutionContext,
    *,
    service: str,
    attribute: str,
) -> tuple[dict[str, Any], list[Diagnostic]]:
    """Resolve a whole attribute map (e.g. a service's settings).

    Keys without a matching candidate are left out of the result.

    Args:
        attributes: Attribute name → ordered candidates.
        context: Where the values are resolved for.
        service: Owning service name (for diagnostics).
        attribute: Name of the attribute map, e.g. 'settings'.

    Returns:
        (resolved map, warn diagnostics for every conflict).
    """
    resolved: dict[str, Any] = {}
    warnings: list[Diagnostic] = []

    for key, candidates in attributes.items():
        try:
            resolution = resolve(candidates, context)
        except NoMatchingValue:
            logger.debug(
                "%s '%s' of service '%s' has no value for node '%s'",
                attribute, key, service, context.node,
            )
            continue

        resolved[key] = resolution.value
        for discarded in resolution.conflicts:
            warnings.append(Diagnostic(
                level="warn",
                message=conflict_message(
                    context.domain, service, attribute, key,
                    resolution.value, discarded.value,
                ),
                domain=context.domain,
                node=context.node,
                service=service,
                attribute=f"{attribute}.{key}",
            ))

    return resolved, warnings
