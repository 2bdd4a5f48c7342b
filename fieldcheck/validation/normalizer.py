"""Constraint normalization: single constraint or list -> ordered tuple."""
from __future__ import annotations

from typing import Any, Mapping

from .errors import ConfigurationError
from .types import Constraint


def normalize_constraints(key: str, entry: Any) -> tuple[Constraint, ...]:
    """Return the constraints declared for ``key`` as a tuple in author order.

    Raises:
        ConfigurationError: entry is not a callable or a list/tuple of callables.
    """
    if callable(entry):
        return (entry,)
    if not isinstance(entry, (list, tuple)):
        raise ConfigurationError(
            key, entry, f"expected a constraint or a list of constraints, got {type(entry).__name__}"
        )
    for index, constraint in enumerate(entry):
        if not callable(constraint):
            raise ConfigurationError(
                key, entry, f"item {index} is {type(constraint).__name__}, not a constraint"
            )
    return tuple(entry)


def normalize_spec(spec: Mapping[str, Any]) -> dict[str, tuple[Constraint, ...]]:
    """Normalize every entry up front so no constraint runs against a broken spec."""
    if not isinstance(spec, Mapping):
        raise ConfigurationError("$", spec, f"constraint spec must be a mapping, got {type(spec).__name__}")
    return {key: normalize_constraints(key, entry) for key, entry in spec.items()}
