"""Constraint and Outcome Types

Type aliases for the public call shapes plus the tagged outcome the engine
works with internally. Constraints receive ``(key, value, fields)`` and return
``None``/``""`` for "no error", a message string, a Result, or an awaitable of
any of those.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Sequence, TypeVar, Union

from fieldcheck.errors import Result

T = TypeVar("T")

Fields = Mapping[str, Any]

Message = Union[str, None]

FieldOutcome = Union[Message, Result[Any, Any]]

Constraint = Callable[[str, Any, Fields], FieldOutcome]

AsyncConstraint = Callable[[str, Any, Fields], Awaitable[FieldOutcome]]

ConstraintEntry = Union[Constraint, Sequence[Constraint]]

AsyncConstraintEntry = Union[
    AsyncConstraint,
    Sequence[Union[AsyncConstraint, Constraint]],
]

ConstraintSpec = Mapping[str, ConstraintEntry]

AsyncConstraintSpec = Mapping[str, AsyncConstraintEntry]

ValidationResult = dict[str, Message]


class ValidationMode(str, Enum):
    """Delivery mode decided once per validation call."""
    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True, slots=True)
class Immediate:
    """Outcome that was available as soon as the constraint returned."""
    value: Any
    key: str


@dataclass(frozen=True, slots=True)
class Deferred:
    """Outcome still pending; settles to a value of the same kinds as Immediate."""
    awaitable: Awaitable[Any]
    key: str


Outcome = Union[Immediate, Deferred]

SyncValidatorFn = Callable[[Fields], ValidationResult]

AsyncValidatorFn = Callable[[Fields], Awaitable[ValidationResult]]
