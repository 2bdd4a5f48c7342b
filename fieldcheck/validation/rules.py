"""Compositional Rule Library

Ready-made constraints. Every rule is a frozen dataclass callable as
``rule(key, value, fields)`` and returns a message or None, so rules drop
straight into a constraint spec.

Rules combine via operators:
- & (AND): first failure wins (short-circuit)
- | (OR): passes if either passes
- ~ (NOT): negates the rule

Combinators read sub-results the way the engine does, so Ok/Err outcomes
combine too. They are synchronous: combine immediate constraints and apply
``deferred(rule)`` to the result to make it async.
"""
from __future__ import annotations

import inspect
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Callable

from .errors import ConfigurationError
from .outcomes import discard, read_outcome
from .types import Constraint, Fields, Message


class Rule(ABC):
    """Base class for rules.

    Subclasses implement ``check``; ``__call__`` makes the rule a constraint.
    """

    @abstractmethod
    def check(self, key: str, value: Any, fields: Fields) -> Message:
        """Return a message when ``value`` is invalid, None otherwise."""

    @property
    @abstractmethod
    def constraint_name(self) -> str:
        """Human-readable constraint name."""

    def __call__(self, key: str, value: Any, fields: Fields) -> Message:
        return self.check(key, value, fields)

    def __and__(self, other: Rule) -> AllOf: return AllOf(self, other)

    def __or__(self, other: Rule) -> AnyOf: return AnyOf(self, other)

    def __invert__(self) -> Not: return Not(self)

    def with_message(self, message: str) -> WithMessage: return WithMessage(self, message)


# ============================================================================
# Type & Equality Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class IsType(Rule):
    """Value is an instance of ``expected``; bools never count as numbers."""
    expected: type | tuple[type, ...]
    name: str

    @property
    def constraint_name(self) -> str:
        return self.name

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        if isinstance(value, bool) and bool not in _as_tuple(self.expected):
            return f"Expected a {self.name}"
        if not isinstance(value, self.expected):
            return f"Expected a {self.name}"
        return None


def _as_tuple(expected: type | tuple[type, ...]) -> tuple[type, ...]:
    return expected if isinstance(expected, tuple) else (expected,)


is_string = IsType(str, "string")
is_number = IsType((int, float), "number")
is_bool = IsType(bool, "boolean")


@dataclass(frozen=True, slots=True)
class EqualTo(Rule):
    expected: Any

    @property
    def constraint_name(self) -> str:
        return f"equal_to[{self.expected!r}]"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        if value == self.expected:
            return None
        return f"Expected {value} to equal {self.expected}"


@dataclass(frozen=True, slots=True)
class MatchesField(Rule):
    """Value equals the value of a sibling field (e.g. password confirmation)."""
    other: str
    message: str | None = None

    @property
    def constraint_name(self) -> str:
        return f"matches_field[{self.other}]"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        if value == fields.get(self.other):
            return None
        return self.message or f"Expected {key} to match {self.other}"


# ============================================================================
# Numeric Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class GreaterThan(Rule):
    bound: Any

    @property
    def constraint_name(self) -> str:
        return f"gt[{self.bound}]"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        try:
            if value > self.bound:
                return None
        except TypeError:
            pass
        return f"Expected {value} to be greater than {self.bound}"


@dataclass(frozen=True, slots=True)
class LessThan(Rule):
    bound: Any

    @property
    def constraint_name(self) -> str:
        return f"lt[{self.bound}]"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        try:
            if value < self.bound:
                return None
        except TypeError:
            pass
        return f"Expected {value} to be less than {self.bound}"


@dataclass(frozen=True, slots=True)
class DivisibleBy(Rule):
    divisor: int | float

    def __post_init__(self):
        if self.divisor == 0:
            raise ValueError("divisor must be non-zero")

    @property
    def constraint_name(self) -> str:
        return f"divisible_by[{self.divisor}]"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        try:
            if value % self.divisor == 0:
                return None
        except TypeError:
            pass
        return f"Expected {value} to be divisible by {self.divisor}"


# ============================================================================
# String Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class StringLength(Rule):
    """Validate string length constraints."""
    min_length: int | None = None
    max_length: int | None = None

    @property
    def constraint_name(self) -> str:
        if self.min_length and self.max_length:
            return f"length[{self.min_length},{self.max_length}]"
        if self.min_length:
            return f"min_length[{self.min_length}]"
        if self.max_length:
            return f"max_length[{self.max_length}]"
        return "string_length"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        if not isinstance(value, str):
            return f"Expected string, got {type(value).__name__}"

        length = len(value)

        if self.min_length is not None and length < self.min_length:
            return f"Expected {key} to be at least {self.min_length} characters"

        if self.max_length is not None and length > self.max_length:
            return f"Expected {key} to be at most {self.max_length} characters"

        return None


@dataclass(frozen=True, slots=True)
class NonEmpty(Rule):
    """Validate that string is not empty or whitespace-only."""
    strip_whitespace: bool = True

    @property
    def constraint_name(self) -> str:
        return "non_empty"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        if not isinstance(value, str):
            return f"Expected string, got {type(value).__name__}"
        check_value = value.strip() if self.strip_whitespace else value
        return None if check_value else f"Expected {key} to be non-empty"


@dataclass(frozen=True)
class RegexPattern(Rule):
    """Validate string against regex pattern."""
    pattern: str
    flags: int = 0
    description: str | None = None

    @cached_property
    def _compiled(self) -> re.Pattern:
        return re.compile(self.pattern, self.flags)

    @property
    def constraint_name(self) -> str:
        return self.description or f"pattern[{self.pattern}]"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        if not isinstance(value, str):
            return f"Expected string, got {type(value).__name__}"
        if not self._compiled.match(value):
            return f"Value does not match pattern: {self.description or self.pattern}"
        return None


@dataclass(frozen=True, slots=True)
class OneOf(Rule):
    """Value must be one of the allowed values."""
    choices: tuple[Any, ...]

    def __init__(self, *choices: Any):
        object.__setattr__(self, "choices", tuple(choices))

    @property
    def constraint_name(self) -> str:
        return f"one_of[{', '.join(repr(c) for c in self.choices)}]"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        if value in self.choices:
            return None
        return f"Expected {value} to be one of: {', '.join(str(c) for c in self.choices)}"


# ============================================================================
# Combinators
# ============================================================================

@dataclass(frozen=True, slots=True)
class AllOf(Rule):
    """All rules must pass; reports the first failure."""
    rules: tuple[Constraint, ...]

    def __init__(self, *rules: Constraint):
        object.__setattr__(self, "rules", tuple(rules))

    @property
    def constraint_name(self) -> str:
        return f"all_of[{', '.join(_name_of(r) for r in self.rules)}]"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        for rule in self.rules:
            if message := _evaluate(self, rule, key, value, fields):
                return message
        return None

    def __and__(self, other: Rule) -> AllOf: return AllOf(*self.rules, other)


@dataclass(frozen=True, slots=True)
class AnyOf(Rule):
    """At least one rule must pass."""
    rules: tuple[Constraint, ...]

    def __init__(self, *rules: Constraint):
        object.__setattr__(self, "rules", tuple(rules))

    @property
    def constraint_name(self) -> str:
        return f"any_of[{', '.join(_name_of(r) for r in self.rules)}]"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        messages = []
        for rule in self.rules:
            if not (message := _evaluate(self, rule, key, value, fields)):
                return None
            messages.append(message)
        return f"No constraint satisfied: {'; '.join(messages)}"

    def __or__(self, other: Rule) -> AnyOf: return AnyOf(*self.rules, other)


@dataclass(frozen=True, slots=True)
class Not(Rule):
    """NOT combinator: negates a rule."""
    rule: Constraint
    message: str | None = None

    @property
    def constraint_name(self) -> str:
        return f"NOT({_name_of(self.rule)})"

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        if _evaluate(self, self.rule, key, value, fields):
            return None
        return self.message or f"Value should not satisfy: {_name_of(self.rule)}"


@dataclass(frozen=True, slots=True)
class WithMessage(Rule):
    """Wrapper to override error message."""
    rule: Constraint
    message: str

    @property
    def constraint_name(self) -> str:
        return _name_of(self.rule)

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        return self.message if _evaluate(self, self.rule, key, value, fields) else None


def _name_of(constraint: Constraint) -> str:
    return getattr(constraint, "constraint_name", None) or getattr(constraint, "__name__", "constraint")


def _evaluate(combinator: Rule, constraint: Constraint, key: str, value: Any, fields: Fields) -> Message:
    """Run one combined constraint and read its outcome as a message.

    Combinators are synchronous: an awaitable outcome is discarded and
    rejected. Wrap the combined rule with deferred() instead.
    """
    outcome = constraint(key, value, fields)
    if inspect.isawaitable(outcome):
        discard(outcome)
        raise ConfigurationError(
            key,
            constraint,
            f"{type(combinator).__name__} cannot combine async constraint {_name_of(constraint)}; "
            "apply deferred() to the combined rule instead",
            origin="rules",
        )
    return read_outcome(key, outcome)


# ============================================================================
# Custom & Deferred Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class CustomRule(Rule):
    """Rule from a plain ``(key, value, fields)`` function.

    Exceptions raised by the function propagate; wrap with guarded() to turn
    them into messages.
    """
    fn: Callable[[str, Any, Fields], Message]
    name: str = "custom"

    @property
    def constraint_name(self) -> str:
        return self.name

    def check(self, key: str, value: Any, fields: Fields) -> Message:
        return self.fn(key, value, fields)


def rule(name: str) -> Callable[[Callable[[str, Any, Fields], Message]], CustomRule]:
    """Decorator to create a rule from a function.

    Usage:
        @rule("even")
        def is_even(key, value, fields):
            return None if value % 2 == 0 else f"Expected {key} to be even"
    """
    return lambda fn: CustomRule(fn, name=name)


@dataclass(frozen=True, slots=True)
class DeferredRule:
    """Async form of an immediate constraint.

    Calling it returns a coroutine, which puts the whole validation call on the
    asynchronous path.
    """
    rule: Constraint

    @property
    def constraint_name(self) -> str:
        return f"deferred[{_name_of(self.rule)}]"

    def __call__(self, key: str, value: Any, fields: Fields):
        return self._run(key, value, fields)

    async def _run(self, key: str, value: Any, fields: Fields) -> Message:
        return self.rule(key, value, fields)


def deferred(constraint: Constraint) -> DeferredRule:
    return DeferredRule(constraint)


# ============================================================================
# Factories
# ============================================================================

def equal_to(expected: Any) -> EqualTo:
    return EqualTo(expected)


def greater_than(bound: Any) -> GreaterThan:
    return GreaterThan(bound)


def less_than(bound: Any) -> LessThan:
    return LessThan(bound)


def divisible_by(divisor: int | float) -> DivisibleBy:
    return DivisibleBy(divisor)


def matches_field(other: str, message: str | None = None) -> MatchesField:
    return MatchesField(other, message)
