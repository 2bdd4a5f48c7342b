"""Constraint Evaluation Engine

Runs every constraint of every field once, up front, then decides how the
call is delivered:

- no constraint returned an awaitable: each field reports its first message
  in declared order and the result dict is returned directly;
- any constraint returned an awaitable: every field waits for all of its
  outcomes, reports the first message in declared order (not completion
  order), and the call returns a single awaitable of the result dict.

Constraint exceptions are not caught here. They propagate out of the call,
synchronously or through the returned awaitable.
"""
from __future__ import annotations

import asyncio
import inspect
from types import MappingProxyType
from typing import Any, Awaitable, Iterable, Mapping, overload

from fieldcheck.config import get_settings
from fieldcheck.logging import engine_logger

from .normalizer import normalize_spec
from .outcomes import discard, read_outcome
from .types import (
    AsyncConstraintSpec,
    AsyncValidatorFn,
    Constraint,
    ConstraintSpec,
    Deferred,
    Fields,
    Immediate,
    Message,
    Outcome,
    SyncValidatorFn,
    ValidationMode,
    ValidationResult,
)

log = engine_logger()


# ============================================================================
# Eager invocation & mode detection
# ============================================================================

def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _tag(key: str, value: Any, loop: asyncio.AbstractEventLoop | None) -> Outcome:
    if not inspect.isawaitable(value):
        return Immediate(value, key)
    # Start coroutines now so their side effects begin at invocation time
    if loop is not None and asyncio.iscoroutine(value):
        value = loop.create_task(value)
    return Deferred(value, key)


def invoke_all(
    fields: Fields,
    constraints: Mapping[str, tuple[Constraint, ...]],
) -> dict[str, list[Outcome]]:
    """Invoke every constraint for every field exactly once, in declared order.

    A constraint that raises aborts the call; awaitables already collected
    are released first.
    """
    loop = _running_loop()
    outcomes: dict[str, list[Outcome]] = {}
    try:
        for key, field_constraints in constraints.items():
            field_outcomes = outcomes[key] = []
            for constraint in field_constraints:
                field_outcomes.append(_tag(key, constraint(key, fields.get(key), fields), loop))
    except Exception:
        release_pending(outcomes)
        raise
    return outcomes


def release_pending(outcomes: Mapping[str, list[Outcome]]) -> None:
    for field_outcomes in outcomes.values():
        for outcome in field_outcomes:
            if isinstance(outcome, Deferred):
                discard(outcome.awaitable)


def detect_mode(outcomes: Mapping[str, list[Outcome]]) -> ValidationMode:
    """ASYNC as soon as a single outcome anywhere is deferred."""
    for field_outcomes in outcomes.values():
        if any(isinstance(outcome, Deferred) for outcome in field_outcomes):
            return ValidationMode.ASYNC
    return ValidationMode.SYNC


# ============================================================================
# Selection
# ============================================================================

def select_first_message(messages: Iterable[Message]) -> Message:
    return next((message for message in messages if message), None)


def select_sync(outcomes: list[Outcome]) -> Message:
    """First message in declared order; later outcomes are never read."""
    return select_first_message(read_outcome(o.key, o.value) for o in outcomes)


async def _settle(outcome: Outcome) -> Message:
    if isinstance(outcome, Deferred):
        return read_outcome(outcome.key, await outcome.awaitable)
    return read_outcome(outcome.key, outcome.value)


async def settle_field(outcomes: list[Outcome]) -> Message:
    """Wait for all of a field's outcomes, then pick by declared order."""
    settled = await asyncio.gather(*(_settle(outcome) for outcome in outcomes))
    return select_first_message(settled)


# ============================================================================
# Validator
# ============================================================================

def _read_only(fields: Fields) -> Fields:
    return MappingProxyType(fields) if isinstance(fields, dict) else fields


class Validator:
    """Validator bound to a normalized constraint spec.

    Usage:
        validate_signup = Validator({
            "email": [is_string, RegexPattern(r".+@.+\\..+")],
            "age": greater_than(17),
        })
        errors = validate_signup({"email": "bob@acme.co", "age": 30})
    """

    __slots__ = ("constraints",)

    def __init__(self, constraints: ConstraintSpec | AsyncConstraintSpec):
        self.constraints = normalize_spec(constraints)

    def __call__(self, fields: Fields) -> ValidationResult | Awaitable[ValidationResult]:
        view = _read_only(fields)
        log.debug("validation_started", field_keys=list(self.constraints))

        outcomes = invoke_all(view, self.constraints)
        mode = detect_mode(outcomes)
        log.debug(
            "validation_mode_detected",
            mode=mode.value,
            deferred=sum(isinstance(o, Deferred) for outs in outcomes.values() for o in outs),
        )

        if mode is ValidationMode.SYNC:
            return self._finish({key: select_sync(outs) for key, outs in outcomes.items()})
        return self._aggregate_async(outcomes)

    async def _aggregate_async(self, outcomes: dict[str, list[Outcome]]) -> ValidationResult:
        try:
            messages = await asyncio.gather(*(settle_field(outs) for outs in outcomes.values()))
        except Exception:
            release_pending(outcomes)
            raise
        return self._finish(dict(zip(outcomes, messages)))

    @staticmethod
    def _finish(results: ValidationResult) -> ValidationResult:
        if get_settings().LOG_OUTCOMES:
            for key, message in results.items():
                log.debug("field_selected", field=key, message=message)
        log.debug(
            "validation_completed",
            failed=[key for key, message in results.items() if message],
        )
        return results


@overload
def make_validator(constraints: ConstraintSpec) -> SyncValidatorFn: ...


@overload
def make_validator(constraints: AsyncConstraintSpec) -> AsyncValidatorFn: ...


def make_validator(constraints):
    """Bind a constraint spec, failing fast on configuration errors."""
    return Validator(constraints)


@overload
def validate(fields: Fields, constraints: ConstraintSpec) -> ValidationResult: ...


@overload
def validate(fields: Fields, constraints: AsyncConstraintSpec) -> Awaitable[ValidationResult]: ...


def validate(fields, constraints):
    """Validate ``fields`` against ``constraints`` in a single call.

    Returns the result dict, or an awaitable of it when any constraint
    returned an awaitable.
    """
    return Validator(constraints)(fields)

