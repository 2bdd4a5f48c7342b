"""Result-encoded validation

Same engine, different delivery: ``Ok(fields)`` when every field passed,
``Err(AppError)`` carrying the full per-field mapping otherwise. Async specs
yield an awaitable of that Result.

Usage:
    check_signup = make_result_validator(SIGNUP_CONSTRAINTS)
    match check_signup(form):
        case Ok(clean):
            create_account(clean)
        case Err(error):
            render_errors(error.metadata["fields"])
"""
from __future__ import annotations

import inspect
from typing import Awaitable, overload

from fieldcheck.errors import AppError, Ok, Result, validation_failed

from .engine import Validator
from .types import AsyncConstraintSpec, ConstraintSpec, Fields, ValidationResult


def to_result(fields: Fields, results: ValidationResult) -> Result[Fields, AppError]:
    """Ok with the untouched fields, or Err describing every field."""
    if any(results.values()):
        return validation_failed(results, origin="result_validator")
    return Ok(fields)


class ResultValidator:
    """Validator that reports through the Result monad."""

    __slots__ = ("validator",)

    def __init__(self, constraints: ConstraintSpec | AsyncConstraintSpec):
        self.validator = Validator(constraints)

    def __call__(self, fields: Fields) -> Result[Fields, AppError] | Awaitable[Result[Fields, AppError]]:
        results = self.validator(fields)
        if inspect.isawaitable(results):
            return self._settle(fields, results)
        return to_result(fields, results)

    @staticmethod
    async def _settle(fields: Fields, pending: Awaitable[ValidationResult]) -> Result[Fields, AppError]:
        return to_result(fields, await pending)


@overload
def validate_result(fields: Fields, constraints: ConstraintSpec) -> Result[Fields, AppError]: ...


@overload
def validate_result(
    fields: Fields, constraints: AsyncConstraintSpec
) -> Awaitable[Result[Fields, AppError]]: ...


def validate_result(fields, constraints):
    return ResultValidator(constraints)(fields)


def make_result_validator(constraints: ConstraintSpec | AsyncConstraintSpec) -> ResultValidator:
    return ResultValidator(constraints)
