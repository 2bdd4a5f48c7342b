"""Domain-Specific Error Builders

Ergonomic constructors for the errors raised or returned by the validation
engine. Each builder creates an AppError with the appropriate code and context.
"""
from typing import Any

from .types import AppError, ErrorCode, ErrorContext, Err


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================

def validation_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
    field: str | None = None,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    """Create validation error."""
    meta = {"field": field, **metadata}
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
    ))


def validation_failed(
    results: dict[str, str | None],
    origin: str = "",
) -> Err[AppError]:
    """Wrap a completed per-field result mapping that contains failures."""
    failed = [key for key, message in results.items() if message]
    return validation_error(
        f"Validation failed for {len(failed)} field(s): {', '.join(failed)}",
        code=ErrorCode.E2005_CONSTRAINT_VIOLATION,
        origin=origin,
        fields=dict(results),
        failed=failed,
    )


# =============================================================================
# Configuration Errors (E203x)
# =============================================================================

def invalid_constraint_spec(field: str, entry: Any, reason: str, origin: str = "") -> AppError:
    return AppError(
        code=ErrorCode.E2030_INVALID_CONSTRAINT_SPEC,
        message=f"Invalid constraints for field '{field}': {reason}",
        context=ErrorContext(origin=origin),
        metadata={"field": field, "entry_type": type(entry).__name__},
    )


def invalid_outcome(field: str, outcome: Any, origin: str = "") -> AppError:
    return AppError(
        code=ErrorCode.E2031_INVALID_CONSTRAINT_OUTCOME,
        message=(
            f"Constraint for field '{field}' returned {type(outcome).__name__}; "
            "expected None, a message string or a Result"
        ),
        context=ErrorContext(origin=origin),
        metadata={"field": field, "outcome_type": type(outcome).__name__},
    )


# =============================================================================
# Internal Errors (E9xxx)
# =============================================================================

def internal_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E9000_INTERNAL_GENERIC,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata=metadata,
        cause=cause,
    ))


def constraint_timeout(field: str, timeout_seconds: float, origin: str = "") -> Err[AppError]:
    return internal_error(
        f"Constraint for field '{field}' timed out after {timeout_seconds}s",
        code=ErrorCode.E9002_CONSTRAINT_TIMEOUT,
        origin=origin,
        field=field,
        timeout_seconds=timeout_seconds,
    )
