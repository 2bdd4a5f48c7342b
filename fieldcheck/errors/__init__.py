"""Monadic Error Handling System

Type-safe error handling inspired by Haskell's Either monad and Rust's
Result type.

Key components:
- Result[T, E]: Monadic container for success/failure
- AppError: Base error type with full context
- ErrorCode: Error code taxonomy
- Builder functions: Ergonomic error construction

Usage:
    from fieldcheck.errors import Ok, Err, AppError

    match validate_result(fields, spec):
        case Ok(clean):
            save(clean)
        case Err(error):
            log.warning(error.message, failed=error.metadata["failed"])
"""
from .types import (
    # Core types
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
    # Constructors
    from_exception,
)

from .builders import (
    validation_error,
    validation_failed,
    invalid_constraint_spec,
    invalid_outcome,
    internal_error,
    constraint_timeout,
)

from .exceptions import (
    AppErrorException,
)

__all__ = [
    # Core types
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    # Constructors
    "from_exception",
    # Builders
    "validation_error",
    "validation_failed",
    "invalid_constraint_spec",
    "invalid_outcome",
    "internal_error",
    "constraint_timeout",
    # Exceptions
    "AppErrorException",
]
