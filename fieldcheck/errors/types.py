"""Error and Result types

AppError is the one error shape the library reports: a code from the
taxonomy, a message, tracing context and free-form metadata. Ok/Err is the
Result container returned by the result-encoded validators; constraints may
also return one instead of a plain message.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Generic, NoReturn, TypeVar, Union, final
from uuid import uuid4

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


class ErrorCode(Enum):
    """Error codes, grouped by thousand.

    E2xxx: field validation; E203x is a broken constraint setup
    E9xxx: internal failures
    """
    E2000_VALIDATION_GENERIC = 2000
    E2005_CONSTRAINT_VIOLATION = 2005

    E2030_INVALID_CONSTRAINT_SPEC = 2030
    E2031_INVALID_CONSTRAINT_OUTCOME = 2031

    E9000_INTERNAL_GENERIC = 9000
    E9001_UNEXPECTED_ERROR = 9001
    E9002_CONSTRAINT_TIMEOUT = 9002

    @property
    def category(self) -> str:
        if 2030 <= self.value < 2040:
            return "configuration"
        if 2000 <= self.value < 3000:
            return "validation"
        return "internal"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    correlation_id: str = field(default_factory=lambda: uuid4().hex[:8])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    origin: str = ""


@dataclass(frozen=True, slots=True)
class AppError:
    """An error with its code, message, tracing context and metadata.

    Instances are immutable; the ``with_*`` helpers and ``chain`` return
    copies that keep the correlation id.
    """
    code: ErrorCode
    message: str
    context: ErrorContext = field(default_factory=ErrorContext)
    metadata: dict = field(default_factory=dict)
    cause: Exception | None = None

    @property
    def error_id(self) -> str:
        return f"{self.code.name}:{self.context.correlation_id}"

    def with_context(self, *, origin: str | None = None, correlation_id: str | None = None) -> AppError:
        context = replace(
            self.context,
            origin=self.context.origin if origin is None else origin,
            correlation_id=correlation_id or self.context.correlation_id,
        )
        return replace(self, context=context)

    def with_metadata(self, **metadata) -> AppError:
        return replace(self, metadata={**self.metadata, **metadata})

    def chain(self, cause: Exception) -> AppError:
        return replace(self, cause=cause)

    def to_dict(self) -> dict:
        """Serializable form, e.g. for an API error body."""
        return {
            "error": {
                "code": self.code.name,
                "code_num": self.code.value,
                "category": self.code.category,
                "message": self.message,
                "correlation_id": self.context.correlation_id,
                "origin": self.context.origin,
                "timestamp": self.context.timestamp.isoformat(),
                "metadata": self.metadata,
            }
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (correlation_id={self.context.correlation_id})"


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise ValueError(f"unwrap_err() on Ok({self.value!r})")

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))

    def match(self, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        return ok(self.value)


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant. Holds an AppError, or a bare message when a
    constraint reports ``Err("...")``."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise ValueError(f"unwrap() on Err({self.error})")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, f: Callable) -> Err[E]:
        return self

    def match(self, ok: Callable, err: Callable[[E], U]) -> U:
        return err(self.error)


Result = Union[Ok[T], Err[E]]


def from_exception(
    exc: Exception,
    code: ErrorCode = ErrorCode.E9001_UNEXPECTED_ERROR,
    message: str | None = None,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    """Wrap ``exc`` as an Err, keeping it as the error's cause."""
    error = AppError(code=code, message=message or str(exc), context=ErrorContext(origin=origin), metadata=metadata)
    return Err(error.chain(exc))

