"""Guarded Constraints

The engine lets constraint exceptions escape and abort the whole call.
``guarded()`` is the opt-in alternative for a single constraint: its
exceptions, and for async constraints its timeout, become a field message.

Usage:
    spec = {
        "email": [
            is_string,
            guarded(account_is_free, message="Could not check email", timeout=2.0),
        ],
    }
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any

from fieldcheck.config import get_settings
from fieldcheck.errors import constraint_timeout, from_exception
from fieldcheck.logging import rules_logger

from .types import Constraint, Fields, FieldOutcome

log = rules_logger()


class GuardedConstraint:
    """Constraint wrapper that degrades failures to a message.

    Sync constraints stay sync. When the wrapped constraint returns an
    awaitable, the guard returns a coroutine that awaits it under the
    configured timeout.
    """

    __slots__ = ("constraint", "message", "timeout")

    def __init__(self, constraint: Constraint, message: str | None = None, timeout: float | None = None):
        if not callable(constraint):
            raise TypeError(f"guarded() expects a constraint, got {type(constraint).__name__}")
        settings = get_settings()
        self.constraint = constraint
        self.message = message or settings.GUARD_MESSAGE
        self.timeout = timeout if timeout is not None else settings.GUARD_TIMEOUT_SECONDS

    @property
    def constraint_name(self) -> str:
        inner = getattr(self.constraint, "constraint_name", None) or getattr(self.constraint, "__name__", "constraint")
        return f"guarded[{inner}]"

    def __call__(self, key: str, value: Any, fields: Fields) -> Any:
        try:
            outcome = self.constraint(key, value, fields)
        except Exception as exc:
            return self._degrade(key, exc)
        if inspect.isawaitable(outcome):
            return self._settle(key, outcome)
        return outcome

    async def _settle(self, key: str, pending) -> FieldOutcome:
        try:
            if self.timeout is None:
                return await pending
            return await asyncio.wait_for(pending, timeout=self.timeout)
        except asyncio.TimeoutError:
            error = constraint_timeout(key, self.timeout, origin="guard").unwrap_err()
            log.warning(
                "guarded_constraint_timeout",
                field=key,
                constraint=self.constraint_name,
                code=error.code.name,
                error=error.message,
                timeout_seconds=self.timeout,
            )
            return self.message
        except Exception as exc:
            return self._degrade(key, exc)

    def _degrade(self, key: str, exc: Exception) -> str:
        error = from_exception(exc, origin="guard").unwrap_err()
        log.warning(
            "guarded_constraint_failed",
            field=key,
            constraint=self.constraint_name,
            code=error.code.name,
            error_type=type(exc).__name__,
        )
        return self.message


def guarded(constraint: Constraint, *, message: str | None = None, timeout: float | None = None) -> GuardedConstraint:
    """Wrap ``constraint`` so that its failures report ``message`` instead of raising."""
    return GuardedConstraint(constraint, message=message, timeout=timeout)
