"""Reading constraint return values.

Shared by the engine and the rule combinators so both agree on what counts
as a failure: None, "" and Ok(...) pass; a non-empty string or Err(...)
fails; anything else is an InvalidOutcomeError.
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any

from fieldcheck.errors import AppError, Err, Ok

from .errors import InvalidOutcomeError
from .types import Message


def read_outcome(key: str, value: Any) -> Message:
    """Turn a settled constraint return value into a message or None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, Ok):
        return None
    if isinstance(value, Err):
        error = value.error
        text = error.message if isinstance(error, AppError) else str(error)
        return text or None
    raise InvalidOutcomeError(key, value)


def _retrieve(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()


def discard(awaitable: Any) -> None:
    """Release an awaitable nobody will await.

    Unstarted coroutines are closed; scheduled tasks keep running but their
    exception is retrieved when they finish.
    """
    if asyncio.isfuture(awaitable):
        awaitable.add_done_callback(_retrieve)
    elif inspect.iscoroutine(awaitable) and inspect.getcoroutinestate(awaitable) == inspect.CORO_CREATED:
        awaitable.close()
