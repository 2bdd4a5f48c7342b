"""Shared fixtures and constraint helpers for the fieldcheck test-suite."""
from __future__ import annotations

import asyncio
from typing import Any

import pytest

from fieldcheck.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; make every test see its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class CallLog:
    """Records constraint invocations in the order they happen."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def sync(self, name: str, message: str | None = None):
        def constraint(key: str, value: Any, fields) -> str | None:
            self.calls.append(name)
            return message

        constraint.__name__ = name
        return constraint

    def delayed(self, name: str, message: str | None = None, delay: float = 0.0):
        async def constraint(key: str, value: Any, fields) -> str | None:
            self.calls.append(f"{name}:start")
            await asyncio.sleep(delay)
            self.calls.append(f"{name}:done")
            return message

        constraint.__name__ = name
        return constraint


@pytest.fixture
def call_log() -> CallLog:
    return CallLog()


@pytest.fixture
def accounts() -> dict[str, dict]:
    """Stand-in for a remote account service."""
    return {"bob@acme.co": {"name": "Bob", "email": "bob@acme.co", "age": 30}}
