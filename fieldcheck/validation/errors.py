"""Engine Errors

Configuration problems fail fast with a ConfigurationError; a constraint that
returns something the engine cannot read as an outcome raises
InvalidOutcomeError. Neither is ever reported as a field message.
"""
from __future__ import annotations

from typing import Any

from fieldcheck.errors import AppErrorException, invalid_constraint_spec, invalid_outcome


class ConfigurationError(AppErrorException):
    """A constraint spec entry, or a rule built into one, cannot be used."""

    def __init__(self, field: str, entry: Any, reason: str, origin: str = "normalizer"):
        self.field = field
        super().__init__(invalid_constraint_spec(field, entry, reason, origin=origin))


class InvalidOutcomeError(AppErrorException, TypeError):
    """A constraint returned a value that is not None, a string or a Result."""

    def __init__(self, field: str, outcome: Any):
        self.field = field
        self.outcome = outcome
        super().__init__(invalid_outcome(field, outcome, origin="engine"))
