"""Exception wrappers for AppError."""
from __future__ import annotations

from .types import AppError


class AppErrorException(Exception):
    """Exception wrapper for AppError.

    Use this when you need to raise an AppError in code that
    doesn't use the Result monad (e.g., the engine's fail-fast paths).
    """

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))

    @property
    def code(self):
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

