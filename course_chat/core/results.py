# course_chat/core/results.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a write made through the session facade.

    Failed sends keep the caller's text untouched, so `error` is all the UI
    needs to offer a retry.
    """

    success: bool
    error: str | None = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any = None) -> "OperationResult":
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)
