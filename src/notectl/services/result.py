"""What a ``notectl`` command hands back to the CLI.

A remediation run ends in a :class:`ServiceResult`. On success ``data``
carries the mode, the :class:`FixSummary` counts and the manual-review
list; per-issue failures do not make a run unsuccessful, they show up in
the counts and as ``warnings``. ``ok`` is False only when the run could
not start, and ``error.code`` is then one of :class:`ErrorCode`.
:meth:`AppContext.emit` renders either form as text or JSON.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    """Why a run could not start."""

    SCHEMA_NOT_FOUND = "SCHEMA_NOT_FOUND"
    SCHEMA_INVALID = "SCHEMA_INVALID"
    FINDINGS_NOT_FOUND = "FINDINGS_NOT_FOUND"
    FINDINGS_INVALID = "FINDINGS_INVALID"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one CLI operation.

    Attributes:
        ok: Whether the operation ran to completion.
        op: Name of the operation (``"fix"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal problems, such as fixes that failed.
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None

    @classmethod
    def failure(cls, op: str, code: ErrorCode, message: str, **detail: Any) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError(code=code.value, message=message, detail=detail))
