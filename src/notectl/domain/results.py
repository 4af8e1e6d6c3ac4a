"""Fix outcomes, run summaries, and the manual-review queue."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, model_validator

from notectl.domain.issues import AuditIssue

if TYPE_CHECKING:
    from notectl.domain.schema import Schema


class FixAction(StrEnum):
    FIXED = "fixed"
    SKIPPED = "skipped"
    FAILED = "failed"


class FixResult(BaseModel):
    """Outcome of applying one fix to one issue.

    ``message`` is required whenever the fix did not succeed so the
    operator always learns why.
    """

    model_config = {"frozen": True}

    file: Path
    issue: AuditIssue
    action: FixAction
    message: str | None = None

    @model_validator(mode="after")
    def _require_message(self) -> FixResult:
        if self.action is not FixAction.FIXED and not self.message:
            msg = f"A {self.action.value} result must carry a message"
            raise ValueError(msg)
        return self

    @classmethod
    def fixed(cls, file: Path, issue: AuditIssue, message: str | None = None) -> FixResult:
        return cls(file=file, issue=issue, action=FixAction.FIXED, message=message)

    @classmethod
    def skipped(cls, file: Path, issue: AuditIssue, message: str) -> FixResult:
        return cls(file=file, issue=issue, action=FixAction.SKIPPED, message=message)

    @classmethod
    def failed(cls, file: Path, issue: AuditIssue, message: str) -> FixResult:
        return cls(file=file, issue=issue, action=FixAction.FAILED, message=message)

    @property
    def ok(self) -> bool:
        return self.action is FixAction.FIXED


class FixSummary(BaseModel):
    """Totals for one remediation run."""

    dry_run: bool = False
    reason: str | None = None
    fixed: int = 0
    skipped: int = 0
    failed: int = 0
    remaining: int = 0

    def record(self, result: FixResult) -> None:
        """Bump the counter matching *result*'s action."""
        match result.action:
            case FixAction.FIXED:
                self.fixed += 1
            case FixAction.SKIPPED:
                self.skipped += 1
            case FixAction.FAILED:
                self.failed += 1


@dataclass(frozen=True)
class ManualReviewEntry:
    """An issue the batch run could not resolve unattended."""

    file: str
    issue: AuditIssue

    @property
    def key(self) -> tuple[str, str, str | None, str]:
        return (self.file, self.issue.code.value, self.issue.field, self.issue.message)


class ManualReviewQueue:
    """Insertion-ordered, de-duplicated collection of manual-review entries.

    Two entries with the same file, code, field, and message count once.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str, str | None, str], ManualReviewEntry] = {}

    def add(self, file: str, issue: AuditIssue) -> bool:
        """Register *issue*; returns False when an equivalent entry exists."""
        entry = ManualReviewEntry(file=file, issue=issue)
        if entry.key in self._entries:
            return False
        self._entries[entry.key] = entry
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ManualReviewEntry]:
        return iter(self._entries.values())

    def grouped(self) -> dict[str, list[AuditIssue]]:
        """Return issues grouped by file, both in first-seen order."""
        groups: dict[str, list[AuditIssue]] = {}
        for entry in self._entries.values():
            groups.setdefault(entry.file, []).append(entry.issue)
        return groups


@dataclass(frozen=True)
class FixContext:
    """Read-only handle shared by every fix in one run."""

    schema: Schema
    vault_root: Path
    dry_run: bool = False
