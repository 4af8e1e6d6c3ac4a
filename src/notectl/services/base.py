"""BaseService — shared foundation for the remediation services.

Every service receives a :class:`FixContext` at construction time and
persists changes only through its :class:`NoteWriter`, which honors the
context's dry-run flag.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from notectl.domain.results import FixResult
from notectl.infrastructure.filesystem import NoteWriter

if TYPE_CHECKING:
    from notectl.domain.issues import AuditIssue
    from notectl.domain.results import FixContext
    from notectl.domain.schema import Schema

logger = logging.getLogger(__name__)


class BaseService:
    """Base for services that apply fixes to vault notes.

    Usage::

        class RepairService(BaseService):
            def fix(self, path: Path, issue: AuditIssue) -> FixResult:
                return self._guard(path, issue, lambda: self._fix(path, issue))
    """

    def __init__(self, context: FixContext, writer: NoteWriter | None = None) -> None:
        self._context = context
        self._writer = writer or NoteWriter(dry_run=context.dry_run)

    @property
    def context(self) -> FixContext:
        return self._context

    @property
    def schema(self) -> Schema:
        return self._context.schema

    @property
    def writer(self) -> NoteWriter:
        return self._writer

    def _guard(
        self,
        path: Path,
        issue: AuditIssue,
        apply: Callable[[], FixResult],
    ) -> FixResult:
        """Run one fix, converting any unexpected error into a failed result.

        INVARIANT: a single broken note never halts the run.
        """
        try:
            return apply()
        except Exception as exc:
            logger.debug("Fix for %s in %s raised", issue.code.value, path, exc_info=True)
            return FixResult.failed(path, issue, str(exc) or type(exc).__name__)
