"""Batch orchestrator — apply every fix that is safe without a human.

Per file the run proceeds in a fixed order:

1. scalar coercions (``wrong-scalar-type``)
2. directory moves, with wikilinks across the vault rewritten
3. a second pass over issues the scan did not mark fixable: a stale
   reference with one high-confidence candidate is repointed, and an
   unknown key with an unambiguous schema target is migrated
4. everything else not fixable goes to the manual-review queue
5. remaining fixable issues dispatch per code to structural repair or
   the value fixer

Ambiguity never blocks: it is skipped and queued for manual review.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from notectl.domain.dates import suggest_iso_date
from notectl.domain.issues import RENAME_CODES, AuditIssue, FileAuditResult, IssueCode
from notectl.domain.links import to_wikilink
from notectl.domain.results import FixAction, FixContext, FixResult, FixSummary, ManualReviewQueue
from notectl.domain.similarity import auto_migration_target, is_high_confidence_match
from notectl.infrastructure.filesystem import read_note
from notectl.output.reporter import FixReporter
from notectl.services.base import BaseService
from notectl.services.relocate import RelocationService
from notectl.services.repair import RepairService
from notectl.services.values import MANUAL_MERGE_REQUIRED, ValueFixService

if TYPE_CHECKING:
    from notectl.domain.schema import Schema

log = structlog.get_logger(__name__)

MOVE_CODES = frozenset({IssueCode.WRONG_DIRECTORY, IssueCode.OWNED_WRONG_LOCATION})

AutoHandler = Callable[[Path, AuditIssue], FixResult]


class AutoFixService(BaseService):
    """Runs unattended fixes over a set of audit results."""

    def __init__(self, context: FixContext, *, reporter: FixReporter | None = None) -> None:
        super().__init__(context)
        self._reporter = reporter or FixReporter()
        self._repair = RepairService(context, self.writer)
        self._values = ValueFixService(context, self.writer)
        self._relocation = RelocationService(context, self.writer)
        self.manual_review = ManualReviewQueue()
        self._handlers: dict[IssueCode, AutoHandler] = {
            IssueCode.ORPHAN_FILE: self._orphan_file,
            IssueCode.INVALID_TYPE: self._needs_review,
            IssueCode.MISSING_REQUIRED: self._missing_required,
            IssueCode.INVALID_OPTION: self._invalid_option,
            IssueCode.UNKNOWN_FIELD: self._needs_review,
            IssueCode.WRONG_DIRECTORY: self._needs_review,
            IssueCode.FORMAT_VIOLATION: self._values.apply,
            IssueCode.STALE_REFERENCE: self._needs_review,
            IssueCode.INVALID_SOURCE_TYPE: self._needs_review,
            IssueCode.OWNED_NOTE_REFERENCED: self._needs_review,
            IssueCode.OWNED_WRONG_LOCATION: self._needs_review,
            IssueCode.PARENT_CYCLE: self._needs_review,
            IssueCode.SELF_REFERENCE: self._needs_review,
            IssueCode.AMBIGUOUS_LINK_TARGET: self._needs_review,
            IssueCode.INVALID_LIST_ELEMENT: self._needs_review,
            IssueCode.FRONTMATTER_NOT_AT_TOP: self._repair.apply,
            IssueCode.DUPLICATE_FRONTMATTER_KEYS: self._repair.apply,
            IssueCode.MALFORMED_WIKILINK: self._repair.apply,
            IssueCode.TRAILING_WHITESPACE: self._repair.apply,
            IssueCode.INVALID_BOOLEAN_COERCION: self._values.apply,
            IssueCode.WRONG_SCALAR_TYPE: self._values.apply,
            IssueCode.INVALID_DATE_FORMAT: self._invalid_date,
            IssueCode.UNKNOWN_ENUM_CASING: self._values.apply,
            IssueCode.DUPLICATE_LIST_VALUES: self._values.apply,
            IssueCode.FRONTMATTER_KEY_CASING: self._rename,
            IssueCode.SINGULAR_PLURAL_MISMATCH: self._rename,
        }

    @property
    def handled_codes(self) -> frozenset[IssueCode]:
        return frozenset(self._handlers)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, results: Sequence[FileAuditResult], *, dry_run_reason: str | None = None) -> FixSummary:
        """Fix every file in *results* and return the totals."""
        summary = FixSummary(dry_run=self.context.dry_run, reason=dry_run_reason)
        if summary.dry_run:
            suffix = f" ({dry_run_reason})" if dry_run_reason else ""
            self._reporter.banner(f"Dry run: no files will be changed{suffix}")

        for result in results:
            self._fix_file(result, summary)

        summary.remaining = len(self.manual_review)
        self._reporter.manual_review(self.manual_review)
        self._reporter.summary(summary)
        log.info(
            "autofix.complete",
            fixed=summary.fixed,
            skipped=summary.skipped,
            failed=summary.failed,
            remaining=summary.remaining,
            dry_run=summary.dry_run,
        )
        return summary

    def _record(self, rel: str, result: FixResult, summary: FixSummary, message: str | None = None) -> None:
        """Count and report *result*; only skipped results join the review queue."""
        summary.record(result)
        self._reporter.result(rel, result, message)
        if result.action is FixAction.SKIPPED:
            self.manual_review.add(rel, result.issue)

    def _fix_file(self, result: FileAuditResult, summary: FixSummary) -> None:
        path, rel = result.path, result.relative_path
        fixable = [issue for issue in result.issues if issue.auto_fixable]
        manual = [issue for issue in result.issues if not issue.auto_fixable]
        log.debug("autofix.file", file=rel, fixable=len(fixable), manual=len(manual))

        # 1. Scalar coercions
        for issue in [i for i in fixable if i.code is IssueCode.WRONG_SCALAR_TYPE]:
            fixable.remove(issue)
            self._record(rel, self._values.apply(path, issue), summary)

        # 2. Directory moves
        for issue in [i for i in fixable if i.code in MOVE_CODES and i.expected_directory]:
            fixable.remove(issue)
            path = self._move(path, rel, issue, summary)

        # 3 + 4. Non-fixable issues: resolve the confident ones, queue the rest
        pending_renames = {i.field for i in fixable if i.code in RENAME_CODES}
        deferred: list[AuditIssue] = []
        for issue in manual:
            if issue.code is IssueCode.STALE_REFERENCE and self._repoint_stale(path, rel, issue, summary):
                continue
            if issue.code is IssueCode.UNKNOWN_FIELD and issue.field:
                if issue.field in pending_renames:
                    deferred.append(issue)
                    continue
                if self._migrate_unknown(path, rel, issue, summary):
                    continue
            self.manual_review.add(rel, issue)

        # 5. Per-code dispatch; once a key is renamed on disk, later issues follow it
        renamed: dict[str, str] = {}
        for issue in fixable:
            if issue.field in renamed:
                issue = issue.model_copy(update={"field": renamed[issue.field]})
            handler = self._handlers[issue.code]
            fixed = self._guard(path, issue, partial(handler, path, issue))
            self._record(rel, fixed, summary)
            if issue.code in RENAME_CODES and fixed.ok and not self.context.dry_run:
                assert issue.field is not None and issue.canonical_key is not None
                renamed[issue.field] = issue.canonical_key

        for issue in deferred:
            if not self._migrate_unknown(path, rel, issue, summary):
                self.manual_review.add(rel, issue)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _move(self, path: Path, rel: str, issue: AuditIssue, summary: FixSummary) -> Path:
        """Move the note; returns the path later fixes should use."""
        assert issue.expected_directory is not None
        moved = self._relocation.relocate(path, issue, issue.expected_directory)
        self._record(rel, moved.result, summary)
        if moved.links_message:
            self._reporter.note(rel, moved.links_message)
        return moved.path

    def _repoint_stale(self, path: Path, rel: str, issue: AuditIssue, summary: FixSummary) -> bool:
        """Repoint a stale link at its one confident match; False means it was not attempted."""
        if issue.in_body or not issue.field or not issue.target_name:
            return False
        if not issue.similar_files or len(issue.similar_files) != 1:
            return False
        candidate = issue.similar_files[0]
        if not is_high_confidence_match(issue.target_name, candidate):
            return False
        result = self._values.set_field(
            path, issue, issue.field, to_wikilink(candidate), issue.list_index
        )
        message = f"Fixed {issue.field}: {to_wikilink(issue.target_name)} → {to_wikilink(candidate)}"
        self._record(rel, result, summary, message if result.ok else None)
        return True

    def _migrate_unknown(self, path: Path, rel: str, issue: AuditIssue, summary: FixSummary) -> bool:
        """Migrate an unknown key onto its schema field; False means it was not attempted."""
        assert issue.field is not None
        try:
            note = read_note(path)
        except Exception:
            log.debug("autofix.unreadable", file=rel, exc_info=True)
            return False
        fm = note.frontmatter
        if issue.field not in fm:
            self._reporter.note(rel, f"'{issue.field}' already resolved")
            return True
        target = auto_migration_target(self.schema, fm, issue.field, fm[issue.field])
        if target is None:
            return False
        self._record(rel, self._values.migrate_field(path, issue, issue.field, target), summary)
        return True

    # ------------------------------------------------------------------
    # Per-code handlers
    # ------------------------------------------------------------------

    def _needs_review(self, path: Path, issue: AuditIssue) -> FixResult:
        return FixResult.skipped(path, issue, f"{issue.message} (requires interactive fix)")

    def _orphan_file(self, path: Path, issue: AuditIssue) -> FixResult:
        if not issue.inferred_type:
            return FixResult.skipped(path, issue, "No type could be inferred")
        result = self._values.apply(path, issue, issue.inferred_type)
        if result.ok:
            return result.model_copy(update={"message": f"Added type: {issue.inferred_type} (from directory)"})
        return result

    def _missing_required(self, path: Path, issue: AuditIssue) -> FixResult:
        default = self._field_default(path, issue)
        if default is None:
            return FixResult.skipped(path, issue, f"No default value for {issue.field}")
        result = self._values.apply(path, issue, default)
        if result.ok:
            return result.model_copy(update={"message": f"Added {issue.field}: {default}"})
        return result

    def _field_default(self, path: Path, issue: AuditIssue) -> object | None:
        if not issue.field:
            return None
        fm = read_note(path).frontmatter
        type_path = self.schema.resolve_type(fm)
        if type_path is None:
            return None
        field_def = self.schema.fields_for_type(type_path).get(issue.field)
        if field_def is None:
            return None
        return field_def.default if field_def.default is not None else field_def.value

    def _invalid_option(self, path: Path, issue: AuditIssue) -> FixResult:
        if not issue.suggestion:
            return FixResult.skipped(path, issue, f"No suggested option for {issue.field}")
        result = self._values.apply(path, issue, issue.suggestion)
        if result.ok:
            return result.model_copy(update={"message": f"Set {issue.field}: {issue.suggestion}"})
        return result

    def _invalid_date(self, path: Path, issue: AuditIssue) -> FixResult:
        suggestion = issue.suggestion or (suggest_iso_date(str(issue.value)) if issue.value is not None else None)
        if not suggestion:
            return FixResult.skipped(path, issue, f"No unambiguous date for {issue.field}")
        result = self._values.apply(path, issue, suggestion)
        if result.ok:
            return result.model_copy(update={"message": f"Normalized {issue.field}: {suggestion}"})
        return result

    def _rename(self, path: Path, issue: AuditIssue) -> FixResult:
        result = self._values.apply(path, issue)
        if result.action is FixAction.FAILED and result.message == MANUAL_MERGE_REQUIRED:
            return FixResult.skipped(path, issue, MANUAL_MERGE_REQUIRED)
        return result


def run_auto_fix(
    results: Sequence[FileAuditResult],
    schema: Schema,
    vault_dir: Path,
    *,
    dry_run: bool = False,
    dry_run_reason: str | None = None,
    reporter: FixReporter | None = None,
) -> FixSummary:
    """Apply all unattended fixes to *results* and return the run summary."""
    context = FixContext(schema=schema, vault_root=vault_dir, dry_run=dry_run)
    service = AutoFixService(context, reporter=reporter)
    return service.run(results, dry_run_reason=dry_run_reason)

