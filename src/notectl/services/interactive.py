"""Interactive orchestrator — walk issues one at a time with the operator.

Every issue code has a dialogue handler. A handler asks at most a couple
of questions through the :class:`~notectl.output.prompts.Prompter`,
applies the chosen fix through the repair, value, or relocation service,
and reports one of four outcomes. ``quit`` (chosen explicitly or by
cancelling any prompt) ends the whole run; counts gathered so far are
kept.

Destructive choices (merging two filled keys, migrating onto a filled
field, migrating across value shapes) ask for one more confirmation
before anything is written.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from notectl.domain.coercion import is_empty
from notectl.domain.dates import normalize_to_iso_date, suggest_iso_date
from notectl.domain.issues import AuditIssue, FileAuditResult, IssueCode
from notectl.domain.links import link_target, to_markdown_link, to_wikilink
from notectl.domain.results import FixContext, FixResult, FixSummary
from notectl.domain.schema import FieldDef
from notectl.domain.similarity import similar_field_candidates
from notectl.infrastructure.filesystem import query_by_type, read_note
from notectl.output.prompts import ClickPrompter, Prompter
from notectl.output.reporter import FixReporter
from notectl.services.base import BaseService
from notectl.services.relocate import RelocationService
from notectl.services.repair import DuplicateStrategy, RepairService
from notectl.services.values import ValueFixService

if TYPE_CHECKING:
    from notectl.domain.schema import Schema

log = structlog.get_logger(__name__)

# Menu sentinels
SKIP = "[skip]"
QUIT = "[quit]"
CLEAR_FIELD = "[clear field]"
CLEAR_REFERENCE = "[clear reference]"
CLEAR_PARENT = "[clear parent]"
REMOVE_FIELD = "[remove field]"
REMOVE_ELEMENT = "[remove element]"
WRAP_IN_LIST = "[convert to list]"
MOVE_FILE = "[move file]"
KEEP_LAST = "[keep last]"
KEEP_FIRST = "[keep first]"


class FixOutcome(StrEnum):
    FIXED = "fixed"
    SKIPPED = "skipped"
    FAILED = "failed"
    QUIT = "quit"


@dataclass
class NoteState:
    """The note being worked on; ``path`` follows the note if it is moved."""

    path: Path
    rel: str


Handler = Callable[[NoteState, AuditIssue], FixOutcome]


class InteractiveFixService(BaseService):
    """Drives the per-issue fix dialogue."""

    def __init__(
        self,
        context: FixContext,
        *,
        prompter: Prompter | None = None,
        reporter: FixReporter | None = None,
        similar_file_limit: int = 5,
        relation_limit: int = 20,
        field_candidate_limit: int = 3,
    ) -> None:
        super().__init__(context)
        self._prompter = prompter or ClickPrompter()
        self._reporter = reporter or FixReporter()
        self._repair = RepairService(context, self.writer)
        self._values = ValueFixService(context, self.writer)
        self._relocation = RelocationService(context, self.writer)
        self._similar_file_limit = similar_file_limit
        self._relation_limit = relation_limit
        self._field_candidate_limit = field_candidate_limit
        self._handlers: dict[IssueCode, Handler] = {
            IssueCode.ORPHAN_FILE: self._orphan_file,
            IssueCode.INVALID_TYPE: self._invalid_type,
            IssueCode.MISSING_REQUIRED: self._missing_required,
            IssueCode.INVALID_OPTION: self._invalid_option,
            IssueCode.UNKNOWN_FIELD: self._unknown_field,
            IssueCode.WRONG_DIRECTORY: self._wrong_location,
            IssueCode.FORMAT_VIOLATION: self._format_violation,
            IssueCode.STALE_REFERENCE: self._stale_reference,
            IssueCode.INVALID_SOURCE_TYPE: self._invalid_source_type,
            IssueCode.OWNED_NOTE_REFERENCED: self._owned_note_referenced,
            IssueCode.OWNED_WRONG_LOCATION: self._wrong_location,
            IssueCode.PARENT_CYCLE: self._parent_cycle,
            IssueCode.SELF_REFERENCE: self._self_reference,
            IssueCode.AMBIGUOUS_LINK_TARGET: self._ambiguous_link_target,
            IssueCode.INVALID_LIST_ELEMENT: self._invalid_list_element,
            IssueCode.FRONTMATTER_NOT_AT_TOP: self._not_at_top,
            IssueCode.DUPLICATE_FRONTMATTER_KEYS: self._duplicate_keys,
            IssueCode.MALFORMED_WIKILINK: self._malformed_wikilink,
            IssueCode.TRAILING_WHITESPACE: self._trailing_whitespace,
            IssueCode.INVALID_BOOLEAN_COERCION: self._boolean_coercion,
            IssueCode.WRONG_SCALAR_TYPE: self._wrong_scalar_type,
            IssueCode.INVALID_DATE_FORMAT: self._invalid_date,
            IssueCode.UNKNOWN_ENUM_CASING: self._enum_casing,
            IssueCode.DUPLICATE_LIST_VALUES: self._duplicate_list_values,
            IssueCode.FRONTMATTER_KEY_CASING: self._key_rename,
            IssueCode.SINGULAR_PLURAL_MISMATCH: self._key_rename,
        }

    @property
    def handled_codes(self) -> frozenset[IssueCode]:
        return frozenset(self._handlers)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, results: Sequence[FileAuditResult]) -> FixSummary:
        """Walk every issue of every file until done or the operator quits.

        ``remaining`` counts the issues handled without being fixed.
        """
        summary = FixSummary(dry_run=self.context.dry_run)
        if summary.dry_run:
            self._reporter.banner("Dry run: no files will be changed")

        quit_requested = False
        for result in results:
            state = NoteState(path=result.path, rel=result.relative_path)
            for issue in result.issues:
                self._reporter.issue(state.rel, issue)
                outcome = self._handle(state, issue)
                if outcome is FixOutcome.QUIT:
                    quit_requested = True
                    break
                match outcome:
                    case FixOutcome.FIXED:
                        summary.fixed += 1
                    case FixOutcome.SKIPPED:
                        summary.skipped += 1
                    case FixOutcome.FAILED:
                        summary.failed += 1
            if quit_requested:
                self._reporter.note(None, "Quit requested; stopping.")
                break

        summary.remaining = summary.skipped + summary.failed
        self._reporter.summary(summary)
        log.info(
            "interactive_fix.complete",
            fixed=summary.fixed,
            skipped=summary.skipped,
            failed=summary.failed,
            quit=quit_requested,
        )
        return summary

    def _handle(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        try:
            return self._handlers[issue.code](state, issue)
        except Exception as exc:
            log.debug("interactive_fix.error", file=state.rel, code=issue.code.value, exc_info=True)
            self._reporter.failed(state.rel, str(exc) or type(exc).__name__)
            return FixOutcome.FAILED

    # ------------------------------------------------------------------
    # Dialogue helpers
    # ------------------------------------------------------------------

    def _select(self, message: str, options: Sequence[str]) -> str | None:
        """Ask for one option; None means cancelled or ``[quit]``."""
        choice = self._prompter.select_one(message, options)
        return None if choice in (None, QUIT) else choice

    def _report(self, state: NoteState, result: FixResult, message: str | None = None) -> FixOutcome:
        self._reporter.result(state.rel, result, message if result.ok else None)
        return FixOutcome(result.action.value)

    def _skipped(self, state: NoteState, reason: str = "Skipped") -> FixOutcome:
        self._reporter.note(state.rel, f"→ {reason}")
        return FixOutcome.SKIPPED

    def _confirm_then(
        self,
        state: NoteState,
        question: str,
        apply: Callable[[], FixResult],
    ) -> FixOutcome:
        answer = self._prompter.confirm(question)
        if answer is None:
            return FixOutcome.QUIT
        if not answer:
            return self._skipped(state)
        return self._report(state, apply())

    def _frontmatter(self, state: NoteState) -> dict[str, Any]:
        return read_note(state.path).frontmatter

    def _field_def(self, fm: dict[str, Any], field: str | None) -> FieldDef | None:
        type_path = self.schema.resolve_type(fm)
        if type_path is None or field is None:
            return None
        return self.schema.fields_for_type(type_path).get(field)

    @staticmethod
    def _link(name: str, field_def: FieldDef | None) -> str:
        if field_def is not None and field_def.format == "markdown":
            return to_markdown_link(name)
        return to_wikilink(name)

    def _clear(self, state: NoteState, issue: AuditIssue, label: str | None = None) -> FixOutcome:
        field = issue.field or "parent"
        if issue.list_index is not None:
            result = self._values.remove_list_element(state.path, issue, field, issue.list_index)
            return self._report(state, result, f"Removed {label or field} reference")
        result = self._values.set_field(state.path, issue, field, "")
        return self._report(state, result, f"Cleared {label or field}")

    def _set_link(self, state: NoteState, issue: AuditIssue, value: str) -> FixOutcome:
        assert issue.field is not None
        result = self._values.set_field(state.path, issue, issue.field, value, issue.list_index)
        return self._report(state, result, f"Updated {issue.field}: {value}")

    # ------------------------------------------------------------------
    # Schema conformance
    # ------------------------------------------------------------------

    def _orphan_file(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        if issue.inferred_type:
            return self._confirm_then(
                state,
                f"Add type '{issue.inferred_type}' (from directory)?",
                lambda: self._values.apply(state.path, issue, issue.inferred_type),
            )
        choice = self._select("Select type:", [*self.schema.concrete_type_names(), SKIP, QUIT])
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        return self._report(state, self._values.apply(state.path, issue, choice), f"Set type: {choice}")

    def _invalid_type(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        family = self._select("Select type family:", [*self.schema.type_families(), SKIP, QUIT])
        if family is None:
            return FixOutcome.QUIT
        if family == SKIP:
            return self._skipped(state)
        chosen = family
        subtypes = self.schema.descendants(family)
        if subtypes:
            picked = self._select(f"Select type within '{family}':", [family, *subtypes, SKIP, QUIT])
            if picked is None:
                return FixOutcome.QUIT
            if picked == SKIP:
                return self._skipped(state)
            chosen = picked
        return self._report(state, self._values.apply(state.path, issue, chosen), f"Set type: {chosen}")

    def _missing_required(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        field = issue.field
        if not field:
            return self._skipped(state, "Issue names no field")
        field_def = self._field_def(self._frontmatter(state), field)
        default = None
        if field_def is not None:
            default = field_def.default if field_def.default is not None else field_def.value

        if default is not None:
            return self._confirm_then(
                state,
                f"Add {field} with default '{default}'?",
                lambda: self._values.apply(state.path, issue, default),
            )

        if field_def is not None and field_def.options:
            choice = self._select(f"Select value for {field}:", [*field_def.options, SKIP, QUIT])
            if choice is None:
                return FixOutcome.QUIT
            if choice == SKIP:
                return self._skipped(state)
            return self._report(state, self._values.apply(state.path, issue, choice), f"Added {field}: {choice}")

        text = self._prompter.input_text(f"Enter value for {field}:")
        if text is None:
            return FixOutcome.QUIT
        if not text:
            return self._skipped(state)
        value: Any = text
        if field_def is not None and field_def.is_list:
            value = [part.strip() for part in text.split(",") if part.strip()]
        return self._report(state, self._values.apply(state.path, issue, value), f"Added {field}")

    def _invalid_option(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        field = issue.field
        if not field:
            return self._skipped(state, "Issue names no field")
        if isinstance(issue.expected, list):
            options = list(issue.expected)
        else:
            type_path = self.schema.resolve_type(self._frontmatter(state))
            options = self.schema.options_for_field(type_path, field) if type_path else []
        if not options:
            return self._skipped(state, f"No valid options known for {field}")
        choice = self._select(f"Select valid value for {field}:", [*options, SKIP, QUIT])
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        return self._report(state, self._values.apply(state.path, issue, choice), f"Set {field}: {choice}")

    def _unknown_field(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        field = issue.field
        if not field:
            return self._skipped(state, "Issue names no field")
        fm = self._frontmatter(state)
        if field not in fm:
            return self._skipped(state, f"'{field}' already resolved")

        type_path = self.schema.resolve_type(fm)
        schema_fields = self.schema.fields_for_type(type_path) if type_path else {}
        candidates = similar_field_candidates(field, schema_fields, fm[field], self._field_candidate_limit)
        by_label = {candidate.label: candidate for candidate in candidates}

        choice = self._select(
            f"Select target for unknown field '{field}':",
            [*by_label, SKIP, REMOVE_FIELD, QUIT],
        )
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        if choice == REMOVE_FIELD:
            return self._report(state, self._values.remove_field(state.path, issue, field))

        candidate = by_label[choice]
        if candidate.type_mismatch:
            proceed = self._prompter.confirm("TYPE MISMATCH: Proceed with migration?", default=False)
            if proceed is None:
                return FixOutcome.QUIT
            if not proceed:
                return self._skipped(state)
        overwrite = False
        if not is_empty(fm.get(candidate.field)):
            overwrite_ok = self._prompter.confirm(
                f"Overwrite existing '{candidate.field}' value?", default=False
            )
            if overwrite_ok is None:
                return FixOutcome.QUIT
            if not overwrite_ok:
                return self._skipped(state)
            overwrite = True
        result = self._values.migrate_field(
            state.path, issue, field, candidate.field, overwrite=overwrite
        )
        return self._report(state, result)

    def _wrong_location(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        target = issue.expected_directory
        if not target:
            return self._skipped(state, "No expected directory known")
        if issue.owner_path:
            self._reporter.note(state.rel, f"Owned by: {issue.owner_path}")
        self._reporter.note(state.rel, f"Expected: {target.rstrip('/')}/")
        if issue.current_directory is not None:
            self._reporter.note(state.rel, f"Current: {issue.current_directory.rstrip('/')}/")
        links = self._relocation.incoming_links(state.path)
        if links:
            self._reporter.note(state.rel, f"{links} wikilink(s) point at this note")

        choice = self._select("Action:", [MOVE_FILE, SKIP, QUIT])
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        moved = self._relocation.relocate(state.path, issue, target)
        outcome = self._report(state, moved.result)
        if moved.links_message:
            self._reporter.note(state.rel, moved.links_message)
        state.path = moved.path
        return outcome

    # ------------------------------------------------------------------
    # Links and relations
    # ------------------------------------------------------------------

    def _format_violation(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        return self._confirm_then(
            state,
            f"Convert {issue.field} to {issue.expected_format} format?",
            lambda: self._values.apply(state.path, issue),
        )

    def _stale_reference(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        if issue.in_body:
            where = f" (line {issue.line_number})" if issue.line_number else ""
            self._reporter.warn(state.rel, f"Body reference{where} requires a manual fix")
            return FixOutcome.SKIPPED
        if not issue.field:
            return self._skipped(state, "Issue names no field")
        field_def = self._field_def(self._frontmatter(state), issue.field)
        similar = (issue.similar_files or [])[: self._similar_file_limit]
        links = [self._link(name, field_def) for name in similar]

        choice = self._select(
            f"Select replacement for {to_wikilink(issue.target_name or '?')}:",
            [*links, CLEAR_FIELD, SKIP, QUIT],
        )
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        if choice == CLEAR_FIELD:
            return self._clear(state, issue)
        return self._set_link(state, issue, choice)

    def _invalid_source_type(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        if not issue.field:
            return self._skipped(state, "Issue names no field")
        field_def = self._field_def(self._frontmatter(state), issue.field)
        sources = field_def.sources if field_def is not None else []
        if not sources and issue.expected_type:
            sources = [issue.expected_type]
        names = query_by_type(self.schema, self.context.vault_root, sources)
        links = [self._link(name, field_def) for name in names[: self._relation_limit]]

        choice = self._select(
            f"Select {issue.expected_type or 'valid'} note for {issue.field}:",
            [*links, CLEAR_FIELD, SKIP, QUIT],
        )
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        if choice == CLEAR_FIELD:
            return self._clear(state, issue)
        return self._set_link(state, issue, choice)

    def _owned_note_referenced(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        if issue.owned_note_path and issue.owner_path:
            self._reporter.note(state.rel, f"{issue.owned_note_path} is owned by {issue.owner_path}")
        choice = self._select("Action:", [CLEAR_REFERENCE, SKIP, QUIT])
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        return self._clear(state, issue, "reference")

    def _parent_cycle(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        if issue.cycle_path:
            self._reporter.note(state.rel, "Cycle: " + " → ".join(issue.cycle_path))
        type_path = self.schema.resolve_type(self._frontmatter(state))
        in_cycle = {link_target(name) for name in issue.cycle_path or []}
        names = query_by_type(self.schema, self.context.vault_root, [type_path]) if type_path else []
        alternatives = [
            to_wikilink(name) for name in names if name != state.path.stem and name not in in_cycle
        ][: self._relation_limit]

        choice = self._select("Select new parent:", [CLEAR_PARENT, *alternatives, SKIP, QUIT])
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        field = issue.field or "parent"
        if choice == CLEAR_PARENT:
            return self._report(state, self._values.set_field(state.path, issue, field, ""), "Cleared parent")
        return self._report(state, self._values.set_field(state.path, issue, field, choice), f"Set parent: {choice}")

    def _self_reference(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        choice = self._select("Action for self-reference:", [CLEAR_FIELD, SKIP, QUIT])
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        return self._clear(state, issue)

    def _ambiguous_link_target(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        if not issue.field or not issue.candidates:
            return self._skipped(state, "No candidate targets known")
        options = [to_wikilink(candidate.removesuffix(".md")) for candidate in issue.candidates]
        choice = self._select(f"Select target for {issue.field}:", [*options, SKIP, QUIT])
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        result = self._values.set_field(state.path, issue, issue.field, choice, issue.list_index)
        return self._report(state, result, f"Updated {issue.field}")

    def _invalid_list_element(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        field = issue.field
        if not field:
            return self._skipped(state, "Issue names no field")
        action = REMOVE_ELEMENT if issue.list_index is not None else WRAP_IN_LIST
        choice = self._select(f"Fix list value for {field}:", [action, SKIP, QUIT])
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        if choice == REMOVE_ELEMENT:
            assert issue.list_index is not None
            return self._report(
                state, self._values.remove_list_element(state.path, issue, field, issue.list_index)
            )
        return self._report(state, self._values.wrap_in_list(state.path, issue, field))

    # ------------------------------------------------------------------
    # Raw header structure
    # ------------------------------------------------------------------

    def _not_at_top(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        return self._confirm_then(
            state,
            "Move frontmatter to the top of the file?",
            lambda: self._repair.move_block_to_top(state.path, issue),
        )

    def _duplicate_keys(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        key = issue.duplicate_key or issue.field
        choice = self._select(f"Resolve duplicate '{key}' keys:", [KEEP_LAST, KEEP_FIRST, SKIP, QUIT])
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        strategy = DuplicateStrategy.KEEP_FIRST if choice == KEEP_FIRST else DuplicateStrategy.KEEP_LAST
        return self._report(state, self._repair.resolve_duplicate_key(state.path, issue, strategy))

    def _malformed_wikilink(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        return self._confirm_then(
            state,
            f"Fix {issue.field} to {issue.fixed_value}?",
            lambda: self._repair.fix_malformed_wikilink(state.path, issue),
        )

    def _trailing_whitespace(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        return self._confirm_then(
            state,
            f"Trim trailing whitespace on line {issue.line_number}?",
            lambda: self._repair.trim_trailing_whitespace(state.path, issue),
        )

    # ------------------------------------------------------------------
    # Value hygiene
    # ------------------------------------------------------------------

    def _boolean_coercion(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        return self._confirm_then(
            state,
            f"Convert {issue.field} '{issue.value}' to boolean?",
            lambda: self._values.apply(state.path, issue),
        )

    def _wrong_scalar_type(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        expected = issue.expected if isinstance(issue.expected, str) else "the expected type"
        if issue.auto_fixable:
            return self._confirm_then(
                state,
                f"Convert {issue.field} '{issue.value}' to {expected}?",
                lambda: self._values.apply(state.path, issue),
            )
        text = self._prompter.input_text(f"Enter {expected} value for {issue.field}:")
        if text is None:
            return FixOutcome.QUIT
        if not text:
            return self._skipped(state)
        return self._report(state, self._values.apply(state.path, issue, text))

    def _invalid_date(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        suggestion = issue.suggestion
        if suggestion is None and issue.value is not None:
            suggestion = suggest_iso_date(str(issue.value))
        text = self._prompter.input_text(
            f"Enter date for {issue.field} (YYYY-MM-DD):", default=suggestion
        )
        if text is None:
            return FixOutcome.QUIT
        if not text:
            return self._skipped(state)
        normalized = normalize_to_iso_date(text)
        if not normalized.valid:
            failed = FixResult.failed(state.path, issue, normalized.error or "Invalid date")
            return self._report(state, failed)
        result = self._values.apply(state.path, issue, normalized.value)
        return self._report(state, result, f"Set {issue.field}: {normalized.value}")

    def _enum_casing(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        return self._confirm_then(
            state,
            f"Change {issue.field} '{issue.value}' to '{issue.canonical_value}'?",
            lambda: self._values.apply(state.path, issue),
        )

    def _duplicate_list_values(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        return self._confirm_then(
            state,
            f"Remove duplicate values from {issue.field}?",
            lambda: self._values.apply(state.path, issue),
        )

    def _key_rename(self, state: NoteState, issue: AuditIssue) -> FixOutcome:
        field, canonical = issue.field, issue.canonical_key
        if not field or not canonical:
            return self._skipped(state, "Issue names no key pair")
        fm = self._frontmatter(state)
        if field not in fm:
            return self._skipped(state, f"'{field}' already resolved")

        if is_empty(fm.get(field)) or is_empty(fm.get(canonical)):
            return self._confirm_then(
                state,
                f"Rename {field} → {canonical}?",
                lambda: self._values.apply(state.path, issue),
            )

        self._reporter.note(state.rel, f"{canonical}: {fm[canonical]!r}")
        self._reporter.note(state.rel, f"{field}: {fm[field]!r}")
        keep_canonical = f"[keep '{canonical}' value, delete '{field}']"
        use_variant = f"[use '{field}' value, overwrite '{canonical}']"
        choice = self._select(
            f"Both '{field}' and '{canonical}' have values:", [keep_canonical, use_variant, SKIP, QUIT]
        )
        if choice is None:
            return FixOutcome.QUIT
        if choice == SKIP:
            return self._skipped(state)
        proceed = self._prompter.confirm("This discards one of the values. Continue?", default=False)
        if proceed is None:
            return FixOutcome.QUIT
        if not proceed:
            return self._skipped(state)
        result = self._values.merge_keys(state.path, issue, keep_canonical=choice == keep_canonical)
        return self._report(state, result)


def run_interactive_fix(
    results: Sequence[FileAuditResult],
    schema: Schema,
    vault_dir: Path,
    *,
    dry_run: bool = False,
    prompter: Prompter | None = None,
    reporter: FixReporter | None = None,
    **limits: int,
) -> FixSummary:
    """Walk *results* interactively and return the run summary."""
    context = FixContext(schema=schema, vault_root=vault_dir, dry_run=dry_run)
    service = InteractiveFixService(context, prompter=prompter, reporter=reporter, **limits)
    return service.run(results)
