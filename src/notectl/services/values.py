"""Value fixer — fixes that operate on the parsed frontmatter mapping.

Every operation re-reads the note, edits the mapping, and rewrites the
whole note with keys in the resolved type's field order (``type`` first,
unknown keys after). The body is written back unchanged.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

from notectl.domain.coercion import coerce_scalar, field_shape, is_empty
from notectl.domain.content import ParsedNote, sequence_like
from notectl.domain.issues import AuditIssue, IssueCode
from notectl.domain.links import link_target, to_markdown_link, to_wikilink
from notectl.domain.results import FixResult
from notectl.domain.schema import discriminator_fields, type_name
from notectl.infrastructure.filesystem import read_note
from notectl.services.base import BaseService

MANUAL_MERGE_REQUIRED = "Both keys have values, manual merge required"

Edit = Callable[[ParsedNote], "FixResult | str"]


class FixPreconditionError(ValueError):
    """The note is not in the state the fix expects."""


def _rename_key(fm: dict[str, Any], old: str, new: str) -> dict[str, Any]:
    """Return *fm* with *old* renamed to *new* in place; an existing *new* is dropped."""
    renamed: dict[str, Any] = {}
    for key, value in fm.items():
        if key == new:
            continue
        renamed[new if key == old else key] = value
    return renamed


def _require_field(issue: AuditIssue) -> str:
    if not issue.field:
        msg = "Issue names no field"
        raise FixPreconditionError(msg)
    return issue.field


def _assign(fm: dict[str, Any], field: str, value: Any, list_index: int | None) -> None:
    if list_index is None:
        fm[field] = value
        return
    current = fm.get(field)
    if not isinstance(current, list):
        msg = f"Field '{field}' is not a list"
        raise FixPreconditionError(msg)
    if not 0 <= list_index < len(current):
        msg = f"List index {list_index} is out of range for '{field}'"
        raise FixPreconditionError(msg)
    current[list_index] = value


class ValueFixService(BaseService):
    """Apply value-level fixes to one note at a time."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._rules: dict[IssueCode, Callable[[Path, AuditIssue, Any], Edit]] = {
            IssueCode.MISSING_REQUIRED: self._supplied_value,
            IssueCode.INVALID_OPTION: self._supplied_value,
            IssueCode.INVALID_SOURCE_TYPE: self._supplied_value,
            IssueCode.INVALID_DATE_FORMAT: self._supplied_value,
            IssueCode.FORMAT_VIOLATION: self._link_format,
            IssueCode.INVALID_BOOLEAN_COERCION: self._scalar_coercion,
            IssueCode.WRONG_SCALAR_TYPE: self._scalar_coercion,
            IssueCode.UNKNOWN_ENUM_CASING: self._enum_casing,
            IssueCode.DUPLICATE_LIST_VALUES: self._dedupe_list,
            IssueCode.FRONTMATTER_KEY_CASING: self._rename_to_canonical,
            IssueCode.SINGULAR_PLURAL_MISMATCH: self._rename_to_canonical,
            IssueCode.ORPHAN_FILE: self._assign_type,
            IssueCode.INVALID_TYPE: self._assign_type,
        }

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _mutate(self, path: Path, issue: AuditIssue, edit: Edit) -> FixResult:
        def run() -> FixResult:
            note = read_note(path)
            outcome = edit(note)
            if isinstance(outcome, FixResult):
                return outcome
            self._save(path, note)
            return FixResult.fixed(path, issue, outcome)

        return self._guard(path, issue, run)

    def _save(self, path: Path, note: ParsedNote) -> None:
        type_path = self.schema.resolve_type(note.frontmatter)
        resolved = self.schema.type_def(type_path) if type_path else None
        order = resolved.field_order if resolved else ()
        self.writer.write_note(path, note.frontmatter, note.body, order)

    def apply(self, path: Path, issue: AuditIssue, value: Any = None) -> FixResult:
        """Apply the rule for *issue*'s code; *value* is a caller-chosen replacement."""
        rule = self._rules.get(issue.code)
        if rule is None:
            return FixResult.skipped(path, issue, f"No value fix for {issue.code.value}")
        return self._mutate(path, issue, rule(path, issue, value))

    # ------------------------------------------------------------------
    # Per-code rules
    # ------------------------------------------------------------------

    def _supplied_value(self, path: Path, issue: AuditIssue, value: Any) -> Edit:
        def edit(note: ParsedNote) -> str:
            field = _require_field(issue)
            if value is None:
                msg = "No value supplied"
                raise FixPreconditionError(msg)
            _assign(note.frontmatter, field, value, issue.list_index)
            return f"Set {field}"

        return edit

    def _link_format(self, path: Path, issue: AuditIssue, _value: Any) -> Edit:
        def convert(item: Any) -> Any:
            if not isinstance(item, str):
                msg = f"Cannot convert non-string value {item!r} to a link"
                raise FixPreconditionError(msg)
            name = link_target(item)
            return to_wikilink(name) if issue.expected_format == "wikilink" else to_markdown_link(name)

        def edit(note: ParsedNote) -> str:
            field = _require_field(issue)
            if issue.expected_format is None:
                msg = "Issue names no expected link format"
                raise FixPreconditionError(msg)
            current = note.frontmatter.get(field)
            if isinstance(current, list):
                note.frontmatter[field] = sequence_like(current, [convert(item) for item in current])
            else:
                note.frontmatter[field] = convert(current)
            return f"Converted {field} to {issue.expected_format} format"

        return edit

    def _expected_scalar(self, issue: AuditIssue, fm: dict[str, Any], field: str) -> str:
        if issue.code is IssueCode.INVALID_BOOLEAN_COERCION:
            return "boolean"
        if isinstance(issue.expected, str):
            return issue.expected
        type_path = self.schema.resolve_type(fm)
        field_def = self.schema.fields_for_type(type_path).get(field) if type_path else None
        shape = field_shape(field_def)
        if shape not in ("boolean", "number"):
            msg = f"Field '{field}' does not expect a boolean or number"
            raise FixPreconditionError(msg)
        return shape

    def _scalar_coercion(self, path: Path, issue: AuditIssue, value: Any) -> Edit:
        def edit(note: ParsedNote) -> str:
            field = _require_field(issue)
            fm = note.frontmatter
            raw = value if value is not None else fm.get(field)
            if value is None and field not in fm:
                msg = f"Field '{field}' not present"
                raise FixPreconditionError(msg)
            if isinstance(raw, list) and len(raw) == 1:
                raw = raw[0]
            expected = self._expected_scalar(issue, fm, field)
            coerced = coerce_scalar(raw, expected)
            if not coerced.ok:
                raise FixPreconditionError(coerced.reason)
            fm[field] = coerced.value
            return f"Coerced {field} to {expected}"

        return edit

    def _enum_casing(self, path: Path, issue: AuditIssue, value: Any) -> Edit:
        def edit(note: ParsedNote) -> str:
            field = _require_field(issue)
            canonical = value if value is not None else issue.canonical_value
            if canonical is None:
                msg = "No canonical value available"
                raise FixPreconditionError(msg)
            current = note.frontmatter.get(field)
            if isinstance(current, list):
                wanted = str(canonical).casefold()
                replaced = [
                    canonical if isinstance(item, str) and item.casefold() == wanted else item
                    for item in current
                ]
                note.frontmatter[field] = sequence_like(current, replaced)
            else:
                note.frontmatter[field] = canonical
            return f"Fixed {field} casing: {canonical}"

        return edit

    def _dedupe_list(self, path: Path, issue: AuditIssue, _value: Any) -> Edit:
        def edit(note: ParsedNote) -> FixResult | str:
            field = _require_field(issue)
            current = note.frontmatter.get(field)
            if not isinstance(current, list):
                msg = f"Field '{field}' is not a list"
                raise FixPreconditionError(msg)
            seen: set[tuple[str, str]] = set()
            kept: list[Any] = []
            for item in current:
                # 1 and "1" are different values; only strings compare case-insensitively
                text = item.casefold() if isinstance(item, str) else json.dumps(item, default=str)
                marker = (type(item).__name__, text)
                if marker in seen:
                    continue
                seen.add(marker)
                kept.append(item)
            removed = len(current) - len(kept)
            if removed == 0:
                return FixResult.skipped(path, issue, "No duplicate values found")
            note.frontmatter[field] = sequence_like(current, kept)
            return f"Removed {removed} duplicate value(s) from {field}"

        return edit

    def _rename_to_canonical(self, path: Path, issue: AuditIssue, _value: Any) -> Edit:
        def edit(note: ParsedNote) -> FixResult | str:
            field = _require_field(issue)
            canonical = issue.canonical_key
            if not canonical:
                msg = "Issue names no canonical key"
                raise FixPreconditionError(msg)
            fm = note.frontmatter
            if field not in fm:
                return FixResult.skipped(path, issue, f"Field '{field}' no longer present")
            source, target = fm[field], fm.get(canonical)
            if not is_empty(source) and not is_empty(target):
                raise FixPreconditionError(MANUAL_MERGE_REQUIRED)
            if is_empty(source) and not is_empty(target):
                del fm[field]
            else:
                note.frontmatter = _rename_key(fm, field, canonical)
            return f"Renamed {field} → {canonical}"

        return edit

    def _assign_type(self, path: Path, issue: AuditIssue, value: Any) -> Edit:
        def edit(note: ParsedNote) -> str:
            type_path = value if value is not None else issue.inferred_type
            if not type_path:
                msg = "No type supplied"
                raise FixPreconditionError(msg)
            if not self.schema.has_type(type_name(type_path)):
                msg = f"Unknown type: {type_path}"
                raise FixPreconditionError(msg)
            note.frontmatter.update(discriminator_fields(type_path))
            return f"Set type: {type_name(type_path)}"

        return edit

    # ------------------------------------------------------------------
    # Operations used by the orchestrators
    # ------------------------------------------------------------------

    def set_field(
        self,
        path: Path,
        issue: AuditIssue,
        field: str,
        value: Any,
        list_index: int | None = None,
    ) -> FixResult:
        """Set *field* (or one element of it) to *value*."""

        def edit(note: ParsedNote) -> str:
            _assign(note.frontmatter, field, value, list_index)
            return f"Updated {field}"

        return self._mutate(path, issue, edit)

    def remove_field(self, path: Path, issue: AuditIssue, field: str) -> FixResult:
        def edit(note: ParsedNote) -> FixResult | str:
            if field not in note.frontmatter:
                return FixResult.skipped(path, issue, f"Field '{field}' no longer present")
            del note.frontmatter[field]
            return f"Removed field {field}"

        return self._mutate(path, issue, edit)

    def remove_list_element(self, path: Path, issue: AuditIssue, field: str, index: int) -> FixResult:
        def edit(note: ParsedNote) -> str:
            current = note.frontmatter.get(field)
            if not isinstance(current, list) or not 0 <= index < len(current):
                msg = f"No element {index} in '{field}'"
                raise FixPreconditionError(msg)
            del current[index]
            return "Removed invalid element"

        return self._mutate(path, issue, edit)

    def wrap_in_list(self, path: Path, issue: AuditIssue, field: str) -> FixResult:
        """Turn a scalar value into a one-element list."""

        def edit(note: ParsedNote) -> str:
            current = note.frontmatter.get(field)
            if not isinstance(current, (str, int, float, bool)):
                msg = f"Field '{field}' does not hold a scalar"
                raise FixPreconditionError(msg)
            note.frontmatter[field] = [current]
            return f"Converted {field} to a list"

        return self._mutate(path, issue, edit)

    def migrate_field(
        self,
        path: Path,
        issue: AuditIssue,
        source: str,
        target: str,
        *,
        overwrite: bool = False,
    ) -> FixResult:
        """Move *source*'s value onto schema field *target*, in *source*'s position."""

        def edit(note: ParsedNote) -> FixResult | str:
            fm = note.frontmatter
            if source not in fm:
                return FixResult.skipped(path, issue, f"Field '{source}' no longer present")
            if not overwrite and not is_empty(fm.get(target)):
                msg = f"Target '{target}' already has a value"
                raise FixPreconditionError(msg)
            note.frontmatter = _rename_key(fm, source, target)
            return f"Migrated {source} → {target}"

        return self._mutate(path, issue, edit)

    def merge_keys(self, path: Path, issue: AuditIssue, *, keep_canonical: bool) -> FixResult:
        """Collapse a casing/plural key pair into the canonical key.

        ``keep_canonical`` keeps the canonical key's value and deletes the
        variant; otherwise the variant's value overwrites the canonical key.
        """

        def edit(note: ParsedNote) -> FixResult | str:
            field = _require_field(issue)
            canonical = issue.canonical_key
            fm = note.frontmatter
            if not canonical or field not in fm:
                return FixResult.skipped(path, issue, f"Field '{field}' no longer present")
            if keep_canonical:
                del fm[field]
                return f"Kept '{canonical}' value, deleted '{field}'"
            fm[canonical] = fm.pop(field)
            return f"Used '{field}' value for '{canonical}'"

        return self._mutate(path, issue, edit)
