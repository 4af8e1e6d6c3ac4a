"""Structural repair — fixes that edit the raw header text in place.

These fixes never re-serialize the note: the header is edited by range
replacement on its original text and spliced back, so the body and every
untouched header line keep their exact bytes.
"""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import Any

from notectl.domain.coercion import is_empty
from notectl.domain.issues import AuditIssue, IssueCode
from notectl.domain.results import FixResult
from notectl.infrastructure.filesystem import read_raw
from notectl.infrastructure.structural import (
    StructuralFrontmatter,
    entries_for_key,
    entry_value,
    mapping_entries,
    move_primary_block_to_top,
    read_structural_frontmatter,
    remove_entries,
    replace_primary_yaml,
    replace_scalar,
    sequence_item,
    trim_trailing_whitespace,
)
from notectl.services.base import BaseService

AMBIGUOUS_FRONTMATTER = "Ambiguous frontmatter; manual fix required"
DUPLICATE_VALUES_DIFFER = "Duplicate values differ; run interactive fix"


class DuplicateStrategy(StrEnum):
    KEEP_FIRST = "keep-first"
    KEEP_LAST = "keep-last"


def _canonical(value: Any) -> str:
    """Serialize *value* so that equal structures compare equal and ``true != 1``."""
    return json.dumps(value, sort_keys=True, default=str)


class RepairService(BaseService):
    """Apply structural fixes to one note at a time."""

    def apply(
        self,
        path: Path,
        issue: AuditIssue,
        *,
        strategy: DuplicateStrategy | None = None,
    ) -> FixResult:
        """Dispatch *issue* to its structural fix."""
        match issue.code:
            case IssueCode.FRONTMATTER_NOT_AT_TOP:
                return self.move_block_to_top(path, issue)
            case IssueCode.DUPLICATE_FRONTMATTER_KEYS:
                return self.resolve_duplicate_key(path, issue, strategy)
            case IssueCode.MALFORMED_WIKILINK:
                return self.fix_malformed_wikilink(path, issue)
            case IssueCode.TRAILING_WHITESPACE:
                return self.trim_trailing_whitespace(path, issue)
        return FixResult.skipped(path, issue, f"No structural fix for {issue.code.value}")

    # --- Block level ---

    def move_block_to_top(self, path: Path, issue: AuditIssue) -> FixResult:
        return self._guard(path, issue, lambda: self._move_block_to_top(path, issue))

    def _move_block_to_top(self, path: Path, issue: AuditIssue) -> FixResult:
        raw = read_raw(path)
        info = read_structural_frontmatter(raw)
        block = info.primary_block
        if block is None:
            return FixResult.skipped(path, issue, "No frontmatter block found")
        if info.at_top:
            return FixResult.skipped(path, issue, "Frontmatter already at top")
        if len(info.blocks) != 1 or info.unterminated or info.yaml_errors:
            return FixResult.skipped(path, issue, AMBIGUOUS_FRONTMATTER)
        self.writer.write_text(path, move_primary_block_to_top(raw, block))
        return FixResult.fixed(path, issue, "Moved frontmatter to top")

    def trim_trailing_whitespace(self, path: Path, issue: AuditIssue) -> FixResult:
        return self._guard(path, issue, lambda: self._trim(path, issue))

    def _trim(self, path: Path, issue: AuditIssue) -> FixResult:
        if issue.line_number is None:
            return FixResult.failed(path, issue, "Issue names no line number")
        updated = trim_trailing_whitespace(read_raw(path), issue.line_number)
        if updated is None:
            return FixResult.skipped(path, issue, "No trailing whitespace found")
        self.writer.write_text(path, updated)
        return FixResult.fixed(path, issue, f"Trimmed trailing whitespace on line {issue.line_number}")

    # --- Node level ---

    def _header(self, path: Path, issue: AuditIssue) -> tuple[StructuralFrontmatter, FixResult | None]:
        info = read_structural_frontmatter(read_raw(path))
        if info.primary_block is None or info.yaml is None:
            return info, FixResult.failed(path, issue, "No frontmatter block found")
        if info.yaml_errors:
            return info, FixResult.failed(
                path, issue, f"Frontmatter YAML could not be parsed: {info.yaml_errors[0]}"
            )
        if info.root is None:
            return info, FixResult.failed(path, issue, "Frontmatter is not a YAML mapping")
        return info, None

    def _write_header(self, path: Path, info: StructuralFrontmatter, new_yaml: str) -> None:
        assert info.primary_block is not None
        self.writer.write_text(path, replace_primary_yaml(info.raw, info.primary_block, new_yaml))

    def resolve_duplicate_key(
        self,
        path: Path,
        issue: AuditIssue,
        strategy: DuplicateStrategy | None = None,
    ) -> FixResult:
        """Keep one occurrence of a repeated key and delete the others.

        Without a *strategy* the choice is automatic: when every occurrence
        is empty, or all non-empty occurrences are equal, the last such
        occurrence is kept. Differing non-empty values are left alone.
        """
        return self._guard(path, issue, lambda: self._resolve_duplicate(path, issue, strategy))

    def _resolve_duplicate(
        self,
        path: Path,
        issue: AuditIssue,
        strategy: DuplicateStrategy | None,
    ) -> FixResult:
        key = issue.duplicate_key or issue.field
        if not key:
            return FixResult.failed(path, issue, "Issue names no duplicate key")
        info, problem = self._header(path, issue)
        if problem is not None:
            return problem
        assert info.yaml is not None and info.root is not None

        entries = entries_for_key(mapping_entries(info.yaml, info.root), key)
        if len(entries) < 2:
            return FixResult.skipped(path, issue, "No duplicate keys found")

        if strategy is DuplicateStrategy.KEEP_FIRST:
            keep, label = entries[0], "first"
        elif strategy is DuplicateStrategy.KEEP_LAST:
            keep, label = entries[-1], "last"
        else:
            filled = [(e, entry_value(info.yaml, e)) for e in entries]
            filled = [(e, v) for e, v in filled if not is_empty(v)]
            if not filled:
                keep, label = entries[-1], "last"
            else:
                if len({_canonical(v) for _e, v in filled}) > 1:
                    return FixResult.skipped(path, issue, DUPLICATE_VALUES_DIFFER)
                keep, label = filled[-1][0], "last non-empty"

        removed = [entry for entry in entries if entry is not keep]
        self._write_header(path, info, remove_entries(info.yaml, removed))
        return FixResult.fixed(path, issue, f"Kept {label} '{key}' value")

    def fix_malformed_wikilink(self, path: Path, issue: AuditIssue) -> FixResult:
        """Replace a malformed link value with the issue's corrected text."""
        return self._guard(path, issue, lambda: self._fix_wikilink(path, issue))

    def _fix_wikilink(self, path: Path, issue: AuditIssue) -> FixResult:
        if not issue.field:
            return FixResult.failed(path, issue, "Issue names no field")
        if not issue.fixed_value:
            return FixResult.failed(path, issue, "No corrected link value available")
        info, problem = self._header(path, issue)
        if problem is not None:
            return problem
        assert info.yaml is not None and info.root is not None

        entries = entries_for_key(mapping_entries(info.yaml, info.root), issue.field)
        if not entries:
            return FixResult.failed(path, issue, f"Field '{issue.field}' not found")
        node = entries[-1].value_node
        if issue.list_index is not None:
            node = sequence_item(node, issue.list_index)

        self._write_header(path, info, replace_scalar(info.yaml, node, issue.fixed_value))
        return FixResult.fixed(path, issue, f"Fixed {issue.field}: {issue.fixed_value}")
