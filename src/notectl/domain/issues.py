"""Audit findings — the immutable input of the remediation engine.

An :class:`AuditIssue` is one anomaly found in one note by the vault scan.
The issue ``code`` decides which of the optional variant attributes carry
meaning; :data:`VARIANT_ATTRIBUTES` records that mapping and the model
validator rejects a variant attribute set on a code that does not own it.

Findings arrive as JSON produced by the scanner, so both ``snake_case``
and ``camelCase`` keys are accepted.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class IssueCode(StrEnum):
    """Every kind of anomaly the scan can report."""

    # Schema conformance
    ORPHAN_FILE = "orphan-file"
    INVALID_TYPE = "invalid-type"
    MISSING_REQUIRED = "missing-required"
    INVALID_OPTION = "invalid-option"
    UNKNOWN_FIELD = "unknown-field"
    WRONG_DIRECTORY = "wrong-directory"

    # Links and relations
    FORMAT_VIOLATION = "format-violation"
    STALE_REFERENCE = "stale-reference"
    INVALID_SOURCE_TYPE = "invalid-source-type"
    OWNED_NOTE_REFERENCED = "owned-note-referenced"
    OWNED_WRONG_LOCATION = "owned-wrong-location"
    PARENT_CYCLE = "parent-cycle"
    SELF_REFERENCE = "self-reference"
    AMBIGUOUS_LINK_TARGET = "ambiguous-link-target"
    INVALID_LIST_ELEMENT = "invalid-list-element"

    # Raw header structure
    FRONTMATTER_NOT_AT_TOP = "frontmatter-not-at-top"
    DUPLICATE_FRONTMATTER_KEYS = "duplicate-frontmatter-keys"
    MALFORMED_WIKILINK = "malformed-wikilink"
    TRAILING_WHITESPACE = "trailing-whitespace"

    # Value hygiene
    INVALID_BOOLEAN_COERCION = "invalid-boolean-coercion"
    WRONG_SCALAR_TYPE = "wrong-scalar-type"
    INVALID_DATE_FORMAT = "invalid-date-format"
    UNKNOWN_ENUM_CASING = "unknown-enum-casing"
    DUPLICATE_LIST_VALUES = "duplicate-list-values"
    FRONTMATTER_KEY_CASING = "frontmatter-key-casing"
    SINGULAR_PLURAL_MISMATCH = "singular-plural-mismatch"


# Codes fixed by editing the raw header text rather than the parsed mapping.
STRUCTURAL_CODES: frozenset[IssueCode] = frozenset(
    {
        IssueCode.FRONTMATTER_NOT_AT_TOP,
        IssueCode.DUPLICATE_FRONTMATTER_KEYS,
        IssueCode.MALFORMED_WIKILINK,
        IssueCode.TRAILING_WHITESPACE,
    }
)

# Codes whose fix renames one key onto its canonical spelling.
RENAME_CODES: frozenset[IssueCode] = frozenset(
    {IssueCode.FRONTMATTER_KEY_CASING, IssueCode.SINGULAR_PLURAL_MISMATCH}
)

_RENAME_ATTRS = frozenset({"canonical_key", "has_conflict", "conflict_value"})

VARIANT_ATTRIBUTES: dict[IssueCode, frozenset[str]] = {
    IssueCode.ORPHAN_FILE: frozenset({"inferred_type"}),
    IssueCode.INVALID_TYPE: frozenset(),
    IssueCode.MISSING_REQUIRED: frozenset(),
    IssueCode.INVALID_OPTION: frozenset(),
    IssueCode.UNKNOWN_FIELD: frozenset(),
    IssueCode.WRONG_DIRECTORY: frozenset({"expected_directory", "current_directory"}),
    IssueCode.FORMAT_VIOLATION: frozenset({"expected_format"}),
    IssueCode.STALE_REFERENCE: frozenset(
        {"similar_files", "target_name", "in_body", "line_number", "list_index"}
    ),
    IssueCode.INVALID_SOURCE_TYPE: frozenset({"expected_type", "actual_type", "list_index"}),
    IssueCode.OWNED_NOTE_REFERENCED: frozenset({"owner_path", "owned_note_path", "list_index"}),
    IssueCode.OWNED_WRONG_LOCATION: frozenset(
        {"owner_path", "owned_note_path", "expected_directory", "current_directory"}
    ),
    IssueCode.PARENT_CYCLE: frozenset({"cycle_path"}),
    IssueCode.SELF_REFERENCE: frozenset({"list_index"}),
    IssueCode.AMBIGUOUS_LINK_TARGET: frozenset({"target_name", "candidates", "list_index"}),
    IssueCode.INVALID_LIST_ELEMENT: frozenset({"list_index"}),
    IssueCode.FRONTMATTER_NOT_AT_TOP: frozenset(),
    IssueCode.DUPLICATE_FRONTMATTER_KEYS: frozenset({"duplicate_key"}),
    IssueCode.MALFORMED_WIKILINK: frozenset({"fixed_value", "list_index"}),
    IssueCode.TRAILING_WHITESPACE: frozenset({"line_number"}),
    IssueCode.INVALID_BOOLEAN_COERCION: frozenset(),
    IssueCode.WRONG_SCALAR_TYPE: frozenset(),
    IssueCode.INVALID_DATE_FORMAT: frozenset(),
    IssueCode.UNKNOWN_ENUM_CASING: frozenset({"canonical_value"}),
    IssueCode.DUPLICATE_LIST_VALUES: frozenset(),
    IssueCode.FRONTMATTER_KEY_CASING: _RENAME_ATTRS,
    IssueCode.SINGULAR_PLURAL_MISMATCH: _RENAME_ATTRS,
}

_ALL_VARIANT_ATTRS: frozenset[str] = frozenset().union(*VARIANT_ATTRIBUTES.values())


class AuditIssue(BaseModel):
    """A single finding in one note.

    ``value`` is the offending value as the scan saw it. ``expected`` holds
    the allowed options (a list) or the expected scalar type name (a string).
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    severity: Literal["error", "warning"] = "error"
    code: IssueCode
    message: str
    auto_fixable: bool = False
    field: str | None = None
    value: Any = None
    expected: list[str] | str | None = None
    suggestion: str | None = None

    # --- Variant attributes (see VARIANT_ATTRIBUTES) ---
    inferred_type: str | None = None
    expected_format: Literal["wikilink", "markdown"] | None = None
    similar_files: list[str] | None = None
    target_name: str | None = None
    in_body: bool = False
    line_number: int | None = None
    owner_path: str | None = None
    owned_note_path: str | None = None
    expected_type: str | None = None
    actual_type: str | None = None
    cycle_path: list[str] | None = None
    expected_directory: str | None = None
    current_directory: str | None = None
    list_index: int | None = None
    duplicate_key: str | None = None
    canonical_key: str | None = None
    canonical_value: str | None = None
    has_conflict: bool = False
    conflict_value: Any = None
    fixed_value: str | None = None
    candidates: list[str] | None = None

    @model_validator(mode="after")
    def _check_variant_attributes(self) -> AuditIssue:
        allowed = VARIANT_ATTRIBUTES[self.code]
        stray = sorted(
            name
            for name in _ALL_VARIANT_ATTRS - allowed
            if getattr(self, name) not in (None, False)
        )
        if stray:
            msg = f"Attributes {stray} do not apply to issue code {self.code.value!r}"
            raise ValueError(msg)
        return self

    @property
    def is_structural(self) -> bool:
        return self.code in STRUCTURAL_CODES


class FileAuditResult(BaseModel):
    """All findings for one note, in scan order."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    path: Path
    relative_path: str
    issues: list[AuditIssue] = Field(default_factory=list)
