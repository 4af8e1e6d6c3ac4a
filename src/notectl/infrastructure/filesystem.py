"""Filesystem operations for vault notes.

INVARIANT: Files are truth. Every fix re-reads the note from disk
immediately before mutating it, and every mutation goes through a
:class:`NoteWriter` so a dry run can never touch the vault.

Pure parsing/rendering utilities live in :mod:`notectl.domain.content`
(correct dependency direction: infrastructure -> domain). This module
handles actual file I/O and file discovery.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from notectl.domain.content import ParsedNote, load_yaml_value, parse_frontmatter, render_frontmatter
from notectl.domain.issues import FileAuditResult
from notectl.domain.schema import Schema

logger = logging.getLogger(__name__)

# Directories to skip when discovering notes.
_SKIP_DIRS = frozenset({".notectl", ".obsidian", ".git", ".trash", "node_modules"})

_FINDINGS_ADAPTER = TypeAdapter(list[FileAuditResult])


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def read_raw(path: Path) -> str:
    # newline="" keeps CRLF intact for byte-preserving splices.
    with path.open(encoding="utf-8", newline="") as handle:
        return handle.read()


def read_note(path: Path) -> ParsedNote:
    """Read a markdown file, returning its frontmatter and body."""
    return parse_frontmatter(read_raw(path))


@dataclass
class NoteWriter:
    """The only path by which a fix may persist changes.

    With ``dry_run`` set, writes are recorded in :attr:`pending` and
    logged but never reach the disk.
    """

    dry_run: bool = False
    pending: list[Path] = field(default_factory=list)

    def write_text(self, path: Path, text: str) -> bool:
        """Write *text* to *path*; returns whether the disk was touched."""
        if self.dry_run:
            self.pending.append(path)
            logger.debug("Dry run: skipped write of %s", path)
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        logger.debug("Wrote %s", path)
        return True

    def write_note(
        self,
        path: Path,
        frontmatter: dict[str, Any],
        body: str,
        field_order: Sequence[str] = (),
    ) -> bool:
        """Render and write a whole note, keys ordered by *field_order*."""
        return self.write_text(path, render_frontmatter(frontmatter, body, field_order))


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def find_markdown_files(vault_root: Path) -> list[Path]:
    """Find all ``.md`` files in the vault, skipping hidden and tool directories."""
    results: list[Path] = []
    for path in sorted(vault_root.rglob("*.md")):
        relative = path.relative_to(vault_root)
        if any(part in _SKIP_DIRS or part.startswith(".") for part in relative.parts[:-1]):
            continue
        if path.is_file():
            results.append(path)
    return results


def query_by_type(schema: Schema, vault_root: Path, type_names: Iterable[str]) -> list[str]:
    """Return note names whose type is one of *type_names* or a subtype of one.

    Notes whose frontmatter cannot be parsed are ignored.
    """
    wanted: set[str] = set()
    for name in type_names:
        wanted.add(name)
        wanted.update(schema.descendants(name))

    names: list[str] = []
    for path in find_markdown_files(vault_root):
        try:
            note = read_note(path)
        except Exception:
            logger.debug("Skipping unreadable note %s", path, exc_info=True)
            continue
        if note.frontmatter.get("type") in wanted:
            names.append(path.stem)
    return sorted(names)


# ---------------------------------------------------------------------------
# Inputs: schema and findings
# ---------------------------------------------------------------------------


def load_schema(path: Path) -> Schema:
    """Load the vault schema from a JSON or YAML file.

    Raises:
        FileNotFoundError: If *path* does not exist.
        pydantic.ValidationError: If the schema is malformed.
    """
    text = path.read_text(encoding="utf-8")
    data = json.loads(text) if path.suffix == ".json" else load_yaml_value(text)
    return Schema.model_validate(data or {})


def load_findings(path: Path, vault_root: Path) -> list[FileAuditResult]:
    """Load audit findings from a JSON file, resolving relative note paths."""
    results = _FINDINGS_ADAPTER.validate_json(path.read_bytes())
    resolved: list[FileAuditResult] = []
    for result in results:
        if not result.path.is_absolute():
            result = result.model_copy(update={"path": vault_root / result.path})
        resolved.append(result)
    return resolved
