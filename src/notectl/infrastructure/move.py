"""Bulk note moves with wikilink rewriting.

Moving a note can break ``[[links]]`` that spell out its folder, and can
make a bare ``[[Name]]`` ambiguous. After a move every link pointing at a
moved note is rewritten to the shortest unique form (bare name when the
name is unique in the vault, vault-relative path otherwise), keeping the
link's ``#heading`` and ``|alias``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from notectl.domain.links import extract_wikilinks
from notectl.infrastructure.filesystem import NoteWriter, find_markdown_files, read_raw

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WikilinkReference:
    """One ``[[link]]`` in *source* that resolves to a given note."""

    source: Path
    match: str
    target: str
    position: int
    line_number: int
    in_frontmatter: bool


@dataclass(frozen=True)
class MoveResult:
    old_path: Path
    new_path: Path
    applied: bool = False
    error: str | None = None


@dataclass
class BulkMoveResult:
    dry_run: bool
    moves: list[MoveResult] = field(default_factory=list)
    total_links_updated: int = 0
    errors: list[str] = field(default_factory=list)


def _relative_stem(path: Path, vault_root: Path) -> str:
    return path.relative_to(vault_root).with_suffix("").as_posix()


def wikilink_matches_file(target: str, path: Path, vault_root: Path) -> bool:
    """Whether a link target (``Name``, ``Folder/Name``, ``Name.md``) names *path*."""
    normalized = target.removesuffix(".md")
    relative = _relative_stem(path, vault_root)
    if normalized in (path.stem, relative):
        return True
    return normalized.endswith(f"/{path.stem}") and relative.endswith(normalized)


def _frontmatter_end(content: str) -> int:
    if not content.startswith("---"):
        return 0
    closing = content.find("\n---", 3)
    return 0 if closing == -1 else closing + 4


def find_wikilinks_to(
    vault_root: Path,
    target: Path,
    all_files: Sequence[Path],
) -> list[WikilinkReference]:
    """Find every wikilink in the vault (other than in *target*) that names *target*."""
    references: list[WikilinkReference] = []
    for source in all_files:
        if source == target:
            continue
        content = read_raw(source)
        header_end = _frontmatter_end(content)
        for link in extract_wikilinks(content):
            if not wikilink_matches_file(link.target, target, vault_root):
                continue
            references.append(
                WikilinkReference(
                    source=source,
                    match=content[link.start : link.end],
                    target=link.target,
                    position=link.start,
                    line_number=content.count("\n", 0, link.start) + 1,
                    in_frontmatter=link.start < header_end,
                )
            )
    return references


def updated_wikilink(
    old_match: str,
    new_path: Path,
    vault_root: Path,
    all_paths: Sequence[Path],
) -> str:
    """Render the link that should replace *old_match* once its note lives at *new_path*."""
    same_name = [p for p in all_paths if p.stem == new_path.stem]
    target = new_path.stem if len(same_name) == 1 else _relative_stem(new_path, vault_root)

    inner = old_match[2:-2]
    alias = ""
    if "|" in inner:
        inner, alias_text = inner.split("|", 1)
        alias = f"|{alias_text}"
    heading = f"#{inner.split('#', 1)[1]}" if "#" in inner else ""
    return f"[[{target}{heading}{alias}]]"


def execute_bulk_move(
    vault_root: Path,
    target_dir: str | Path,
    files_to_move: Sequence[Path],
    *,
    execute: bool,
    all_vault_files: Sequence[Path] | None = None,
) -> BulkMoveResult:
    """Move *files_to_move* into *target_dir* and rewrite links to them.

    With ``execute`` false nothing on disk changes, but the result reports
    the moves and link updates that would happen.
    """
    result = BulkMoveResult(dry_run=not execute)
    if not files_to_move:
        return result

    all_files = list(all_vault_files) if all_vault_files is not None else find_markdown_files(vault_root)
    destination = Path(target_dir)
    if not destination.is_absolute():
        destination = vault_root / destination

    new_location: dict[Path, Path] = {}
    for path in files_to_move:
        new_path = destination / path.name
        if new_path != path and new_path.exists():
            # rename() would silently replace the note already there
            taken = new_path.relative_to(vault_root)
            message = f"Cannot move {path.relative_to(vault_root)}: {taken} already exists"
            result.moves.append(MoveResult(old_path=path, new_path=new_path, error=message))
            result.errors.append(message)
            continue
        new_location[path] = new_path
    new_paths = [new_location.get(path, path) for path in all_files]

    by_source: dict[Path, list[tuple[WikilinkReference, Path]]] = {}
    for path in new_location:
        for ref in find_wikilinks_to(vault_root, path, all_files):
            by_source.setdefault(ref.source, []).append((ref, new_location[path]))

    for path in new_location:
        move = MoveResult(old_path=path, new_path=new_location[path])
        if execute:
            try:
                destination.mkdir(parents=True, exist_ok=True)
                path.rename(move.new_path)
                move = MoveResult(old_path=path, new_path=move.new_path, applied=True)
            except OSError as exc:
                move = MoveResult(old_path=path, new_path=move.new_path, error=str(exc))
                result.errors.append(f"Failed to move {path.relative_to(vault_root)}: {exc}")
        result.moves.append(move)

    writer = NoteWriter(dry_run=not execute)
    for source, refs in by_source.items():
        # A moved source file now lives at its new location.
        current = new_location.get(source, source) if execute else source
        try:
            content = read_raw(current)
        except OSError as exc:
            result.errors.append(f"Failed to update links in {source.relative_to(vault_root)}: {exc}")
            continue
        updated = content
        count = 0
        for ref, new_path in sorted(refs, key=lambda item: item[0].position, reverse=True):
            replacement = updated_wikilink(ref.match, new_path, vault_root, new_paths)
            if replacement == ref.match:
                continue
            end = ref.position + len(ref.match)
            updated = updated[: ref.position] + replacement + updated[end:]
            count += 1
        if count:
            writer.write_text(current, updated)
            result.total_links_updated += count
            logger.debug("Updated %d link(s) in %s", count, source)
    return result
