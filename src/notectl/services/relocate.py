"""Relocation — move a misplaced note and keep links to it working."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from notectl.domain.issues import AuditIssue
from notectl.domain.results import FixResult
from notectl.infrastructure.filesystem import find_markdown_files
from notectl.infrastructure.move import execute_bulk_move, find_wikilinks_to
from notectl.services.base import BaseService


@dataclass(frozen=True)
class Relocation:
    result: FixResult
    path: Path  # where the note lives after the fix
    links_updated: int = 0
    dry_run: bool = False

    @property
    def links_message(self) -> str | None:
        if not self.links_updated:
            return None
        verb = "Would update" if self.dry_run else "Updated"
        return f"{verb} {self.links_updated} wikilink(s)"


class RelocationService(BaseService):
    """Moves notes through the bulk-move collaborator.

    In a dry run the collaborator runs with ``execute`` off, so the move
    and link counts are reported but nothing changes.
    """

    def incoming_links(self, path: Path) -> int:
        """Count wikilinks elsewhere in the vault that point at *path*."""
        vault_root = self.context.vault_root
        return len(find_wikilinks_to(vault_root, path, find_markdown_files(vault_root)))

    def relocate(self, path: Path, issue: AuditIssue, target_dir: str) -> Relocation:
        target = target_dir.rstrip("/")
        moved: list[Relocation] = []

        def run() -> FixResult:
            bulk = execute_bulk_move(
                self.context.vault_root,
                target,
                [path],
                execute=not self.context.dry_run,
            )
            if bulk.errors:
                return FixResult.failed(path, issue, bulk.errors[0])
            verb = "Would move" if bulk.dry_run else "Moved"
            result = FixResult.fixed(path, issue, f"{verb} to {target}/")
            new_path = bulk.moves[0].new_path if bulk.moves and bulk.moves[0].applied else path
            moved.append(Relocation(result, new_path, bulk.total_links_updated, bulk.dry_run))
            return result

        result = self._guard(path, issue, run)
        return moved[0] if moved else Relocation(result, path)
