"""Tests for moving misplaced notes."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from notectl.domain.issues import AuditIssue, IssueCode
from notectl.domain.results import FixAction, FixContext
from notectl.services.relocate import RelocationService

WriteNote = Callable[[str, str], Path]


def _wrong_directory() -> AuditIssue:
    return AuditIssue(
        code=IssueCode.WRONG_DIRECTORY,
        message="Project note outside projects/",
        auto_fixable=True,
        expected_directory="projects/",
        current_directory="notes",
    )


class TestRelocate:
    def test_moves_and_updates_links(self, context: FixContext, vault_root: Path, write_note: WriteNote) -> None:
        alpha = write_note("notes/Alpha.md", "---\ntype: project\n---\n")
        beta = write_note("people/Beta.md", "Working on [[notes/Alpha]]\n")

        moved = RelocationService(context).relocate(alpha, _wrong_directory(), "projects/")

        assert moved.result.ok
        assert moved.result.message == "Moved to projects/"
        assert moved.path == vault_root / "projects" / "Alpha.md"
        assert moved.path.exists()
        assert not alpha.exists()
        assert moved.links_updated == 1
        assert moved.links_message == "Updated 1 wikilink(s)"
        assert beta.read_text() == "Working on [[Alpha]]\n"

    def test_dry_run_reports_only(self, dry_context: FixContext, write_note: WriteNote) -> None:
        alpha = write_note("notes/Alpha.md", "---\ntype: project\n---\n")
        beta = write_note("people/Beta.md", "Working on [[notes/Alpha]]\n")

        moved = RelocationService(dry_context).relocate(alpha, _wrong_directory(), "projects")

        assert moved.result.ok
        assert moved.result.message == "Would move to projects/"
        assert moved.path == alpha
        assert alpha.exists()
        assert moved.links_message == "Would update 1 wikilink(s)"
        assert beta.read_text() == "Working on [[notes/Alpha]]\n"

    def test_no_links_no_message(self, context: FixContext, write_note: WriteNote) -> None:
        alpha = write_note("notes/Alpha.md", "---\ntype: project\n---\n")
        moved = RelocationService(context).relocate(alpha, _wrong_directory(), "projects")
        assert moved.links_updated == 0
        assert moved.links_message is None

    def test_existing_destination_fails(self, context: FixContext, write_note: WriteNote) -> None:
        alpha = write_note("notes/Alpha.md", "moved note\n")
        existing = write_note("projects/Alpha.md", "EXISTING NOTE BODY\n")

        moved = RelocationService(context).relocate(alpha, _wrong_directory(), "projects")

        assert moved.result.action is FixAction.FAILED
        assert "already exists" in (moved.result.message or "")
        assert moved.path == alpha
        assert alpha.read_text() == "moved note\n"
        assert existing.read_text() == "EXISTING NOTE BODY\n"

    def test_missing_note_fails(self, context: FixContext, vault_root: Path) -> None:
        gone = vault_root / "notes" / "Gone.md"
        moved = RelocationService(context).relocate(gone, _wrong_directory(), "projects")
        assert moved.result.action is FixAction.FAILED
        assert moved.path == gone


class TestIncomingLinks:
    def test_counts_links_from_other_notes(self, context: FixContext, write_note: WriteNote) -> None:
        alpha = write_note("notes/Alpha.md", "Self [[Alpha]]\n")
        write_note("people/Beta.md", "[[Alpha]] and [[notes/Alpha|a]]\n")
        write_note("projects/Gamma.md", "[[Beta]]\n")
        assert RelocationService(context).incoming_links(alpha) == 2
