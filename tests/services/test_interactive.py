"""Tests for the interactive fix dialogue."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from notectl.domain.issues import AuditIssue, FileAuditResult, IssueCode
from notectl.domain.results import FixContext
from notectl.domain.schema import Schema
from notectl.infrastructure.filesystem import read_note
from notectl.output.console import get_output
from notectl.output.reporter import FixReporter
from notectl.services.interactive import (
    CLEAR_FIELD,
    CLEAR_PARENT,
    KEEP_FIRST,
    MOVE_FILE,
    QUIT,
    REMOVE_ELEMENT,
    REMOVE_FIELD,
    SKIP,
    WRAP_IN_LIST,
    InteractiveFixService,
    run_interactive_fix,
)

WriteNote = Callable[[str, str], Path]


def _issue(code: IssueCode, *, fixable: bool = False, **kwargs: Any) -> AuditIssue:
    return AuditIssue(code=code, message=f"{code.value} found", auto_fixable=fixable, **kwargs)


def _result(vault_root: Path, path: Path, *issues: AuditIssue) -> FileAuditResult:
    return FileAuditResult(path=path, relative_path=path.relative_to(vault_root).as_posix(), issues=list(issues))


def _fm(path: Path) -> dict[str, Any]:
    return dict(read_note(path).frontmatter)


class TestRun:
    def test_counts_and_quit(
        self,
        schema: Schema,
        vault_root: Path,
        write_note: WriteNote,
        script: Callable[..., Any],
        reporter: FixReporter,
    ) -> None:
        results = []
        for index in range(5):
            path = write_note(f"projects/p{index}.md", '---\ntype: project\narchived: "true"\n---\n')
            issue = _issue(IssueCode.INVALID_BOOLEAN_COERCION, fixable=True, field="archived", value="true")
            results.append(_result(vault_root, path, issue))
        prompter = script(True, False, True, True, None)

        summary = run_interactive_fix(results, schema, vault_root, prompter=prompter, reporter=reporter)

        assert (summary.fixed, summary.skipped, summary.failed, summary.remaining) == (3, 1, 0, 1)
        assert len(prompter.asked) == 5
        assert prompter.asked[0] == ("confirm", "Convert archived 'true' to boolean?", True)
        assert _fm(vault_root / "projects" / "p0.md")["archived"] is True
        assert _fm(vault_root / "projects" / "p1.md")["archived"] == "true"
        assert "Quit requested; stopping." in get_output(reporter.console)

    def test_quit_stops_later_files(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        first = write_note("projects/a.md", "---\ntype: widget\n---\n")
        second = write_note("projects/b.md", "---\ntype: widget\n---\n")
        prompter = script(QUIT)
        issue = _issue(IssueCode.INVALID_TYPE, field="type")

        summary = InteractiveFixService(context, prompter=prompter).run(
            [_result(vault_root, first, issue), _result(vault_root, second, issue)]
        )

        assert len(prompter.asked) == 1
        assert (summary.fixed, summary.skipped, summary.remaining) == (0, 0, 0)

    def test_handler_error_counts_as_failed(
        self, context: FixContext, vault_root: Path, script: Callable[..., Any]
    ) -> None:
        gone = vault_root / "projects" / "gone.md"
        issue = _issue(IssueCode.MISSING_REQUIRED, field="status")
        summary = InteractiveFixService(context, prompter=script()).run([_result(vault_root, gone, issue)])
        assert (summary.failed, summary.remaining) == (1, 1)

    def test_every_code_has_a_dialogue(self, context: FixContext, script: Callable[..., Any]) -> None:
        assert InteractiveFixService(context, prompter=script()).handled_codes == frozenset(IssueCode)

    def test_dry_run_banner(
        self, dry_context: FixContext, script: Callable[..., Any], reporter: FixReporter
    ) -> None:
        InteractiveFixService(dry_context, prompter=script(), reporter=reporter).run([])
        assert "Dry run: no files will be changed" in get_output(reporter.console)


class TestSchemaConformance:
    def test_orphan_confirmed(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "Text\n")
        prompter = script(True)
        issue = _issue(IssueCode.ORPHAN_FILE, fixable=True, inferred_type="project")
        InteractiveFixService(context, prompter=prompter).run([_result(vault_root, path, issue)])
        assert prompter.asked == [("confirm", "Add type 'project' (from directory)?", True)]
        assert _fm(path)["type"] == "project"

    def test_invalid_type_family_then_subtype(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: widget\n---\n")
        prompter = script("project", "task")
        summary = InteractiveFixService(context, prompter=prompter).run(
            [_result(vault_root, path, _issue(IssueCode.INVALID_TYPE, field="type"))]
        )
        assert prompter.asked[0] == ("select", "Select type family:", ["project", "person", "area", SKIP, QUIT])
        assert prompter.asked[1] == ("select", "Select type within 'project':", ["project", "task", SKIP, QUIT])
        assert summary.fixed == 1
        assert _fm(path)["type"] == "task"

    def test_missing_required_default(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("people/jane.md", "---\ntype: person\n---\n")
        prompter = script(True)
        InteractiveFixService(context, prompter=prompter).run(
            [_result(vault_root, path, _issue(IssueCode.MISSING_REQUIRED, field="role"))]
        )
        assert prompter.asked == [("confirm", "Add role with default 'member'?", True)]
        assert _fm(path)["role"] == "member"

    def test_missing_required_options(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\n---\n")
        prompter = script("active")
        InteractiveFixService(context, prompter=prompter).run(
            [_result(vault_root, path, _issue(IssueCode.MISSING_REQUIRED, field="status"))]
        )
        assert prompter.asked == [("select", "Select value for status:", ["raw", "active", "done", SKIP, QUIT])]
        assert _fm(path)["status"] == "active"

    def test_missing_required_list_input(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\n---\n")
        prompter = script("alpha, beta ,")
        InteractiveFixService(context, prompter=prompter).run(
            [_result(vault_root, path, _issue(IssueCode.MISSING_REQUIRED, field="tags"))]
        )
        assert prompter.asked == [("input", "Enter value for tags:", None)]
        assert list(_fm(path)["tags"]) == ["alpha", "beta"]

    def test_invalid_option_from_schema(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\nstatus: nope\n---\n")
        prompter = script(2)
        InteractiveFixService(context, prompter=prompter).run(
            [_result(vault_root, path, _issue(IssueCode.INVALID_OPTION, field="status", value="nope"))]
        )
        assert _fm(path)["status"] == "done"


class TestUnknownField:
    def test_migrate_to_candidate(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\nArchivd: true\n---\n")
        prompter = script("archived")
        summary = InteractiveFixService(context, prompter=prompter).run(
            [_result(vault_root, path, _issue(IssueCode.UNKNOWN_FIELD, field="Archivd"))]
        )
        assert prompter.asked == [
            ("select", "Select target for unknown field 'Archivd':", ["archived", SKIP, REMOVE_FIELD, QUIT])
        ]
        assert summary.fixed == 1
        assert _fm(path) == {"type": "project", "archived": True}

    def test_type_mismatch_declined(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        content = "---\ntype: project\nArchivd: [a]\n---\n"
        path = write_note("projects/a.md", content)
        prompter = script("archived (TYPE MISMATCH)", False)
        summary = InteractiveFixService(context, prompter=prompter).run(
            [_result(vault_root, path, _issue(IssueCode.UNKNOWN_FIELD, field="Archivd"))]
        )
        assert prompter.asked[1] == ("confirm", "TYPE MISMATCH: Proceed with migration?", False)
        assert summary.skipped == 1
        assert path.read_text() == content

    def test_overwrite_confirmed(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\narchived: false\nArchivd: true\n---\n")
        prompter = script("archived", True)
        InteractiveFixService(context, prompter=prompter).run(
            [_result(vault_root, path, _issue(IssueCode.UNKNOWN_FIELD, field="Archivd"))]
        )
        assert prompter.asked[1] == ("confirm", "Overwrite existing 'archived' value?", False)
        assert _fm(path) == {"type": "project", "archived": True}

    def test_remove_field(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\nzzz: 1\n---\n")
        InteractiveFixService(context, prompter=script(REMOVE_FIELD)).run(
            [_result(vault_root, path, _issue(IssueCode.UNKNOWN_FIELD, field="zzz"))]
        )
        assert _fm(path) == {"type": "project"}


class TestLocation:
    def test_move_then_fix_on_new_path(
        self,
        context: FixContext,
        vault_root: Path,
        write_note: WriteNote,
        script: Callable[..., Any],
        reporter: FixReporter,
    ) -> None:
        path = write_note("notes/Alpha.md", '---\ntype: project\narchived: "true"\n---\n')
        beta = write_note("people/Beta.md", "See [[notes/Alpha]]\n")
        issues = [
            _issue(IssueCode.WRONG_DIRECTORY, fixable=True, expected_directory="projects/", current_directory="notes"),
            _issue(IssueCode.INVALID_BOOLEAN_COERCION, fixable=True, field="archived", value="true"),
        ]
        prompter = script(MOVE_FILE, True)

        summary = InteractiveFixService(context, prompter=prompter, reporter=reporter).run(
            [_result(vault_root, path, *issues)]
        )

        moved = vault_root / "projects" / "Alpha.md"
        output = get_output(reporter.console)
        assert summary.fixed == 2
        assert _fm(moved)["archived"] is True
        assert beta.read_text() == "See [[Alpha]]\n"
        assert "Expected: projects/" in output
        assert "Current: notes/" in output
        assert "1 wikilink(s) point at this note" in output
        assert "Moved to projects/" in output
        assert "Updated 1 wikilink(s)" in output

    def test_dry_run_move(
        self,
        dry_context: FixContext,
        vault_root: Path,
        write_note: WriteNote,
        script: Callable[..., Any],
        reporter: FixReporter,
    ) -> None:
        path = write_note("notes/Alpha.md", "---\ntype: project\n---\n")
        issue = _issue(IssueCode.WRONG_DIRECTORY, fixable=True, expected_directory="projects")
        summary = InteractiveFixService(dry_context, prompter=script(MOVE_FILE), reporter=reporter).run(
            [_result(vault_root, path, issue)]
        )
        assert summary.fixed == 1
        assert path.exists()
        assert "Would move to projects/" in get_output(reporter.console)


class TestLinks:
    def test_stale_reference_replacement(
        self,
        context: FixContext,
        vault_root: Path,
        write_note: WriteNote,
        script: Callable[..., Any],
        reporter: FixReporter,
    ) -> None:
        path = write_note("projects/a.md", '---\ntype: project\nowner: "[[Jane Doo]]"\n---\n')
        issue = _issue(
            IssueCode.STALE_REFERENCE, field="owner", target_name="Jane Doo", similar_files=["Jane Doe", "Jan", "Joe"]
        )
        prompter = script("[[Jane Doe]]")
        service = InteractiveFixService(context, prompter=prompter, reporter=reporter, similar_file_limit=2)

        service.run([_result(vault_root, path, issue)])

        assert prompter.asked == [
            ("select", "Select replacement for [[Jane Doo]]:", ["[[Jane Doe]]", "[[Jan]]", CLEAR_FIELD, SKIP, QUIT])
        ]
        assert _fm(path)["owner"] == "[[Jane Doe]]"
        assert "Updated owner: [[Jane Doe]]" in get_output(reporter.console)

    def test_stale_reference_in_body_not_prompted(
        self,
        context: FixContext,
        vault_root: Path,
        write_note: WriteNote,
        script: Callable[..., Any],
        reporter: FixReporter,
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\n---\nSee [[Gone]]\n")
        issue = _issue(IssueCode.STALE_REFERENCE, target_name="Gone", in_body=True, line_number=4)
        prompter = script()

        summary = InteractiveFixService(context, prompter=prompter, reporter=reporter).run(
            [_result(vault_root, path, issue)]
        )

        assert prompter.asked == []
        assert summary.skipped == 1
        assert "Body reference (line 4) requires a manual fix" in get_output(reporter.console)

    def test_invalid_source_type(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        write_note("people/Jane.md", "---\ntype: person\n---\n")
        path = write_note("projects/Acme.md", '---\ntype: project\nowner: "[[Acme]]"\n---\n')
        issue = _issue(IssueCode.INVALID_SOURCE_TYPE, field="owner", expected_type="person", actual_type="project")
        prompter = script("[[Jane]]")

        InteractiveFixService(context, prompter=prompter).run([_result(vault_root, path, issue)])

        assert prompter.asked == [("select", "Select person note for owner:", ["[[Jane]]", CLEAR_FIELD, SKIP, QUIT])]
        assert _fm(path)["owner"] == "[[Jane]]"

    def test_parent_cycle_new_parent(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        a = write_note("areas/A.md", '---\ntype: area\nparent: "[[B]]"\n---\n')
        write_note("areas/B.md", '---\ntype: area\nparent: "[[A]]"\n---\n')
        write_note("areas/C.md", "---\ntype: area\n---\n")
        issue = _issue(IssueCode.PARENT_CYCLE, field="parent", cycle_path=["A", "B", "A"])
        prompter = script("[[C]]")

        InteractiveFixService(context, prompter=prompter).run([_result(vault_root, a, issue)])

        assert prompter.asked == [("select", "Select new parent:", [CLEAR_PARENT, "[[C]]", SKIP, QUIT])]
        assert _fm(a)["parent"] == "[[C]]"

    def test_self_reference_cleared(
        self,
        context: FixContext,
        vault_root: Path,
        write_note: WriteNote,
        script: Callable[..., Any],
        reporter: FixReporter,
    ) -> None:
        path = write_note("areas/A.md", '---\ntype: area\nparent: "[[A]]"\n---\n')
        issue = _issue(IssueCode.SELF_REFERENCE, field="parent")
        InteractiveFixService(context, prompter=script(CLEAR_FIELD), reporter=reporter).run(
            [_result(vault_root, path, issue)]
        )
        assert _fm(path)["parent"] == ""
        assert "Cleared parent" in get_output(reporter.console)

    def test_ambiguous_link_target(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", '---\ntype: project\nowner: "[[Alpha]]"\n---\n')
        issue = _issue(
            IssueCode.AMBIGUOUS_LINK_TARGET,
            field="owner",
            target_name="Alpha",
            candidates=["people/Alpha.md", "archive/Alpha.md"],
        )
        prompter = script(1)
        InteractiveFixService(context, prompter=prompter).run([_result(vault_root, path, issue)])
        assert prompter.asked[0][2][:2] == ["[[people/Alpha]]", "[[archive/Alpha]]"]
        assert _fm(path)["owner"] == "[[archive/Alpha]]"

    def test_list_element_removed(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\ntags: [a, 3]\n---\n")
        issue = _issue(IssueCode.INVALID_LIST_ELEMENT, field="tags", list_index=1)
        InteractiveFixService(context, prompter=script(REMOVE_ELEMENT)).run([_result(vault_root, path, issue)])
        assert list(_fm(path)["tags"]) == ["a"]

    def test_scalar_wrapped_in_list(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\ntags: solo\n---\n")
        issue = _issue(IssueCode.INVALID_LIST_ELEMENT, field="tags")
        InteractiveFixService(context, prompter=script(WRAP_IN_LIST)).run([_result(vault_root, path, issue)])
        assert list(_fm(path)["tags"]) == ["solo"]


class TestHeaderStructure:
    def test_duplicate_keep_first(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("notes/a.md", "---\nstatus: raw\nstatus: done\n---\n")
        issue = _issue(IssueCode.DUPLICATE_FRONTMATTER_KEYS, field="status", duplicate_key="status")
        InteractiveFixService(context, prompter=script(KEEP_FIRST)).run([_result(vault_root, path, issue)])
        assert path.read_text() == "---\nstatus: raw\n---\n"

    def test_trailing_whitespace_declined(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        content = "---\ntitle: X  \n---\n"
        path = write_note("notes/a.md", content)
        prompter = script(False)
        issue = _issue(IssueCode.TRAILING_WHITESPACE, fixable=True, line_number=2)
        summary = InteractiveFixService(context, prompter=prompter).run([_result(vault_root, path, issue)])
        assert prompter.asked == [("confirm", "Trim trailing whitespace on line 2?", True)]
        assert summary.skipped == 1
        assert path.read_text() == content


class TestValueHygiene:
    def test_date_entered_day_first(
        self,
        context: FixContext,
        vault_root: Path,
        write_note: WriteNote,
        script: Callable[..., Any],
        reporter: FixReporter,
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\ncreated: 25/12/2026\n---\n")
        issue = _issue(IssueCode.INVALID_DATE_FORMAT, field="created", value="25/12/2026")
        prompter = script("25/12/2026")

        summary = InteractiveFixService(context, prompter=prompter, reporter=reporter).run(
            [_result(vault_root, path, issue)]
        )

        assert prompter.asked == [("input", "Enter date for created (YYYY-MM-DD):", None)]
        assert summary.fixed == 1
        assert str(_fm(path)["created"]) == "2026-12-25"
        assert "Set created: 2026-12-25" in get_output(reporter.console)

    def test_date_suggestion_offered(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\ncreated: 2026/3/1\n---\n")
        issue = _issue(IssueCode.INVALID_DATE_FORMAT, fixable=True, field="created", value="2026/3/1")
        prompter = script("2026-03-01")
        InteractiveFixService(context, prompter=prompter).run([_result(vault_root, path, issue)])
        assert prompter.asked[0][2] == "2026-03-01"
        assert str(_fm(path)["created"]) == "2026-03-01"

    def test_ambiguous_date_fails(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        content = "---\ntype: project\ncreated: 03/04/2026\n---\n"
        path = write_note("projects/a.md", content)
        issue = _issue(IssueCode.INVALID_DATE_FORMAT, field="created", value="03/04/2026")
        summary = InteractiveFixService(context, prompter=script("03/04/2026")).run(
            [_result(vault_root, path, issue)]
        )
        assert (summary.failed, summary.remaining) == (1, 1)
        assert path.read_text() == content

    def test_wrong_scalar_type_input(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("projects/a.md", "---\ntype: project\npriority: high\n---\n")
        issue = _issue(IssueCode.WRONG_SCALAR_TYPE, field="priority", value="high", expected="number")
        prompter = script("3")
        InteractiveFixService(context, prompter=prompter).run([_result(vault_root, path, issue)])
        assert prompter.asked == [("input", "Enter number value for priority:", None)]
        assert _fm(path)["priority"] == 3

    def test_key_rename_without_conflict(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("notes/a.md", "---\nStatus: raw\n---\n")
        issue = _issue(IssueCode.FRONTMATTER_KEY_CASING, fixable=True, field="Status", canonical_key="status")
        prompter = script(True)
        InteractiveFixService(context, prompter=prompter).run([_result(vault_root, path, issue)])
        assert prompter.asked == [("confirm", "Rename Status → status?", True)]
        assert _fm(path) == {"status": "raw"}

    def test_key_rename_conflict_merged(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        path = write_note("notes/a.md", "---\nStatus: raw\nstatus: done\n---\n")
        issue = _issue(
            IssueCode.FRONTMATTER_KEY_CASING,
            fixable=True,
            field="Status",
            canonical_key="status",
            has_conflict=True,
            conflict_value="done",
        )
        prompter = script("[use 'Status' value, overwrite 'status']", True)

        summary = InteractiveFixService(context, prompter=prompter).run([_result(vault_root, path, issue)])

        assert prompter.asked[1] == ("confirm", "This discards one of the values. Continue?", False)
        assert summary.fixed == 1
        assert _fm(path) == {"status": "raw"}

    def test_key_rename_conflict_not_confirmed(
        self, context: FixContext, vault_root: Path, write_note: WriteNote, script: Callable[..., Any]
    ) -> None:
        content = "---\nStatus: raw\nstatus: done\n---\n"
        path = write_note("notes/a.md", content)
        issue = _issue(
            IssueCode.FRONTMATTER_KEY_CASING, fixable=True, field="Status", canonical_key="status", has_conflict=True
        )
        summary = InteractiveFixService(context, prompter=script(0, False)).run([_result(vault_root, path, issue)])
        assert summary.skipped == 1
        assert path.read_text() == content
