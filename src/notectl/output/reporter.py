"""Live status stream for remediation runs.

Lines are grouped under the file they concern: the file's relative path
is printed once, before the first line about it. Markers:

- ``✓`` fixed (green)
- ``⚠`` skipped or needs attention (yellow)
- ``✗`` failed (red)
- dim text for informational notes

Messages are rendered as plain :class:`rich.text.Text`, never as markup,
because link values such as ``[[Note]]`` look like markup tags.
"""

from __future__ import annotations

from rich.console import Console
from rich.text import Text

from notectl.domain.issues import AuditIssue
from notectl.domain.results import FixAction, FixResult, FixSummary, ManualReviewQueue
from notectl.output.console import create_status_console

OK_MARK = "✓"
WARN_MARK = "⚠"
FAIL_MARK = "✗"


class FixReporter:
    """Writes fix progress to a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or create_status_console()
        self._current_file: str | None = None

    # --- Grouping ---

    def _file(self, file: str | None) -> None:
        if file is None or file == self._current_file:
            return
        self._current_file = file
        self.console.print()
        self.console.print(Text(file, style="note.path"))

    def _line(self, file: str | None, mark: str, message: str, style: str) -> None:
        self._file(file)
        line = Text("  ")
        line.append(mark, style=style)
        line.append(f" {message}")
        self.console.print(line)

    # --- Status lines ---

    def banner(self, message: str) -> None:
        self.console.print(Text(message, style="note.op"))

    def fixed(self, file: str | None, message: str) -> None:
        self._line(file, OK_MARK, message, "note.ok")

    def warn(self, file: str | None, message: str) -> None:
        self._line(file, WARN_MARK, message, "note.warning")

    def failed(self, file: str | None, message: str) -> None:
        self._line(file, FAIL_MARK, message, "note.error")

    def note(self, file: str | None, message: str) -> None:
        self._file(file)
        self.console.print(Text(f"    {message}", style="note.dim"))

    def issue(self, file: str | None, issue: AuditIssue) -> None:
        """Announce an issue before it is handled."""
        if issue.severity == "error":
            self.failed(file, issue.message)
        else:
            self.warn(file, issue.message)

    def result(self, file: str | None, result: FixResult, message: str | None = None) -> None:
        """Report a :class:`FixResult`, optionally overriding its message."""
        text = message or result.message or result.issue.message
        match result.action:
            case FixAction.FIXED:
                self.fixed(file, text)
            case FixAction.SKIPPED:
                self.warn(file, text)
            case FixAction.FAILED:
                self.failed(file, text)

    # --- End of run ---

    def manual_review(self, queue: ManualReviewQueue) -> None:
        if not len(queue):
            return
        self._current_file = None
        self.console.print()
        self.console.print(Text(f"Issues requiring manual review ({len(queue)}):", style="note.warning"))
        for file, issues in queue.grouped().items():
            self.console.print()
            self.console.print(Text(file, style="note.path"))
            for issue in issues:
                line = Text("  ")
                line.append(f"{WARN_MARK} ", style="note.warning")
                line.append(issue.message)
                line.append(f" ({issue.code.value})", style="note.dim")
                self.console.print(line)

    def summary(self, summary: FixSummary) -> None:
        self._current_file = None
        self.console.print()
        heading = "Fix summary"
        if summary.dry_run:
            heading += " (dry run, no files changed)"
        self.console.print(Text(heading, style="note.op"))
        counts = Text("  ")
        counts.append(f"{summary.fixed} fixed", style="note.ok")
        counts.append(", ")
        counts.append(f"{summary.skipped} skipped", style="note.warning")
        counts.append(", ")
        counts.append(f"{summary.failed} failed", style="note.error")
        counts.append(f", {summary.remaining} remaining")
        self.console.print(counts)
