"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Owns logging setup, the status reporter, and
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from notectl.config.logging import configure_logging
from notectl.output.console import create_status_console
from notectl.output.formatters import format_result
from notectl.output.reporter import FixReporter

if TYPE_CHECKING:
    from notectl.config.settings import NoteSettings
    from notectl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: NoteSettings) -> None:
        self.settings = settings
        self._reporter: FixReporter | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def reporter(self) -> FixReporter:
        """Status stream on stderr, silenced by ``--quiet``."""
        if self._reporter is None:
            self._reporter = FixReporter(create_status_console(quiet=self.settings.quiet))
        return self._reporter

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout and returns. Warnings go to stderr
          so they don't pollute piped output.
        * Failure: writes to stderr and exits with code 1.
        """
        output = format_result(
            result,
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
        )
        if result.ok:
            click.echo(output)
            if not self.settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
