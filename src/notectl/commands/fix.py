"""Command: remediate audit findings."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from notectl.commands._base import NoteCommand

if TYPE_CHECKING:
    from notectl.commands._context import AppContext


@click.command(
    cls=NoteCommand,
    examples=[
        ("notectl fix findings.json", "Walk every issue interactively"),
        ("notectl fix findings.json --auto", "Apply only fixes that need no decision"),
        ("notectl fix findings.json --auto --dry-run", "Show what batch mode would change"),
        ("notectl --json --no-interact fix findings.json", "Batch mode with a JSON summary on stdout"),
    ],
)
@click.argument(
    "findings",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--auto", is_flag=True, help="Apply only fixes that need no decision.")
@click.option("--dry-run", is_flag=True, help="Report what would change without writing.")
@click.pass_obj
def fix(app: AppContext, findings: Path, auto: bool, dry_run: bool) -> None:
    """Fix the issues listed in a FINDINGS JSON file.

    Without --auto every issue is walked interactively; choose [quit]
    or press Ctrl-C to stop early.
    """
    from notectl.services.remediate import RemediationService

    svc = RemediationService(app.settings, reporter=app.reporter)
    app.emit(svc.fix(findings, auto=auto, dry_run=dry_run))
