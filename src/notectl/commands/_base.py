"""Click base classes for notectl commands.

Commands declare ``examples`` as ``(invocation, what it does)`` pairs.
``--examples`` prints them as a definition list and exits, so ``--help``
stays short while each remediation mode still has a worked example.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click

Examples = Sequence[tuple[str, str]]


def format_examples(examples: Examples) -> str:
    """Render *examples* the way click renders options in ``--help``."""
    formatter = click.HelpFormatter()
    with formatter.section("Examples"):
        formatter.write_dl(examples)
    return formatter.getvalue()


def _add_examples_option(cmd: click.Command, examples: Examples) -> None:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(format_examples(examples), nl=False)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples and exit.",
        )
    )


class NoteCommand(click.Command):
    """Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: Examples = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = tuple(examples)
        if self.examples:
            _add_examples_option(self, self.examples)


class NoteGroup(click.Group):
    """Root group; subcommands default to :class:`NoteCommand`."""

    command_class = NoteCommand

    def __init__(self, *args: Any, examples: Examples = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = tuple(examples)
        if self.examples:
            _add_examples_option(self, self.examples)
