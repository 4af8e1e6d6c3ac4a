"""Subcommand modules for notectl.

Provides register_commands(), which uses deferred imports to keep
``notectl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from notectl.commands.fix import fix

    cli.add_command(fix)
