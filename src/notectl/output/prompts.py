"""Prompt primitives for the interactive fix dialogue.

Each primitive returns ``None`` when the operator cancels (Ctrl-C or end
of input); callers treat that exactly like choosing ``[quit]``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import click


class Prompter(Protocol):
    """The three questions a fix dialogue can ask."""

    def confirm(self, message: str, *, default: bool = True) -> bool | None: ...

    def select_one(self, message: str, options: Sequence[str]) -> str | None: ...

    def input_text(self, message: str, *, default: str | None = None) -> str | None: ...


class ClickPrompter:
    """Prompter backed by click, writing questions to stderr."""

    def confirm(self, message: str, *, default: bool = True) -> bool | None:
        try:
            return click.confirm(message, default=default, err=True)
        except click.Abort:
            return None

    def select_one(self, message: str, options: Sequence[str]) -> str | None:
        if not options:
            return None
        click.echo(message, err=True)
        for number, option in enumerate(options, start=1):
            click.echo(f"  {number}. {option}", err=True)
        try:
            choice = click.prompt(
                "Choice",
                type=click.IntRange(1, len(options)),
                err=True,
            )
        except click.Abort:
            return None
        return options[choice - 1]

    def input_text(self, message: str, *, default: str | None = None) -> str | None:
        try:
            value = click.prompt(
                message,
                default=default or "",
                show_default=bool(default),
                err=True,
            )
        except click.Abort:
            return None
        return str(value).strip()
