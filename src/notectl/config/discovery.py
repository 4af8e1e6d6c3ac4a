"""Locating ``notectl.toml`` and, through it, the vault.

The directory that holds ``notectl.toml`` is the vault root. Relative note
paths in a findings file and ``[vault] schema_path`` resolve against it.
Lookup order: ``-c/--config``, then ``NOTECTL_CONFIG``, then a walk up
from the working directory (the way git finds ``.git/``).
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "notectl.toml"
CONFIG_ENV_VAR = "NOTECTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config governing *start* (default: cwd), or None.

    A set ``NOTECTL_CONFIG`` wins outright; when it names a missing file
    there is no config, the walk-up is not attempted.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_config(explicit: str | None, start: Path | None = None) -> Path | None:
    """Config file for one CLI run. An explicit ``--config`` must exist."""
    if not explicit:
        return find_config(start)
    path = Path(explicit)
    if not path.is_file():
        msg = f"Config file not found: {explicit}"
        raise click.ClickException(msg)
    return path


def read_config(path: Path) -> dict[str, Any]:
    """Parse *path*; a syntax error becomes a CLI error naming the file."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc


def vault_root_for(config_path: Path | None) -> Path:
    """The vault a config file belongs to; without one, the working directory."""
    return config_path.parent if config_path else Path.cwd()
