"""Shared pytest fixtures and test helpers for notectl tests."""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from notectl.domain.results import FixContext
from notectl.domain.schema import Schema
from notectl.output.console import create_console
from notectl.output.reporter import FixReporter

SCHEMA_DATA: dict[str, Any] = {
    "version": 2,
    "types": {
        "meta": {
            "fields": {
                "status": {"prompt": "select", "options": ["raw", "active", "done"]},
                "tags": {"prompt": "list"},
                "created": {"prompt": "date"},
            },
        },
        "project": {
            "fields": {
                "deadline": {"prompt": "date"},
                "archived": {"prompt": "boolean"},
                "flagged": {"prompt": "boolean"},
                "priority": {"prompt": "number"},
                "owner": {"prompt": "relation", "source": "person", "format": "wikilink"},
                "related": {"prompt": "relation", "source": "project", "multiple": True},
            },
            "field_order": ["status", "deadline", "owner"],
        },
        "task": {
            "extends": "project",
            "fields": {"effort": {"prompt": "number", "default": 1}},
        },
        "person": {
            "fields": {"role": {"prompt": "text", "required": True, "default": "member"}},
        },
        "area": {"recursive": True},
    },
}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's NOTECTL_* environment out of the tests."""
    monkeypatch.delenv("NOTECTL_CONFIG", raising=False)
    monkeypatch.delenv("NOTECTL_VAULT_ROOT", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def schema() -> Schema:
    return Schema.model_validate(SCHEMA_DATA)


@pytest.fixture
def vault_root(tmp_path: Path) -> Path:
    """Temporary vault directory with a few type folders."""
    root = tmp_path / "vault"
    for folder in ("projects", "people", "notes", "areas"):
        (root / folder).mkdir(parents=True)
    return root


@pytest.fixture
def schema_file(vault_root: Path) -> Path:
    """Write the test schema to the default location inside the vault."""
    path = vault_root / ".notectl" / "schema.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(SCHEMA_DATA), encoding="utf-8")
    return path


@pytest.fixture
def _isolated_vault(vault_root: Path, schema_file: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run CLI commands from inside a configured vault."""
    (vault_root / "notectl.toml").write_text('[vault]\nname = "test-vault"\n', encoding="utf-8")
    monkeypatch.chdir(vault_root)
    return vault_root


@pytest.fixture
def context(schema: Schema, vault_root: Path) -> FixContext:
    return FixContext(schema=schema, vault_root=vault_root)


@pytest.fixture
def dry_context(schema: Schema, vault_root: Path) -> FixContext:
    return FixContext(schema=schema, vault_root=vault_root, dry_run=True)


@pytest.fixture
def reporter() -> FixReporter:
    """Reporter writing to an uncolored buffer; read it with :func:`reporter_output`."""
    return FixReporter(create_console(no_color=True, width=200))


@pytest.fixture
def write_note(vault_root: Path) -> Callable[[str, str], Path]:
    """Write a note under the vault and return its absolute path."""

    def write(relative: str, content: str) -> Path:
        path = vault_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    return write


@pytest.fixture
def script() -> Callable[..., ScriptedPrompter]:
    """Build a prompter that replays the given answers in order."""
    return ScriptedPrompter


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


class ScriptedPrompter:
    """Prompter that answers from a fixed script.

    Running out of answers behaves like cancelling the prompt.
    """

    def __init__(self, *answers: Any) -> None:
        self._answers = list(answers)
        self.asked: list[tuple[str, str, Any]] = []

    def _next(self) -> Any:
        return self._answers.pop(0) if self._answers else None

    def confirm(self, message: str, *, default: bool = True) -> bool | None:
        self.asked.append(("confirm", message, default))
        return self._next()

    def select_one(self, message: str, options: Sequence[str]) -> str | None:
        self.asked.append(("select", message, list(options)))
        answer = self._next()
        if isinstance(answer, int) and not isinstance(answer, bool):
            return options[answer]
        assert answer is None or answer in options, f"{answer!r} not offered in {options!r}"
        return answer

    def input_text(self, message: str, *, default: str | None = None) -> str | None:
        self.asked.append(("input", message, default))
        return self._next()
