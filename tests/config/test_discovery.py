"""Tests for notectl.toml discovery."""

from pathlib import Path

import click
import pytest

from notectl.config.discovery import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    find_config,
    read_config,
    resolve_config,
    vault_root_for,
)


class TestFindConfig:
    def test_in_start_dir(self, tmp_path: Path) -> None:
        config = tmp_path / CONFIG_FILENAME
        config.write_text("")
        assert find_config(tmp_path) == config.resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        config = tmp_path / CONFIG_FILENAME
        config.write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == config.resolve()

    def test_not_found(self, tmp_path: Path) -> None:
        assert find_config(tmp_path) is None

    def test_env_var_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom.toml"
        custom.write_text("")
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(custom))
        assert find_config(tmp_path) == custom

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "gone.toml"))
        assert find_config(tmp_path) is None


class TestResolveConfig:
    def test_explicit_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.toml"
        custom.write_text("")
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert resolve_config(str(custom), tmp_path) == custom

    def test_explicit_path_missing(self, tmp_path: Path) -> None:
        with pytest.raises(click.ClickException, match="Config file not found"):
            resolve_config(str(tmp_path / "gone.toml"), tmp_path)

    def test_falls_back_to_walk_up(self, tmp_path: Path) -> None:
        config = tmp_path / CONFIG_FILENAME
        config.write_text("")
        assert resolve_config(None, tmp_path) == config.resolve()


class TestReadConfig:
    def test_sections(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text('[vault]\nname = "lab"\n[fix]\nsimilar_file_limit = 2\n')
        assert read_config(path) == {"vault": {"name": "lab"}, "fix": {"similar_file_limit": 2}}

    def test_invalid_toml_names_file(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[fix\n")
        with pytest.raises(click.ClickException, match="Invalid TOML in"):
            read_config(path)


class TestVaultRoot:
    def test_config_parent(self, tmp_path: Path) -> None:
        assert vault_root_for(tmp_path / "vault" / CONFIG_FILENAME) == tmp_path / "vault"

    def test_cwd_without_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert vault_root_for(None) == Path.cwd()
