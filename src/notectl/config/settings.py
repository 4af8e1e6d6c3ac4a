"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``NOTECTL_*`` prefix
  3. TOML file: ``notectl.toml`` discovered via walk-up
  4. Code defaults baked into the section models
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from notectl.config.discovery import read_config, resolve_config, vault_root_for
from notectl.config.models import FixConfig, VaultConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``notectl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            self._data = read_config(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# TOML path handed to settings_customise_sources during construction.
_tls = threading.local()


class NoteSettings(BaseSettings):
    """Unified settings for the notectl CLI.

    Attributes:
        vault_root: Vault directory (parent of ``notectl.toml``, or CWD if
            no config was found).
        config_path: The config file in effect, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "NOTECTL_",
        "env_nested_delimiter": "__",
    }

    vault_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_interact: bool = False

    # --- TOML sections ---
    vault: VaultConfig = Field(default_factory=VaultConfig)
    fix: FixConfig = Field(default_factory=FixConfig)

    @property
    def schema_path(self) -> Path:
        """Schema file, resolved against the vault root."""
        path = Path(self.vault.schema_path)
        return path if path.is_absolute() else self.vault_root / path

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        vault_root: Path | None = None,
        **cli_flags: Any,
    ) -> NoteSettings:
        """Construct settings from a CLI invocation.

        Discovers ``notectl.toml`` via walk-up (or explicit *config_path*),
        resolves *vault_root* from the config file's parent directory,
        and merges CLI flags as highest-priority overrides.
        """
        toml_path = resolve_config(config_path, vault_root)
        resolved_root = vault_root if vault_root is not None else vault_root_for(toml_path)

        _tls.toml_path = toml_path
        try:
            return cls(
                vault_root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None
