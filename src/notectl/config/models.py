"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, ``notectl.toml`` only holds
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- notectl.toml sections ---


class VaultConfig(BaseModel):
    """[vault] section."""

    model_config = {"frozen": True}

    name: str = "my-vault"
    schema_path: str = ".notectl/schema.json"


class FixConfig(BaseModel):
    """[fix] section."""

    model_config = {"frozen": True}

    dry_run: bool = False
    field_candidate_limit: int = Field(default=3, ge=1)
    relation_option_limit: int = Field(default=20, ge=1)
    similar_file_limit: int = Field(default=5, ge=1)
