"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, graphpush.toml only contains
overrides. A local Neo4j with stock credentials needs no config file at all.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

AutoIndexMode = Literal["none", "validate", "update", "assert"]


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    uri: str = "bolt://localhost"
    username: str = "neo4j"
    password: str = "password"
    auto_index: AutoIndexMode = "none"
    verify_connection: bool = True
    database: str | None = None
    batch_size: int = Field(default=1000, ge=1)


class RetryConfig(BaseModel):
    """[retry] section."""

    model_config = {"frozen": True}

    max_attempts: int = Field(default=10, ge=1)
    delay_seconds: float = Field(default=2.0, ge=0.0)


class PersistConfig(BaseModel):
    """[persist] section.

    ``depth`` caps the relationship hops followed from each saved node;
    -1 means no limit. ``purge_before_write`` wipes the target database
    before every push.
    """

    model_config = {"frozen": True}

    depth: int = Field(default=-1, ge=-1)
    purge_before_write: bool = True


class AnalysisConfig(BaseModel):
    """[analysis] section."""

    model_config = {"frozen": True}

    load_includes: bool = False
    includes_file: Path | None = None
    debug_parser: bool = True

