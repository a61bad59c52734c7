"""Locate the graphpush settings file for a run.

Lookup order: ``$GRAPHPUSH_CONFIG`` if set, otherwise the nearest
``graphpush.toml`` (or hidden ``.graphpush.toml``) at or above the
directory being analyzed. The ``--config`` flag bypasses this module.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "graphpush.toml"
HIDDEN_CONFIG_FILENAME = ".graphpush.toml"
CONFIG_ENV_VAR = "GRAPHPUSH_CONFIG"


def candidate_paths(start: Path | None = None) -> Iterator[Path]:
    """Yield every settings path to try, nearest directory first."""
    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        yield directory / CONFIG_FILENAME
        yield directory / HIDDEN_CONFIG_FILENAME


def find_config(start: Path | None = None) -> Path | None:
    """Return the settings file that applies to *start*, or None.

    A ``GRAPHPUSH_CONFIG`` naming a missing file disables discovery
    rather than falling back to the walk.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        return path if path.is_file() else None
    return next((p for p in candidate_paths(start) if p.is_file()), None)
