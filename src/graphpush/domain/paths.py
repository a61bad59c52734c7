"""Input path rules — source locations and include files.

Pure functions over :mod:`pathlib`. Everything here runs before the
analyzer or the database is touched, so a bad invocation fails fast.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from graphpush.domain.errors import InputValidationError


@dataclass(frozen=True)
class SourceSelection:
    """Validated source locations sharing one top-level directory."""

    paths: tuple[Path, ...]
    top_level: Path


def is_hidden(path: Path) -> bool:
    """Dotfile convention: a path is hidden when its name starts with ``.``."""
    return path.name.startswith(".")


def validate_sources(files: list[str] | tuple[str, ...]) -> SourceSelection:
    """Resolve *files* and check they can be analyzed together.

    Each entry must exist and must not be hidden. A directory is its own
    top level; a file's top level is its parent directory. All entries must
    share the same top level.

    Raises:
        InputValidationError: On the first offending entry.
    """
    if not files:
        raise InputValidationError("At least one path to analyze is required.")

    resolved: list[Path] = []
    top_level: Path | None = None
    for raw in files:
        path = Path(raw).resolve()
        if not path.exists() or is_hidden(path):
            raise InputValidationError(f"Please use a correct path. It was: {path}")
        current = path if path.is_dir() else path.parent
        if top_level is None:
            top_level = current
        if current != top_level:
            raise InputValidationError("All files should have the same top level path.")
        resolved.append(path)

    assert top_level is not None
    return SourceSelection(paths=tuple(resolved), top_level=top_level)


def load_include_paths(includes_file: Path) -> list[Path]:
    """Read include directories from *includes_file*, one per line.

    Lines are trimmed and blank lines skipped. Relative entries resolve
    against the directory containing *includes_file*.
    """
    try:
        raw = includes_file.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Unable to read includes file {includes_file}: {exc}"
        raise InputValidationError(msg) from exc

    base_dir = includes_file.absolute().parent
    paths: list[Path] = []
    for line in raw.splitlines():
        entry = line.strip()
        if not entry:
            continue
        candidate = Path(entry)
        paths.append(candidate if candidate.is_absolute() else base_dir / candidate)
    return paths
