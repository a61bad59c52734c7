"""TranslationManager — turn source locations into translation units.

Each Python file becomes one ``TranslationUnit`` root whose structural
children mirror the syntax tree (see :mod:`.python_ast`). With
``load_includes`` the manager also follows imports that resolve under the
configured include paths and analyzes those files as extra units.

Files are cached by resolved path for one ``analyze()`` call: a file listed
twice yields the same root object twice.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path

from graphpush.domain.graph import GraphNode, RelationshipKind
from graphpush.domain.paths import is_hidden
from graphpush.infrastructure.analysis.python_ast import ParsedUnit, build_unit

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".py"


@dataclass(frozen=True)
class TranslationConfiguration:
    """What to analyze and how."""

    source_locations: tuple[Path, ...]
    top_level: Path
    include_paths: tuple[Path, ...] = ()
    load_includes: bool = False
    debug_parser: bool = False


@dataclass
class TranslationResult:
    """Roots produced by one analysis run."""

    translation_units: list[GraphNode] = field(default_factory=list)
    problems: list[str] = field(default_factory=list)


def find_sources(location: Path) -> list[Path]:
    """Python files at *location*: the file itself, or a sorted walk of a directory.

    Hidden files and anything under a hidden directory are skipped.
    """
    if not location.is_dir():
        return [location]
    found: list[Path] = []
    for path in sorted(location.rglob(f"*{SOURCE_SUFFIX}")):
        rel = path.relative_to(location)
        if any(is_hidden(Path(part)) for part in rel.parts):
            continue
        if path.is_file():
            found.append(path)
    return found


def resolve_module(module: str, include_paths: tuple[Path, ...]) -> Path | None:
    """Find *module* (dotted name) as a file under one of *include_paths*."""
    rel = Path(*module.split("."))
    for base in include_paths:
        for candidate in (base / rel.with_suffix(SOURCE_SUFFIX), base / rel / "__init__.py"):
            if candidate.is_file():
                return candidate.resolve()
    return None


class TranslationManager:
    """Analyze the configured sources into a :class:`TranslationResult`."""

    def __init__(self, config: TranslationConfiguration) -> None:
        self._config = config
        self._parsed: dict[Path, ParsedUnit] = {}

    @property
    def config(self) -> TranslationConfiguration:
        return self._config

    def analyze(self) -> TranslationResult:
        self._parsed = {}
        result = TranslationResult()

        for location in self._config.source_locations:
            for path in find_sources(location):
                parsed = self._parse(path, result)
                result.translation_units.append(parsed.unit)

        if self._config.load_includes:
            self._load_includes(result)

        logger.info(
            "Analyzed %d translation unit(s) (%d problem(s))",
            len(result.translation_units),
            len(result.problems),
        )
        return result

    def _parse(self, path: Path, result: TranslationResult) -> ParsedUnit:
        key = path.resolve()
        cached = self._parsed.get(key)
        if cached is not None:
            return cached

        parsed = build_unit(key, self._display_name(key))
        self._parsed[key] = parsed
        if parsed.problem:
            result.problems.append(f"{key}: {parsed.problem}")
            logger.warning("Problem parsing %s: %s", key, parsed.problem)
        elif self._config.debug_parser:
            logger.debug("Parsed %s into %d node(s)", key, parsed.node_count)
        return parsed

    def _display_name(self, path: Path) -> str:
        try:
            return path.relative_to(self._config.top_level).as_posix()
        except ValueError:
            return path.as_posix()

    def _load_includes(self, result: TranslationResult) -> None:
        """Follow imports breadth-first; each included file is analyzed once."""
        pending = deque(self._parsed.values())
        while pending:
            parsed = pending.popleft()
            for import_node, module in parsed.imports:
                path = resolve_module(module, self._config.include_paths)
                if path is None:
                    continue
                is_new = path not in self._parsed
                included = self._parse(path, result)
                import_node.relate(RelationshipKind.IMPORTS, included.unit, module=module)
                if is_new:
                    logger.info("Loaded include %s for module %s", path, module)
                    result.translation_units.append(included.unit)
                    pending.append(included)
