"""AnalyzeService — validate inputs, run the analyzer, hand off to persistence.

Pipeline for ``push``: VALIDATE → ANALYZE → PERSIST → REPORT

Validation runs before the analyzer and before any connection attempt, so
a typo in a path never costs a database round trip.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from graphpush.domain.errors import InputValidationError
from graphpush.domain.paths import load_include_paths, validate_sources
from graphpush.infrastructure.analysis import (
    TranslationConfiguration,
    TranslationManager,
    TranslationResult,
)
from graphpush.infrastructure.graph.flatten import flatten
from graphpush.services.base import BaseService
from graphpush.services.persist import PersistService
from graphpush.services.result import ServiceResult
from graphpush.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from graphpush.config.settings import GraphpushSettings

logger = logging.getLogger(__name__)


class AnalyzeService(BaseService):
    """Turn CLI input into translation units, optionally persisting them."""

    def __init__(
        self,
        settings: GraphpushSettings,
        *,
        persist_service: PersistService | None = None,
    ) -> None:
        super().__init__(settings)
        self._persist = persist_service or PersistService(settings)

    def build_configuration(self, files: list[str] | tuple[str, ...]) -> TranslationConfiguration:
        """Validate *files* and the include file into an analyzer config.

        Raises:
            InputValidationError: A path is missing, hidden, or has a
                different top level, or the include file is unreadable.
        """
        analysis = self._settings.analysis
        selection = validate_sources(files)

        include_paths: list[Path] = []
        if analysis.includes_file is not None:
            logger.info("Load includes from file: %s", analysis.includes_file)
            include_paths = load_include_paths(Path(analysis.includes_file))

        return TranslationConfiguration(
            source_locations=selection.paths,
            top_level=selection.top_level,
            include_paths=tuple(include_paths),
            load_includes=analysis.load_includes,
            debug_parser=analysis.debug_parser,
        )

    def translate(self, config: TranslationConfiguration) -> TranslationResult:
        return TranslationManager(config).analyze()

    @traced
    def analyze(self, files: list[str] | tuple[str, ...]) -> ServiceResult:
        """Analyze *files* and report unit and node counts without persisting."""
        op = "analyze"
        try:
            config = self.build_configuration(files)
        except InputValidationError as exc:
            return ServiceResult.failure(op, "INVALID_INPUT", str(exc))

        start = time.perf_counter()
        try:
            with trace_span("translate"):
                result = self.translate(config)
        except Exception as exc:
            logger.exception("Analysis failed")
            return ServiceResult.failure(op, "ANALYSIS_FAILED", f"{type(exc).__name__}: {exc}")
        analyze_seconds = time.perf_counter() - start

        nodes = flatten(result.translation_units)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "top_level": str(config.top_level),
                "translation_units": len(set(result.translation_units)),
                "nodes": len(nodes),
                "analyze_seconds": round(analyze_seconds, 3),
            },
            warnings=list(result.problems),
        )

    @traced
    def push(self, files: list[str] | tuple[str, ...]) -> ServiceResult:
        """Analyze *files* and persist the resulting graph."""
        op = "push"
        try:
            config = self.build_configuration(files)
        except InputValidationError as exc:
            return ServiceResult.failure(op, "INVALID_INPUT", str(exc))

        start = time.perf_counter()
        try:
            with trace_span("translate"):
                result = self.translate(config)
        except Exception as exc:
            logger.exception("Analysis failed")
            return ServiceResult.failure(op, "ANALYSIS_FAILED", f"{type(exc).__name__}: {exc}")
        analyzed = time.perf_counter()
        logger.info("Benchmark: analyzing code in %.3f s", analyzed - start)

        persisted = self._persist.persist(result.translation_units)
        pushed = time.perf_counter()
        logger.info("Benchmark: push code in %.3f s", pushed - analyzed)

        if not persisted.ok:
            return persisted.model_copy(update={"op": op})

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "top_level": str(config.top_level),
                **persisted.data,
                "analyze_seconds": round(analyzed - start, 3),
                "push_seconds": round(pushed - analyzed, 3),
            },
            warnings=[*result.problems, *persisted.warnings],
        )
