"""Bundled analysis engine: Python sources -> translation-unit graphs."""

from graphpush.infrastructure.analysis.translation import (
    TranslationConfiguration,
    TranslationManager,
    TranslationResult,
)

__all__ = ["TranslationConfiguration", "TranslationManager", "TranslationResult"]
