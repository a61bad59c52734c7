"""Shared pytest fixtures and test helpers for graphpush tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from graphpush.config.settings import GraphpushSettings
from graphpush.domain.graph import GraphNode
from graphpush.services.telemetry import disable_telemetry
from tests.fakes import Recorder


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer env vars from leaking into settings."""
    for name in (
        "GRAPHPUSH_CONFIG",
        "GRAPHPUSH_DATABASE__URI",
        "GRAPHPUSH_DATABASE__USERNAME",
        "GRAPHPUSH_DATABASE__PASSWORD",
        "GRAPHPUSH_PERSIST__DEPTH",
        "GRAPHPUSH_PERSIST__PURGE_BEFORE_WRITE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_global_state() -> Generator[None]:
    """Undo logging and telemetry setup done by CLI invocations."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def settings(tmp_path: Path) -> GraphpushSettings:
    """Settings with no config file, instant retries, and a local SQLite target."""
    base = GraphpushSettings.from_cli(start_dir=tmp_path)
    base = base.with_overrides("database", uri=f"sqlite:///{tmp_path / 'graph.db'}")
    return base.with_overrides("retry", max_attempts=3, delay_seconds=0.0)


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """A small Python project: two modules, one importing the other."""
    project = tmp_path / "project"
    project.mkdir()
    (project / "app.py").write_text(
        "import helpers\n"
        "\n"
        "def fact(n):\n"
        "    return 1 if n <= 1 else n * fact(n - 1)\n"
        "\n"
        "RESULT = fact(5)\n",
        encoding="utf-8",
    )
    (project / "helpers.py").write_text("def helper():\n    return 42\n", encoding="utf-8")
    return project


@pytest.fixture
def make_tree() -> Callable[..., GraphNode]:
    """Build a node tree from nested tuples: ``("A", [("B", []), ...])``."""

    def _build(spec: tuple[str, list]) -> GraphNode:
        name, children = spec
        node = GraphNode(label="Test", name=name, id=name)
        for child in children:
            node.add_child(_build(child))
        return node

    return _build
