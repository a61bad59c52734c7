"""Tests for PersistService: purge, flatten, save, commit, release."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import func, select

from graphpush.config.settings import GraphpushSettings
from graphpush.domain.graph import GraphNode, RelationshipKind
from graphpush.infrastructure.database.schema import edges, nodes
from graphpush.infrastructure.database.sqlite_store import create_db_engine
from graphpush.services.persist import PersistService
from tests.fakes import FakeFactory, FakeSession, Recorder, ScriptedConnector


def _service(
    settings: GraphpushSettings, factory: FakeFactory, outcomes: list[str] | None = None
) -> tuple[PersistService, ScriptedConnector, list[float]]:
    sleeps: list[float] = []
    connector = ScriptedConnector(factory, outcomes or ["ok"])
    return PersistService(settings, connector=connector, sleep=sleeps.append), connector, sleeps


class TestPersistHappyPath:
    def test_call_order(self, settings, recorder: Recorder, make_tree) -> None:
        service, _, _ = _service(settings, FakeFactory(recorder))
        result = service.persist([make_tree(("A", [])), make_tree(("B", []))])
        assert result.ok
        assert recorder.events == [
            "open",
            "purge",
            "begin",
            "save",
            "commit",
            "tx_close",
            "clear",
            "factory_close",
        ]

    def test_child_root_saved_once(self, settings, recorder: Recorder, make_tree) -> None:
        factory = FakeFactory(recorder)
        service, _, _ = _service(settings, factory)
        a = make_tree(("A", [("B", [])]))
        (b,) = a.children
        result = service.persist([a, b])
        assert factory.session.saved == {a, b}
        assert recorder.count("purge") == 1
        assert recorder.events.index("purge") < recorder.events.index("save")
        assert recorder.count("commit") == 1
        assert recorder.count("clear") == 1
        assert recorder.count("factory_close") == 1
        assert result.data["nodes_pushed"] == 2

    def test_saves_flattened_nodes_with_depth(
        self, settings, recorder: Recorder, make_tree
    ) -> None:
        factory = FakeFactory(recorder)
        service, _, _ = _service(settings, factory)
        a = make_tree(("A", [("A1", []), ("A2", [])]))
        b = make_tree(("B", []))
        result = service.persist([a, b, a])
        assert {n.id for n in factory.session.saved} == {"A", "A1", "A2", "B"}
        assert factory.session.saved_depth == -1
        assert result.data["translation_units"] == 2
        assert result.data["nodes_pushed"] == 4
        assert result.data["purged"] is True
        assert result.data["depth"] == -1

    def test_shared_subtree_pushed_once(self, settings, recorder: Recorder) -> None:
        shared = GraphNode(label="T", id="S")
        a = GraphNode(label="T", id="A")
        b = GraphNode(label="T", id="B")
        a.add_child(shared)
        b.add_child(shared)
        factory = FakeFactory(recorder)
        service, _, _ = _service(settings, factory)
        result = service.persist([a, b])
        assert result.data["nodes_pushed"] == 3

    def test_purge_disabled(self, settings, recorder: Recorder, make_tree) -> None:
        settings = settings.with_overrides("persist", purge_before_write=False)
        service, _, _ = _service(settings, FakeFactory(recorder))
        result = service.persist([make_tree(("A", []))])
        assert result.ok
        assert "purge" not in recorder.events
        assert result.data["purged"] is False

    def test_configured_depth_passed_through(
        self, settings, recorder: Recorder, make_tree
    ) -> None:
        settings = settings.with_overrides("persist", depth=2)
        factory = FakeFactory(recorder)
        service, _, _ = _service(settings, factory)
        service.persist([make_tree(("A", []))])
        assert factory.session.saved_depth == 2

    def test_empty_roots(self, settings, recorder: Recorder) -> None:
        service, _, _ = _service(settings, FakeFactory(recorder))
        result = service.persist([])
        assert result.ok
        assert result.data["nodes_pushed"] == 0
        assert recorder.count("commit") == 1


class TestPersistFailures:
    def test_save_failure_rolls_back_and_releases(
        self, settings, recorder: Recorder, make_tree
    ) -> None:
        session = FakeSession(recorder, save_error=RuntimeError("constraint violated"))
        service, _, _ = _service(settings, FakeFactory(recorder, session))
        result = service.persist([make_tree(("A", []))])
        assert not result.ok
        assert result.error.code == "PERSIST_FAILED"
        assert "constraint violated" in result.error.message
        assert "commit" not in recorder.events
        assert recorder.count("rollback") == 1
        assert recorder.count("clear") == 1
        assert recorder.count("factory_close") == 1

    def test_purge_failure_skips_save(self, settings, recorder: Recorder, make_tree) -> None:
        session = FakeSession(recorder, purge_error=RuntimeError("purge denied"))
        service, _, _ = _service(settings, FakeFactory(recorder, session))
        result = service.persist([make_tree(("A", []))])
        assert result.error.code == "PERSIST_FAILED"
        assert "save" not in recorder.events
        assert recorder.events[-2:] == ["clear", "factory_close"]

    def test_connection_failure(self, settings, recorder: Recorder, make_tree) -> None:
        service, connector, sleeps = _service(settings, FakeFactory(recorder), ["down"])
        result = service.persist([make_tree(("A", []))])
        assert not result.ok
        assert result.error.code == "CONNECTION_FAILED"
        assert result.error.detail["attempts"] == 3
        assert connector.calls == 3
        assert sleeps == [0.0, 0.0]
        assert recorder.events == []

    def test_auth_failure_exits(self, settings, recorder: Recorder, make_tree) -> None:
        service, _, _ = _service(settings, FakeFactory(recorder), ["auth"])
        with pytest.raises(SystemExit) as exc_info:
            service.persist([make_tree(("A", []))])
        assert exc_info.value.code == 1


class TestPersistSQLite:
    def test_end_to_end(self, settings, tmp_path: Path) -> None:
        root = GraphNode(label="Module", name="m", id="root")
        func_node = root.add_child(GraphNode(label="FunctionDef", name="f", id="f"))
        call = func_node.add_child(GraphNode(label="Name", name="f", id="call"))
        call.relate(RelationshipKind.REFERS_TO, func_node)

        result = PersistService(settings).persist([root])
        assert result.ok
        assert result.data["records_written"] == 3
        assert result.data["relationships_pushed"] == 3

        engine = create_db_engine(settings.database.uri)
        with engine.connect() as conn:
            assert conn.execute(select(func.count()).select_from(nodes)).scalar_one() == 3
            assert conn.execute(select(func.count()).select_from(edges)).scalar_one() == 3
        engine.dispose()

    def test_second_push_replaces_first(self, settings) -> None:
        PersistService(settings).persist([GraphNode(label="T", id="old")])
        PersistService(settings).persist([GraphNode(label="T", id="new")])

        engine = create_db_engine(settings.database.uri)
        with engine.connect() as conn:
            ids = conn.execute(select(nodes.c.id)).scalars().all()
        engine.dispose()
        assert ids == ["new"]

    def test_unopenable_file_fails_without_retry(self, settings, tmp_path: Path) -> None:
        uri = f"sqlite:///{tmp_path / 'missing' / 'dir' / 'graph.db'}"
        settings = settings.with_overrides("database", uri=uri)
        sleeps: list[float] = []
        result = PersistService(settings, sleep=sleeps.append).persist([GraphNode(label="T")])
        assert result.error.code == "PERSIST_FAILED"
        assert "OperationalError" in result.error.message
        assert sleeps == []
