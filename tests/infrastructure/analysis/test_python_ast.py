"""Tests for the Python syntax-tree builder."""

from __future__ import annotations

from pathlib import Path

from graphpush.domain.graph import GraphNode, RelationshipKind
from graphpush.infrastructure.analysis.python_ast import MAX_CODE_LENGTH, build_unit
from graphpush.infrastructure.graph import flatten_tree


def _write(tmp_path: Path, source: str, name: str = "mod.py") -> Path:
    path = tmp_path / name
    path.write_text(source, encoding="utf-8")
    return path


def _by_label(root: GraphNode, label: str) -> list[GraphNode]:
    return [n for n in flatten_tree(root) if n.label == label]


class TestBuildUnit:
    def test_unit_properties(self, tmp_path: Path) -> None:
        parsed = build_unit(_write(tmp_path, "x = 1\n"), "mod.py")
        unit = parsed.unit
        assert unit.label == "TranslationUnit"
        assert unit.name == "mod.py"
        assert unit.properties["language"] == "python"
        assert parsed.problem is None

    def test_children_follow_source_order(self, tmp_path: Path) -> None:
        source = "import os\ndef f():\n    pass\nclass C:\n    pass\n"
        parsed = build_unit(_write(tmp_path, source), "m")
        assert [c.label for c in parsed.unit.children] == ["Import", "FunctionDef", "ClassDef"]
        assert [c.name for c in parsed.unit.children[1:]] == ["f", "C"]

    def test_node_count_matches_tree(self, tmp_path: Path) -> None:
        parsed = build_unit(_write(tmp_path, "a = b + 1\n"), "m")
        assert parsed.node_count == len(flatten_tree(parsed.unit))

    def test_context_and_operator_folded(self, tmp_path: Path) -> None:
        parsed = build_unit(_write(tmp_path, "a = b + 1\n"), "m")
        labels = {n.label for n in flatten_tree(parsed.unit)}
        assert "Load" not in labels
        assert "Add" not in labels
        (binop,) = _by_label(parsed.unit, "BinOp")
        assert binop.properties["operator"] == "Add"
        names = {n.name: n.properties["context"] for n in _by_label(parsed.unit, "Name")}
        assert names == {"a": "Store", "b": "Load"}

    def test_compare_operators(self, tmp_path: Path) -> None:
        parsed = build_unit(_write(tmp_path, "x = 1 < 2 <= 3\n"), "m")
        (compare,) = _by_label(parsed.unit, "Compare")
        assert compare.properties["operators"] == ["Lt", "LtE"]

    def test_positions_and_code(self, tmp_path: Path) -> None:
        parsed = build_unit(_write(tmp_path, "value = 42\n"), "m")
        (const,) = _by_label(parsed.unit, "Constant")
        assert const.properties["value"] == "42"
        assert const.properties["lineno"] == 1
        assert const.properties["col_offset"] == 8
        assert const.properties["code"] == "42"

    def test_code_truncated(self, tmp_path: Path) -> None:
        long_string = "x" * (MAX_CODE_LENGTH * 2)
        parsed = build_unit(_write(tmp_path, f"s = '{long_string}'\n"), "m")
        (assign,) = _by_label(parsed.unit, "Assign")
        assert len(assign.properties["code"]) == MAX_CODE_LENGTH


class TestReferences:
    def test_recursive_call_refers_to_definition(self, tmp_path: Path) -> None:
        source = "def fact(n):\n    return 1 if n <= 1 else n * fact(n - 1)\n\nRESULT = fact(5)\n"
        parsed = build_unit(_write(tmp_path, source), "m")
        (func,) = _by_label(parsed.unit, "FunctionDef")
        refs = [
            r.target
            for n in _by_label(parsed.unit, "Name")
            for r in n.outgoing(RelationshipKind.REFERS_TO)
        ]
        assert refs == [func, func]

    def test_unknown_names_have_no_reference(self, tmp_path: Path) -> None:
        parsed = build_unit(_write(tmp_path, "print(len([]))\n"), "m")
        assert all(not n.outgoing(RelationshipKind.REFERS_TO) for n in flatten_tree(parsed.unit))

    def test_assignment_target_referenced(self, tmp_path: Path) -> None:
        parsed = build_unit(_write(tmp_path, "LIMIT = 3\nprint(LIMIT)\n"), "m")
        (assign,) = _by_label(parsed.unit, "Assign")
        names = _by_label(parsed.unit, "Name")
        (ref,) = [n for n in names if n.outgoing(RelationshipKind.REFERS_TO)]
        assert ref.outgoing(RelationshipKind.REFERS_TO)[0].target == assign


class TestImports:
    def test_absolute_imports_recorded(self, tmp_path: Path) -> None:
        source = "import os.path, json\nfrom collections import deque\nfrom . import sibling\n"
        parsed = build_unit(_write(tmp_path, source), "m")
        assert [module for _, module in parsed.imports] == ["os.path", "json", "collections"]
        assert parsed.imports[0][0].label == "Import"


class TestProblems:
    def test_syntax_error(self, tmp_path: Path) -> None:
        parsed = build_unit(_write(tmp_path, "def broken(:\n"), "m")
        assert parsed.problem is not None
        assert parsed.problem.startswith("SyntaxError")
        assert parsed.unit.properties["problem"] == parsed.problem
        assert parsed.unit.children == []

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        parsed = build_unit(_write(tmp_path, "int main() {}", name="main.c"), "main.c")
        assert parsed.problem == "unsupported file type"

    def test_missing_file(self, tmp_path: Path) -> None:
        parsed = build_unit(tmp_path / "gone.py", "gone.py")
        assert parsed.problem.startswith("FileNotFoundError")
