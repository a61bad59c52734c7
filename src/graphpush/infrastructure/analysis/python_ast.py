"""Python syntax tree -> GraphNode tree.

Every syntax node becomes a :class:`GraphNode` labeled with its class name
(``FunctionDef``, ``Call``, ``Name`` ...) and attached to its parent by the
structural relationship. Context and operator nodes are folded into their
parent's properties instead of becoming nodes.

Name loads that match a module-level definition get a ``REFERS_TO`` edge
to it, so a recursive function points back up its own subtree.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from graphpush.domain.graph import GraphNode, RelationshipKind

MAX_CODE_LENGTH = 256

_FOLDED = (ast.expr_context, ast.boolop, ast.operator, ast.unaryop, ast.cmpop)
_DEFINITIONS = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)


@dataclass
class ParsedUnit:
    """A translation unit plus what the include loader needs from it."""

    unit: GraphNode
    problem: str | None = None
    node_count: int = 1
    imports: list[tuple[GraphNode, str]] = field(default_factory=list)


def _name_of(node: ast.AST) -> str:
    for attr in ("name", "id", "attr", "arg", "module"):
        value = getattr(node, attr, None)
        if isinstance(value, str):
            return value
    return ""


def _properties(node: ast.AST, source: str) -> dict[str, Any]:
    props: dict[str, Any] = {}
    for attr in ("lineno", "col_offset", "end_lineno", "end_col_offset"):
        value = getattr(node, attr, None)
        if value is not None:
            props[attr] = value

    for field_name, value in ast.iter_fields(node):
        if isinstance(value, ast.expr_context):
            props["context"] = type(value).__name__
        elif isinstance(value, (ast.boolop, ast.operator, ast.unaryop)):
            props["operator"] = type(value).__name__
        elif field_name == "ops" and isinstance(value, list):
            props["operators"] = [type(op).__name__ for op in value]

    if isinstance(node, ast.Constant):
        props["value"] = repr(node.value)

    if hasattr(node, "lineno"):
        segment = ast.get_source_segment(source, node)
        if segment is not None:
            props["code"] = segment[:MAX_CODE_LENGTH]
    return props


def _module_definitions(tree: ast.Module) -> dict[str, ast.AST]:
    """Module-level functions, classes, and simple assignments by name."""
    defs: dict[str, ast.AST] = {}
    for stmt in tree.body:
        if isinstance(stmt, _DEFINITIONS):
            defs[stmt.name] = stmt
        elif isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                if isinstance(target, ast.Name):
                    defs[target.id] = stmt
        elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            defs[stmt.target.id] = stmt
    return defs


def _imported_modules(node: ast.AST) -> list[str]:
    if isinstance(node, ast.Import):
        return [alias.name for alias in node.names]
    if isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
        return [node.module]
    return []


def build_unit(path: Path, display_name: str) -> ParsedUnit:
    """Parse *path* and build its ``TranslationUnit`` tree.

    A file that cannot be read or parsed still yields a unit, carrying a
    ``problem`` property and no children.
    """
    unit = GraphNode(
        label="TranslationUnit",
        name=display_name,
        properties={"path": str(path), "language": "python"},
    )
    if path.suffix != ".py":
        return _problem(unit, "unsupported file type")
    try:
        source = path.read_text(encoding="utf-8")
        tree = ast.parse(source, filename=str(path))
    except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as exc:
        return _problem(unit, f"{type(exc).__name__}: {exc}")

    parsed = ParsedUnit(unit=unit)
    mapping: dict[int, GraphNode] = {id(tree): unit}
    loads: list[tuple[GraphNode, str]] = []

    stack: list[ast.AST] = [tree]
    while stack:
        current = stack.pop()
        parent = mapping[id(current)]
        children = [c for c in ast.iter_child_nodes(current) if not isinstance(c, _FOLDED)]
        for child in children:
            node = GraphNode(
                label=type(child).__name__,
                name=_name_of(child),
                properties=_properties(child, source),
            )
            parent.add_child(node)
            mapping[id(child)] = node
            parsed.node_count += 1
            if isinstance(child, ast.Name) and isinstance(child.ctx, ast.Load):
                loads.append((node, child.id))
            for module in _imported_modules(child):
                parsed.imports.append((node, module))
        # Reversed so the pop order follows source order.
        stack.extend(reversed(children))

    definitions = _module_definitions(tree)
    for node, name in loads:
        target = definitions.get(name)
        if target is not None:
            node.relate(RelationshipKind.REFERS_TO, mapping[id(target)])
    return parsed


def _problem(unit: GraphNode, message: str) -> ParsedUnit:
    unit.properties["problem"] = message
    return ParsedUnit(unit=unit, problem=message)
