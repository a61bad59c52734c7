"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from graphpush.output.console import create_console, get_output

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from graphpush.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    if verbose:
        _render_meta(console, result)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="gp.ok")
    op = Text(f"  {result.op}", style="gp.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="gp.key")
    if key.endswith("_seconds"):
        v = Text(f"{value} s", style="gp.timing")
    elif key in ("path", "top_level", "uri"):
        v = Text(str(value), style="gp.path")
    elif isinstance(value, int) and not isinstance(value, bool):
        v = Text(str(value), style="gp.count")
    else:
        v = Text(str(value))
    console.print(Text.assemble(k, v))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including the telemetry span tree."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _render_warnings(console: Console, result: ServiceResult, *, verbose: bool) -> None:
    if not result.warnings:
        return
    if verbose:
        for warning in result.warnings:
            console.print(Text("  warning: ", style="gp.warning"), warning)
    else:
        _field(console, "warnings", len(result.warnings))


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="gp.error")
    op = Text(f"  {result.op}", style="gp.op")
    console.print(label, op, Text(" — "), msg)

    if err and err.code:
        _field(console, "code", err.code)
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    _render_warnings(console, result, verbose=verbose)


_COUNT_ROWS = (
    ("translation_units", "Translation units"),
    ("nodes", "Nodes"),
    ("nodes_pushed", "Nodes pushed"),
    ("records_written", "Records written"),
    ("relationships_pushed", "Relationships"),
)
_TIMING_ROWS = (
    ("analyze_seconds", "Analyze"),
    ("save_seconds", "Save"),
    ("push_seconds", "Push"),
)


def _render_summary(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render analyze/persist/push results as a count and timing table."""
    d = result.data
    _status_line(console, result)
    if "top_level" in d:
        _field(console, "top_level", d["top_level"])

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Metric", style="gp.key")
    table.add_column("Value", justify="right")
    for key, label in _COUNT_ROWS:
        if key in d:
            table.add_row(label, Text(str(d[key]), style="gp.count"))
    for key, label in _TIMING_ROWS:
        if key in d:
            table.add_row(label, Text(f"{d[key]:.3f} s", style="gp.timing"))
    console.print(table)

    if "depth" in d:
        depth = d["depth"]
        _field(console, "depth", "unbounded" if depth == -1 else depth)
    if d.get("purged"):
        console.print(Text("  database purged before write", style="gp.warning"))
    _render_warnings(console, result, verbose=verbose)


_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "analyze": _render_summary,
    "persist": _render_summary,
    "push": _render_summary,
}
