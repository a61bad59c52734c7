"""analyze — run the analyzer only and report graph size."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from graphpush.commands._base import GraphpushCommand
from graphpush.services.analyze import AnalyzeService

if TYPE_CHECKING:
    from graphpush.commands._context import AppContext


@click.command(
    cls=GraphpushCommand,
    examples="""\
  graphpush analyze src/
  graphpush analyze src/ --load-includes --includes-file includes.txt
  graphpush --json analyze app.py""",
)
@click.argument("files", nargs=-1, required=True)
@click.option("--load-includes", is_flag=True, help="Also analyze imports found on include paths.")
@click.option(
    "--includes-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Load include paths from a file, one per line.",
)
@click.pass_obj
def analyze(
    app: AppContext,
    files: tuple[str, ...],
    load_includes: bool,
    includes_file: Path | None,
) -> None:
    """Analyze FILES without touching the database."""
    app.override(
        "analysis",
        load_includes=True if load_includes else None,
        includes_file=includes_file,
    )
    app.emit(AnalyzeService(app.settings).analyze(files))
