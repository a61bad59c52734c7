"""push — analyze source files and persist the graph into the database."""

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
  graphpush push src/
  graphpush push app.py utils.py --user neo4j --password secret
  graphpush push src/ --save-depth 2
  graphpush push src/ --load-includes --includes-file includes.txt
  graphpush --json push src/ --uri sqlite:///graph.db""",
)
@click.argument("files", nargs=-1, required=True)
@click.option("--user", "username", default=None, help="Database user name (default: neo4j).")
@click.option("--password", default=None, help="Database password (default: password).")
@click.option("--uri", default=None, help="Database URI (default: bolt://localhost).")
@click.option(
    "--save-depth",
    "depth",
    type=click.IntRange(min=-1),
    default=None,
    help="Limit relationship hops followed per saved node. -1 (default) means no limit.",
)
@click.option("--load-includes", is_flag=True, help="Also analyze imports found on include paths.")
@click.option(
    "--includes-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Load include paths from a file, one per line.",
)
@click.pass_obj
def push(
    app: AppContext,
    files: tuple[str, ...],
    username: str | None,
    password: str | None,
    uri: str | None,
    depth: int | None,
    load_includes: bool,
    includes_file: Path | None,
) -> None:
    """Analyze FILES and push the resulting graph to the database.

    The target database is purged before every push.
    """
    app.override("database", username=username, password=password, uri=uri)
    app.override("persist", depth=depth)
    app.override(
        "analysis",
        load_includes=True if load_includes else None,
        includes_file=includes_file,
    )
    app.emit(AnalyzeService(app.settings).push(files))
