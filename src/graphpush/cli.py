"""Entry point for the ``graphpush`` command line.

The root group resolves settings once (flags, env, ``graphpush.toml``) and
hands them to the ``push`` and ``analyze`` subcommands through AppContext.
"""

from __future__ import annotations

import click
from pydantic import ValidationError

from graphpush import __version__
from graphpush.commands import register_commands
from graphpush.commands._context import AppContext
from graphpush.config.discovery import CONFIG_ENV_VAR, CONFIG_FILENAME
from graphpush.config.settings import GraphpushSettings

_EPILOG = (
    f"Settings come from flags, then GRAPHPUSH_* variables, then {CONFIG_FILENAME} "
    f"(found by walking up from the working directory, or named by {CONFIG_ENV_VAR}). "
    "Targets: bolt://, neo4j:// or sqlite:/// URIs under [database]."
)


def _format_validation(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        where = ".".join(str(loc) for loc in err["loc"])
        parts.append(f"{where}: {err['msg']}")
    return "; ".join(parts)


@click.group(
    invoke_without_command=True,
    epilog=_EPILOG,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name="graphpush")
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Only report failures.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logs and timing telemetry.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help=f"Read settings from this file instead of discovering {CONFIG_FILENAME}.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """Analyze Python sources and push their graph into Neo4j or SQLite."""
    ctx.ensure_object(dict)
    try:
        settings = GraphpushSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
        )
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {_format_validation(exc)}") from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
