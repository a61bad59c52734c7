"""Allow ``python -m graphpush``."""

from graphpush.cli import cli

cli(prog_name="graphpush")
