"""Subcommand modules for graphpush.

Provides register_commands() which uses deferred imports to keep
``graphpush --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from graphpush.commands.analyze import analyze
    from graphpush.commands.push import push

    cli.add_command(push)
    cli.add_command(analyze)
