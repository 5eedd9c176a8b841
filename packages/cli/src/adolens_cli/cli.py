"""CLI entry point for adolens.

Commands:
  review   — the pipeline task: run the Copilot CLI review on a pull request
  comment  — post a new thread or reply to an existing one (used by Copilot)
  details  — write and print the pull request report
  changes  — write and print the latest iteration report
"""

from __future__ import annotations

import importlib.metadata
import logging
import os

import click
from rich.logging import RichHandler

from adolens_cli.commands.comment import comment_cmd
from adolens_cli.commands.diagnostics import changes_cmd, details_cmd
from adolens_cli.commands.review import review_cmd


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=debug)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("adolens"),
    prog_name="adolens",
)
@click.option(
    "--config",
    "config_path",
    default=".adolens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="ADOLENS_CONFIG",
)
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, debug: bool):
    """Copilot-powered code review for Azure DevOps pull requests."""
    # System.Debug=true on the pipeline turns on verbose logs as well.
    debug = debug or os.environ.get("SYSTEM_DEBUG", "").lower() == "true"
    _configure_logging(debug)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(comment_cmd)
main.add_command(details_cmd)
main.add_command(changes_cmd)
