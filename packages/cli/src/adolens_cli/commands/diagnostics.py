"""details / changes commands — write and show the context reports on their own."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from adolens_cli.connection import connection_options, resolve_connection
from adolens_core.context import (
    ITERATION_DETAILS_FILE,
    PR_DETAILS_FILE,
    write_iteration_details,
    write_pr_details,
)
from adolens_core.errors import TaskError

console = Console()


def _output_option(default_name: str):
    return click.option(
        "--output",
        "output",
        default=default_name,
        show_default=True,
        type=click.Path(dir_okay=False),
        help="Where to write the report.",
    )


def _run(writer, output: str, **connection) -> None:
    try:
        client, number = resolve_connection(**connection)
        path = writer(client, number, Path(output))
    except TaskError as e:
        raise click.ClickException(e.message)
    console.print(path.read_text(encoding="utf-8"), markup=False, highlight=False)
    console.print(f"[dim]Saved to {path}[/dim]")


@click.command("details")
@_output_option(PR_DETAILS_FILE)
@connection_options
def details_cmd(output: str, **connection):
    """Fetch pull request metadata, reviewers and threads."""
    _run(write_pr_details, output, **connection)


@click.command("changes")
@_output_option(ITERATION_DETAILS_FILE)
@connection_options
def changes_cmd(output: str, **connection):
    """Fetch the latest iteration's commits and changed files."""
    _run(write_iteration_details, output, **connection)
