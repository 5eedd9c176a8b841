"""comment command — post review feedback to a pull request thread."""

from __future__ import annotations

import click
from rich.console import Console

from adolens_cli.connection import connection_options, resolve_connection
from adolens_core.ado.client import ThreadStatus
from adolens_core.errors import TaskError

console = Console()

_STATUS_CHOICES = ["active", "fixed", "wontfix", "closed", "pending"]


@click.command("comment")
@click.option("--content", required=True, help="Comment body (markdown).")
@click.option("--thread-id", type=int, default=None, help="Reply to this thread instead of starting a new one.")
@click.option(
    "--status",
    type=click.Choice(_STATUS_CHOICES, case_sensitive=False),
    default=None,
    help="Status for a new thread (default active), or the new status of the replied thread.",
)
@click.option("--file", "file_path", default=None, help="Anchor a new thread to this file path.")
@click.option("--line", type=int, default=None, help="Line in the new version of --file.")
@connection_options
def comment_cmd(
    content: str,
    thread_id: int | None,
    status: str | None,
    file_path: str | None,
    line: int | None,
    organization: str | None,
    project: str | None,
    repository: str | None,
    pr_id: str | None,
    pat: str | None,
    auth_scheme: str,
):
    """Create a pull request thread, or reply to an existing one."""
    if line is not None and not file_path:
        raise click.UsageError("--line requires --file.")
    if thread_id is not None and file_path:
        raise click.UsageError("--file cannot be used when replying to an existing thread.")

    try:
        client, number = resolve_connection(organization, project, repository, pr_id, pat, auth_scheme)
        if thread_id is None:
            new_status = ThreadStatus.from_name(status) if status else ThreadStatus.ACTIVE
            thread = client.create_thread(number, content, status=new_status, file_path=file_path, line=line)
            console.print(f"[green]Created thread #{thread.get('id')} on pull request {number}.[/green]")
        else:
            client.reply_to_thread(number, thread_id, content)
            if status:
                client.update_thread_status(number, thread_id, ThreadStatus.from_name(status))
            console.print(f"[green]Replied to thread #{thread_id} on pull request {number}.[/green]")
    except TaskError as e:
        raise click.ClickException(e.message)
