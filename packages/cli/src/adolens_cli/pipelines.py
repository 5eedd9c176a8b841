"""Azure Pipelines logging commands.

The agent reads ``##vso[...]`` lines from stdout to set the task result.
They are written with click.echo so no markup renderer touches the brackets.
"""

from __future__ import annotations

import click

from adolens_core.task import TaskOutcome, TaskResult


def _escape(message: str) -> str:
    # Logging command messages must stay on one line.
    return message.replace("%", "%AZP25").replace("\r", "%0D").replace("\n", "%0A")


def log_issue(message: str, issue_type: str = "error") -> None:
    click.echo(f"##vso[task.logissue type={issue_type}]{_escape(message)}")


def complete(result: str, message: str) -> None:
    click.echo(f"##vso[task.complete result={result};]{_escape(message)}")


def report_outcome(outcome: TaskOutcome) -> int:
    """Emit the task result for an outcome and return the process exit code."""
    if outcome.result is TaskResult.FAILED:
        log_issue(outcome.message)
        complete("Failed", outcome.message)
        return 1
    # A skipped run is still a successful task.
    complete("Succeeded", outcome.message)
    return 0
