"""End-to-end review run.

    Preflight → InputsResolved → [AuthorGate → skipped]
              → ToolReady → ContextFetched → PromptReady → ReviewRan

Each step blocks until done. Failures raise a TaskError subclass and end the
run; the author gate is the only non-error early exit.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping

from rich.console import Console

from adolens_core.ado.client import AzureDevOpsClient
from adolens_core.config import TaskConfig, resolve_task_config
from adolens_core.context import fetch_context
from adolens_core.gate import is_author_allowed
from adolens_core.preflight import check_environment
from adolens_core.prompt import select_prompt, write_prompt
from adolens_core.provisioning import ensure_copilot_cli
from adolens_core.review import run_copilot_review
from adolens_core.runner import ProcessRunner

console = Console()
logger = logging.getLogger(__name__)

_RULE = "=" * 60


class TaskResult(str, Enum):
    SUCCEEDED = "Succeeded"
    SKIPPED = "Skipped"
    FAILED = "Failed"


@dataclass
class TaskOutcome:
    result: TaskResult
    message: str


def _print_banner(config: TaskConfig) -> None:
    console.print(_RULE)
    console.print("[bold]Copilot Code Review Task[/bold]")
    console.print(_RULE)
    console.print(f"Organization: {config.organization}")
    console.print(f"Project: {config.project}")
    console.print(f"Repository: {config.repository}")
    console.print(f"Pull Request ID: {config.pull_request_id}")
    console.print(f"Timeout: {config.timeout_minutes} minutes")
    if config.model:
        console.print(f"Model: {config.model}")
    console.print(_RULE)


def _print_prompt(text: str) -> None:
    console.print("========== START PROMPT ==========")
    console.print(text, markup=False, highlight=False, soft_wrap=True)
    console.print("========== END PROMPT ==========")


def run_task(
    settings: Mapping,
    environ: Mapping[str, str] | None = None,
    runner: ProcessRunner | None = None,
    client_factory: Callable[[TaskConfig], AzureDevOpsClient] = AzureDevOpsClient.from_config,
    system: str | None = None,
) -> TaskOutcome:
    """Run one review and return its outcome (succeeded or skipped).

    Any failure propagates as a TaskError; the CLI maps it to a failed task.
    """
    environ = os.environ if environ is None else environ
    runner = runner or ProcessRunner()

    check_environment(runner, system)

    config = resolve_task_config(settings, environ)
    _print_banner(config)

    if not is_author_allowed(config.authors, config.requested_for_email):
        message = (
            f"Skipping review: requester {config.requested_for_email or '(unknown)'} "
            "is not in the configured authors list."
        )
        console.print(f"[yellow]{message}[/yellow]")
        return TaskOutcome(TaskResult.SKIPPED, message)

    # Validated up front so a bad prompt fails before anything is installed or fetched.
    prompt = select_prompt(config.prompt, config.prompt_file)

    console.print("\n[Step 1/3] Checking GitHub Copilot CLI installation...")
    ensure_copilot_cli(runner, system)

    console.print("\n[Step 2/3] Fetching pull request context...")
    client = client_factory(config)
    fetch_context(client, config.pull_request_id, config.working_directory)

    console.print("\n[Step 3/3] Running Copilot code review...")
    if prompt.source == "default":
        console.print("Using default prompt.")
    else:
        console.print(f"Using custom prompt from {prompt.source}, merged with instruction template.")
    _print_prompt(prompt.text)
    prompt_path = write_prompt(prompt, config.working_directory)
    run_copilot_review(runner, config, prompt_path, base_env=environ)

    console.print("\n" + _RULE)
    console.print("[green]Copilot Code Review completed successfully![/green]")
    console.print(_RULE)
    return TaskOutcome(TaskResult.SUCCEEDED, "Copilot code review completed.")
