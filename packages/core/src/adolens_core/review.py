"""Copilot CLI invocation with a wall-clock bound."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from rich.console import Console

from adolens_core.config import TaskConfig
from adolens_core.errors import SubprocessError
from adolens_core.provisioning import COPILOT_COMMAND
from adolens_core.runner import ProcessRunner

console = Console()
logger = logging.getLogger(__name__)

# Copilot may use any tool except pushing to the remote.
DENIED_TOOL = "shell(git push)"


def build_copilot_command(prompt_text: str, model: str | None = None) -> list[str]:
    command = [
        COPILOT_COMMAND,
        "-p",
        prompt_text,
        "--allow-all-paths",
        "--allow-all-tools",
        "--deny-tool",
        DENIED_TOOL,
    ]
    if model:
        command += ["--model", model]
    return command


def build_review_env(config: TaskConfig, base_env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment for the Copilot process.

    GH_TOKEN authenticates Copilot itself; the remaining variables let the
    agent run `adolens comment` against this pull request without flags.
    """
    env = dict(os.environ if base_env is None else base_env)
    env.update(
        {
            "GH_TOKEN": config.github_pat,
            "AZUREDEVOPSPAT": config.ado_token,
            "ADOLENS_AUTH_SCHEME": config.ado_auth_scheme,
            "ORGANIZATION": config.organization,
            "PROJECT": config.project,
            "REPOSITORY": config.repository,
            "PRID": str(config.pull_request_id),
        }
    )
    return env


def run_copilot_review(
    runner: ProcessRunner,
    config: TaskConfig,
    prompt_path: Path,
    base_env: Mapping[str, str] | None = None,
) -> None:
    prompt_text = Path(prompt_path).read_text(encoding="utf-8")
    command = build_copilot_command(prompt_text, config.model)
    timeout_seconds = config.timeout_minutes * 60

    logger.debug("Prompt file: %s (%d chars)", prompt_path, len(prompt_text))
    console.print(
        f"Running Copilot CLI (model: {config.model or 'default'}, timeout: {config.timeout_minutes} min)..."
    )

    code = runner.run(
        command,
        cwd=config.working_directory,
        env=build_review_env(config, base_env),
        timeout=timeout_seconds,
    )
    if code != 0:
        raise SubprocessError(f"Copilot CLI exited with code: {code}", returncode=code)
