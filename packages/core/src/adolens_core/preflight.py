"""Agent environment checks run before anything else."""

from __future__ import annotations

import logging
import platform
import re

from adolens_core.errors import PreflightError
from adolens_core.runner import ProcessRunner

logger = logging.getLogger(__name__)

REQUIRED_SHELL = "pwsh"
MIN_NODE_MAJOR = 22

_NODE_VERSION_RE = re.compile(r"v?(\d+)\.\d+")


def current_system() -> str:
    return platform.system().lower()


def parse_major_version(version_text: str) -> int | None:
    match = _NODE_VERSION_RE.search(version_text or "")
    if not match:
        return None
    return int(match.group(1))


def check_shell(runner: ProcessRunner, shell: str = REQUIRED_SHELL) -> None:
    """Copilot runs its shell tool through PowerShell 7, so pwsh must exist."""
    if not runner.probe([shell, "--version"]):
        raise PreflightError(
            f"PowerShell 7 ({shell}) was not found on this agent. "
            "Install it from https://aka.ms/powershell and make sure it is on PATH."
        )
    logger.debug("%s is available.", shell)


def check_node_version(runner: ProcessRunner, minimum: int = MIN_NODE_MAJOR) -> None:
    """Node is needed to install the Copilot CLI through npm."""
    output = runner.capture(["node", "--version"])
    if output is None:
        raise PreflightError(
            f"Node.js {minimum} or later is required to install the Copilot CLI, but node was not found. "
            "Add a NodeTool@0 step (versionSpec: '22.x') before this task."
        )
    major = parse_major_version(output)
    if major is None:
        raise PreflightError(f"Could not determine the Node.js version from: {output.strip()!r}")
    if major < minimum:
        raise PreflightError(
            f"Node.js {minimum} or later is required, found {output.strip()}. "
            f"Add a NodeTool@0 step (versionSpec: '{minimum}.x') before this task."
        )


def check_environment(runner: ProcessRunner, system: str | None = None) -> None:
    system = system or current_system()
    check_shell(runner)
    # Windows agents install through winget and do not need node.
    if system != "windows":
        check_node_version(runner)
