"""Install-if-absent for the GitHub Copilot CLI."""

from __future__ import annotations

import logging
import os

from rich.console import Console

from adolens_core.errors import ProvisioningError, SubprocessError
from adolens_core.preflight import current_system
from adolens_core.runner import ProcessRunner

console = Console()
logger = logging.getLogger(__name__)

COPILOT_COMMAND = "copilot"

WINGET_INSTALL = [
    "winget",
    "install",
    "GitHub.Copilot",
    "--silent",
    "--accept-package-agreements",
    "--accept-source-agreements",
]
NPM_INSTALL = ["npm", "install", "-g", "@github/copilot"]


def is_copilot_installed(runner: ProcessRunner) -> bool:
    return runner.probe([COPILOT_COMMAND, "--version"])


def install_command(system: str) -> list[str]:
    return list(WINGET_INSTALL if system == "windows" else NPM_INSTALL)


def refresh_windows_path() -> None:
    """Re-read machine and user PATH so a fresh winget install is visible."""
    import winreg

    parts = []
    for hive, key in (
        (winreg.HKEY_LOCAL_MACHINE, r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"),
        (winreg.HKEY_CURRENT_USER, "Environment"),
    ):
        try:
            with winreg.OpenKey(hive, key) as handle:
                value, _ = winreg.QueryValueEx(handle, "Path")
                parts.append(os.path.expandvars(value))
        except OSError:
            continue
    if parts:
        os.environ["PATH"] = ";".join(parts)


def install_copilot_cli(runner: ProcessRunner, system: str | None = None) -> None:
    system = system or current_system()
    command = install_command(system)
    console.print(f"Installing GitHub Copilot CLI via {command[0]}...")
    try:
        code = runner.run(command)
    except SubprocessError as e:
        raise ProvisioningError(f"Failed to install GitHub Copilot CLI: {e.message}")
    if code != 0:
        raise ProvisioningError(f"Failed to install GitHub Copilot CLI. Exit code: {code}")
    if system == "windows":
        refresh_windows_path()
    console.print("[green]GitHub Copilot CLI installed successfully.[/green]")


def ensure_copilot_cli(runner: ProcessRunner, system: str | None = None) -> bool:
    """Install the CLI on a miss. Returns True when an install happened."""
    if is_copilot_installed(runner):
        console.print("GitHub Copilot CLI is already installed.")
        return False
    console.print("[yellow]GitHub Copilot CLI not found. Installing...[/yellow]")
    install_copilot_cli(runner, system)
    return True
