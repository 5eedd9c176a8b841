"""Process spawning behind a small bounded-time interface.

Every subprocess adolens starts goes through ProcessRunner, so the
orchestration in task.py can be exercised with a fake runner and never
touches the OS directly. Environment variables are only assembled at this
boundary; callers hand in an explicit ``env`` mapping.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Mapping, Sequence

from adolens_core.errors import ReviewTimeoutError, SubprocessError

logger = logging.getLogger(__name__)


def _resolve(args: Sequence[str]) -> list[str]:
    # shutil.which honours PATHEXT, so "npm" finds npm.cmd on Windows agents.
    resolved = shutil.which(args[0])
    return [resolved or args[0], *args[1:]]


class ProcessRunner:
    """Spawns external tools. Stateless; one instance per run is enough."""

    def probe(self, args: Sequence[str]) -> bool:
        """Return True if the command starts and exits 0."""
        try:
            result = subprocess.run(_resolve(args), capture_output=True, text=True)
        except OSError as e:
            logger.debug("Probe %s could not start: %s", args[0], e)
            return False
        return result.returncode == 0

    def capture(self, args: Sequence[str]) -> str | None:
        """Return stdout of a successful command, or None."""
        try:
            result = subprocess.run(_resolve(args), capture_output=True, text=True)
        except OSError as e:
            logger.debug("Command %s could not start: %s", args[0], e)
            return None
        if result.returncode != 0:
            return None
        return result.stdout

    def run(
        self,
        args: Sequence[str],
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> int:
        """Run a command with inherited stdio and return its exit code.

        When ``timeout`` (seconds) elapses first the process is sent a
        terminate signal and ReviewTimeoutError is raised straight away.
        Termination is requested, not awaited.
        """
        try:
            proc = subprocess.Popen(_resolve(args), cwd=cwd, env=dict(env) if env is not None else None)
        except OSError as e:
            raise SubprocessError(f"Failed to run {args[0]}: {e}")

        try:
            return proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            minutes = timeout / 60 if timeout else 0
            logger.warning("Timeout reached (%g minutes). Terminating %s...", minutes, args[0])
            proc.terminate()
            raise ReviewTimeoutError(f"{args[0]} timed out after {minutes:g} minutes", timeout_seconds=timeout)
