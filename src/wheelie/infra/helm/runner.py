"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
the helm command layer and the API tunnel.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult


class CommandRunner:
    """Low-level command executor with consistent result handling.

    Commands never raise on a non-zero exit, a timeout, or a missing
    executable; the outcome is reported through ``CommandResult``.
    """

    def __init__(
        self,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the command runner.

        Args:
            cwd: Working directory for commands (defaults to the current one)
            env: Extra environment variables layered over ``os.environ``
        """
        self.cwd = cwd
        self.env = dict(env or {})

    def _environment(self) -> dict[str, str] | None:
        if not self.env:
            return None
        merged = os.environ.copy()
        merged.update(self.env)
        return merged

    def run(
        self,
        cmd: Sequence[str],
        *,
        timeout: float | None = None,
        capture_output: bool = True,
    ) -> CommandResult:
        """Execute a command and return a structured result.

        Args:
            cmd: Command and arguments as a sequence
            timeout: Seconds before the command is killed
            capture_output: Whether to capture stdout/stderr

        Returns:
            CommandResult with success status, output, and return code
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                list(cmd),
                cwd=self.cwd,
                env=self._environment(),
                capture_output=capture_output,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Command timed out after {timeout}s: {cmd[0]}")
            stdout = e.stdout if isinstance(e.stdout, str) else ""
            return CommandResult(
                success=False,
                stdout=stdout,
                stderr=f"{cmd[0]} timed out after {timeout}s",
                returncode=-1,
                timed_out=True,
            )
        except FileNotFoundError:
            return CommandResult(
                success=False,
                stderr=f"executable not found: {cmd[0]}",
                returncode=127,
            )

        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )
