"""Blocking external command execution.

Every external interaction of a run (unzip, xcrun, xcodebuild) goes through
`ProcessInvoker` so that tests can swap in a recording fake.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    args: list[str]
    returncode: int
    stdout: str
    stderr: str

    def ok(self) -> bool:
        return self.returncode == 0


def _format_command(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in command)


class ProcessInvoker:
    """Runs commands to completion; no retries, no timeouts."""

    def run(self, *command: str) -> ProcessResult:
        """Run `command` and capture both output streams.

        Both pipes are drained while waiting for the child, so a chatty
        process cannot block on a full stderr buffer. Anything written to
        stderr is logged as a diagnostic but does not change the result;
        interpreting a non-zero exit code is up to the caller.
        """

        cmd = [str(part) for part in command]
        logger.debug("run: %s", _format_command(cmd))
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        result = ProcessResult(
            args=cmd,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        if result.stderr:
            logger.warning(
                "command: %s\nerror: %s", _format_command(cmd), result.stderr.rstrip("\n")
            )
        return result

    def run_inherited(self, command: Sequence[str], *, cwd: Optional[Path] = None) -> int:
        """Run `command` with this process's stdout/stderr; return the exit code."""

        cmd = [str(part) for part in command]
        logger.debug("run (inherited output): %s", _format_command(cmd))
        proc = subprocess.run(cmd, cwd=str(cwd) if cwd is not None else None)
        return proc.returncode
