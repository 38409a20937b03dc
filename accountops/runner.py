"""Execution of account administration commands on the local host."""
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger("accountops.runner")


@dataclass
class CommandResult:
    """Result of an executed command."""

    command: Sequence[str]
    exit_status: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class LocalCommandRunner:
    """Runs commands on this machine without an intermediate shell."""

    def __init__(self, timeout: Optional[int] = None) -> None:
        self._timeout = timeout

    def run(self, args: Sequence[str], *, input: Optional[str] = None) -> CommandResult:
        logger.debug("Running %s", " ".join(args))
        completed = subprocess.run(
            list(args),
            input=input,
            capture_output=True,
            text=True,
            timeout=self._timeout,
            check=False,
        )
        return CommandResult(
            command=args,
            exit_status=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    def fetch(self, args: Sequence[str], destination: Path) -> CommandResult:
        """Run ``args`` and write its raw standard output to ``destination``."""

        logger.debug("Running %s > %s", " ".join(args), destination)
        with destination.open("wb") as handle:
            completed = subprocess.run(
                list(args),
                stdout=handle,
                stderr=subprocess.PIPE,
                timeout=self._timeout,
                check=False,
            )
        stderr = completed.stderr.decode("utf-8", errors="replace")
        return CommandResult(command=args, exit_status=completed.returncode, stdout="", stderr=stderr)

    def is_privileged(self) -> bool:
        return os.geteuid() == 0


__all__ = ["CommandResult", "LocalCommandRunner"]
