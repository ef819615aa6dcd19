from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND_EXIT_CODE = 127


@dataclass(slots=True)
class CommandResult:
    exit_code: int
    stdout_lines: list[str] = field(default_factory=list)
    stderr_lines: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output_lines(self) -> list[str]:
        return [*self.stdout_lines, *self.stderr_lines]


class CommandRunner(Protocol):
    def run(self, command: str, args: list[str]) -> CommandResult:
        """Run ``command`` with ``args`` to completion."""


class SubprocessRunner:
    """Runs external tools synchronously with no timeout."""

    def run(self, command: str, args: list[str]) -> CommandResult:
        cmd = [command, *args]
        logger.info("Running: %s", shlex.join(cmd))
        try:
            completed = subprocess.run(cmd, check=False, text=True, capture_output=True)
        except FileNotFoundError as exc:
            return CommandResult(exit_code=COMMAND_NOT_FOUND_EXIT_CODE, stderr_lines=[str(exc)])

        return CommandResult(
            exit_code=completed.returncode,
            stdout_lines=(completed.stdout or "").splitlines(),
            stderr_lines=(completed.stderr or "").splitlines(),
        )
