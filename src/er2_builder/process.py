# SPDX-License-Identifier: MIT
"""External command invocation.

Commands are always passed as argument vectors, never through a shell, and
their output is captured so failures can report stderr verbatim.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

DEFAULT_TIMEOUT = 120.0


@dataclass(frozen=True)
class CommandResult:
    """Outcome of an external command.

    Attributes:
        args: The argument vector that was executed
        cwd: Working directory, or None for the current one
        returncode: Exit status (-1 when the process could not be started)
        stdout: Captured standard output
        stderr: Captured standard error
    """

    args: tuple[str, ...]
    cwd: Optional[Path]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def error_output(self) -> str:
        """stderr, falling back to stdout for tools that report errors there."""
        return self.stderr.strip() or self.stdout.strip()


class CommandError(Exception):
    """Raised when an external command fails.

    Attributes:
        result: The captured result of the failed command
    """

    def __init__(self, result: CommandResult):
        self.result = result
        super().__init__(result.error_output or f"Command failed: {' '.join(result.args)}")


def run_command(
    args: Sequence[str],
    cwd: str | Path | None = None,
    timeout: float | None = DEFAULT_TIMEOUT,
    check: bool = True,
) -> CommandResult:
    """Run an external command to completion.

    Args:
        args: Program and arguments
        cwd: Working directory
        timeout: Seconds before the process is killed, None for no limit
        check: Raise CommandError when the command exits non-zero

    Returns:
        The captured CommandResult

    Raises:
        CommandError: If the program cannot be started, times out, or
            (with ``check``) exits with a non-zero status
    """
    argv = tuple(str(a) for a in args)
    work_dir = Path(cwd) if cwd is not None else None

    try:
        completed = subprocess.run(
            argv,
            cwd=work_dir,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:
        raise CommandError(
            CommandResult(argv, work_dir, -1, "", f"Executable not found: {argv[0]}")
        ) from None
    except subprocess.TimeoutExpired as e:
        raise CommandError(
            CommandResult(
                argv,
                work_dir,
                -1,
                _as_text(e.stdout),
                _as_text(e.stderr) or f"Command timed out after {timeout} seconds: {' '.join(argv)}",
            )
        ) from e

    result = CommandResult(
        args=argv,
        cwd=work_dir,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    if check and not result.ok:
        raise CommandError(result)
    return result


def _as_text(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
