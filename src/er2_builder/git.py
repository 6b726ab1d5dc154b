# SPDX-License-Identifier: MIT
"""Source retrieval from git repositories."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .errors import FetchError
from .process import DEFAULT_TIMEOUT, CommandError, CommandResult, run_command


@dataclass(frozen=True)
class RevisionInfo:
    """Commit metadata of a fetched checkout.

    Attributes:
        describe: Output of ``git describe --all HEAD`` (e.g. "heads/master")
        commit: Full commit hash of HEAD
        date: Commit date of HEAD in RFC 2822 format
    """

    describe: str
    commit: str
    date: str


class GitSourceFetcher:
    """Clones a branch of a repository and reads its commit metadata."""

    def __init__(
        self,
        timeout: float | None = DEFAULT_TIMEOUT,
        git: str = "git",
        on_output: Callable[[CommandResult], None] | None = None,
    ) -> None:
        self.timeout = timeout
        self.git = git
        self.on_output = on_output

    def _git(self, args: list[str], cwd: Path | None = None) -> str:
        try:
            result = run_command([self.git, *args], cwd=cwd, timeout=self.timeout)
        except CommandError as e:
            raise FetchError(str(e)) from e
        if self.on_output is not None:
            self.on_output(result)
        return result.stdout.strip()

    def clone(self, uri: str, branch: str, destination: str | Path) -> Path:
        """Clone ``branch`` of ``uri`` into ``destination``.

        The destination may exist as long as it is empty.

        Raises:
            FetchError: With git's error output if the clone fails
        """
        target = Path(destination)
        self._git(["clone", "--branch", branch, "--", uri, str(target)])
        return target

    def revision_info(self, checkout: str | Path) -> RevisionInfo:
        """Read describe output, commit hash and commit date of HEAD.

        Raises:
            FetchError: If any of the git queries fails
        """
        path = Path(checkout)
        return RevisionInfo(
            describe=self._git(["describe", "--all", "HEAD"], cwd=path),
            commit=self._git(["rev-parse", "HEAD"], cwd=path),
            date=self._git(["log", "-1", "--format=format:%cD", "HEAD"], cwd=path),
        )
