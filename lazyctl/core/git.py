"""Thin wrapper around the system `git` executable."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Git could not be launched."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class GitClient:
    """Runs git commands through the system `git` command.

    Only process launch problems raise; a git command that runs and exits
    non-zero is returned to the caller to interpret.
    """

    def __init__(self, executable: str = "git"):
        self.executable = executable

    def run(self, args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
        """Run a git command.

        Args:
            args: Git command arguments (without 'git')
            cwd: Working directory

        Returns:
            Completed process with captured stdout and stderr

        Raises:
            GitError: If git is missing or cannot be started
        """
        cmd = [self.executable] + args
        logger.debug("Running git command: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise GitError(f"{self.executable} is not installed or not in PATH") from e
        except OSError as e:
            raise GitError(f"Cannot run {self.executable}: {e}") from e

    def clone_shallow(self, url: str, dest: Path) -> subprocess.CompletedProcess[str]:
        """Clone the latest revision of a repository.

        Args:
            url: Repository URL
            dest: Destination directory (must not exist)

        Returns:
            Completed process

        Raises:
            GitError: If git cannot be started
        """
        try:
            return self.run(["clone", url, str(dest), "--depth", "1"])
        except GitError as e:
            e.url = url
            raise
