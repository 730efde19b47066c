"""A single repository to materialize on disk.

An InstallUnit pairs a repository URL with the directory it is cloned
under. Executing a unit always starts from a clean destination, so a failed
or interrupted clone never affects the next attempt.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from lazyctl.core.git import GitClient, GitError
from lazyctl.core.target import resolve_target_name
from lazyctl.utils.filesystem import ensure_directory, remove_directory

logger = logging.getLogger(__name__)

UnitKind = Literal["starter", "plugin"]


class Outcome(enum.Enum):
    """Result of executing an install unit."""

    SUCCEEDED = "succeeded"
    FAILED_RETRYABLE = "failed-retryable"
    SKIPPED = "skipped"
    # Retry budget exhausted or run cancelled
    FAILED = "failed"


TERMINAL_OUTCOMES = frozenset({Outcome.SUCCEEDED, Outcome.SKIPPED, Outcome.FAILED})


def _is_direct_child(path: Path, root: Path) -> bool:
    return Path(os.path.normpath(path)).parent == Path(os.path.normpath(root))


@dataclass(frozen=True)
class InstallUnit:
    """A (repository URL, destination root) pair."""

    source_url: str
    destination_root: Path
    kind: UnitKind = "plugin"

    def __post_init__(self) -> None:
        if not self.source_url:
            raise ValueError("source_url must not be empty")

    @property
    def name(self) -> str | None:
        return resolve_target_name(self.source_url)

    @property
    def destination(self) -> Path | None:
        """Full clone destination, or None if the URL yields no name."""
        name = self.name
        if name is None:
            return None
        return self.destination_root / name

    def execute(self, git: GitClient, attempt: int = 1) -> UnitResult:
        """Clone the repository into a fresh destination directory.

        Args:
            git: Client used to run the clone
            attempt: Attempt number, recorded on the result

        Returns:
            UnitResult; never raises for clone failures
        """
        name = self.name
        if name is None:
            logger.error("%s: plugin name is empty, skipping download", self.source_url)
            return UnitResult(
                unit=self,
                outcome=Outcome.SKIPPED,
                message="empty name",
                attempts=attempt,
            )

        dest = self.destination_root / name
        if not _is_direct_child(dest, self.destination_root):
            logger.error(
                "%s: %s is outside %s, skipping download", self.source_url, dest, self.destination_root
            )
            return UnitResult(
                unit=self,
                outcome=Outcome.SKIPPED,
                name=name,
                message="unsafe name",
                attempts=attempt,
            )

        try:
            if remove_directory(dest):
                logger.debug("Removed existing directory %s", dest)
            ensure_directory(self.destination_root)
        except OSError as e:
            logger.warning("Could not prepare %s: %s", dest, e)

        logger.info("Cloning %s: git clone %s %s --depth 1", name, self.source_url, dest)

        try:
            result = git.clone_shallow(self.source_url, dest)
        except GitError as e:
            logger.error("Failed to install %s: %s, will retry later", name, e)
            return UnitResult(
                unit=self,
                outcome=Outcome.FAILED_RETRYABLE,
                name=name,
                message=str(e),
                attempts=attempt,
            )

        logger.debug("git exited with %d for %s", result.returncode, name)

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            logger.error("Failed to install %s: %s, will retry later", name, stderr)
            return UnitResult(
                unit=self,
                outcome=Outcome.FAILED_RETRYABLE,
                name=name,
                message=stderr or f"git exited with status {result.returncode}",
                attempts=attempt,
            )

        logger.info("Installed %s", name)
        return UnitResult(
            unit=self,
            outcome=Outcome.SUCCEEDED,
            name=name,
            message=f"Installed {name}",
            attempts=attempt,
        )


@dataclass
class UnitResult:
    """Outcome of one attempt at an install unit."""

    unit: InstallUnit
    outcome: Outcome
    name: str | None = None
    message: str = ""
    attempts: int = 1

    @property
    def is_terminal(self) -> bool:
        return self.outcome in TERMINAL_OUTCOMES

    @property
    def success(self) -> bool:
        return self.outcome in (Outcome.SUCCEEDED, Outcome.SKIPPED)
