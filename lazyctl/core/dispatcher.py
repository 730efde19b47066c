"""Map the install, update and delete verbs onto driver runs and cleanup."""

import logging
from dataclasses import dataclass
from pathlib import Path

from lazyctl.config.schemas import LazyVimConfig
from lazyctl.core.driver import Driver, ResultCallback, RunSummary
from lazyctl.core.unit import InstallUnit
from lazyctl.utils.filesystem import remove_directory
from lazyctl.utils.platform import EditorPaths

logger = logging.getLogger(__name__)


@dataclass
class DeleteResult:
    """Result of removing one editor directory."""

    path: Path
    removed: bool
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def build_units(config: LazyVimConfig, paths: EditorPaths) -> list[InstallUnit]:
    """Build the starter unit followed by one unit per plugin, in config order."""
    units = [InstallUnit(config.starter, paths.starter_root, kind="starter")]
    units.extend(InstallUnit(url, paths.plugin_root, kind="plugin") for url in config.plugins)
    return units


def install(
    config: LazyVimConfig,
    paths: EditorPaths,
    driver: Driver,
    on_result: ResultCallback | None = None,
) -> RunSummary:
    """Clone the starter and every plugin into fresh directories.

    Args:
        config: Loaded lazyvim.toml
        paths: Editor directories for this platform
        driver: Driver that runs the units
        on_result: Forwarded to Driver.run

    Returns:
        RunSummary for the run
    """
    units = build_units(config, paths)
    logger.info("%d repositories to install", len(units))

    summary = driver.run(units, on_result=on_result)

    logger.info(
        "Install finished: %d installed, %d skipped, %d failed",
        summary.success_count,
        summary.skipped_count,
        summary.failure_count,
    )
    return summary


def update(
    config: LazyVimConfig,
    paths: EditorPaths,
    driver: Driver,
    on_result: ResultCallback | None = None,
) -> RunSummary:
    """Re-clone everything; updates are always a full fresh install."""
    return install(config, paths, driver, on_result=on_result)


def delete(paths: EditorPaths) -> list[DeleteResult]:
    """Remove every editor directory, continuing past missing ones and errors.

    Args:
        paths: Editor directories for this platform

    Returns:
        One DeleteResult per directory, in removal order
    """
    results = []
    for path in paths.removable_dirs:
        try:
            removed = remove_directory(path)
        except OSError as e:
            logger.error("Failed to remove %s: %s", path, e)
            results.append(DeleteResult(path=path, removed=False, error=str(e)))
            continue

        if removed:
            logger.info("Removed %s", path)
        else:
            logger.info("%s does not exist, nothing to remove", path)
        results.append(DeleteResult(path=path, removed=removed))

    return results
