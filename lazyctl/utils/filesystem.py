"""Filesystem utilities for lazyctl."""

import shutil
from pathlib import Path


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_directory(path: Path) -> bool:
    """Remove a directory and its contents.

    A symlink or plain file at the path is unlinked rather than followed.

    Args:
        path: Directory path to remove

    Returns:
        True if the directory was removed, False if it didn't exist
    """
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if not path.exists():
        return False
    shutil.rmtree(path)
    return True
