"""Platform detection and Neovim directory layout."""

import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

PlatformOS = Literal["windows", "linux", "macos"]


def get_os() -> PlatformOS:
    """Get the current operating system.

    Returns:
        One of: "windows", "linux", "macos"
    """
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    elif system == "windows":
        return "windows"
    else:
        return "linux"


def get_home_directory() -> Path:
    """Get the user's home directory."""
    return Path(os.path.expanduser("~"))


def get_env(name: str, default: str | None = None) -> str | None:
    """Get an environment variable, treating an empty value as unset.

    Args:
        name: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    value = os.environ.get(name)
    if not value:
        return default
    return value


@dataclass(frozen=True)
class EditorPaths:
    """Well-known Neovim directories for the current platform.

    cache_dir and state_dir are None where the platform keeps no separate
    location for them.
    """

    config_dir: Path
    data_dir: Path
    cache_dir: Path | None = None
    state_dir: Path | None = None

    @property
    def starter_root(self) -> Path:
        """Directory the starter repository is cloned into."""
        return self.config_dir

    @property
    def plugin_root(self) -> Path:
        """Directory plugins are cloned into (lazy.nvim's install root)."""
        return self.data_dir / "lazy"

    @property
    def removable_dirs(self) -> list[Path]:
        """Directories removed by `lazyctl delete`, in removal order."""
        dirs = [self.config_dir, self.data_dir, self.cache_dir, self.state_dir]
        return [d for d in dirs if d is not None]


def _xdg_dir(variable: str, home: Path, fallback: str) -> Path:
    value = get_env(variable)
    return Path(value) if value else home / fallback


def get_editor_paths(os_name: PlatformOS | None = None, home: Path | None = None) -> EditorPaths:
    """Resolve the Neovim directories for a platform.

    Linux and macOS follow the XDG base directory variables, falling back to
    ~/.config, ~/.local/share, ~/.cache and ~/.local/state. Windows uses
    %LOCALAPPDATA% (default ~/AppData/Local) and has no cache or state
    directory of its own.

    Args:
        os_name: Target OS, or None to detect the current one
        home: Home directory, or None to use the current user's

    Returns:
        EditorPaths for the platform
    """
    if os_name is None:
        os_name = get_os()
    if home is None:
        home = get_home_directory()

    if os_name == "windows":
        local = _xdg_dir("LOCALAPPDATA", home, "AppData/Local")
        return EditorPaths(config_dir=local / "nvim", data_dir=local / "nvim-data")

    return EditorPaths(
        config_dir=_xdg_dir("XDG_CONFIG_HOME", home, ".config") / "nvim",
        data_dir=_xdg_dir("XDG_DATA_HOME", home, ".local/share") / "nvim",
        cache_dir=_xdg_dir("XDG_CACHE_HOME", home, ".cache") / "nvim",
        state_dir=_xdg_dir("XDG_STATE_HOME", home, ".local/state") / "nvim",
    )
