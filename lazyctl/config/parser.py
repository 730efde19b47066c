"""Configuration file parsing utilities."""

import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import ValidationError

from lazyctl.config.schemas import LazyVimConfig

CONFIG_FILENAME = "lazyvim.toml"


class ConfigError(Exception):
    """Error loading or parsing configuration."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


def load_toml(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file.

    Args:
        path: Path to the TOML file

    Returns:
        Parsed TOML as a dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e


def save_toml(path: Path, data: dict[str, Any]) -> None:
    """Save data to a TOML file.

    Args:
        path: Path to write to
        data: Data to serialize
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        tomli_w.dump(data, f)


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find lazyvim.toml in a directory or its parent.

    Args:
        start_path: Directory to start searching from (defaults to cwd)

    Returns:
        Path to the config file, or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    for directory in (current, current.parent):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate

    return None


def load_config(path: Path | None = None) -> LazyVimConfig:
    """Load installer configuration from lazyvim.toml.

    Args:
        path: Path to the config file, or None to search from cwd

    Returns:
        Parsed LazyVimConfig

    Raises:
        ConfigError: If the file is missing or invalid
    """
    if path is None:
        path = find_config_file()
        if path is None:
            raise ConfigError(
                f"No {CONFIG_FILENAME} found in current directory or its parent"
            )

    data = load_toml(path)

    try:
        return LazyVimConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}", path) from e


def save_config(path: Path, config: LazyVimConfig) -> None:
    """Save installer configuration to a TOML file.

    Args:
        path: Path to write to
        config: LazyVimConfig to save
    """
    save_toml(path, config.model_dump())
