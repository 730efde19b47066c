"""Pydantic schemas for lazyctl configuration files.

This module defines the data model for lazyvim.toml:

    starter = "https://github.com/LazyVim/starter.git"
    plugins = [
        "https://github.com/folke/lazy.nvim.git",
        "https://github.com/LazyVim/LazyVim.git",
    ]
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# lazyvim.toml
# =============================================================================


class LazyVimConfig(BaseModel):
    """Installer configuration (lazyvim.toml) schema."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    starter: str
    plugins: list[str] = Field(default_factory=list)

    @field_validator("starter")
    @classmethod
    def validate_starter(cls, value: str) -> str:
        """Starter URL must not be blank."""
        value = value.strip()
        if not value:
            raise ValueError("starter must be a non-empty repository URL")
        return value

    @field_validator("plugins")
    @classmethod
    def validate_plugins(cls, value: list[str]) -> list[str]:
        """Plugin URLs must not be blank."""
        cleaned = []
        for index, url in enumerate(value):
            url = url.strip()
            if not url:
                raise ValueError(f"plugins[{index}] must be a non-empty repository URL")
            cleaned.append(url)
        return cleaned


# Written by `lazyctl init`
SAMPLE_CONFIG = LazyVimConfig(
    starter="https://github.com/LazyVim/starter.git",
    plugins=[
        "https://github.com/folke/lazy.nvim.git",
        "https://github.com/LazyVim/LazyVim.git",
    ],
)
