"""
Configuration management for seedplan.

Loads and validates configuration from seedplan.toml files and
SEEDPLAN_* environment variables using Pydantic.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILENAME = "seedplan.toml"


class GenerationConfig(BaseSettings):
    """Generation defaults."""

    model_config = SettingsConfigDict(env_prefix="SEEDPLAN_")

    seed: str = Field(default="seedplan", description="Root seed of every seed path")
    auto_connect: bool = Field(
        default=False, description="Connect relationships to existing store rows"
    )
    create_parents: bool = Field(
        default=True, description="Create missing required parent rows"
    )
    max_depth: int = Field(
        default=32, ge=1, description="Maximum nesting depth of parent creation"
    )
    strategy: str = Field(default="faker", description="Registered fake value provider")


class DatabaseConfig(BaseSettings):
    """Database connection configuration."""

    model_config = SettingsConfigDict(env_prefix="SEEDPLAN_DATABASE_")

    url: Optional[str] = Field(default=None, description="PostgreSQL connection URL")


class Config(BaseSettings):
    """Main configuration for seedplan."""

    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @classmethod
    def from_toml(cls, path: Path | str) -> Config:
        """
        Load configuration from TOML file.

        Args:
            path: Path to seedplan.toml file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        return cls(**data)

    @classmethod
    def find_and_load(cls, start_dir: Optional[Path] = None) -> Config:
        """
        Find and load configuration from seedplan.toml.

        Searches for seedplan.toml starting from start_dir and walking up
        parent directories. Falls back to defaults (plus environment
        variables) when no file is found.

        Args:
            start_dir: Directory to start search (defaults to current directory)

        Returns:
            Config instance
        """
        if start_dir is None:
            start_dir = Path.cwd()

        current = Path(start_dir).resolve()

        while True:
            config_path = current / CONFIG_FILENAME
            if config_path.exists():
                return cls.from_toml(config_path)

            parent = current.parent
            if parent == current:
                break
            current = parent

        return cls()

    def to_toml(self, path: Path | str) -> None:
        """
        Write configuration to TOML file.

        Args:
            path: Path to write seedplan.toml
        """
        lines = [
            "# seedplan configuration",
            "",
            "[generation]",
            f'seed = "{self.generation.seed}"',
            f"auto_connect = {str(self.generation.auto_connect).lower()}",
            f"create_parents = {str(self.generation.create_parents).lower()}",
            f"max_depth = {self.generation.max_depth}",
            f'strategy = "{self.generation.strategy}"',
        ]
        if self.database.url:
            lines += ["", "[database]", f'url = "{self.database.url}"']
        Path(path).write_text("\n".join(lines) + "\n")
