"""
Configuration management for gradlelens.

Provides centralized, type-safe configuration with environment variable overrides
and sensible defaults for loading, checking and release recording.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError

# Load .env file if it exists (looks in cwd and parent directories)
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(message=f"expected an integer, got '{raw}'", setting=name, cause=e) from e


# Environment variable behind each setting, for error messages
_ENV_NAMES = {
    "log_level": "GRADLELENS_LOG_LEVEL",
    "base_path": "GRADLELENS_LEDGER_PATH",
    "indent": "GRADLELENS_INDENT",
}


class LoaderConfig(BaseModel):
    """Descriptor loading configuration."""

    script_suffixes: list[str] = Field(
        default_factory=lambda: [".kts"], description="File suffixes read as build scripts"
    )
    structured_suffixes: list[str] = Field(
        default_factory=lambda: [".json"], description="File suffixes read as structured documents"
    )
    symbols: dict[str, str | int | bool] = Field(
        default_factory=dict,
        description="Values substituted for dotted references such as flutter.minSdkVersion",
    )


class ValidationConfig(BaseModel):
    """Completeness check configuration."""

    require_release_signing: bool = Field(
        default=False, description="Report a release variant without signingConfig as an error"
    )
    check_referenced_files: bool = Field(
        default=True, description="Verify rule files, keystores and framework source exist"
    )
    fail_on_warning: bool = Field(
        default=False, description="Treat warnings as failures in the validate command"
    )


class LedgerConfig(BaseModel):
    """Release ledger storage configuration."""

    base_path: Path = Field(
        default=Path("./.gradlelens"), description="Base path for release snapshots"
    )
    prefix: str = Field(default="releases", description="Key prefix for release snapshots")


class RenderConfig(BaseModel):
    """Build script rendering configuration."""

    indent: int = Field(default=4, ge=1, le=8, description="Spaces per nesting level")
    json_indent: int = Field(default=2, ge=0, description="Indent for structured JSON output")


class Config(BaseModel):
    """Root configuration for gradlelens."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)

    model_config = {"extra": "ignore"}

    @classmethod
    def from_env(cls) -> Config:
        """Create configuration from environment variables.

        Raises:
            ConfigurationError: When a variable holds a value the setting does not accept.
        """
        try:
            return cls(
                log_level=os.environ.get("GRADLELENS_LOG_LEVEL", "INFO").strip().upper(),  # type: ignore
                validation=ValidationConfig(
                    require_release_signing=_env_flag("GRADLELENS_REQUIRE_SIGNING", "false"),
                    check_referenced_files=_env_flag("GRADLELENS_CHECK_FILES", "true"),
                    fail_on_warning=_env_flag("GRADLELENS_FAIL_ON_WARNING", "false"),
                ),
                ledger=LedgerConfig(
                    base_path=Path(os.environ.get("GRADLELENS_LEDGER_PATH", "./.gradlelens")),
                ),
                render=RenderConfig(
                    indent=_env_int("GRADLELENS_INDENT", 4),
                ),
            )
        except PydanticValidationError as e:
            error = e.errors(include_url=False)[0]
            setting = str(error["loc"][-1]) if error["loc"] else ""
            raise ConfigurationError(
                message=error["msg"], setting=_ENV_NAMES.get(setting, setting), cause=e
            ) from e


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.from_env()
