"""
Configuration for gqlreg.

Uses pydantic-settings for environment variable loading; every setting can be
overridden with a ``GQLREG_`` prefixed variable (e.g. ``GQLREG_LOG_LEVEL``).

Invariants:
    - All settings have defaults suitable for library use
    - Settings are read once per process unless passed explicitly
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Registry configuration loaded from environment."""

    # Built-in scalars
    include_builtin_scalars: bool = Field(
        default=True, description="Make Int, Float, String, Boolean and ID resolvable"
    )
    allow_builtin_override: bool = Field(
        default=False,
        description="Let a custom scalar replace a built-in scalar of the same name",
    )

    # Fingerprinting
    fingerprint_algorithm: Literal["sha256", "sha1", "md5"] = Field(
        default="sha256", description="Hash used for registry fingerprints"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level for the schema CLI")

    model_config = {"env_prefix": "GQLREG_"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings()
