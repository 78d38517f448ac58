"""
Centralized Configuration Management for Copysmith.

This module provides a single source of truth for all configuration:
model selection, daily quotas, long-form word-count band, source search
sizing, and where local state is persisted.

Usage:
    from copysmith.config import config
    limit = config.usage.DAILY_GENERATION_LIMIT
"""

import math
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from copysmith.models import WordBand


def _get_project_root() -> Path:
    """Get project root directory (works cross-platform)."""
    # This file is at copysmith/config.py, so parent.parent is project root
    return Path(__file__).resolve().parent.parent


class PathConfig(BaseModel):
    """Path configuration - all paths derived from PROJECT_ROOT."""
    PROJECT_ROOT: Path = Field(default_factory=_get_project_root)

    model_config = {"arbitrary_types_allowed": True}

    @computed_field
    @property
    def STATE_DIR(self) -> Path:
        """Directory holding autosaved UI state and usage counters."""
        custom = os.getenv("COPYSMITH_STATE_DIR")
        return Path(custom) if custom else self.PROJECT_ROOT / ".state"

    @computed_field
    @property
    def LOGS_DIR(self) -> Path:
        """Logs directory."""
        return self.PROJECT_ROOT / "logs"


class APIConfig(BaseSettings):
    """API keys."""

    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_API_KEY: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def resolve_key(self) -> Optional[str]:
        """Return the first configured Gemini key, if any."""
        return self.GOOGLE_API_KEY or self.GEMINI_API_KEY


class ModelConfig(BaseSettings):
    """Model selection configuration."""

    CONTENT_MODEL: str = "gemini-2.5-flash"
    SEARCH_MODEL: str = "gemini-2.5-flash"
    VETTING_MODEL: str = "gemini-2.5-flash"
    TOPIC_MODEL: str = "gemini-2.5-flash"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class UsageConfig(BaseModel):
    """Daily quota configuration."""

    DAILY_GENERATION_LIMIT: int = Field(default=10, ge=1)

    @property
    def CONTENT_GENERATION_LIMIT(self) -> int:
        return self.DAILY_GENERATION_LIMIT

    @property
    def TOPIC_GENERATION_LIMIT(self) -> int:
        return self.DAILY_GENERATION_LIMIT


class GenerationConfig(BaseModel):
    """Long-form word-count enforcement."""

    LONG_FORM_WORD_COUNT: str = "2500"
    LONG_FORM_TARGET: int = 2500
    LONG_FORM_MIN: int = 2200
    LONG_FORM_MAX: int = 2800
    LONG_FORM_MAX_ATTEMPTS: int = Field(default=3, ge=1)

    def long_form_band(self) -> WordBand:
        return WordBand(self.LONG_FORM_MIN, self.LONG_FORM_MAX, self.LONG_FORM_TARGET)


class SourceConfig(BaseModel):
    """Sizing for the source search and vetting stages."""

    WORDS_PER_SOURCE: int = 400
    MIN_SOURCES: int = 2
    MAX_SOURCES: int = 5
    MIN_SEARCH_CANDIDATES: int = 8

    # Grounding redirect URLs are not citable
    INTERNAL_URL_MARKER: str = "vertexaisearch"

    def target_count(self, word_count: int) -> int:
        """Number of sources to keep after vetting for a given length."""
        wanted = math.ceil(word_count / self.WORDS_PER_SOURCE)
        return max(self.MIN_SOURCES, min(self.MAX_SOURCES, wanted))

    def search_count(self, word_count: int) -> int:
        """Number of candidates to request from the broad search."""
        return max(self.MIN_SEARCH_CANDIDATES, self.target_count(word_count) * 2)


class CopysmithConfig(BaseSettings):
    """Main configuration class combining all config sections."""

    paths: PathConfig = Field(default_factory=PathConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    models: ModelConfig = Field(default_factory=ModelConfig)
    usage: UsageConfig = Field(default_factory=UsageConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    sources: SourceConfig = Field(default_factory=SourceConfig)

    # Application metadata
    APP_NAME: str = "Copysmith"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", alias="COPYSMITH_ENV")
    LOG_LEVEL: str = Field(default="INFO", alias="COPYSMITH_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def validate(self) -> Dict[str, Any]:
        """Validate configuration and return status."""
        issues = []
        warnings = []

        if not self.api.resolve_key():
            issues.append(
                "CRITICAL: No Gemini API key available. "
                "Set GOOGLE_API_KEY or GEMINI_API_KEY"
            )

        band = self.generation
        if not band.LONG_FORM_MIN <= band.LONG_FORM_TARGET <= band.LONG_FORM_MAX:
            issues.append(
                f"Long-form target {band.LONG_FORM_TARGET} is outside its own band "
                f"[{band.LONG_FORM_MIN}, {band.LONG_FORM_MAX}]"
            )

        if self.sources.MIN_SOURCES > self.sources.MAX_SOURCES:
            warnings.append("MIN_SOURCES exceeds MAX_SOURCES; MAX_SOURCES wins")

        return {
            "valid": len(issues) == 0,
            "issues": issues,
            "warnings": warnings,
            "environment": self.ENVIRONMENT,
        }

    def __repr__(self) -> str:
        return (
            f"CopysmithConfig(\n"
            f"  environment={self.ENVIRONMENT},\n"
            f"  project_root={self.paths.PROJECT_ROOT},\n"
            f"  state_dir={self.paths.STATE_DIR},\n"
            f"  daily_limit={self.usage.DAILY_GENERATION_LIMIT}\n"
            f")"
        )


# Singleton instance
config = CopysmithConfig()


def get_config() -> CopysmithConfig:
    """Get the configuration singleton."""
    return config


if __name__ == "__main__":
    print(config)
    print()
    validation = config.validate()
    print(f"Valid: {validation['valid']}")
    for issue in validation["issues"]:
        print(f"  - {issue}")
