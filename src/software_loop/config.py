"""Configuration management for software-loop."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .plan.loader import ProjectConfig


class LoopSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    plan_file: str = Field(default="PRP.md", validation_alias="SOFTWARE_LOOP_PLAN_FILE")
    journal_file: str = Field(default="PROGRESS.md", validation_alias="SOFTWARE_LOOP_JOURNAL_FILE")
    git_path: str | None = Field(default=None, validation_alias="GIT_PATH")
    commit_limit: int = Field(default=20, validation_alias="SOFTWARE_LOOP_COMMIT_LIMIT")
    build_command: str | None = Field(default=None, validation_alias="SOFTWARE_LOOP_BUILD_COMMAND")
    build_timeout: float = Field(default=600.0, validation_alias="SOFTWARE_LOOP_BUILD_TIMEOUT")
    log_level: str = Field(default="INFO", validation_alias="SOFTWARE_LOOP_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "SOFTWARE_LOOP_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("plan_file", "journal_file")
    @classmethod
    def _require_file_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Plan and journal file names must not be empty")
        return stripped

    @field_validator("commit_limit")
    @classmethod
    def _validate_commit_limit(cls, value: int) -> int:
        if value < 1:
            raise ValueError("SOFTWARE_LOOP_COMMIT_LIMIT must be >= 1")
        return value

    @field_validator("build_timeout")
    @classmethod
    def _validate_build_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("SOFTWARE_LOOP_BUILD_TIMEOUT must be positive")
        return value

    def merged_with(self, project: ProjectConfig) -> "LoopSettings":
        """Return a copy with values from the project's config file applied on top."""

        overrides = {
            key: value
            for key, value in project.model_dump().items()
            if value is not None
        }
        return self.model_copy(update=overrides)


@lru_cache(maxsize=1)
def get_settings() -> LoopSettings:
    """Return cached settings instance."""

    return LoopSettings()


__all__ = ["LoopSettings", "get_settings"]
