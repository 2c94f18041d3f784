"""
Configuration management for the Issue Bot.

This module handles environment variables, settings validation, and the
per-repository lookups used by the triage and feedback engines, using
Pydantic Settings for type safety and validation.
"""

from collections.abc import Mapping
from typing import TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Repository

T = TypeVar("T")

DEFAULT_REMINDER_DAYS = 7
DEFAULT_CLOSE_DAYS = 14


def lookup_by_slug(mapping: Mapping[str, T], repository: Repository) -> T | None:
    """
    Find the value configured for a repository.

    Keys are tried most specific first: ``org/name``, then ``name``, then
    ``org``.

    Args:
        mapping: Configuration keyed by slug, repository or organization name
        repository: Repository to look up

    Returns:
        The first matching value, or None if the repository is unconfigured
    """
    for key in (repository.slug, repository.name, repository.organization):
        if key in mapping:
            return mapping[key]
    return None


class FeedbackProperties(BaseModel):
    """Feedback labels and comments for a repository."""

    required_label: str = Field(
        ..., description="Label applied when feedback is required"
    )
    provided_label: str = Field(
        ..., description="Label applied when feedback has been provided"
    )
    reminder_label: str = Field(
        ..., description="Label applied once the reminder comment has been made"
    )
    reminder_comment: str = Field(
        ..., description="Comment added as a reminder that feedback is required"
    )
    close_comment: str = Field(
        ..., description="Comment added when closing for lack of feedback"
    )


class MonitoringConfig(BaseModel):
    """Monitoring configuration settings."""

    enabled: bool = Field(default=True, description="Enable monitoring")
    interval_seconds: int = Field(
        default=300, description="Fixed polling interval in seconds (5 minutes)"
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub configuration
    github_username: str = Field(
        ..., description="GitHub username, also used as the bot's identity"
    )
    github_password: str = Field(
        default="", description="GitHub password or personal access token"
    )
    github_api_url: str = Field(
        default="https://api.github.com", description="GitHub API URL"
    )
    github_timeout_seconds: float = Field(
        default=30.0, description="GitHub request timeout in seconds"
    )

    # Repositories
    repositories: list[Repository] = Field(
        default_factory=list, description="Repositories to monitor"
    )

    # Monitoring configuration
    monitoring_enabled: bool = Field(default=True, description="Enable monitoring")
    monitoring_interval_seconds: int = Field(
        default=300, description="Monitoring interval in seconds"
    )

    # Triage configuration
    triage_labels: dict[str, str] = Field(
        default_factory=dict,
        description="Triage label keyed by slug, repository or organization",
    )

    # Feedback configuration
    feedback: dict[str, FeedbackProperties] = Field(
        default_factory=dict,
        description="Feedback properties keyed by slug, repository or organization",
    )
    feedback_include_bot_user: bool = Field(
        default=True,
        description="Treat comments by the bot user as coming from a collaborator",
    )
    feedback_reminder_days: int = Field(
        default=DEFAULT_REMINDER_DAYS, description="Days before a reminder is added"
    )
    feedback_close_days: int = Field(
        default=DEFAULT_CLOSE_DAYS, description="Days before the issue is closed"
    )

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @field_validator("monitoring_interval_seconds")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        """Validate monitoring interval."""
        if v <= 0:
            raise ValueError("monitoring_interval_seconds must be positive")
        return v

    @model_validator(mode="after")
    def validate_feedback_thresholds(self) -> "Settings":
        """Ensure the reminder is due before the issue is closed."""
        if self.feedback_reminder_days <= 0:
            raise ValueError("feedback_reminder_days must be positive")
        if self.feedback_close_days <= self.feedback_reminder_days:
            raise ValueError(
                "feedback_close_days must be greater than feedback_reminder_days"
            )
        return self

    @property
    def monitoring_config(self) -> MonitoringConfig:
        """Get monitoring configuration."""
        return MonitoringConfig(
            enabled=self.monitoring_enabled,
            interval_seconds=self.monitoring_interval_seconds,
        )

    def triage_label_for(self, repository: Repository) -> str | None:
        """Get the triage label configured for a repository."""
        return lookup_by_slug(self.triage_labels, repository)

    def feedback_for(self, repository: Repository) -> FeedbackProperties | None:
        """Get the feedback properties configured for a repository."""
        return lookup_by_slug(self.feedback, repository)


# Global settings instance - initialized lazily to avoid import-time errors
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = Settings()  # type: ignore[call-arg,unused-ignore]
        except ValueError as e:
            if "github_username" in str(e):
                raise ValueError(
                    "GITHUB_USERNAME environment variable is required. "
                    "Please set it to the GitHub user the bot acts as."
                ) from e
            raise
    return _settings_instance
