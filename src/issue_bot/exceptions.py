"""
Custom exceptions for the Issue Bot.

This module defines the exception hierarchy used to report GitHub API,
rate limit and configuration failures across the application.
"""

from datetime import datetime
from typing import Any


class IssueBotError(Exception):
    """Base exception for Issue Bot errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code or "ISSUE_BOT_ERROR"
        self.context = context or {}


class GitHubAPIError(IssueBotError):
    """Exception for GitHub API related errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "GITHUB_API_ERROR", context)
        self.status_code = status_code


class RateLimitError(GitHubAPIError):
    """Exception raised when the GitHub API rate limit has been exhausted."""

    def __init__(
        self,
        message: str,
        reset_time: datetime | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, 403, context)
        self.code = "RATE_LIMIT_ERROR"
        self.reset_time = reset_time


class ConfigurationError(IssueBotError):
    """Exception for configuration related errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "CONFIGURATION_ERROR", context)
