"""
Polling system for the Issue Bot.

This package contains the components that periodically scan the monitored
repositories and track the GitHub API rate limit.
"""

from .monitor import RepositoryMonitor
from .rate_limiter import RateLimitTracker
from .scheduler import PollingScheduler

__all__ = ["PollingScheduler", "RateLimitTracker", "RepositoryMonitor"]
