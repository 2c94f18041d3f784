"""
Issue Bot

Polls GitHub repositories and keeps their issues triaged, reminding
reporters when feedback is overdue and closing issues that never got it.
"""

__version__ = "0.1.0"

from .config import Settings
from .exceptions import IssueBotError
from .github_client import GitHubClient, GitHubOperations
from .listeners import IssueDispatcher, IssueListener, RepositoryListener
from .polling import PollingScheduler, RateLimitTracker, RepositoryMonitor

__all__ = [
    "Settings",
    "GitHubClient",
    "GitHubOperations",
    "IssueBotError",
    "IssueDispatcher",
    "IssueListener",
    "PollingScheduler",
    "RateLimitTracker",
    "RepositoryListener",
    "RepositoryMonitor",
]
