"""
Repository monitor for the Issue Bot.

One call to ``RepositoryMonitor.monitor`` is one polling cycle: every
configured repository is passed, in order, to every registered repository
listener.
"""

from collections.abc import Sequence

import structlog

from ..listeners import RepositoryListener
from ..models import Repository
from .rate_limiter import RateLimitTracker

logger = structlog.get_logger(__name__)


class RepositoryMonitor:
    """
    Drives the repository listeners over the monitored repositories.

    A failure while handling a repository is logged and does not prevent the
    remaining listeners or repositories from being handled. Nothing is
    retried; the next cycle starts again from the current state on GitHub.
    """

    def __init__(
        self,
        repositories: Sequence[Repository],
        repository_listeners: Sequence[RepositoryListener],
        enabled: bool = True,
        rate_limit_tracker: RateLimitTracker | None = None,
    ):
        """
        Initialize the repository monitor.

        Args:
            repositories: Repositories to monitor, in order
            repository_listeners: Listeners invoked for each repository, in order
            enabled: Whether monitoring is enabled
            rate_limit_tracker: Tracker whose snapshot is logged after each cycle
        """
        self.repositories = list(repositories)
        self.repository_listeners = list(repository_listeners)
        self.enabled = enabled
        self.rate_limit_tracker = rate_limit_tracker

    async def monitor(self) -> None:
        """Run one monitoring cycle."""
        if not self.enabled:
            logger.debug("Monitoring disabled, skipping cycle")
            return

        for repository in self.repositories:
            logger.info("Monitoring repository", repository=repository.slug)
            for listener in self.repository_listeners:
                try:
                    await listener.handle(repository)
                except Exception as e:
                    logger.warning(
                        "A failure occurred during monitoring of repository",
                        repository=repository.slug,
                        listener=type(listener).__name__,
                        error=str(e),
                        exc_info=True,
                    )
            logger.info("Monitoring of repository completed", repository=repository.slug)

        if self.rate_limit_tracker is not None:
            self.rate_limit_tracker.log_status()
