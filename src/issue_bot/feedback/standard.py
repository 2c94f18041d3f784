"""
Standard feedback actions.

Issues that received feedback are relabelled. Issues still waiting are
sent a reminder after ``REMINDER_AFTER`` and closed after ``CLOSE_AFTER``.
"""

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta, timezone

import structlog

from ..config import (
    DEFAULT_CLOSE_DAYS,
    DEFAULT_REMINDER_DAYS,
    FeedbackProperties,
    lookup_by_slug,
)
from ..exceptions import ConfigurationError
from ..github_client import GitHubOperations
from ..listeners import IssueListener
from ..models import ClosureReason, Issue, Repository
from .listener import FeedbackListener

logger = structlog.get_logger(__name__)

REMINDER_AFTER = timedelta(days=DEFAULT_REMINDER_DAYS)
CLOSE_AFTER = timedelta(days=DEFAULT_CLOSE_DAYS)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StandardFeedbackListener(FeedbackListener):
    """Applies labels, reminders and closures based on feedback state."""

    def __init__(
        self,
        github_client: GitHubOperations,
        feedback: Mapping[str, FeedbackProperties],
        issue_listeners: Sequence[IssueListener],
        reminder_after: timedelta = REMINDER_AFTER,
        close_after: timedelta = CLOSE_AFTER,
        now: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the listener.

        Args:
            github_client: GitHub operations used to update issues
            feedback: Feedback properties keyed by slug, repository or organization
            issue_listeners: Listeners notified when an issue is closed
            reminder_after: Time waited before adding a reminder
            close_after: Time waited before closing the issue
            now: Clock returning the current, timezone-aware time
        """
        if close_after <= reminder_after:
            raise ConfigurationError(
                "Feedback close threshold must be later than the reminder threshold",
                context={
                    "reminder_after": str(reminder_after),
                    "close_after": str(close_after),
                },
            )
        self.github_client = github_client
        self.feedback = feedback
        self.issue_listeners = issue_listeners
        self.reminder_after = reminder_after
        self.close_after = close_after
        self.now = now

    async def feedback_provided(self, repository: Repository, issue: Issue) -> None:
        properties = self._find_properties(repository)
        logger.info("Feedback provided", repository=repository.slug, issue=str(issue))
        await self.github_client.add_label(issue, properties.provided_label)
        await self.github_client.remove_label(issue, properties.required_label)
        if issue.has_label(properties.reminder_label):
            await self.github_client.remove_label(issue, properties.reminder_label)

    async def feedback_required(
        self, repository: Repository, issue: Issue, waiting_since: datetime
    ) -> None:
        properties = self._find_properties(repository)
        elapsed = self.now() - waiting_since
        if elapsed >= self.close_after:
            await self._close(repository, issue, properties)
        elif elapsed >= self.reminder_after and not issue.has_label(
            properties.reminder_label
        ):
            await self._remind(repository, issue, properties)

    async def _close(
        self, repository: Repository, issue: Issue, properties: FeedbackProperties
    ) -> None:
        logger.info(
            "Closing issue as feedback was not provided",
            repository=repository.slug,
            issue=str(issue),
        )
        await self.github_client.add_comment(issue, properties.close_comment)
        await self.github_client.close(issue, ClosureReason.NOT_PLANNED)
        await self.github_client.remove_label(issue, properties.required_label)
        await self.github_client.remove_label(issue, properties.reminder_label)
        for listener in self.issue_listeners:
            try:
                await listener.on_issue_closure(repository, issue)
            except Exception as e:
                logger.warning(
                    "Listener failed when handling issue closure",
                    listener=type(listener).__name__,
                    issue=str(issue),
                    error=str(e),
                    exc_info=True,
                )

    async def _remind(
        self, repository: Repository, issue: Issue, properties: FeedbackProperties
    ) -> None:
        logger.info(
            "Reminding that feedback is required",
            repository=repository.slug,
            issue=str(issue),
        )
        await self.github_client.add_comment(issue, properties.reminder_comment)
        await self.github_client.add_label(issue, properties.reminder_label)

    def _find_properties(self, repository: Repository) -> FeedbackProperties:
        properties = lookup_by_slug(self.feedback, repository)
        if properties is None:
            raise ConfigurationError(
                f"No feedback configuration for {repository.slug}",
                context={"repository": repository.slug},
            )
        return properties
