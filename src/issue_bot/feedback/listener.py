"""
Feedback issue listener.

Works out whether an open issue labelled as waiting for feedback has
received it. The state is derived from the issue's events and comments on
GitHub every time; nothing is remembered between polling cycles.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime

import structlog

from ..config import FeedbackProperties, lookup_by_slug
from ..github_client import GitHubOperations
from ..listeners import IssueListener
from ..models import Issue, Repository
from ..pagination import iterate_pages

logger = structlog.get_logger(__name__)


class FeedbackListener(ABC):
    """Receives the outcome of feedback checks."""

    @abstractmethod
    async def feedback_provided(self, repository: Repository, issue: Issue) -> None:
        """Notification that feedback has been provided on an issue."""

    @abstractmethod
    async def feedback_required(
        self, repository: Repository, issue: Issue, waiting_since: datetime
    ) -> None:
        """
        Notification that an issue is still waiting for feedback.

        Args:
            repository: Repository to which the issue belongs
            issue: The issue
            waiting_since: When feedback was requested
        """


class FeedbackIssueListener(IssueListener):
    """Issue listener that checks issues waiting for feedback."""

    def __init__(
        self,
        github_client: GitHubOperations,
        feedback: Mapping[str, FeedbackProperties],
        username: str | None,
        feedback_listener: FeedbackListener,
        include_bot_user: bool = True,
    ):
        """
        Initialize the feedback issue listener.

        Args:
            github_client: GitHub operations used to read events and comments
            feedback: Feedback properties keyed by slug, repository or organization
            username: The bot's GitHub username
            feedback_listener: Listener notified of the outcome
            include_bot_user: Whether the bot's own comments are ignored
        """
        self.github_client = github_client
        self.feedback = feedback
        self.username = username
        self.feedback_listener = feedback_listener
        self.include_bot_user = include_bot_user

    async def on_open_issue(self, repository: Repository, issue: Issue) -> None:
        if issue.is_pull_request:
            return

        properties = lookup_by_slug(self.feedback, repository)
        if properties is None or not issue.has_label(properties.required_label):
            return

        waiting_since = await self.get_waiting_since(issue, properties.required_label)
        if waiting_since is None:
            logger.debug(
                "Issue labelled as waiting for feedback but no label event found",
                issue=str(issue),
                label=properties.required_label,
            )
            return

        if await self.commented_since(repository, issue, waiting_since):
            await self.feedback_listener.feedback_provided(repository, issue)
        else:
            await self.feedback_listener.feedback_required(
                repository, issue, waiting_since
            )

    async def get_waiting_since(self, issue: Issue, label: str) -> datetime | None:
        """
        Find when feedback was last requested.

        Args:
            issue: The issue
            label: Name of the feedback required label

        Returns:
            Time of the most recent event applying the label, or None
        """
        waiting_since: datetime | None = None
        page = await self.github_client.get_events(issue)
        async for event in iterate_pages(page):
            if event.is_labeled(label) and (
                waiting_since is None or event.created_at >= waiting_since
            ):
                waiting_since = event.created_at
        return waiting_since

    async def commented_since(
        self, repository: Repository, issue: Issue, waiting_since: datetime
    ) -> bool:
        """Check whether anyone other than a collaborator has commented since."""
        exempt = set(repository.collaborators)
        if self.include_bot_user and self.username:
            exempt.add(self.username)

        page = await self.github_client.get_comments(issue)
        async for comment in iterate_pages(page):
            if comment.author not in exempt and comment.created_at > waiting_since:
                return True
        return False
