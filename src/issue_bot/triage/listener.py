"""
Triage issue listener.

Open issues that no triage filter recognises as triaged are marked as
requiring triage. Closed issues are always unmarked.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

import structlog

from ..config import lookup_by_slug
from ..github_client import GitHubOperations
from ..listeners import IssueListener
from ..models import Issue, Repository
from .filters import TriageFilter

logger = structlog.get_logger(__name__)


class TriageListener(ABC):
    """Receives the outcome of triage decisions."""

    @abstractmethod
    async def requires_triage(self, repository: Repository, issue: Issue) -> None:
        """Notification that an issue requires triage."""

    @abstractmethod
    async def does_not_require_triage(
        self, repository: Repository, issue: Issue
    ) -> None:
        """Notification that an issue no longer requires triage."""


class TriageIssueListener(IssueListener):
    """Issue listener that identifies issues requiring triage."""

    def __init__(
        self, triage_filters: Sequence[TriageFilter], triage_listener: TriageListener
    ):
        """
        Initialize the triage issue listener.

        Args:
            triage_filters: Filters identifying triaged issues, in evaluation order
            triage_listener: Listener notified of issues that require triage
        """
        self.triage_filters = list(triage_filters)
        self.triage_listener = triage_listener

    async def on_open_issue(self, repository: Repository, issue: Issue) -> None:
        if self.requires_triage(repository, issue):
            await self.triage_listener.requires_triage(repository, issue)

    async def on_issue_closure(self, repository: Repository, issue: Issue) -> None:
        await self.triage_listener.does_not_require_triage(repository, issue)

    def requires_triage(self, repository: Repository, issue: Issue) -> bool:
        """Check whether none of the filters consider the issue triaged."""
        return not any(f.triaged(repository, issue) for f in self.triage_filters)


class LabelApplyingTriageListener(TriageListener):
    """Applies the repository's triage label to issues that require triage."""

    def __init__(self, github_client: GitHubOperations, labels: Mapping[str, str]):
        """
        Initialize the listener.

        Args:
            github_client: GitHub operations used to change labels
            labels: Triage label keyed by slug, repository or organization name
        """
        self.github_client = github_client
        self.labels = labels

    async def requires_triage(self, repository: Repository, issue: Issue) -> None:
        label = self._find_label(repository)
        if label is not None:
            await self.github_client.add_label(issue, label)

    async def does_not_require_triage(
        self, repository: Repository, issue: Issue
    ) -> None:
        label = self._find_label(repository)
        if label is not None:
            await self.github_client.remove_label(issue, label)

    def _find_label(self, repository: Repository) -> str | None:
        label = lookup_by_slug(self.labels, repository)
        if label is None:
            logger.info("No triage label configured", repository=repository.slug)
        return label
