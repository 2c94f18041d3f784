"""
Triage filters.

A filter decides whether an issue has already been triaged. Filters only
read the issue; they never call GitHub.
"""

from abc import ABC, abstractmethod

import structlog

from ..models import Issue, Repository

logger = structlog.get_logger(__name__)


class TriageFilter(ABC):
    """Predicate identifying issues that have already been triaged."""

    @abstractmethod
    def triaged(self, repository: Repository, issue: Issue) -> bool:
        """
        Check whether an issue has already been triaged.

        Args:
            repository: Repository to which the issue belongs
            issue: The issue

        Returns:
            True if the issue has been triaged
        """


class OpenedByCollaboratorTriageFilter(TriageFilter):
    """Issues opened by one of the repository's collaborators are triaged."""

    def triaged(self, repository: Repository, issue: Issue) -> bool:
        if issue.user is not None and issue.user.login in repository.collaborators:
            logger.debug(
                "Issue has been triaged, it was opened by a collaborator",
                issue=str(issue),
                user=issue.user.login,
            )
            return True
        return False


class LabelledTriageFilter(TriageFilter):
    """Issues with at least one label are triaged."""

    def triaged(self, repository: Repository, issue: Issue) -> bool:
        if issue.labels:
            logger.debug(
                "Issue has been triaged, it has labels",
                issue=str(issue),
                labels=[label.name for label in issue.labels],
            )
            return True
        return False


class MilestoneAppliedTriageFilter(TriageFilter):
    """Issues added to a milestone are triaged."""

    def triaged(self, repository: Repository, issue: Issue) -> bool:
        if issue.milestone is not None:
            logger.debug(
                "Issue has been triaged, it has been added to a milestone",
                issue=str(issue),
                milestone=issue.milestone.title,
            )
            return True
        return False


def default_filters() -> list[TriageFilter]:
    """Get the standard filters in evaluation order."""
    return [
        OpenedByCollaboratorTriageFilter(),
        LabelledTriageFilter(),
        MilestoneAppliedTriageFilter(),
    ]
