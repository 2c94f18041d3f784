"""
Issue and repository listeners for the Issue Bot.

Repository listeners are invoked once per repository on every polling
cycle. The listeners in this module fetch a repository's issues and
broadcast each of them to the registered issue listeners through an
``IssueDispatcher``, which isolates the listeners from one another's
failures.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TYPE_CHECKING

import structlog

from .config import lookup_by_slug
from .models import Issue, Repository
from .pagination import Page, iterate_pages

if TYPE_CHECKING:
    from .github_client import GitHubOperations

logger = structlog.get_logger(__name__)


class IssueListener:
    """Listener notified about the issues of a monitored repository."""

    async def on_open_issue(self, repository: Repository, issue: Issue) -> None:
        """
        Notification that an issue is open.

        Args:
            repository: Repository to which the issue belongs
            issue: The open issue
        """

    async def on_issue_closure(self, repository: Repository, issue: Issue) -> None:
        """
        Notification that an issue has been or is being closed.

        Args:
            repository: Repository to which the issue belongs
            issue: The closed issue
        """


class RepositoryListener(ABC):
    """Handler invoked for every monitored repository on each polling cycle."""

    @abstractmethod
    async def handle(self, repository: Repository) -> None:
        """
        Handle a repository.

        Args:
            repository: The repository
        """


IssueOperation = Callable[[Issue, IssueListener], Awaitable[None]]


class IssueDispatcher:
    """
    Broadcasts issues to a set of issue listeners.

    Listeners are invoked in registration order. A listener that raises is
    logged and skipped for that issue only.
    """

    def __init__(self, listeners: Sequence[IssueListener]):
        """
        Initialize the dispatcher.

        Args:
            listeners: Issue listeners, in the order they are to be notified
        """
        self.listeners = listeners

    async def dispatch(self, page: Page[Issue] | None, operation: IssueOperation) -> int:
        """
        Apply an operation to every listener for every issue of a collection.

        Args:
            page: First page of issues, or None if there are no issues
            operation: Coroutine function invoked with each issue and listener

        Returns:
            Number of invocations that failed
        """
        failures = 0
        async for issue in iterate_pages(page):
            for listener in self.listeners:
                try:
                    await operation(issue, listener)
                except Exception as e:
                    failures += 1
                    logger.warning(
                        "Listener failed when handling issue",
                        listener=type(listener).__name__,
                        issue=str(issue),
                        error=str(e),
                        exc_info=True,
                    )
        return failures


class OpenIssuesListener(RepositoryListener):
    """Notifies issue listeners of every open issue in a repository."""

    def __init__(self, github_client: "GitHubOperations", dispatcher: IssueDispatcher):
        self.github_client = github_client
        self.dispatcher = dispatcher

    async def handle(self, repository: Repository) -> None:
        page = await self.github_client.get_open_issues(
            repository.organization, repository.name
        )

        async def notify(issue: Issue, listener: IssueListener) -> None:
            await listener.on_open_issue(repository, issue)

        await self.dispatcher.dispatch(page, notify)


class ClosedIssuesListener(RepositoryListener):
    """
    Notifies issue listeners of closed issues still awaiting triage.

    Closed issues that carry the repository's triage label are passed to
    ``on_issue_closure`` so that the label can be removed.
    """

    def __init__(
        self,
        github_client: "GitHubOperations",
        dispatcher: IssueDispatcher,
        triage_labels: Mapping[str, str],
    ):
        self.github_client = github_client
        self.dispatcher = dispatcher
        self.triage_labels = triage_labels

    async def handle(self, repository: Repository) -> None:
        label = lookup_by_slug(self.triage_labels, repository)
        if label is None:
            logger.debug(
                "No triage label configured, skipping closed issues",
                repository=repository.slug,
            )
            return

        page = await self.github_client.get_closed_issues_with_label(
            repository.organization, repository.name, label
        )

        async def notify(issue: Issue, listener: IssueListener) -> None:
            await listener.on_issue_closure(repository, issue)

        await self.dispatcher.dispatch(page, notify)
