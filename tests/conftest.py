"""
Pytest configuration and fixtures for Issue Bot tests.
"""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from issue_bot.config import FeedbackProperties, Settings
from issue_bot.github_client import GitHubOperations
from issue_bot.models import Issue, Label, Milestone, PullRequestRef, Repository, User
from issue_bot.pagination import Page


@pytest.fixture
def repository() -> Repository:
    """Monitored repository with two collaborators."""
    return Repository(
        organization="test-org", name="test-repo", collaborators={"alice", "bob"}
    )


@pytest.fixture
def feedback_properties() -> FeedbackProperties:
    """Feedback labels and comments."""
    return FeedbackProperties(
        required_label="waiting-for-feedback",
        provided_label="feedback-provided",
        reminder_label="feedback-reminder",
        reminder_comment="Please provide the requested feedback",
        close_comment="Closing due to lack of feedback",
    )


@pytest.fixture
def mock_settings(
    repository: Repository, feedback_properties: FeedbackProperties
) -> Settings:
    """Settings for testing."""
    return Settings(
        github_username="issue-bot",
        github_password="test-token",
        repositories=[repository],
        triage_labels={"test-org": "waiting-for-triage"},
        feedback={"test-org/test-repo": feedback_properties},
        log_level="DEBUG",
    )


@pytest.fixture
def mock_github_client() -> AsyncMock:
    """Mock GitHub operations for testing."""
    client = AsyncMock(spec=GitHubOperations)
    client.get_open_issues.return_value = None
    client.get_closed_issues_with_label.return_value = None
    client.get_comments.return_value = None
    client.get_events.return_value = None
    client.get_rate_limit.return_value = None
    return client


@pytest.fixture
def make_issue() -> Callable[..., Issue]:
    """Factory for issues in the test repository."""

    def factory(
        number: int = 1,
        user: str = "reporter",
        labels: tuple[str, ...] = (),
        milestone: str | None = None,
        pull_request: bool = False,
    ) -> Issue:
        base = f"https://api.github.com/repos/test-org/test-repo/issues/{number}"
        return Issue(
            url=base,
            comments_url=f"{base}/comments",
            events_url=f"{base}/events",
            labels_url=f"{base}/labels{{/name}}",
            repository_url="https://api.github.com/repos/test-org/test-repo",
            user=User(login=user),
            labels=tuple(Label(name=name) for name in labels),
            milestone=Milestone(title=milestone) if milestone else None,
            pull_request=PullRequestRef(url=f"{base}/pull") if pull_request else None,
        )

    return factory


@pytest.fixture
def make_pages() -> Callable[..., Page[Any]]:
    """Factory chaining lists of items into pages."""

    def factory(*contents: list[Any]) -> Page[Any]:
        page: Page[Any] | None = None
        for content in reversed(contents):
            following = page

            async def next_page(following: Page[Any] | None = following) -> Any:
                return following

            page = Page(content, next_page if following is not None else None)
        return page if page is not None else Page([])

    return factory


@pytest.fixture
def sample_issue_payload() -> dict[str, Any]:
    """Sample issue as returned by the GitHub API."""
    base = "https://api.github.com/repos/test-org/test-repo/issues/42"
    return {
        "url": base,
        "comments_url": f"{base}/comments",
        "events_url": f"{base}/events",
        "labels_url": f"{base}/labels{{/name}}",
        "repository_url": "https://api.github.com/repos/test-org/test-repo",
        "number": 42,
        "title": "Widget explodes",
        "state": "open",
        "user": {"login": "reporter", "type": "User"},
        "labels": [{"id": 1, "name": "type: bug", "color": "ff0000"}],
        "milestone": None,
    }
