"""
GitHub API client for the Issue Bot.

This module defines the operations the bot performs against GitHub and an
implementation of them on top of the GitHub REST API, with basic
authentication, pagination through ``Link`` headers and rate limit
tracking.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from .config import Settings
from .exceptions import GitHubAPIError, RateLimitError
from .models import (
    HEADER_REMAINING,
    HEADER_RESET,
    ClosureReason,
    Comment,
    Event,
    Issue,
    Label,
    RateLimit,
)
from .pagination import Page
from .polling.rate_limiter import RateLimitTracker

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_ISSUES = TypeAdapter(list[Issue])
_COMMENTS = TypeAdapter(list[Comment])
_EVENTS = TypeAdapter(list[Event])
_LABELS = TypeAdapter(list[Label])
_ISSUE = TypeAdapter(Issue)
_COMMENT = TypeAdapter(Comment)

_LABEL_NAME_TEMPLATE = "{/name}"


def _parse_reset(value: str | None) -> datetime | None:
    """Parse an epoch seconds reset header."""
    try:
        return datetime.fromtimestamp(int(value or ""), tz=timezone.utc)
    except ValueError:
        return None


class GitHubOperations(ABC):
    """Operations the bot performs against GitHub."""

    @abstractmethod
    async def get_open_issues(
        self, organization: str, repository: str
    ) -> Page[Issue] | None:
        """
        Get the open issues in a repository.

        Args:
            organization: Name of the organization that owns the repository
            repository: Name of the repository

        Returns:
            First page of issues, or None if there are none
        """

    @abstractmethod
    async def get_closed_issues_with_label(
        self, organization: str, repository: str, label: str
    ) -> Page[Issue] | None:
        """
        Get the closed issues in a repository that carry a label.

        Args:
            organization: Name of the organization that owns the repository
            repository: Name of the repository
            label: Label name

        Returns:
            First page of issues, or None if there are none
        """

    @abstractmethod
    async def get_comments(self, issue: Issue) -> Page[Comment] | None:
        """Get the comments that have been made on an issue."""

    @abstractmethod
    async def get_events(self, issue: Issue) -> Page[Event] | None:
        """Get the events that have occurred on an issue."""

    @abstractmethod
    async def add_label(self, issue: Issue, label: str) -> Issue:
        """
        Add a label to an issue.

        Args:
            issue: Issue to label
            label: Label name

        Returns:
            The issue with its updated labels
        """

    @abstractmethod
    async def remove_label(self, issue: Issue, label: str) -> Issue:
        """
        Remove a label from an issue. Removing an absent label is not an error.

        Args:
            issue: Issue to update
            label: Label name

        Returns:
            The issue with its updated labels
        """

    @abstractmethod
    async def add_comment(self, issue: Issue, comment: str) -> Comment:
        """Add a comment to an issue."""

    @abstractmethod
    async def close(
        self, issue: Issue, reason: ClosureReason | None = None
    ) -> Issue:
        """
        Close an issue.

        Args:
            issue: Issue to close
            reason: Optional reason recorded with the closure

        Returns:
            The closed issue
        """

    @abstractmethod
    def get_rate_limit(self) -> RateLimit | None:
        """Get the latest known rate limit, or None if it is unknown."""


class GitHubClient(GitHubOperations):
    """
    GitHub REST API client.

    Every response refreshes the shared rate limit snapshot. Exhausting the
    rate limit raises ``RateLimitError``; any other unsuccessful response
    raises ``GitHubAPIError``. No request is retried.
    """

    def __init__(
        self,
        config: Settings,
        rate_limit_tracker: RateLimitTracker | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the GitHub client.

        Args:
            config: Application settings
            rate_limit_tracker: Tracker updated after every response
            client: Preconfigured HTTP client, mainly for testing
        """
        self.config = config
        self.rate_limit_tracker = rate_limit_tracker or RateLimitTracker()
        self._client = client or httpx.AsyncClient(
            base_url=config.github_api_url,
            auth=httpx.BasicAuth(config.github_username, config.github_password),
            headers={
                "Accept": "application/vnd.github+json",
                "User-Agent": "issue-bot",
            },
            timeout=config.github_timeout_seconds,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        ok_statuses: frozenset[int] = frozenset(),
    ) -> httpx.Response:
        """Send a request, record the rate limit and check the response status."""
        try:
            response = await self._client.request(method, url, params=params, json=json)
        except httpx.HTTPError as e:
            logger.error("GitHub request failed", method=method, url=url, error=str(e))
            raise GitHubAPIError(f"{method} {url} failed: {e}") from e

        self.rate_limit_tracker.update(RateLimit.from_headers(response.headers))

        if response.status_code in (403, 429) and (
            response.headers.get(HEADER_REMAINING) == "0"
        ):
            reset_time = _parse_reset(response.headers.get(HEADER_RESET))
            logger.warning(
                "GitHub rate limit exceeded",
                url=url,
                reset_at=reset_time.isoformat() if reset_time else None,
            )
            raise RateLimitError(
                "Rate limit exceeded. Limit will reset at "
                f"{reset_time.isoformat() if reset_time else 'an unknown time'}",
                reset_time=reset_time,
                context={"url": url},
            )

        if not response.is_success and response.status_code not in ok_statuses:
            logger.warning(
                "GitHub request unsuccessful",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            raise GitHubAPIError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
                context={"body": response.text},
            )
        return response

    def _parse(self, response: httpx.Response, adapter: TypeAdapter[T]) -> T:
        """Parse a response body, logging the body if it cannot be read."""
        try:
            return adapter.validate_python(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(
                "Failed to parse GitHub response",
                url=str(response.request.url),
                body=response.text,
                error=str(e),
            )
            raise GitHubAPIError(
                f"Failed to parse response from {response.request.url}: {e}",
                status_code=response.status_code,
            ) from e

    async def _get_page(
        self,
        url: str | None,
        adapter: TypeAdapter[list[T]],
        params: dict[str, str] | None = None,
    ) -> Page[T] | None:
        if not url:
            return None
        response = await self._request("GET", url, params=params)
        content = self._parse(response, adapter)
        next_url = response.links.get("next", {}).get("url")

        async def next_page() -> Page[T] | None:
            return await self._get_page(next_url, adapter)

        return Page(content, next_page if next_url else None)

    async def get_open_issues(
        self, organization: str, repository: str
    ) -> Page[Issue] | None:
        return await self._get_page(f"/repos/{organization}/{repository}/issues", _ISSUES)

    async def get_closed_issues_with_label(
        self, organization: str, repository: str, label: str
    ) -> Page[Issue] | None:
        return await self._get_page(
            f"/repos/{organization}/{repository}/issues",
            _ISSUES,
            params={"state": "closed", "labels": label},
        )

    async def get_comments(self, issue: Issue) -> Page[Comment] | None:
        return await self._get_page(issue.comments_url, _COMMENTS)

    async def get_events(self, issue: Issue) -> Page[Event] | None:
        return await self._get_page(issue.events_url, _EVENTS)

    async def add_label(self, issue: Issue, label: str) -> Issue:
        url = issue.labels_url.replace(_LABEL_NAME_TEMPLATE, "")
        logger.info("Adding label", label=label, url=url)
        response = await self._request("POST", url, json=[label])
        labels = self._parse(response, _LABELS)
        return issue.model_copy(update={"labels": tuple(labels)})

    async def remove_label(self, issue: Issue, label: str) -> Issue:
        url = issue.labels_url.replace(
            _LABEL_NAME_TEMPLATE, "/" + quote(label, safe="")
        )
        logger.info("Removing label", label=label, url=url)
        response = await self._request("DELETE", url, ok_statuses=frozenset({404}))
        if response.status_code == 404:
            logger.debug("Label not present on issue", label=label, issue=str(issue))
            return issue
        labels = self._parse(response, _LABELS)
        return issue.model_copy(update={"labels": tuple(labels)})

    async def add_comment(self, issue: Issue, comment: str) -> Comment:
        logger.info("Adding comment", issue=str(issue))
        response = await self._request("POST", issue.comments_url, json={"body": comment})
        return self._parse(response, _COMMENT)

    async def close(
        self, issue: Issue, reason: ClosureReason | None = None
    ) -> Issue:
        body = {"state": "closed"}
        if reason is not None:
            body["state_reason"] = reason.value
        logger.info(
            "Closing issue",
            issue=str(issue),
            reason=reason.value if reason else None,
        )
        response = await self._request("PATCH", issue.url, json=body)
        return self._parse(response, _ISSUE)

    def get_rate_limit(self) -> RateLimit | None:
        return self.rate_limit_tracker.current
