"""
Tests for the GitHub REST API client.
"""

import json
from datetime import datetime, timezone

import httpx
import pytest

from issue_bot.exceptions import GitHubAPIError, RateLimitError
from issue_bot.github_client import GitHubClient
from issue_bot.models import ClosureReason, Issue
from issue_bot.pagination import iterate_pages
from issue_bot.polling import RateLimitTracker

API_URL = "https://api.github.com"
RATE_LIMIT_HEADERS = {
    "X-RateLimit-Limit": "5000",
    "X-RateLimit-Remaining": "4990",
    "X-RateLimit-Reset": "1700000000",
}


class TestGitHubClient:
    """Test GitHub requests and response handling."""

    @pytest.fixture(autouse=True)
    def setup(self, mock_settings, sample_issue_payload):
        """Set up test fixtures."""
        self.settings = mock_settings
        self.payload = sample_issue_payload
        self.issue = Issue.model_validate(sample_issue_payload)
        self.requests: list[httpx.Request] = []
        self.tracker = RateLimitTracker()

    def client(self, handler) -> GitHubClient:
        """Create a client whose requests are answered by the handler."""

        def recording(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(recording),
            base_url=API_URL,
            auth=httpx.BasicAuth("issue-bot", "test-token"),
        )
        return GitHubClient(self.settings, self.tracker, client=http_client)

    def test_default_http_client(self):
        """The default HTTP client talks to the configured API with basic auth."""
        client = GitHubClient(self.settings)

        assert str(client._client.base_url).rstrip("/") == API_URL
        assert isinstance(client._client.auth, httpx.BasicAuth)
        assert client._client.headers["Accept"] == "application/vnd.github+json"

    @pytest.mark.asyncio
    async def test_open_issues_follow_link_header(self):
        """Further pages are fetched from the next link."""

        def handler(request):
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json=[{**self.payload, "url": "second"}])
            return httpx.Response(
                200,
                json=[self.payload],
                headers={
                    "Link": f'<{API_URL}/repos/test-org/test-repo/issues?page=2>; rel="next"'
                },
            )

        async with self.client(handler) as client:
            page = await client.get_open_issues("test-org", "test-repo")
            assert page.has_next is True
            assert len(self.requests) == 1

            issues = [issue async for issue in iterate_pages(page)]

        assert [issue.url for issue in issues] == [self.issue.url, "second"]
        assert self.requests[0].url.path == "/repos/test-org/test-repo/issues"
        assert self.requests[0].headers["Authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_closed_issues_with_label_query(self):
        """Closed issues are filtered by label on the server."""

        async with self.client(lambda request: httpx.Response(200, json=[])) as client:
            page = await client.get_closed_issues_with_label(
                "test-org", "test-repo", "waiting-for-triage"
            )

        assert page.content == []
        params = self.requests[0].url.params
        assert params["state"] == "closed"
        assert params["labels"] == "waiting-for-triage"

    @pytest.mark.asyncio
    async def test_comments_and_events(self):
        """Comments and events are read from the issue's URLs."""

        def handler(request):
            if request.url.path.endswith("/comments"):
                return httpx.Response(
                    200,
                    json=[
                        {"user": {"login": "reporter"}, "created_at": "2024-01-02T00:00:00Z"}
                    ],
                )
            return httpx.Response(
                200,
                json=[
                    {
                        "event": "labeled",
                        "created_at": "2024-01-01T00:00:00Z",
                        "label": {"name": "waiting-for-feedback"},
                    },
                    {"event": "some_new_event", "created_at": "2024-01-01T00:00:00Z"},
                ],
            )

        async with self.client(handler) as client:
            comments = (await client.get_comments(self.issue)).content
            events = (await client.get_events(self.issue)).content

        assert comments[0].author == "reporter"
        assert events[0].is_labeled("waiting-for-feedback")
        assert events[1].type is None

    @pytest.mark.asyncio
    async def test_missing_url_returns_no_page(self):
        """An issue without a comments URL has no comments."""
        async with self.client(lambda request: httpx.Response(500)) as client:
            assert await client.get_comments(Issue()) is None
        assert self.requests == []

    @pytest.mark.asyncio
    async def test_add_label(self):
        """Labels are added to the issue's label collection."""

        def handler(request):
            return httpx.Response(
                200, json=[{"name": "type: bug"}, {"name": "waiting-for-triage"}]
            )

        async with self.client(handler) as client:
            updated = await client.add_label(self.issue, "waiting-for-triage")

        request = self.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/repos/test-org/test-repo/issues/42/labels"
        assert json.loads(request.content) == ["waiting-for-triage"]
        assert updated.has_label("waiting-for-triage")
        assert not self.issue.has_label("waiting-for-triage")

    @pytest.mark.asyncio
    async def test_remove_label(self):
        """Label names are encoded into the request path."""
        async with self.client(lambda request: httpx.Response(200, json=[])) as client:
            updated = await client.remove_label(self.issue, "type: bug")

        request = self.requests[0]
        assert request.method == "DELETE"
        assert request.url.path == "/repos/test-org/test-repo/issues/42/labels/type: bug"
        assert updated.labels == ()

    @pytest.mark.asyncio
    async def test_remove_absent_label(self):
        """Removing a label that is not applied is not an error."""
        async with self.client(lambda request: httpx.Response(404)) as client:
            updated = await client.remove_label(self.issue, "missing")

        assert updated == self.issue

    @pytest.mark.asyncio
    async def test_add_comment(self):
        """Comments are posted with the given body."""

        def handler(request):
            return httpx.Response(
                201,
                json={"user": {"login": "issue-bot"}, "created_at": "2024-01-01T00:00:00Z"},
            )

        async with self.client(handler) as client:
            comment = await client.add_comment(self.issue, "Please respond")

        assert json.loads(self.requests[0].content) == {"body": "Please respond"}
        assert comment.author == "issue-bot"

    @pytest.mark.asyncio
    async def test_close_with_reason(self):
        """Closing records the closure reason."""

        def handler(request):
            return httpx.Response(200, json={**self.payload, "state": "closed"})

        async with self.client(handler) as client:
            closed = await client.close(self.issue, ClosureReason.NOT_PLANNED)

        request = self.requests[0]
        assert request.method == "PATCH"
        assert str(request.url) == self.issue.url
        assert json.loads(request.content) == {
            "state": "closed",
            "state_reason": "not_planned",
        }
        assert closed.state == "closed"

    @pytest.mark.asyncio
    async def test_rate_limit_is_tracked(self):
        """Every response updates the rate limit snapshot."""

        def handler(request):
            return httpx.Response(200, json=[], headers=RATE_LIMIT_HEADERS)

        async with self.client(handler) as client:
            assert client.get_rate_limit() is None
            await client.get_open_issues("test-org", "test-repo")
            rate_limit = client.get_rate_limit()

        assert rate_limit.limit == 5000
        assert rate_limit.remaining == 4990
        assert rate_limit.reset_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)
        assert self.tracker.current == rate_limit

    @pytest.mark.asyncio
    async def test_rate_limit_exceeded(self):
        """An exhausted rate limit raises RateLimitError."""

        def handler(request):
            return httpx.Response(
                403, headers={**RATE_LIMIT_HEADERS, "X-RateLimit-Remaining": "0"}
            )

        async with self.client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.get_open_issues("test-org", "test-repo")

        assert exc_info.value.reset_time == datetime.fromtimestamp(
            1700000000, tz=timezone.utc
        )
        assert self.tracker.current.remaining == 0

    @pytest.mark.asyncio
    async def test_unsuccessful_response(self):
        """Other unsuccessful responses raise GitHubAPIError."""
        async with self.client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(GitHubAPIError) as exc_info:
                await client.add_comment(self.issue, "hello")

        assert not isinstance(exc_info.value, RateLimitError)
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_forbidden_without_exhausted_limit(self):
        """A 403 with quota remaining is an ordinary API error."""

        def handler(request):
            return httpx.Response(403, headers=RATE_LIMIT_HEADERS)

        async with self.client(handler) as client:
            with pytest.raises(GitHubAPIError) as exc_info:
                await client.get_open_issues("test-org", "test-repo")

        assert not isinstance(exc_info.value, RateLimitError)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Connection failures are reported as GitHubAPIError."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with self.client(handler) as client:
            with pytest.raises(GitHubAPIError):
                await client.get_open_issues("test-org", "test-repo")

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        """A body that cannot be parsed raises GitHubAPIError."""

        def handler(request):
            return httpx.Response(200, json={"not": "a list"})

        async with self.client(handler) as client:
            with pytest.raises(GitHubAPIError):
                await client.get_open_issues("test-org", "test-repo")
