"""
Basic tests for Issue Bot configuration, models and application wiring.
"""

import json
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

import issue_bot.config
from issue_bot.config import Settings, get_settings, lookup_by_slug
from issue_bot.feedback import FeedbackIssueListener
from issue_bot.github_client import GitHubClient
from issue_bot.listeners import ClosedIssuesListener, OpenIssuesListener
from issue_bot.main import IssueBot, create_app
from issue_bot.models import Event, Issue, RateLimit, Repository
from issue_bot.triage import TriageIssueListener


def test_settings_from_environment():
    """Test that settings can be created with environment variables."""
    issue_bot.config._settings_instance = None

    with patch.dict(
        "os.environ",
        {
            "GITHUB_USERNAME": "issue-bot",
            "GITHUB_PASSWORD": "test-token",
            "REPOSITORIES": json.dumps(
                [{"organization": "acme", "name": "widgets", "collaborators": "alice, bob"}]
            ),
            "TRIAGE_LABELS": json.dumps({"acme": "waiting-for-triage"}),
            "MONITORING_INTERVAL_SECONDS": "60",
        },
        clear=True,
    ):
        settings = get_settings()
        assert settings.github_username == "issue-bot"
        assert settings.repositories == [Repository(organization="acme", name="widgets")]
        assert settings.repositories[0].collaborators == {"alice", "bob"}
        assert settings.monitoring_config.interval_seconds == 60
        assert settings.triage_label_for(settings.repositories[0]) == "waiting-for-triage"
        assert settings.feedback_for(settings.repositories[0]) is None
        assert get_settings() is settings

    issue_bot.config._settings_instance = None


def test_settings_require_username():
    """Test that a missing username is reported clearly."""
    issue_bot.config._settings_instance = None

    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(ValueError, match="GITHUB_USERNAME"):
            get_settings()

    issue_bot.config._settings_instance = None


@pytest.mark.parametrize(
    "overrides",
    [
        {"log_level": "VERBOSE"},
        {"log_format": "xml"},
        {"monitoring_interval_seconds": 0},
        {"feedback_reminder_days": 14, "feedback_close_days": 7},
    ],
)
def test_invalid_settings(overrides):
    """Test that invalid settings are rejected."""
    with pytest.raises(ValidationError):
        Settings(github_username="issue-bot", **overrides)


def test_lookup_by_slug(repository):
    """Test that the most specific configuration key wins."""
    assert lookup_by_slug({"test-org": 1, "test-repo": 2}, repository) == 2
    assert lookup_by_slug({"test-org": 1}, repository) == 1
    assert lookup_by_slug({"other": 1}, repository) is None


def test_issue_model(sample_issue_payload):
    """Test that issues are parsed from API payloads."""
    issue = Issue.model_validate({**sample_issue_payload, "labels": None})

    assert str(issue) == sample_issue_payload["url"]
    assert issue.labels == ()
    assert issue.is_pull_request is False
    assert issue.slug == "test-org/test-repo"

    pull = Issue.model_validate({**sample_issue_payload, "pull_request": {}})
    assert pull.is_pull_request is True


def test_unknown_event_type():
    """Test that unknown event types do not fail parsing."""
    event = Event.model_validate(
        {"event": "brand_new_event", "created_at": "2024-01-01T00:00:00Z"}
    )
    assert event.type is None
    assert event.is_labeled("anything") is False


def test_rate_limit_from_headers():
    """Test that a rate limit snapshot requires all three headers."""
    rate_limit = RateLimit.from_headers(
        {
            "X-RateLimit-Limit": "5000",
            "X-RateLimit-Remaining": "1250",
            "X-RateLimit-Reset": "1700000000",
        }
    )
    assert rate_limit.usage_percentage == pytest.approx(0.75)
    assert RateLimit.from_headers({"X-RateLimit-Limit": "5000"}) is None


def test_repository_identity():
    """Test that repositories are identified by organization and name."""
    first = Repository(organization="acme", name="widgets", collaborators="alice")
    second = Repository(organization="acme", name="widgets")

    assert first == second
    assert len({first, second}) == 1
    assert str(first) == "acme/widgets"


def make_bot(settings) -> IssueBot:
    """Create a bot whose GitHub requests all return empty collections."""
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])),
        base_url="https://api.github.com",
    )
    return IssueBot(settings, GitHubClient(settings, client=http_client))


def test_bot_wiring(mock_settings):
    """Test that the bot wires triage and feedback to both repository listeners."""
    bot = make_bot(mock_settings)

    assert [type(listener) for listener in bot.issue_listeners] == [
        TriageIssueListener,
        FeedbackIssueListener,
    ]
    assert [type(listener) for listener in bot.repository_listeners] == [
        OpenIssuesListener,
        ClosedIssuesListener,
    ]
    assert bot.monitor.repositories == mock_settings.repositories
    assert bot.scheduler.interval_seconds == mock_settings.monitoring_interval_seconds
    assert bot.rate_limit_tracker is bot.github_client.rate_limit_tracker


@pytest.mark.asyncio
async def test_bot_runs_a_cycle(mock_settings):
    """Test that a cycle over an empty repository completes."""
    bot = make_bot(mock_settings)

    await bot.scheduler.run_once()

    assert bot.status()["last_cycle_completed"] is not None
    await bot.github_client.aclose()


def test_app_endpoints(mock_settings):
    """Test the health and diagnostics endpoints."""
    bot = make_bot(mock_settings)
    app = create_app(bot)

    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/rate-limit").json() == {"known": False}

        status = client.get("/").json()
        assert status["polling"] is True
        assert status["repositories"] == ["test-org/test-repo"]

    assert bot.scheduler.is_running() is False


def test_main_app_import():
    """Test that main FastAPI app can be imported."""
    from issue_bot.main import app

    assert app is not None
    assert app.title == "Issue Bot"
