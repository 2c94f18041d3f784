"""
Main application entry point for the Issue Bot.

This module configures logging, wires the GitHub client, listeners and
polling components together, and exposes a small FastAPI application for
health checks and rate limit diagnostics while polling runs in the
background.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

import structlog
from fastapi import FastAPI

from .config import Settings, get_settings
from .feedback import FeedbackIssueListener, StandardFeedbackListener
from .github_client import GitHubClient
from .listeners import (
    ClosedIssuesListener,
    IssueDispatcher,
    IssueListener,
    OpenIssuesListener,
    RepositoryListener,
)
from .polling import PollingScheduler, RepositoryMonitor
from .triage import LabelApplyingTriageListener, TriageIssueListener, default_filters


def setup_logging(settings: Settings) -> None:
    """Configure structured logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level), format="%(message)s"
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if settings.log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class IssueBot:
    """
    The wired-up bot.

    Open issues are passed to the triage and feedback listeners; closed
    issues still carrying a triage label are passed to the same listeners
    so the label can be removed.
    """

    def __init__(self, settings: Settings, github_client: GitHubClient | None = None):
        """
        Initialize the bot.

        Args:
            settings: Application settings
            github_client: GitHub client to use instead of creating one
        """
        self.settings = settings
        self.github_client = github_client or GitHubClient(settings)
        self.rate_limit_tracker = self.github_client.rate_limit_tracker

        # Closure notifications from the feedback listener reach every issue
        # listener, including those registered after it.
        self.issue_listeners: list[IssueListener] = []
        feedback_listener = FeedbackIssueListener(
            self.github_client,
            settings.feedback,
            settings.github_username,
            StandardFeedbackListener(
                self.github_client,
                settings.feedback,
                self.issue_listeners,
                reminder_after=timedelta(days=settings.feedback_reminder_days),
                close_after=timedelta(days=settings.feedback_close_days),
            ),
            include_bot_user=settings.feedback_include_bot_user,
        )
        triage_listener = TriageIssueListener(
            default_filters(),
            LabelApplyingTriageListener(self.github_client, settings.triage_labels),
        )
        self.issue_listeners.extend([triage_listener, feedback_listener])

        dispatcher = IssueDispatcher(self.issue_listeners)
        self.repository_listeners: list[RepositoryListener] = [
            OpenIssuesListener(self.github_client, dispatcher),
            ClosedIssuesListener(self.github_client, dispatcher, settings.triage_labels),
        ]

        monitoring = settings.monitoring_config
        self.monitor = RepositoryMonitor(
            settings.repositories,
            self.repository_listeners,
            enabled=monitoring.enabled,
            rate_limit_tracker=self.rate_limit_tracker,
        )
        self.scheduler = PollingScheduler(self.monitor, monitoring.interval_seconds)

    async def start(self) -> None:
        """Start polling."""
        logger = structlog.get_logger(__name__)
        if not self.settings.repositories:
            logger.warning("No repositories configured for monitoring")
        logger.info(
            "Configuration loaded",
            repositories=[repo.slug for repo in self.settings.repositories],
            monitoring_enabled=self.settings.monitoring_enabled,
            interval_seconds=self.settings.monitoring_interval_seconds,
        )
        self.scheduler.start()

    async def stop(self) -> None:
        """Stop polling and release the GitHub client."""
        await self.scheduler.stop()
        await self.github_client.aclose()

    def status(self) -> dict[str, Any]:
        """Get a summary of the bot's polling state."""
        scheduler = self.scheduler
        return {
            "polling": scheduler.is_running(),
            "monitoring_enabled": self.monitor.enabled,
            "repositories": [repo.slug for repo in self.monitor.repositories],
            "last_cycle_started": (
                scheduler.last_cycle_started.isoformat()
                if scheduler.last_cycle_started
                else None
            ),
            "last_cycle_completed": (
                scheduler.last_cycle_completed.isoformat()
                if scheduler.last_cycle_completed
                else None
            ),
        }


def create_app(bot: IssueBot | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        bot: Bot to run; created from the environment on startup if omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        running = bot
        if running is None:
            settings = get_settings()
            setup_logging(settings)
            running = IssueBot(settings)

        logger = structlog.get_logger()
        logger.info("Starting Issue Bot")
        app.state.bot = running
        await running.start()

        yield

        logger.info("Shutting down Issue Bot")
        await running.stop()

    app = FastAPI(
        title="Issue Bot",
        description="Triage and feedback automation for GitHub issues",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint."""
        return {"message": "Issue Bot", "version": "0.1.0", **app.state.bot.status()}

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/rate-limit")
    async def rate_limit() -> dict[str, Any]:
        """Latest GitHub API rate limit snapshot."""
        return app.state.bot.rate_limit_tracker.as_dict()

    return app


app = create_app()


def main() -> None:
    """Main entry point."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings)
    logger = structlog.get_logger()

    logger.info(
        "Starting server", host=settings.host, port=settings.port, debug=settings.debug
    )

    uvicorn.run(
        "issue_bot.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=None,  # We handle logging ourselves
    )


if __name__ == "__main__":
    main()
