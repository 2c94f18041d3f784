"""
Domain models for the Issue Bot.

GitHub resources are parsed into frozen Pydantic models. An ``Issue`` is a
value: operations that change an issue on GitHub return a new ``Issue``
rather than modifying the one they were given.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import urlparse

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)

HEADER_LIMIT = "X-RateLimit-Limit"
HEADER_REMAINING = "X-RateLimit-Remaining"
HEADER_RESET = "X-RateLimit-Reset"


class GitHubModel(BaseModel):
    """Base model for values parsed from GitHub API payloads."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class User(GitHubModel):
    """A GitHub user."""

    login: str

    def __str__(self) -> str:
        return self.login


class Label(GitHubModel):
    """A label applied to an issue."""

    name: str


class Milestone(GitHubModel):
    """A milestone an issue has been added to."""

    title: str


class PullRequestRef(GitHubModel):
    """Marker present on issues that are pull requests."""

    url: str | None = None


class IssueState(str, Enum):
    """State of an issue."""

    OPEN = "open"
    CLOSED = "closed"


class ClosureReason(str, Enum):
    """Reason recorded when closing an issue."""

    COMPLETED = "completed"
    NOT_PLANNED = "not_planned"


class Issue(GitHubModel):
    """An issue (or pull request) in a GitHub repository."""

    url: str = ""
    comments_url: str = ""
    events_url: str = ""
    labels_url: str = ""
    repository_url: str | None = None
    user: User | None = None
    labels: tuple[Label, ...] = ()
    milestone: Milestone | None = None
    pull_request: PullRequestRef | None = None
    state: IssueState = IssueState.OPEN

    @field_validator("labels", mode="before")
    @classmethod
    def parse_labels(cls, v: Any) -> Any:
        """Treat a missing label list as empty."""
        if v is None:
            return ()
        return v

    def __str__(self) -> str:
        return self.url

    def has_label(self, name: str | None) -> bool:
        """Check whether a label with the given name is applied."""
        if name is None:
            return False
        return any(label.name == name for label in self.labels)

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None

    @property
    def slug(self) -> str | None:
        """The ``org/repo`` slug derived from the repository URL."""
        if not self.repository_url:
            return None
        segments = [s for s in urlparse(self.repository_url).path.split("/") if s]
        if len(segments) < 2:
            return None
        return "/".join(segments[-2:])


class Comment(GitHubModel):
    """A comment on an issue."""

    user: User
    created_at: datetime

    @property
    def author(self) -> str:
        return self.user.login


class EventType(str, Enum):
    """The type of an issue event."""

    ADDED_TO_PROJECT = "added_to_project"
    ASSIGNED = "assigned"
    CLOSED = "closed"
    COMMENT_DELETED = "comment_deleted"
    CONNECTED = "connected"
    CONVERTED_NOTE_TO_ISSUE = "converted_note_to_issue"
    DEMILESTONED = "demilestoned"
    DISCONNECTED = "disconnected"
    HEAD_REF_DELETED = "head_ref_deleted"
    HEAD_REF_RESTORED = "head_ref_restored"
    LABELED = "labeled"
    LOCKED = "locked"
    MARKED_AS_DUPLICATE = "marked_as_duplicate"
    MENTIONED = "mentioned"
    MERGED = "merged"
    MILESTONED = "milestoned"
    MOVED_COLUMNS_IN_PROJECT = "moved_columns_in_project"
    PINNED = "pinned"
    REFERENCED = "referenced"
    REMOVED_FROM_PROJECT = "removed_from_project"
    RENAMED = "renamed"
    REOPENED = "reopened"
    REVIEW_DISMISSED = "review_dismissed"
    REVIEW_REQUESTED = "review_requested"
    REVIEW_REQUEST_REMOVED = "review_request_removed"
    SUBSCRIBED = "subscribed"
    TRANSFERRED = "transferred"
    UNASSIGNED = "unassigned"
    UNLABELED = "unlabeled"
    UNLOCKED = "unlocked"
    UNMARKED_AS_DUPLICATE = "unmarked_as_duplicate"
    UNPINNED = "unpinned"
    UNSUBSCRIBED = "unsubscribed"


class Event(GitHubModel):
    """An event that occurred on an issue."""

    type: EventType | None = Field(default=None, alias="event")
    created_at: datetime
    label: Label | None = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: Any) -> EventType | None:
        """Map unknown event types to ``None`` instead of failing."""
        if v is None or isinstance(v, EventType):
            return v
        try:
            return EventType(v)
        except ValueError:
            logger.info("Received unknown event type", event_type=v)
            return None

    def is_labeled(self, name: str) -> bool:
        """Check whether this event applied the label with the given name."""
        return (
            self.type is EventType.LABELED
            and self.label is not None
            and self.label.name == name
        )


class RateLimit(GitHubModel):
    """Point-in-time snapshot of the API rate limit."""

    limit: int
    remaining: int
    reset_at: datetime

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimit | None":
        """
        Create a snapshot from response headers.

        Args:
            headers: Response headers

        Returns:
            The snapshot, or None if the headers are missing or malformed
        """
        try:
            return cls(
                limit=int(headers[HEADER_LIMIT]),
                remaining=int(headers[HEADER_REMAINING]),
                reset_at=datetime.fromtimestamp(
                    int(headers[HEADER_RESET]), tz=timezone.utc
                ),
            )
        except (KeyError, ValueError):
            return None

    @property
    def usage_percentage(self) -> float:
        return 1.0 - (self.remaining / self.limit) if self.limit > 0 else 0.0


class Repository(BaseModel):
    """A repository being monitored."""

    model_config = ConfigDict(frozen=True)

    organization: str
    name: str
    collaborators: frozenset[str] = frozenset()

    @field_validator("collaborators", mode="before")
    @classmethod
    def parse_collaborators(cls, v: Any) -> Any:
        """Parse collaborators from comma-separated string or list."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            return frozenset(user.strip() for user in v.split(",") if user.strip())
        return v

    @property
    def slug(self) -> str:
        return f"{self.organization}/{self.name}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Repository):
            return NotImplemented
        return (self.organization, self.name) == (other.organization, other.name)

    def __hash__(self) -> int:
        return hash((self.organization, self.name))

    def __str__(self) -> str:
        return self.slug
