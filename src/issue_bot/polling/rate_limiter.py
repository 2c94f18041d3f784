"""
Rate limit tracking for the Issue Bot polling system.

This module keeps the most recent GitHub API rate limit snapshot so that it
can be reported at the end of a polling cycle and through the diagnostics
endpoint.
"""

from datetime import datetime, timezone
from typing import Any

import structlog

from ..models import RateLimit

logger = structlog.get_logger(__name__)


class RateLimitTracker:
    """
    Holder of the latest GitHub API rate limit snapshot.

    The snapshot is replaced after every API response. It is a point-in-time
    reading of the remaining quota, not a counter, so the last write wins.
    """

    def __init__(self) -> None:
        self._rate_limit: RateLimit | None = None
        self._updated_at: datetime | None = None

    @property
    def current(self) -> RateLimit | None:
        """The latest snapshot, or None if it is unknown."""
        return self._rate_limit

    @property
    def updated_at(self) -> datetime | None:
        return self._updated_at

    def update(self, rate_limit: RateLimit | None) -> None:
        """
        Replace the snapshot.

        Args:
            rate_limit: New snapshot, or None when the last response did not
                carry rate limit information
        """
        self._rate_limit = rate_limit
        self._updated_at = datetime.now(timezone.utc)

    def log_status(self) -> None:
        """Log the current snapshot."""
        rate_limit = self._rate_limit
        if rate_limit is None:
            logger.info("Rate limit unknown")
            return
        logger.info(
            "Rate limit status",
            limit=rate_limit.limit,
            remaining=rate_limit.remaining,
            reset_at=rate_limit.reset_at.isoformat(),
            usage_percentage=round(rate_limit.usage_percentage, 3),
        )

    def as_dict(self) -> dict[str, Any]:
        """Get the snapshot as a dictionary for reporting."""
        rate_limit = self._rate_limit
        if rate_limit is None:
            return {"known": False}
        return {
            "known": True,
            "limit": rate_limit.limit,
            "remaining": rate_limit.remaining,
            "reset": rate_limit.reset_at.isoformat(),
            "usage_percentage": rate_limit.usage_percentage,
            "updated_at": (
                self._updated_at.isoformat() if self._updated_at else None
            ),
        }
