"""
Feedback support for the Issue Bot.

This package follows up on issues that are waiting for feedback from
their reporter, reminding them and eventually closing the issue.
"""

from .listener import FeedbackIssueListener, FeedbackListener
from .standard import CLOSE_AFTER, REMINDER_AFTER, StandardFeedbackListener

__all__ = [
    "CLOSE_AFTER",
    "REMINDER_AFTER",
    "FeedbackIssueListener",
    "FeedbackListener",
    "StandardFeedbackListener",
]
