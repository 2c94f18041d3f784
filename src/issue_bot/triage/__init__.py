"""
Triage support for the Issue Bot.

This package identifies open issues that have not yet been looked at by a
maintainer and marks them with a triage label.
"""

from .filters import (
    LabelledTriageFilter,
    MilestoneAppliedTriageFilter,
    OpenedByCollaboratorTriageFilter,
    TriageFilter,
    default_filters,
)
from .listener import LabelApplyingTriageListener, TriageIssueListener, TriageListener

__all__ = [
    "LabelApplyingTriageListener",
    "LabelledTriageFilter",
    "MilestoneAppliedTriageFilter",
    "OpenedByCollaboratorTriageFilter",
    "TriageFilter",
    "TriageIssueListener",
    "TriageListener",
    "default_filters",
]
