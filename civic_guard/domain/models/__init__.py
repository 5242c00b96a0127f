"""Domain models for CivicGuard"""
from .issue import (
    Issue,
    IssueCategory,
    IssueStatus,
    Urgency,
    Priority,
    AuthenticityStatus,
    IssueLocation,
    ResolutionProof,
    EmotionAnalysis,
    ImageAnalysis,
    TERMINAL_STATUSES,
)
from .user import User, UserRole, Badge
from .forum import ForumPost, Comment
from .notification import Notification
from .evidence import GpsFix, PhotoEvidence, VideoEvidence, AudioEvidence
from .draft import ReportDraft, ReportSource, DraftLocation, GeneratedSummary
from .language import Language

__all__ = [
    "Issue",
    "IssueCategory",
    "IssueStatus",
    "Urgency",
    "Priority",
    "AuthenticityStatus",
    "IssueLocation",
    "ResolutionProof",
    "EmotionAnalysis",
    "ImageAnalysis",
    "TERMINAL_STATUSES",
    "User",
    "UserRole",
    "Badge",
    "ForumPost",
    "Comment",
    "Notification",
    "GpsFix",
    "PhotoEvidence",
    "VideoEvidence",
    "AudioEvidence",
    "ReportDraft",
    "ReportSource",
    "DraftLocation",
    "GeneratedSummary",
    "Language",
]
