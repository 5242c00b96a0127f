"""API v1 routers"""
from . import (
    users,
    issues,
    forum,
    map,
    reports,
    assistant,
)

__all__ = [
    "users",
    "issues",
    "forum",
    "map",
    "reports",
    "assistant",
]
