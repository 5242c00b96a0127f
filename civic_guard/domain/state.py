"""Application state container - one snapshot of everything the session can see"""
from typing import List, Optional, Set
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field

from .errors import NotFoundError
from .models import Issue, User, ForumPost, Comment, Notification


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppState(SQLModel):
    """
    Immutable-by-convention snapshot. Reducers never mutate an AppState,
    they return a copy with the changed collections replaced.
    """
    current_user: User
    users: List[User] = Field(default_factory=list)
    issues: List[Issue] = Field(default_factory=list)  # newest first
    posts: List[ForumPost] = Field(default_factory=list)  # newest first
    comments: List[Comment] = Field(default_factory=list)  # oldest first

    # Per-session vote sets, the single source of truth against double voting
    voted_issue_ids: Set[int] = Field(default_factory=set)
    voted_comment_ids: Set[int] = Field(default_factory=set)

    notifications: List[Notification] = Field(default_factory=list)

    def get_issue(self, issue_id: int) -> Issue:
        for issue in self.issues:
            if issue.id == issue_id:
                return issue
        raise NotFoundError(f"Issue {issue_id} not found")

    def get_post(self, post_id: int) -> ForumPost:
        for post in self.posts:
            if post.id == post_id:
                return post
        raise NotFoundError(f"Post {post_id} not found")

    def get_comment(self, comment_id: int) -> Comment:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        raise NotFoundError(f"Comment {comment_id} not found")

    def find_user(self, user_id: int) -> Optional[User]:
        if self.current_user.id == user_id:
            return self.current_user
        return next((u for u in self.users if u.id == user_id), None)

    def comments_for(self, post_id: int) -> List[Comment]:
        return [c for c in self.comments if c.post_id == post_id]

    @property
    def latest_notification(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None
