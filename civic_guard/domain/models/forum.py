"""Community forum models - posts and comments"""
from datetime import datetime
from sqlmodel import SQLModel, Field


class ForumPostBase(SQLModel):
    title: str
    content: str


class ForumPost(ForumPostBase):
    id: int
    author_id: int
    created_at: datetime


class ForumPostCreate(ForumPostBase):
    pass


class CommentBase(SQLModel):
    content: str


class Comment(CommentBase):
    id: int
    post_id: int
    author_id: int
    created_at: datetime
    upvotes: int = Field(default=0, ge=0)


class CommentCreate(CommentBase):
    pass
