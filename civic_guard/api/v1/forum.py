"""Forum API - Community posts and comments"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...domain.models import Comment, ForumPost, User
from ...domain.models.forum import CommentCreate, ForumPostCreate
from ...domain.store import IssueStore
from ..deps import get_store

router = APIRouter()


class PostSummary(BaseModel):
    post: ForumPost
    author: Optional[User] = None
    comment_count: int = 0


class CommentView(BaseModel):
    comment: Comment
    author: Optional[User] = None


class PostDetail(BaseModel):
    post: ForumPost
    author: Optional[User] = None
    comments: List[CommentView]


@router.get("/posts", response_model=List[PostSummary])
async def list_posts(store: IssueStore = Depends(get_store)):
    state = store.state
    return [
        PostSummary(
            post=post,
            author=state.find_user(post.author_id),
            comment_count=len(state.comments_for(post.id)),
        )
        for post in state.posts
    ]


@router.post("/posts", response_model=ForumPost, status_code=201)
async def create_post(post: ForumPostCreate, store: IssueStore = Depends(get_store)):
    return store.create_post(post)


@router.get("/posts/{post_id}", response_model=PostDetail)
async def get_post(post_id: int, store: IssueStore = Depends(get_store)):
    state = store.state
    post = state.get_post(post_id)
    return PostDetail(
        post=post,
        author=state.find_user(post.author_id),
        comments=[
            CommentView(comment=c, author=state.find_user(c.author_id))
            for c in state.comments_for(post_id)
        ],
    )


@router.post("/posts/{post_id}/comments", response_model=Comment, status_code=201)
async def add_comment(post_id: int, comment: CommentCreate, store: IssueStore = Depends(get_store)):
    return store.add_comment(post_id, comment)


@router.post("/comments/{comment_id}/vote", response_model=Comment)
async def vote_comment(comment_id: int, store: IssueStore = Depends(get_store)):
    """Idempotent per session"""
    return store.vote_comment(comment_id)
