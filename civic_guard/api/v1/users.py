"""Users API - Mock login, profile and leaderboard"""
from typing import List

from fastapi import APIRouter, Depends

from ...domain.models import Notification, User
from ...domain.models.user import UserLogin, UserUpdate
from ...domain.store import IssueStore
from ...domain.views import leaderboard
from ..deps import get_store

router = APIRouter()


@router.post("/login", response_model=User)
async def login(details: UserLogin, store: IssueStore = Depends(get_store)):
    """
    Mock login
    The configured leader email signs in as the panchayat leader,
    any other details update the default citizen.
    """
    return store.login(details)


@router.get("/me", response_model=User)
async def get_me(store: IssueStore = Depends(get_store)):
    return store.current_user


@router.patch("/me", response_model=User)
async def update_me(changes: UserUpdate, store: IssueStore = Depends(get_store)):
    return store.update_user(changes)


@router.get("/me/notifications", response_model=List[Notification])
async def list_notifications(store: IssueStore = Depends(get_store), limit: int = 20):
    """Most recent first"""
    return list(reversed(store.state.notifications))[:limit]


@router.get("/leaderboard", response_model=List[User])
async def get_leaderboard(store: IssueStore = Depends(get_store)):
    """Citizens ranked by points"""
    return leaderboard(store.state.users)
