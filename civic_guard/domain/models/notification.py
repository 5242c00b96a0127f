"""Notification model - in-app notices emitted by store mutations"""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel


class Notification(SQLModel):
    id: int
    message: str
    issue_id: Optional[int] = None
    created_at: datetime
