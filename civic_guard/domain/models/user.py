"""User model - Citizens and panchayat leaders (mock session identity)"""
from typing import Optional, List
from enum import Enum
from sqlmodel import SQLModel, Field


class UserRole(str, Enum):
    CITIZEN = "citizen"
    LEADER = "leader"


class Badge(SQLModel):
    name: str
    icon: str  # 'shield-check', 'star', 'trophy'
    description: str


class UserBase(SQLModel):
    name: str
    avatar: str = ""
    points: int = 0
    badges: List[Badge] = Field(default_factory=list)

    district: str = ""
    panchayat: str = ""
    village: str = ""
    street: str = ""

    role: UserRole = UserRole.CITIZEN
    email: Optional[str] = None


class User(UserBase):
    id: int


class UserLogin(SQLModel):
    name: str
    email: str
    district: str = ""
    panchayat: str = ""
    village: str = ""
    street: str = ""


class UserUpdate(SQLModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    email: Optional[str] = None
    district: Optional[str] = None
    panchayat: Optional[str] = None
    village: Optional[str] = None
    street: Optional[str] = None
