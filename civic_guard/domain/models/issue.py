"""Issue model - Citizen-reported civic problems"""
from typing import Optional, List
from datetime import datetime
from enum import Enum
from sqlmodel import SQLModel, Field


class IssueCategory(str, Enum):
    ROADS = "Roads"
    WASTE = "Waste"
    WATER = "Water"
    ELECTRICITY = "Electricity"
    PUBLIC_INFRASTRUCTURE = "Public Infrastructure"
    OTHER = "Other"


class IssueStatus(str, Enum):
    PENDING = "Pending"
    RECEIVED = "Received"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


# Resolved/Closed issues are excluded from open counts and cannot be edited by the reporter
TERMINAL_STATUSES = frozenset({IssueStatus.RESOLVED, IssueStatus.CLOSED})


class Urgency(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class AuthenticityStatus(str, Enum):
    AUTHENTIC = "Authentic"
    MANIPULATED = "Manipulated"
    AI_GENERATED = "AI-Generated"
    UNKNOWN = "Unknown"  # classifier gave up after retry


class IssueLocation(SQLModel):
    district: str
    panchayat: str
    village: str
    street: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


class ResolutionProof(SQLModel):
    image: str
    description: str
    completed_at: datetime


class EmotionAnalysis(SQLModel):
    sentiment: str
    urgency_score: float = Field(ge=1, le=10)


class ImageAnalysis(SQLModel):
    status: AuthenticityStatus
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""


class IssueBase(SQLModel):
    title: str
    description: str
    category: IssueCategory = IssueCategory.ROADS
    status: IssueStatus = IssueStatus.PENDING
    upvotes: int = Field(default=0, ge=0)
    reporter_id: int
    location: IssueLocation

    # Evidence
    images: List[str] = Field(default_factory=list)  # up to 3 data URIs / URLs
    video: Optional[str] = None
    audio: Optional[str] = None

    incident_time: Optional[str] = None
    affected_people: Optional[str] = None
    urgency: Optional[Urgency] = Urgency.MEDIUM

    # Triage (officials)
    priority: Priority = Priority.MEDIUM
    assigned_to: Optional[str] = None

    # AI enrichments
    emotion_analysis: Optional[EmotionAnalysis] = None
    image_analyses: List[ImageAnalysis] = Field(default_factory=list)

    resolution_proof: Optional[ResolutionProof] = None
    closed_at: Optional[datetime] = None


class Issue(IssueBase):
    id: int
    created_at: datetime


class IssueRead(IssueBase):
    id: int
    created_at: datetime


class IssueUpdate(SQLModel):
    """Owner edit of a not-yet-resolved issue"""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[IssueCategory] = None
    urgency: Optional[Urgency] = None
    district: Optional[str] = None
    panchayat: Optional[str] = None
    village: Optional[str] = None
    street: Optional[str] = None
    images: Optional[List[str]] = None
    video: Optional[str] = None
    image_analyses: Optional[List[ImageAnalysis]] = None


class ResolutionProofCreate(SQLModel):
    image: str
    description: str


class IssueStatusUpdate(SQLModel):
    status: IssueStatus
    resolution_proof: Optional[ResolutionProofCreate] = None


class IssueDetailsUpdate(SQLModel):
    priority: Optional[Priority] = None
    assigned_to: Optional[str] = None
