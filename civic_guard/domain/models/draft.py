"""Draft report - the one payload both the manual form and the guided agent hand to issue creation"""
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

from .issue import IssueCategory, Urgency, ImageAnalysis, EmotionAnalysis
from .evidence import GpsFix


class ReportSource(str, Enum):
    FORM = "form"
    AGENT = "agent"


class DraftLocation(BaseModel):
    district: str = ""
    panchayat: str = ""
    village: str = ""
    street: str = ""
    landmark: str = ""


class GeneratedSummary(BaseModel):
    """Structured report returned by the summarization service"""
    model_config = ConfigDict(populate_by_name=True)

    reporter_details: str = Field(default="Not provided", alias="reporterDetails")
    issue_description: str = Field(alias="issueDescription")
    district: str
    panchayat: str
    village: str
    street: str
    location_details: str = Field(default="", alias="locationDetails")
    date_time: str = Field(alias="dateTime")
    affected_people_community: str = Field(alias="affectedPeopleCommunity")
    urgency_level: str = Field(alias="urgencyLevel")
    final_summary_recommendation: str = Field(alias="finalSummaryRecommendation")


class ReportDraft(BaseModel):
    source: ReportSource
    title: str = ""
    category: IssueCategory = IssueCategory.ROADS
    description: str = ""
    urgency: Urgency = Urgency.MEDIUM
    location: DraftLocation = Field(default_factory=DraftLocation)

    photos: List[str] = Field(default_factory=list)
    image_analyses: List[ImageAnalysis] = Field(default_factory=list)
    gps: Optional[GpsFix] = None
    video: Optional[str] = None
    audio: Optional[str] = None

    emotion_analysis: Optional[EmotionAnalysis] = None
    summary: Optional[GeneratedSummary] = None
