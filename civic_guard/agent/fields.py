"""
Report field validation shared by the guided agent and the manual form.
Both entry points build the same ReportDraft through this module.
"""
from typing import Optional, Sequence

from pydantic import BaseModel

from ..domain.errors import ValidationError
from ..domain.models import (
    DraftLocation,
    EmotionAnalysis,
    GeneratedSummary,
    GpsFix,
    IssueCategory,
    ReportDraft,
    ReportSource,
    Urgency,
)
from ..infrastructure.locations import LocationCatalog
from .evidence_store import EvidenceSnapshot, EvidenceStore

REQUIRED_MESSAGES = {
    "street": "Street/Locality is required.",
    "title": "Issue title is required.",
    "description": "Description is required.",
}

EVIDENCE_REQUIRED = "Please capture at least one photo and record a video as evidence."
ANALYSIS_PENDING = "Please wait for the photo analysis to finish before submitting."

CATEGORY_OPTIONS = [c.value for c in IssueCategory]
URGENCY_OPTIONS = [u.value for u in Urgency]


class ReportFields(BaseModel):
    district: str = ""
    panchayat: str = ""
    village: str = ""
    street: str = ""
    landmark: str = ""
    title: str = ""
    category: IssueCategory = IssueCategory.ROADS
    urgency: Urgency = Urgency.MEDIUM
    description: str = ""

    def location(self) -> DraftLocation:
        return DraftLocation(
            district=self.district,
            panchayat=self.panchayat,
            village=self.village,
            street=self.street,
            landmark=self.landmark,
        )


def require_text(field: str, value: Optional[str]) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(REQUIRED_MESSAGES.get(field, f"{field} is required."), field)
    return text


def require_choice(field: str, value: Optional[str], options: Sequence[str]) -> str:
    text = (value or "").strip()
    if text not in options:
        raise ValidationError(f"'{text}' is not a valid {field}.", field)
    return text


def location_options(field: str, fields: ReportFields, catalog: LocationCatalog) -> list:
    if field == "district":
        return catalog.district_names()
    if field == "panchayat":
        return catalog.panchayat_names(fields.district)
    if field == "village":
        return catalog.village_names(fields.district, fields.panchayat)
    raise KeyError(field)


def validate_location(fields: ReportFields, catalog: LocationCatalog) -> None:
    """An empty catalog (dataset failed to load) accepts any names"""
    if not len(catalog):
        return
    for field in ("district", "panchayat", "village"):
        require_choice(field, getattr(fields, field), location_options(field, fields, catalog))


def validate_fields(fields: ReportFields, catalog: LocationCatalog) -> ReportFields:
    validate_location(fields, catalog)
    return fields.model_copy(update={
        "street": require_text("street", fields.street),
        "title": require_text("title", fields.title),
        "description": require_text("description", fields.description),
        "landmark": fields.landmark.strip(),
    })


def validate_evidence(
    snapshot: EvidenceSnapshot,
    require_both: bool = True,
    message: str = EVIDENCE_REQUIRED,
) -> None:
    """New reports need a photo and a video; edits need either"""
    if require_both:
        enough = snapshot.photo_count >= 1 and snapshot.has_video
    else:
        enough = snapshot.photo_count >= 1 or snapshot.has_video
    if not enough:
        raise ValidationError(message, "evidence")
    if not snapshot.all_analyses_done:
        raise ValidationError(ANALYSIS_PENDING, "evidence")


def build_draft(
    source: ReportSource,
    fields: ReportFields,
    evidence: EvidenceStore,
    gps: Optional[GpsFix] = None,
    emotion: Optional[EmotionAnalysis] = None,
    summary: Optional[GeneratedSummary] = None,
) -> ReportDraft:
    return ReportDraft(
        source=source,
        title=fields.title,
        category=fields.category,
        description=fields.description,
        urgency=fields.urgency,
        location=fields.location(),
        photos=evidence.photo_uris(),
        image_analyses=evidence.image_analyses(),
        gps=gps,
        video=evidence.video.data_uri if evidence.video else None,
        audio=evidence.audio.data_uri if evidence.audio else None,
        emotion_analysis=emotion,
        summary=summary,
    )
