"""Manual (non-conversational) report form, new or edit"""
from typing import Optional

from pydantic import BaseModel

from ..domain.errors import ValidationError
from ..domain.models import GpsFix, IssueCategory, ReportDraft, ReportSource, Urgency
from ..domain.models.issue import Issue, IssueUpdate
from ..infrastructure.locations import LocationCatalog
from .evidence_store import EvidenceStore
from .fields import ReportFields, build_draft, validate_evidence, validate_location

MISSING_FIELDS = "Please fill in Issue Title, Street/Locality and Description."
MISSING_EVIDENCE = "Please capture at least one photo and a video as evidence."


class ManualReportForm(BaseModel):
    title: str = ""
    category: IssueCategory = IssueCategory.ROADS
    urgency: Urgency = Urgency.MEDIUM
    description: str = ""
    district: str = ""
    panchayat: str = ""
    village: str = ""
    street: str = ""
    landmark: str = ""

    @classmethod
    def from_issue(cls, issue: Issue) -> "ManualReportForm":
        """Prefill for editing an existing report"""
        return cls(
            title=issue.title,
            category=issue.category,
            urgency=issue.urgency or Urgency.MEDIUM,
            description=issue.description,
            district=issue.location.district,
            panchayat=issue.location.panchayat,
            village=issue.location.village,
            street=issue.location.street,
        )

    def checked_fields(self, catalog: LocationCatalog) -> ReportFields:
        fields = ReportFields(**self.model_dump())
        if not (fields.title.strip() and fields.street.strip() and fields.description.strip()):
            raise ValidationError(MISSING_FIELDS)
        validate_location(fields, catalog)
        return fields.model_copy(update={
            "title": fields.title.strip(),
            "street": fields.street.strip(),
            "description": fields.description.strip(),
            "landmark": fields.landmark.strip(),
        })

    def to_draft(
        self,
        evidence: EvidenceStore,
        catalog: LocationCatalog,
        gps: Optional[GpsFix] = None,
    ) -> ReportDraft:
        fields = self.checked_fields(catalog)
        validate_evidence(evidence.snapshot(), require_both=True, message=MISSING_EVIDENCE)
        return build_draft(ReportSource.FORM, fields, evidence, gps=gps or evidence.best_gps())

    def to_update(self, evidence: EvidenceStore, catalog: LocationCatalog, issue: Issue) -> IssueUpdate:
        """Evidence left empty here keeps the issue's existing photos and video"""
        fields = self.checked_fields(catalog)
        snapshot = evidence.snapshot()
        merged = snapshot.model_copy(update={
            "photo_count": snapshot.photo_count or len(issue.images),
            "has_video": snapshot.has_video or issue.video is not None,
        })
        validate_evidence(merged, require_both=False, message=MISSING_EVIDENCE)
        return IssueUpdate(
            title=fields.title,
            description=fields.description,
            category=fields.category,
            urgency=fields.urgency,
            district=fields.district,
            panchayat=fields.panchayat,
            village=fields.village,
            street=fields.street,
            images=evidence.photo_uris(),
            video=evidence.video.data_uri if evidence.video else None,
            image_analyses=evidence.image_analyses(),
        )
