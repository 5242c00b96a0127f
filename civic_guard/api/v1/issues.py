"""Issues API - Feed, manual reports, votes and leader triage"""
import binascii
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from ...agent import EvidenceStore, ManualReportForm
from ...domain.errors import ValidationError
from ...domain.models import DraftLocation, GpsFix, Issue, VideoEvidence
from ...domain.models.issue import IssueDetailsUpdate, IssueStatusUpdate
from ...domain.state import utcnow
from ...domain.store import IssueStore
from ...domain.views import ALL, FeedFilters, SortOrder, citizen_feed, village_feed
from ...infrastructure.media import from_data_uri, stamp_photo
from ..deps import AppContainer, get_container, get_store

router = APIRouter()


class PhotoUpload(BaseModel):
    data_uri: str
    gps: Optional[GpsFix] = None
    timestamp: Optional[datetime] = None


class VideoUpload(BaseModel):
    data_uri: str
    mime_type: str = "video/webm"
    gps: Optional[GpsFix] = None
    duration_seconds: float = Field(default=0.0, ge=0)


class ManualReportRequest(BaseModel):
    form: ManualReportForm
    photos: List[PhotoUpload] = Field(default_factory=list)
    video: Optional[VideoUpload] = None


def check_data_uri(data_uri: str, field: str) -> None:
    try:
        from_data_uri(data_uri)
    except (binascii.Error, ValueError):
        raise ValidationError(f"{field} is not valid base64 data", field=field)


def video_from_upload(upload: VideoUpload, max_seconds: float) -> VideoEvidence:
    check_data_uri(upload.data_uri, "video")
    if upload.duration_seconds > max_seconds:
        raise ValidationError(f"Video must be {max_seconds:g} seconds or shorter", field="video")
    return VideoEvidence(
        data_uri=upload.data_uri,
        mime_type=upload.mime_type,
        gps=upload.gps,
        duration_seconds=upload.duration_seconds,
    )


async def collect_evidence(request: ManualReportRequest, container: AppContainer) -> EvidenceStore:
    """Load uploads into an evidence store and wait for every photo analysis"""
    if len(request.photos) > container.settings.max_photos:
        raise ValidationError(f"At most {container.settings.max_photos} photos are allowed", field="photos")

    form = request.form
    location = DraftLocation(district=form.district, panchayat=form.panchayat, village=form.village, street=form.street)
    stamped = []
    for photo in request.photos:
        check_data_uri(photo.data_uri, "photos")
        timestamp = photo.timestamp or utcnow()
        try:
            data_uri = await stamp_photo(
                photo.data_uri, location, photo.gps, timestamp, container.settings.display_timezone
            )
        except ValueError as e:
            raise ValidationError(f"Photo could not be read: {e}", field="photos")
        stamped.append((data_uri, photo.gps, timestamp))
    video = None
    if request.video is not None:
        video = video_from_upload(request.video, container.settings.video_max_seconds)

    evidence = container.evidence_store()
    for data_uri, gps, timestamp in stamped:
        evidence.add_photo(data_uri, gps, timestamp)
    if video is not None:
        evidence.set_video(video)

    budget = container.settings.openai_timeout_seconds * (container.settings.classifier_retries + 1)
    await evidence.wait_for_analyses(timeout=budget)
    return evidence


@router.get("/", response_model=List[Issue])
async def list_issues(
    store: IssueStore = Depends(get_store),
    district: Optional[str] = None,
    search: str = "",
    panchayat: str = ALL,
    village: str = ALL,
    street: str = "",
    sort: SortOrder = SortOrder.NEWEST,
):
    """Citizen feed; the district defaults to the signed-in user's"""
    filters = FeedFilters(
        district=district if district is not None else store.current_user.district or None,
        search=search,
        panchayat=panchayat,
        village=village,
        street=street,
        sort=sort,
    )
    return citizen_feed(store.state.issues, filters)


@router.get("/village", response_model=List[Issue])
async def list_village_issues(store: IssueStore = Depends(get_store)):
    """Issues in the signed-in user's own village"""
    return village_feed(store.state.issues, store.current_user)


@router.get("/{issue_id}", response_model=Issue)
async def get_issue(issue_id: int, store: IssueStore = Depends(get_store)):
    return store.state.get_issue(issue_id)


@router.post("/", response_model=Issue, status_code=201)
async def create_issue(
    request: ManualReportRequest,
    container: AppContainer = Depends(get_container),
):
    """
    Manual report
    Requires at least one photo and a video; the call returns once every
    photo has been checked for authenticity.
    """
    evidence = await collect_evidence(request, container)
    try:
        draft = request.form.to_draft(evidence, container.catalog)
    finally:
        await evidence.aclose()
    return container.store.add_issue(draft)


@router.put("/{issue_id}", response_model=Issue)
async def edit_issue(
    issue_id: int,
    request: ManualReportRequest,
    container: AppContainer = Depends(get_container),
):
    """Owner edit; photos/video left out keep the existing evidence"""
    issue = container.store.state.get_issue(issue_id)
    evidence = await collect_evidence(request, container)
    try:
        changes = request.form.to_update(evidence, container.catalog, issue)
    finally:
        await evidence.aclose()
    return container.store.update_issue(issue_id, changes)


@router.delete("/{issue_id}", status_code=204)
async def delete_issue(issue_id: int, store: IssueStore = Depends(get_store)):
    store.delete_issue(issue_id)
    return Response(status_code=204)


@router.post("/{issue_id}/vote", response_model=Issue)
async def vote_issue(issue_id: int, store: IssueStore = Depends(get_store)):
    """Idempotent per session: a second vote is ignored"""
    return store.vote(issue_id)


@router.patch("/{issue_id}/status", response_model=Issue)
async def update_issue_status(
    issue_id: int,
    update: IssueStatusUpdate,
    store: IssueStore = Depends(get_store),
):
    """Leader only. Resolved needs a resolution proof."""
    return store.update_status(issue_id, update.status, update.resolution_proof)


@router.patch("/{issue_id}/details", response_model=Issue)
async def update_issue_details(
    issue_id: int,
    details: IssueDetailsUpdate,
    store: IssueStore = Depends(get_store),
):
    """Leader only: priority and assignee"""
    return store.update_details(issue_id, details)
