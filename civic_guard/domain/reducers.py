"""
State reducers - every mutation of the issue/post aggregate goes through one
of these pure functions: (state, action args) -> new state.

Errors are raised, never returned, and the input state is left untouched.
"""
from typing import Iterable, Optional
from datetime import datetime

from .errors import AuthorizationError, InvalidTransitionError, ValidationError
from .models import (
    Issue,
    IssueStatus,
    IssueLocation,
    Urgency,
    Priority,
    ResolutionProof,
    Notification,
    ForumPost,
    Comment,
    User,
    UserRole,
    ReportDraft,
    TERMINAL_STATUSES,
)
from .models.issue import IssueUpdate, IssueDetailsUpdate, ResolutionProofCreate
from .models.user import UserLogin, UserUpdate
from .models.forum import ForumPostCreate, CommentCreate
from .state import AppState, utcnow

# Forward order of the status machine; Closed is reachable from anywhere
STATUS_ORDER = [
    IssueStatus.PENDING,
    IssueStatus.RECEIVED,
    IssueStatus.IN_PROGRESS,
    IssueStatus.RESOLVED,
    IssueStatus.CLOSED,
]

DEFAULT_TITLE = "Manual Report"


def next_id(existing: Iterable[int], now: datetime) -> int:
    """Time-derived id (epoch millis), bumped past any id already handed out"""
    candidate = int(now.timestamp() * 1000)
    highest = max(existing, default=0)
    return candidate if candidate > highest else highest + 1


def _notify(state: AppState, message: str, now: datetime, issue_id: Optional[int] = None) -> list:
    notification = Notification(
        id=len(state.notifications) + 1,
        message=message,
        issue_id=issue_id,
        created_at=now,
    )
    return [*state.notifications, notification]


def _replace_issue(state: AppState, updated: Issue) -> list:
    return [updated if issue.id == updated.id else issue for issue in state.issues]


def _require_leader(state: AppState) -> None:
    if state.current_user.role != UserRole.LEADER:
        raise AuthorizationError("Only panchayat leaders can change issue status or triage details")


def _require_owner_of_open_issue(state: AppState, issue: Issue) -> None:
    if issue.reporter_id != state.current_user.id:
        raise AuthorizationError("You can only change your own reports")
    if issue.status in TERMINAL_STATUSES:
        raise InvalidTransitionError(f"Issue #{issue.id} is {issue.status.value} and can no longer be changed")


def escalate_urgency(urgency: Urgency, urgency_score: Optional[float]) -> Urgency:
    """Emotion-driven escalation: score >= 8 forces High, score >= 5 lifts Low to Medium"""
    if urgency_score is None:
        return urgency
    if urgency_score >= 8:
        return Urgency.HIGH
    if urgency_score >= 5 and urgency != Urgency.HIGH:
        return Urgency.MEDIUM
    return urgency


def _draft_urgency(draft: ReportDraft) -> Urgency:
    if draft.summary:
        try:
            return Urgency(draft.summary.urgency_level)
        except ValueError:
            pass
    return draft.urgency


# --- Issues ---

def vote_issue(state: AppState, issue_id: int) -> AppState:
    """Idempotent per session: a repeated vote returns the state unchanged"""
    issue = state.get_issue(issue_id)
    if issue_id in state.voted_issue_ids:
        return state

    updated = issue.model_copy(update={"upvotes": issue.upvotes + 1})
    return state.model_copy(update={
        "issues": _replace_issue(state, updated),
        "voted_issue_ids": state.voted_issue_ids | {issue_id},
    })


def add_issue(state: AppState, draft: ReportDraft, now: Optional[datetime] = None) -> AppState:
    """Promote a draft (manual form or guided agent) into a new Pending issue"""
    now = now or utcnow()
    summary = draft.summary

    score = draft.emotion_analysis.urgency_score if draft.emotion_analysis else None
    urgency = escalate_urgency(_draft_urgency(draft), score)

    title = draft.title.strip() or (summary.final_summary_recommendation if summary else "") or DEFAULT_TITLE
    description = summary.issue_description if summary else draft.description

    issue = Issue(
        id=next_id((i.id for i in state.issues), now),
        title=title,
        description=description,
        category=draft.category,
        status=IssueStatus.PENDING,
        upvotes=0,
        reporter_id=state.current_user.id,
        location=IssueLocation(
            district=draft.location.district,
            panchayat=draft.location.panchayat,
            village=draft.location.village,
            street=draft.location.street,
            lat=draft.gps.lat if draft.gps else None,
            lng=draft.gps.lng if draft.gps else None,
        ),
        images=list(draft.photos),
        video=draft.video,
        audio=draft.audio,
        created_at=now,
        incident_time=summary.date_time if summary else None,
        affected_people=summary.affected_people_community if summary else None,
        urgency=urgency,
        priority=Priority.MEDIUM,
        emotion_analysis=draft.emotion_analysis,
        image_analyses=list(draft.image_analyses),
    )

    return state.model_copy(update={
        "issues": [issue, *state.issues],
        "notifications": _notify(
            state, "Success! Your report is now visible on both the feed and the map.", now, issue.id
        ),
    })


def update_issue(state: AppState, issue_id: int, changes: IssueUpdate, now: Optional[datetime] = None) -> AppState:
    """Owner edit; evidence fields left unset keep their previous values"""
    now = now or utcnow()
    issue = state.get_issue(issue_id)
    _require_owner_of_open_issue(state, issue)

    update_data = changes.model_dump(exclude_unset=True)
    location_data = {
        key: update_data.pop(key)
        for key in ("district", "panchayat", "village", "street")
        if key in update_data
    }

    # Empty evidence lists mean "keep what was there"
    for key in ("images", "image_analyses"):
        if key in update_data and not update_data[key]:
            update_data.pop(key)
    if update_data.get("video") is None:
        update_data.pop("video", None)
    if "title" in update_data and not (update_data["title"] or "").strip():
        update_data.pop("title")
    if "image_analyses" in update_data:
        update_data["image_analyses"] = list(changes.image_analyses)

    if location_data:
        update_data["location"] = issue.location.model_copy(update=location_data)

    updated = issue.model_copy(update=update_data)
    return state.model_copy(update={
        "issues": _replace_issue(state, updated),
        "notifications": _notify(state, "Report updated successfully!", now, issue_id),
    })


def delete_issue(state: AppState, issue_id: int, now: Optional[datetime] = None) -> AppState:
    now = now or utcnow()
    issue = state.get_issue(issue_id)
    _require_owner_of_open_issue(state, issue)

    return state.model_copy(update={
        "issues": [i for i in state.issues if i.id != issue_id],
        "notifications": _notify(state, "Report deleted successfully!", now, issue_id),
    })


def update_status(
    state: AppState,
    issue_id: int,
    status: IssueStatus,
    resolution_proof: Optional[ResolutionProofCreate] = None,
    now: Optional[datetime] = None,
) -> AppState:
    """
    Leader-only status transition.

    Moves are forward-only along STATUS_ORDER, except that any non-Closed
    issue may jump straight to Closed. Resolved requires a proof and stamps
    its completion time; Closed stamps closed_at.
    """
    now = now or utcnow()
    _require_leader(state)
    issue = state.get_issue(issue_id)

    if issue.status == IssueStatus.CLOSED:
        raise InvalidTransitionError(f"Issue #{issue_id} is already Closed")
    if status != IssueStatus.CLOSED and STATUS_ORDER.index(status) <= STATUS_ORDER.index(issue.status):
        raise InvalidTransitionError(
            f"Issue #{issue_id} cannot move from {issue.status.value} to {status.value}"
        )

    update_data = {"status": status}
    if status == IssueStatus.RESOLVED:
        if resolution_proof is None or not resolution_proof.description.strip() or not resolution_proof.image:
            raise ValidationError("Resolving an issue requires a proof image and description", field="resolution_proof")
        update_data["resolution_proof"] = ResolutionProof(
            image=resolution_proof.image,
            description=resolution_proof.description,
            completed_at=max(now, issue.created_at),
        )
    if status == IssueStatus.CLOSED:
        update_data["closed_at"] = now

    updated = issue.model_copy(update=update_data)
    return state.model_copy(update={
        "issues": _replace_issue(state, updated),
        "notifications": _notify(state, f"Issue #{issue_id} status updated to {status.value}.", now, issue_id),
    })


def update_details(
    state: AppState,
    issue_id: int,
    details: IssueDetailsUpdate,
    now: Optional[datetime] = None,
) -> AppState:
    """Leader triage: priority and assignee, allowed at any status"""
    now = now or utcnow()
    _require_leader(state)
    issue = state.get_issue(issue_id)

    updated = issue.model_copy(update=details.model_dump(exclude_unset=True))
    return state.model_copy(update={
        "issues": _replace_issue(state, updated),
        "notifications": _notify(state, f"Details for issue #{issue_id} have been updated.", now, issue_id),
    })


# --- Users ---

def login(state: AppState, details: UserLogin, leader_email: str) -> AppState:
    """Mock login: the configured leader email selects the leader, anyone else is the default citizen"""
    leader = next((u for u in state.users if u.role == UserRole.LEADER), None)
    if leader and details.email.strip().lower() == leader_email.lower():
        return state.model_copy(update={"current_user": leader})

    citizen = next((u for u in state.users if u.role == UserRole.CITIZEN), state.current_user)
    user = citizen.model_copy(update={**details.model_dump(), "role": UserRole.CITIZEN})
    return state.model_copy(update={"current_user": user, "users": _replace_user(state, user)})


def update_user(state: AppState, changes: UserUpdate, now: Optional[datetime] = None) -> AppState:
    now = now or utcnow()
    user = state.current_user.model_copy(update=changes.model_dump(exclude_unset=True))
    return state.model_copy(update={
        "current_user": user,
        "users": _replace_user(state, user),
        "notifications": _notify(state, "Your profile has been updated successfully!", now),
    })


def _replace_user(state: AppState, updated: User) -> list:
    return [updated if u.id == updated.id else u for u in state.users]


# --- Forum ---

def create_post(state: AppState, post: ForumPostCreate, now: Optional[datetime] = None) -> AppState:
    now = now or utcnow()
    if not post.title.strip() or not post.content.strip():
        raise ValidationError("Post title and content are required")

    new_post = ForumPost(
        id=next_id((p.id for p in state.posts), now),
        author_id=state.current_user.id,
        title=post.title,
        content=post.content,
        created_at=now,
    )
    return state.model_copy(update={
        "posts": [new_post, *state.posts],
        "notifications": _notify(state, "Post created successfully!", now),
    })


def add_comment(state: AppState, post_id: int, comment: CommentCreate, now: Optional[datetime] = None) -> AppState:
    now = now or utcnow()
    state.get_post(post_id)
    if not comment.content.strip():
        raise ValidationError("Comment cannot be empty", field="content")

    new_comment = Comment(
        id=next_id((c.id for c in state.comments), now),
        post_id=post_id,
        author_id=state.current_user.id,
        content=comment.content,
        created_at=now,
        upvotes=0,
    )
    return state.model_copy(update={"comments": [*state.comments, new_comment]})


def vote_comment(state: AppState, comment_id: int) -> AppState:
    comment = state.get_comment(comment_id)
    if comment_id in state.voted_comment_ids:
        return state

    updated = comment.model_copy(update={"upvotes": comment.upvotes + 1})
    return state.model_copy(update={
        "comments": [updated if c.id == comment_id else c for c in state.comments],
        "voted_comment_ids": state.voted_comment_ids | {comment_id},
    })
