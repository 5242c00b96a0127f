"""
Test the issue/post reducers and the IssueStore wrapper
Pure state transitions, no HTTP or devices involved
"""
from datetime import timedelta

import pytest

from civic_guard.domain import reducers
from civic_guard.domain.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from civic_guard.domain.models import (
    DraftLocation,
    EmotionAnalysis,
    GeneratedSummary,
    GpsFix,
    IssueCategory,
    IssueStatus,
    Priority,
    ReportDraft,
    ReportSource,
    Urgency,
    UserRole,
)
from civic_guard.domain.models.forum import CommentCreate, ForumPostCreate
from civic_guard.domain.models.issue import IssueDetailsUpdate, IssueUpdate, ResolutionProofCreate
from civic_guard.domain.models.user import UserLogin, UserUpdate
from civic_guard.domain.state import utcnow
from civic_guard.conftest import SUMMARY_REPLY


def _draft(**overrides) -> ReportDraft:
    data = dict(
        source=ReportSource.FORM,
        title="Pothole on Main St",
        category=IssueCategory.ROADS,
        description="Deep pothole near the bus stop",
        urgency=Urgency.MEDIUM,
        location=DraftLocation(
            district="Coimbatore",
            panchayat="Kinathukadavu",
            village="Arasampalayam",
            street="Main St",
        ),
        photos=["data:image/jpeg;base64,AAAA"],
        video="data:video/webm;base64,AAAA",
    )
    data.update(overrides)
    return ReportDraft(**data)


def _as_leader(store):
    store.login(UserLogin(name="K. Murugan", email="leader@civic.com"))
    assert store.current_user.role == UserRole.LEADER


# --- Issue creation ---

def test_add_issue_creates_pending_issue_first(store):
    before = len(store.state.issues)
    issue = store.add_issue(_draft())

    assert len(store.state.issues) == before + 1
    assert store.state.issues[0].id == issue.id
    assert issue.status == IssueStatus.PENDING
    assert issue.upvotes == 0
    assert issue.priority == Priority.MEDIUM
    assert issue.reporter_id == store.current_user.id
    assert issue.images == ["data:image/jpeg;base64,AAAA"]
    assert issue.video is not None
    assert store.state.latest_notification.message == (
        "Success! Your report is now visible on both the feed and the map."
    )


def test_add_issue_has_no_placeholder_image(store):
    issue = store.add_issue(_draft(photos=[]))
    assert issue.images == []


def test_add_issue_uses_gps_and_draft_location(store):
    issue = store.add_issue(_draft(gps=GpsFix(lat=10.8, lng=77.0, accuracy=5)))
    assert issue.location.lat == 10.8
    assert issue.location.lng == 77.0
    assert issue.location.village == "Arasampalayam"


def test_add_issue_takes_description_and_context_from_summary(store):
    summary = GeneratedSummary.model_validate(SUMMARY_REPLY)
    issue = store.add_issue(_draft(summary=summary))

    assert issue.title == "Pothole on Main St"
    assert issue.description == SUMMARY_REPLY["issueDescription"]
    assert issue.affected_people == "Daily commuters"
    assert issue.incident_time == "Not specified"


def test_add_issue_without_title_falls_back(store):
    summary = GeneratedSummary.model_validate(SUMMARY_REPLY)
    assert store.add_issue(_draft(title="", summary=summary)).title == SUMMARY_REPLY["finalSummaryRecommendation"]
    assert store.add_issue(_draft(title="  ")).title == "Manual Report"


def test_urgency_kept_without_emotion_analysis(store):
    issue = store.add_issue(_draft(urgency=Urgency.LOW))
    assert issue.urgency == Urgency.LOW


def test_high_emotion_score_escalates_urgency(store):
    issue = store.add_issue(
        _draft(urgency=Urgency.LOW, emotion_analysis=EmotionAnalysis(sentiment="Distressed", urgency_score=9))
    )
    assert issue.urgency == Urgency.HIGH


@pytest.mark.parametrize(
    "urgency,score,expected",
    [
        (Urgency.LOW, None, Urgency.LOW),
        (Urgency.LOW, 5, Urgency.MEDIUM),
        (Urgency.HIGH, 5, Urgency.HIGH),
        (Urgency.MEDIUM, 3, Urgency.MEDIUM),
        (Urgency.LOW, 8, Urgency.HIGH),
    ],
)
def test_escalate_urgency(urgency, score, expected):
    assert reducers.escalate_urgency(urgency, score) == expected


def test_ids_are_unique_even_within_the_same_millisecond(empty_store):
    now = utcnow()
    state = reducers.add_issue(empty_store.state, _draft(), now)
    state = reducers.add_issue(state, _draft(), now)
    first, second = state.issues[1], state.issues[0]
    assert second.id == first.id + 1


def test_reducers_do_not_mutate_input_state(store):
    original = store.state
    count = len(original.issues)
    reducers.add_issue(original, _draft())
    assert len(original.issues) == count


# --- Votes ---

def test_vote_is_idempotent_per_session(store):
    issue = store.state.issues[0]
    start = issue.upvotes

    store.vote(issue.id)
    store.vote(issue.id)

    assert store.state.get_issue(issue.id).upvotes == start + 1


def test_vote_unknown_issue_raises(store):
    with pytest.raises(NotFoundError):
        store.vote(999)


# --- Owner edits ---

def test_owner_can_edit_open_issue(store):
    issue = store.add_issue(_draft())
    updated = store.update_issue(issue.id, IssueUpdate(title="Pothole fixed?", street="Main Street"))

    assert updated.title == "Pothole fixed?"
    assert updated.location.street == "Main Street"
    assert updated.location.village == "Arasampalayam"
    assert store.state.latest_notification.message == "Report updated successfully!"


def test_edit_with_empty_evidence_keeps_existing(store):
    issue = store.add_issue(_draft())
    updated = store.update_issue(issue.id, IssueUpdate(images=[], video=None, description="More detail"))

    assert updated.images == issue.images
    assert updated.video == issue.video
    assert updated.description == "More detail"


def test_cannot_edit_someone_elses_issue(store):
    foreign = next(i for i in store.state.issues if i.reporter_id != store.current_user.id)
    with pytest.raises(AuthorizationError):
        store.update_issue(foreign.id, IssueUpdate(title="Mine now"))


def test_cannot_edit_or_delete_resolved_issue(store):
    resolved = next(
        i for i in store.state.issues
        if i.status == IssueStatus.RESOLVED and i.reporter_id == store.current_user.id
    )
    with pytest.raises(InvalidTransitionError):
        store.update_issue(resolved.id, IssueUpdate(title="Reopen"))
    with pytest.raises(InvalidTransitionError):
        store.delete_issue(resolved.id)


def test_delete_own_issue(store):
    issue = store.add_issue(_draft())
    store.delete_issue(issue.id)

    assert all(i.id != issue.id for i in store.state.issues)
    assert store.state.latest_notification.message == "Report deleted successfully!"


# --- Status machine ---

def test_citizen_cannot_change_status(store):
    issue = store.add_issue(_draft())
    with pytest.raises(AuthorizationError):
        store.update_status(issue.id, IssueStatus.RECEIVED)


def test_status_moves_forward_and_notifies(store):
    issue = store.add_issue(_draft())
    _as_leader(store)

    store.update_status(issue.id, IssueStatus.RECEIVED)
    updated = store.update_status(issue.id, IssueStatus.IN_PROGRESS)

    assert updated.status == IssueStatus.IN_PROGRESS
    assert store.state.latest_notification.message == f"Issue #{issue.id} status updated to In Progress."


def test_status_cannot_move_backwards_or_stay(store):
    issue = store.add_issue(_draft())
    _as_leader(store)
    store.update_status(issue.id, IssueStatus.IN_PROGRESS)

    with pytest.raises(InvalidTransitionError):
        store.update_status(issue.id, IssueStatus.RECEIVED)
    with pytest.raises(InvalidTransitionError):
        store.update_status(issue.id, IssueStatus.IN_PROGRESS)


def test_resolved_requires_proof(store):
    issue = store.add_issue(_draft())
    _as_leader(store)

    with pytest.raises(ValidationError):
        store.update_status(issue.id, IssueStatus.RESOLVED)
    with pytest.raises(ValidationError):
        store.update_status(
            issue.id, IssueStatus.RESOLVED, ResolutionProofCreate(image="data:image/jpeg;base64,AA", description=" ")
        )
    assert store.state.get_issue(issue.id).status == IssueStatus.PENDING


def test_resolved_stamps_completion_not_before_creation(store):
    issue = store.add_issue(_draft())
    _as_leader(store)
    proof = ResolutionProofCreate(image="data:image/jpeg;base64,AA", description="Filled with asphalt")

    # a clock running behind the creation time still yields completed_at >= created_at
    state = reducers.update_status(
        store.state, issue.id, IssueStatus.RESOLVED, proof, now=issue.created_at - timedelta(hours=1)
    )
    resolved = state.get_issue(issue.id)

    assert resolved.status == IssueStatus.RESOLVED
    assert resolved.resolution_proof.description == "Filled with asphalt"
    assert resolved.resolution_proof.completed_at >= resolved.created_at


def test_any_open_status_can_jump_to_closed(store):
    issue = store.add_issue(_draft())
    _as_leader(store)

    closed = store.update_status(issue.id, IssueStatus.CLOSED)

    assert closed.status == IssueStatus.CLOSED
    assert closed.closed_at is not None
    with pytest.raises(InvalidTransitionError):
        store.update_status(issue.id, IssueStatus.CLOSED)


def test_leader_updates_priority_and_assignee_at_any_status(store):
    _as_leader(store)
    closed = next(i for i in store.state.issues if i.status == IssueStatus.CLOSED)

    updated = store.update_details(closed.id, IssueDetailsUpdate(priority=Priority.CRITICAL, assigned_to="Road Works Dept."))

    assert updated.priority == Priority.CRITICAL
    assert updated.assigned_to == "Road Works Dept."
    assert updated.status == IssueStatus.CLOSED
    assert store.state.latest_notification.message == f"Details for issue #{closed.id} have been updated."


# --- Users ---

def test_login_as_citizen_merges_details(store):
    user = store.login(
        UserLogin(
            name="Lakshmi",
            email="lakshmi@example.com",
            district="Coimbatore",
            panchayat="Sulur",
            village="Pattanam",
            street="North Street",
        )
    )
    assert user.role == UserRole.CITIZEN
    assert user.name == "Lakshmi"
    assert user.village == "Pattanam"


def test_login_with_leader_email_is_case_insensitive(store):
    user = store.login(UserLogin(name="Anyone", email="Leader@Civic.com"))
    assert user.role == UserRole.LEADER
    assert user.name == "K. Murugan"


def test_update_profile(store):
    user = store.update_user(UserUpdate(street="Temple Street East"))
    assert user.street == "Temple Street East"
    assert store.state.latest_notification.message == "Your profile has been updated successfully!"


# --- Forum ---

def test_create_post_and_comment(store):
    post = store.create_post(ForumPostCreate(title="Bus shelter", content="Can we get a shelter at the junction?"))
    comment = store.add_comment(post.id, CommentCreate(content="Yes please"))

    assert store.state.posts[0].id == post.id
    assert store.state.latest_notification.message == "Post created successfully!"
    assert comment.post_id == post.id
    assert store.state.comments_for(post.id) == [comment]


def test_empty_post_is_rejected(store):
    with pytest.raises(ValidationError):
        store.create_post(ForumPostCreate(title=" ", content="text"))


def test_comment_vote_is_idempotent(store):
    comment = store.state.comments[0]
    store.vote_comment(comment.id)
    store.vote_comment(comment.id)
    assert store.state.get_comment(comment.id).upvotes == comment.upvotes + 1


def test_store_listeners_see_every_change(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.add_issue(_draft())
    unsubscribe()
    store.add_issue(_draft())

    assert len(seen) == 1
