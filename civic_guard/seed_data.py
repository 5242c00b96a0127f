"""
Seed data for CivicGuard
Demo users, issues and forum threads for the in-memory store
"""
from datetime import datetime, timedelta
from typing import Optional

from .domain.models import (
    Badge,
    Comment,
    ForumPost,
    ImageAnalysis,
    AuthenticityStatus,
    Issue,
    IssueCategory,
    IssueLocation,
    IssueStatus,
    Priority,
    ResolutionProof,
    Urgency,
    User,
    UserRole,
)
from .domain.state import AppState, utcnow

SAMPLE_IMAGE = "https://picsum.photos/seed/civicguard-{0}/800/600"


def _users():
    return [
        User(
            id=1,
            name="Anitha Kumar",
            avatar="https://i.pravatar.cc/150?u=anitha",
            points=120,
            badges=[
                Badge(name="First Report", icon="star", description="Submitted your first civic report"),
                Badge(name="Community Voice", icon="shield-check", description="Five reports verified by officials"),
            ],
            district="Coimbatore",
            panchayat="Kinathukadavu",
            village="Arasampalayam",
            street="Temple Street",
            role=UserRole.CITIZEN,
            email="anitha@example.com",
        ),
        User(
            id=2,
            name="Ravi Shankar",
            avatar="https://i.pravatar.cc/150?u=ravi",
            points=85,
            badges=[Badge(name="First Report", icon="star", description="Submitted your first civic report")],
            district="Coimbatore",
            panchayat="Sulur",
            village="Kangayampalayam",
            street="Market Road",
        ),
        User(
            id=3,
            name="Meena Devi",
            avatar="https://i.pravatar.cc/150?u=meena",
            points=210,
            badges=[Badge(name="Top Reporter", icon="trophy", description="Most upvoted reports this month")],
            district="Coimbatore",
            panchayat="Periyanaickenpalayam",
            village="Veerapandi",
            street="School Lane",
        ),
        User(
            id=4,
            name="K. Murugan",
            avatar="https://i.pravatar.cc/150?u=murugan",
            district="Coimbatore",
            panchayat="Kinathukadavu",
            village="Arasampalayam",
            role=UserRole.LEADER,
            email="leader@civic.com",
        ),
    ]


def _issue(
    issue_id: int,
    now: datetime,
    days_ago: float,
    title: str,
    description: str,
    category: IssueCategory,
    reporter_id: int,
    panchayat: str,
    village: str,
    street: str,
    lat: float,
    lng: float,
    status: IssueStatus = IssueStatus.PENDING,
    upvotes: int = 0,
    urgency: Urgency = Urgency.MEDIUM,
    priority: Priority = Priority.MEDIUM,
    resolved_after_days: Optional[float] = None,
) -> Issue:
    created_at = now - timedelta(days=days_ago)
    proof = None
    if resolved_after_days is not None:
        proof = ResolutionProof(
            image=SAMPLE_IMAGE.format(f"{issue_id}-fixed"),
            description="Work completed and inspected by the panchayat engineer.",
            completed_at=created_at + timedelta(days=resolved_after_days),
        )
    return Issue(
        id=issue_id,
        title=title,
        description=description,
        category=category,
        status=status,
        upvotes=upvotes,
        reporter_id=reporter_id,
        location=IssueLocation(
            district="Coimbatore",
            panchayat=panchayat,
            village=village,
            street=street,
            lat=lat,
            lng=lng,
        ),
        images=[SAMPLE_IMAGE.format(issue_id)],
        created_at=created_at,
        urgency=urgency,
        priority=priority,
        image_analyses=[
            ImageAnalysis(
                status=AuthenticityStatus.AUTHENTIC,
                confidence=0.92,
                reasoning="Natural lighting and sensor noise are consistent with a phone camera.",
            )
        ],
        resolution_proof=proof,
        closed_at=created_at + timedelta(days=resolved_after_days + 1)
        if status == IssueStatus.CLOSED and resolved_after_days is not None
        else None,
    )


def _issues(now: datetime):
    return [
        _issue(
            105, now, 0.5,
            "Overflowing garbage bin near bus stop",
            "The community bin has not been cleared for a week and waste is spilling onto the road.",
            IssueCategory.WASTE, 2, "Sulur", "Kangayampalayam", "Market Road", 11.0263, 77.1249,
            upvotes=4, urgency=Urgency.HIGH,
        ),
        _issue(
            104, now, 2,
            "Street light not working",
            "Three street lights on School Lane have been off for ten days, the lane is dark at night.",
            IssueCategory.ELECTRICITY, 3, "Periyanaickenpalayam", "Veerapandi", "School Lane", 11.1525, 76.9461,
            status=IssueStatus.IN_PROGRESS, upvotes=9, priority=Priority.HIGH,
        ),
        _issue(
            103, now, 4,
            "Drinking water pipe leakage",
            "The main supply line is leaking near the temple, wasting water and flooding the street.",
            IssueCategory.WATER, 1, "Kinathukadavu", "Arasampalayam", "Temple Street", 10.8224, 77.0180,
            status=IssueStatus.RECEIVED, upvotes=12, urgency=Urgency.HIGH, priority=Priority.CRITICAL,
        ),
        _issue(
            102, now, 9,
            "Large pothole on Main Road",
            "A deep pothole in the middle of Main Road is causing two-wheeler accidents.",
            IssueCategory.ROADS, 1, "Kinathukadavu", "Kondampatti", "Main Road", 10.8312, 77.0075,
            status=IssueStatus.RESOLVED, upvotes=15, priority=Priority.HIGH, resolved_after_days=3,
        ),
        _issue(
            101, now, 20,
            "Broken bench in the panchayat park",
            "The concrete bench in the children's park is broken and has sharp edges.",
            IssueCategory.PUBLIC_INFRASTRUCTURE, 3, "Periyanaickenpalayam", "Jadayampalayam", "Park Road",
            11.1710, 76.9390,
            status=IssueStatus.CLOSED, upvotes=3, urgency=Urgency.LOW, priority=Priority.LOW,
            resolved_after_days=6,
        ),
    ]


def _forum(now: datetime):
    posts = [
        ForumPost(
            id=202,
            author_id=3,
            title="Monsoon preparedness for our drains",
            content="Should we organise a volunteer day to clear the storm drains before the rains?",
            created_at=now - timedelta(days=1),
        ),
        ForumPost(
            id=201,
            author_id=1,
            title="Thank you for fixing the Main Road pothole",
            content="The repair was quick once the report got enough votes. Great work everyone!",
            created_at=now - timedelta(days=5),
        ),
    ]
    comments = [
        Comment(
            id=301,
            post_id=201,
            author_id=2,
            content="Agreed, the road is much safer now.",
            created_at=now - timedelta(days=4),
            upvotes=2,
        ),
        Comment(
            id=302,
            post_id=202,
            author_id=1,
            content="Count me in. Saturday morning works for me.",
            created_at=now - timedelta(hours=20),
            upvotes=1,
        ),
    ]
    return posts, comments


def build_demo_state(now: Optional[datetime] = None) -> AppState:
    """Initial state with the first citizen logged in"""
    now = now or utcnow()
    users = _users()
    posts, comments = _forum(now)
    return AppState(
        current_user=users[0],
        users=users,
        issues=_issues(now),
        posts=posts,
        comments=comments,
    )


def empty_state() -> AppState:
    """Only the default citizen and the leader, nothing reported yet"""
    users = [u for u in _users() if u.id in (1, 4)]
    return AppState(current_user=users[0], users=users)


if __name__ == "__main__":
    state = build_demo_state()
    print("🌱 CivicGuard demo data")
    print(f"   Users: {len(state.users)}")
    print(f"   Issues: {len(state.issues)}")
    print(f"   Forum posts: {len(state.posts)} ({len(state.comments)} comments)")
