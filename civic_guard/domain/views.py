"""
Read-side views over the issue aggregate.

Everything here is a pure function of its inputs, recomputed on every read.
Sorting uses Python's stable sort so ties keep their input order.
"""
from typing import Dict, Iterable, List, Mapping, Optional, Any
from collections import Counter
from enum import Enum
from sqlmodel import SQLModel, Field

from .models import (
    Issue,
    IssueCategory,
    IssueStatus,
    Priority,
    Urgency,
    User,
    UserRole,
    TERMINAL_STATUSES,
)

ALL = "all"

PRIORITY_WEIGHTS = {
    Priority.CRITICAL: 100,
    Priority.HIGH: 75,
    Priority.MEDIUM: 50,
    Priority.LOW: 25,
}

URGENCY_WEIGHTS = {
    Urgency.HIGH: 20,
    Urgency.MEDIUM: 10,
}

TEAM_RECOMMENDATIONS = {
    IssueCategory.ROADS: "Road Works Dept.",
    IssueCategory.WASTE: "Sanitation Team B",
    IssueCategory.WATER: "Water & Sewage Board",
    IssueCategory.ELECTRICITY: "Electrical Dept.",
    IssueCategory.PUBLIC_INFRASTRUCTURE: "General Maintenance",
}

# Choropleth palette, keyed by open-issue count bucket
UNKNOWN_AREA_COLOR = "#CCCCCC"
CHOROPLETH_COLORS = ["#006400", "#90EE90", "#FFFF00", "#FFA500", "#FF0000"]
CHOROPLETH_LEGEND = [
    {"count": count, "label": label, "color": CHOROPLETH_COLORS[count]}
    for count, label in enumerate(["Very Few", "Few", "Medium", "High", "Very High"])
]

MARKER_OPEN_COLOR = "red"
MARKER_CLOSED_COLOR = "green"


class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_VOTED = "most_voted"
    PRIORITY = "priority"


def is_open(issue: Issue) -> bool:
    return issue.status not in TERMINAL_STATUSES


def severity_score(issue: Issue) -> float:
    score = issue.upvotes * 0.2
    score += PRIORITY_WEIGHTS.get(issue.priority, 0)
    score += URGENCY_WEIGHTS.get(issue.urgency, 0)
    return score


# --- Filters ---

def _is_set(value: Optional[str]) -> bool:
    return bool(value) and value.lower() != ALL


def filter_by_location(
    issues: Iterable[Issue],
    district: Optional[str] = None,
    panchayat: Optional[str] = None,
    village: Optional[str] = None,
    street: Optional[str] = None,
) -> List[Issue]:
    """Exact match on the hierarchy levels given, substring match on street"""
    street_term = (street or "").strip().lower()
    result = []
    for issue in issues:
        loc = issue.location
        if _is_set(district) and loc.district != district:
            continue
        if _is_set(panchayat) and loc.panchayat != panchayat:
            continue
        if _is_set(village) and loc.village != village:
            continue
        if street_term and street_term not in loc.street.lower():
            continue
        result.append(issue)
    return result


def search(issues: Iterable[Issue], term: Optional[str]) -> List[Issue]:
    """Case-insensitive substring over title and description"""
    needle = (term or "").lower()
    return [
        issue for issue in issues
        if needle in issue.title.lower() or needle in issue.description.lower()
    ]


def sort_issues(issues: Iterable[Issue], order: SortOrder = SortOrder.NEWEST) -> List[Issue]:
    if order == SortOrder.OLDEST:
        return sorted(issues, key=lambda i: i.created_at)
    if order == SortOrder.MOST_VOTED:
        return sorted(issues, key=lambda i: i.upvotes, reverse=True)
    if order == SortOrder.PRIORITY:
        return sorted(issues, key=severity_score, reverse=True)
    return sorted(issues, key=lambda i: i.created_at, reverse=True)


# --- Citizen views ---

class FeedFilters(SQLModel):
    district: Optional[str] = None
    search: str = ""
    panchayat: str = ALL
    village: str = ALL
    street: str = ""
    sort: SortOrder = SortOrder.NEWEST


def citizen_feed(issues: Iterable[Issue], filters: FeedFilters) -> List[Issue]:
    """District first, then text search, then panchayat/village/street"""
    scoped = filter_by_location(issues, district=filters.district)
    scoped = search(scoped, filters.search)
    scoped = filter_by_location(
        scoped,
        panchayat=filters.panchayat,
        village=filters.village,
        street=filters.street,
    )
    order = filters.sort if filters.sort in (SortOrder.NEWEST, SortOrder.MOST_VOTED) else SortOrder.NEWEST
    return sort_issues(scoped, order)


def village_feed(issues: Iterable[Issue], user: User) -> List[Issue]:
    scoped = filter_by_location(
        issues,
        district=user.district or None,
        panchayat=user.panchayat or None,
        village=user.village or None,
    )
    return sort_issues(scoped, SortOrder.NEWEST)


def leaderboard(users: Iterable[User]) -> List[User]:
    citizens = [u for u in users if u.role == UserRole.CITIZEN]
    return sorted(citizens, key=lambda u: u.points, reverse=True)


# --- Panchayat console ---

class ConsoleFilters(SQLModel):
    status: Optional[IssueStatus] = None
    category: Optional[IssueCategory] = None
    priority: Optional[Priority] = None
    village: str = ALL
    search: str = ""
    sort: SortOrder = SortOrder.NEWEST


def panchayat_console(issues: Iterable[Issue], panchayat: str, filters: ConsoleFilters) -> List[Issue]:
    scoped = [
        issue for issue in issues
        if issue.location.panchayat == panchayat
        and (filters.status is None or issue.status == filters.status)
        and (filters.category is None or issue.category == filters.category)
        and (filters.priority is None or issue.priority == filters.priority)
    ]
    scoped = filter_by_location(scoped, village=filters.village)
    scoped = search(scoped, filters.search)
    return sort_issues(scoped, filters.sort)


def team_recommendation(category: IssueCategory) -> str:
    return TEAM_RECOMMENDATIONS.get(category, "Review Committee")


class IssueAnalytics(SQLModel):
    total: int = 0
    resolved: int = 0
    pending: int = 0
    by_category: Dict[str, int] = Field(default_factory=dict)
    average_resolution_days: Optional[float] = None


def analytics(issues: Iterable[Issue]) -> IssueAnalytics:
    issues = list(issues)
    resolved = [i for i in issues if not is_open(i)]

    durations = [
        (i.resolution_proof.completed_at - i.created_at).total_seconds() / 86400
        for i in issues
        if i.resolution_proof is not None
    ]
    average = round(sum(durations) / len(durations), 1) if durations else None

    return IssueAnalytics(
        total=len(issues),
        resolved=len(resolved),
        pending=len(issues) - len(resolved),
        by_category=dict(Counter(i.category.value for i in issues)),
        average_resolution_days=average,
    )


# --- Map aggregation ---

def panchayat_open_counts(issues: Iterable[Issue]) -> Dict[str, int]:
    """Non-terminal issues grouped by panchayat"""
    return dict(Counter(i.location.panchayat for i in issues if is_open(i)))


def village_open_counts(
    issues: Iterable[Issue],
    village_to_panchayat: Mapping[str, str],
) -> Dict[str, int]:
    """
    Each village takes its parent panchayat's open count. Villages missing
    from the lookup are left out (rendered grey).
    """
    counts = panchayat_open_counts(issues)
    result: Dict[str, int] = {}
    for village, panchayat in village_to_panchayat.items():
        result[village] = counts.get(panchayat, 0)
    return result


def choropleth_color(count: Optional[int]) -> str:
    if count is None:
        return UNKNOWN_AREA_COLOR
    return CHOROPLETH_COLORS[min(max(count, 0), 4)]


def choropleth_features(
    boundaries: Mapping[str, Any],
    issues: Iterable[Issue],
    village_to_panchayat: Mapping[str, str],
) -> Dict[str, Any]:
    """Decorate each village polygon with its panchayat, open count and fill colour"""
    counts = panchayat_open_counts(issues)
    features = []
    for village, geometry in boundaries.items():
        panchayat = village_to_panchayat.get(village)
        count = counts.get(panchayat, 0) if panchayat else None
        features.append({
            "type": "Feature",
            "properties": {
                "name": village,
                "panchayat": panchayat,
                "open_issues": count,
                "fill_color": choropleth_color(count),
            },
            "geometry": geometry,
        })
    return {"type": "FeatureCollection", "features": features, "legend": CHOROPLETH_LEGEND}


def issue_markers(issues: Iterable[Issue]) -> List[Dict[str, Any]]:
    return [
        {
            "issue_id": issue.id,
            "title": issue.title,
            "lat": issue.location.lat,
            "lng": issue.location.lng,
            "status": issue.status.value,
            "color": MARKER_OPEN_COLOR if is_open(issue) else MARKER_CLOSED_COLOR,
        }
        for issue in issues
        if issue.location.lat is not None and issue.location.lng is not None
    ]
