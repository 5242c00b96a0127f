"""Map API - Area aggregation, choropleth, analytics and the panchayat console"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...domain.models import Issue, IssueCategory, IssueStatus, Priority, User
from ...domain.views import (
    ALL,
    ConsoleFilters,
    IssueAnalytics,
    SortOrder,
    analytics,
    choropleth_features,
    filter_by_location,
    issue_markers,
    panchayat_console,
    panchayat_open_counts,
    team_recommendation,
)
from ..deps import AppContainer, get_container, require_leader

router = APIRouter()


class ConsoleIssue(BaseModel):
    issue: Issue
    recommended_team: str


class ConsoleView(BaseModel):
    panchayat: str
    villages: List[str]
    analytics: IssueAnalytics
    issues: List[ConsoleIssue]


@router.get("/locations")
async def list_locations(container: AppContainer = Depends(get_container)) -> List[Dict[str, Any]]:
    """District -> panchayat -> village hierarchy"""
    return [d.model_dump() for d in container.catalog.districts]


@router.get("/panchayat-counts")
async def get_panchayat_counts(container: AppContainer = Depends(get_container)) -> Dict[str, int]:
    """Open (not Resolved/Closed) issues per panchayat"""
    return panchayat_open_counts(container.store.state.issues)


@router.get("/choropleth")
async def get_choropleth(
    container: AppContainer = Depends(get_container),
    district: Optional[str] = None,
) -> Dict[str, Any]:
    """Village polygons as GeoJSON, coloured by their panchayat's open-issue count"""
    issues = filter_by_location(container.store.state.issues, district=district)
    return choropleth_features(container.boundaries, issues, container.catalog.village_to_panchayat())


@router.get("/markers")
async def get_markers(
    container: AppContainer = Depends(get_container),
    district: Optional[str] = None,
) -> List[Dict[str, Any]]:
    issues = filter_by_location(container.store.state.issues, district=district)
    return issue_markers(issues)


@router.get("/analytics", response_model=IssueAnalytics)
async def get_analytics(
    container: AppContainer = Depends(get_container),
    district: Optional[str] = None,
    panchayat: Optional[str] = None,
):
    issues = filter_by_location(container.store.state.issues, district=district, panchayat=panchayat)
    return analytics(issues)


@router.get("/console", response_model=ConsoleView)
async def get_console(
    container: AppContainer = Depends(get_container),
    leader: User = Depends(require_leader),
    status: Optional[IssueStatus] = None,
    category: Optional[IssueCategory] = None,
    priority: Optional[Priority] = None,
    village: str = ALL,
    search: str = "",
    sort: SortOrder = SortOrder.NEWEST,
):
    """Leader's view of their own panchayat"""
    all_issues = container.store.state.issues
    filters = ConsoleFilters(
        status=status,
        category=category,
        priority=priority,
        village=village,
        search=search,
        sort=sort,
    )
    issues = panchayat_console(all_issues, leader.panchayat, filters)
    return ConsoleView(
        panchayat=leader.panchayat,
        villages=container.catalog.village_names(leader.district, leader.panchayat),
        analytics=analytics(i for i in all_issues if i.location.panchayat == leader.panchayat),
        issues=[ConsoleIssue(issue=i, recommended_team=team_recommendation(i.category)) for i in issues],
    )
