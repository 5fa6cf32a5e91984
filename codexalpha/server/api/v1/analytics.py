"""
Analytics API Endpoints.

Clients report product events (codex viewed, PDF downloaded, ...); admins read
the aggregated dashboard and the AI usage and cost summary.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query, status

from codexalpha.core.models.io.analytics import (
    AnalyticsEventCreate,
    AnalyticsEventRead,
    AnalyticsOverview,
    UsageSummary,
)
from codexalpha.server.core.security import AdminUserDep, CurrentUserDep
from codexalpha.server.services.deps import AnalyticsDep

router = APIRouter(tags=["analytics"])


@router.post(
    "/events",
    response_model=AnalyticsEventRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record Event",
    description="Record a product analytics event for the caller.",
    response_description="The stored event.",
)
async def record_event(
    event: AnalyticsEventCreate, user: CurrentUserDep, analytics: AnalyticsDep
) -> AnalyticsEventRead:
    """
    Record an analytics event.

    - **event_type**: Event name.
    - **persona_run_id**, **codex_id**: Optional subject of the event.
    - **metadata**: Free-form JSON object.
    """
    return AnalyticsEventRead.model_validate(await analytics.record_client_event(user.id, event))


@router.get(
    "/events",
    response_model=List[AnalyticsEventRead],
    summary="Recent Events",
    description="Most recent analytics events (admin only).",
    response_description="Events, newest first.",
)
async def recent_events(
    admin: AdminUserDep, analytics: AnalyticsDep, limit: int = Query(default=100, ge=1, le=1000)
) -> List[AnalyticsEventRead]:
    """
    List recent events.
    """
    return [AnalyticsEventRead.model_validate(e) for e in await analytics.recent_events(limit)]


@router.get(
    "/overview",
    response_model=AnalyticsOverview,
    summary="Analytics Overview",
    description="Generation timing, per-codex status counts, regeneration, sharing and user growth (admin only).",
    response_description="The dashboard aggregates.",
)
async def analytics_overview(admin: AdminUserDep, analytics: AnalyticsDep) -> AnalyticsOverview:
    """
    Get the analytics dashboard.

    Event counts cover the latest 100 events; user growth covers the last 30 days.
    """
    return await analytics.overview()


@router.get(
    "/usage",
    response_model=UsageSummary,
    summary="AI Usage Summary",
    description="AI calls, tokens and estimated cost grouped by model, function and provider (admin only).",
    response_description="Usage totals and breakdowns.",
)
async def usage_summary(
    admin: AdminUserDep,
    analytics: AnalyticsDep,
    since: Optional[datetime] = Query(default=None, description="Include calls at or after this time"),
    until: Optional[datetime] = Query(default=None, description="Include calls before this time"),
) -> UsageSummary:
    """
    Get the AI usage summary.

    Costs are estimates computed from the configured per-model token prices.
    """
    return await analytics.usage_summary(since, until)
