"""
Analytics Routes

Resolution statistics over a date range.
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query

from ...deps import get_current_user_dep, get_correlation_id_dep, get_tenant_id_dep
from ....domain.models import ActorContext, TicketAnalytics
from ....domain.enums import AnalyticsPeriod, ViewMode
from ....services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/analytics/stats", response_model=TicketAnalytics)
async def get_ticket_analytics(
    start_date: Optional[date] = Query(None, description="First day (inclusive, UTC)"),
    end_date: Optional[date] = Query(None, description="Last day (inclusive, UTC)"),
    view_mode: Optional[ViewMode] = Query(None, description="Bucket granularity"),
    period: Optional[AnalyticsPeriod] = Query(None, description="Window used when no dates are given"),
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
):
    """
    Resolved-ticket analytics

    Counts per time bucket, per assignee and per department, with average
    resolution time in hours. Agents only see their own departments.
    """
    service = AnalyticsService()
    return service.get_analytics(
        tenant_id,
        actor,
        start_date=start_date,
        end_date=end_date,
        view_mode=view_mode,
        period=period
    )
