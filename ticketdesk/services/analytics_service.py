"""Analytics Service - Resolution statistics per time window"""
from datetime import date
from typing import List, Optional, Tuple

from ..domain.models import ActorContext, DepartmentRef, Ticket, TicketAnalytics
from ..domain.enums import AnalyticsPeriod, ViewMode
from ..domain.errors import PermissionDeniedError, ValidationError
from ..repositories.ticket_repo import TicketRepository
from ..repositories.directory_repo import DirectoryRepository
from ..engine.access_scope import AccessScopeResolver
from ..engine.aggregator import aggregate_resolutions
from ..engine.bucketing import resolve_period_range, resolve_view_mode
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AnalyticsService:
    """Read-only aggregation over resolved tickets"""

    def __init__(self):
        self.ticket_repo = TicketRepository()
        self.directory_repo = DirectoryRepository()
        self.scope_resolver = AccessScopeResolver(directory_repo=self.directory_repo)

    def resolve_range(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        view_mode: Optional[ViewMode],
        period: Optional[AnalyticsPeriod],
        today: date
    ) -> Tuple[date, date, ViewMode]:
        """
        Resolve the inclusive date range and bucket granularity

        An explicit range wins over a legacy period. A missing start falls back
        to the first day of the end month, a missing end to today. Without a
        view mode the granularity follows the span of the range.
        """
        if start_date is None and end_date is None:
            start, end, default_mode = resolve_period_range(period, today)
            return start, end, view_mode or default_mode

        end = end_date or today
        start = start_date or end.replace(day=1)
        if start > end:
            raise ValidationError(
                "start_date must not be after end_date",
                details={"start_date": start.isoformat(), "end_date": end.isoformat()}
            )
        return start, end, view_mode or resolve_view_mode(start, end)

    def get_analytics(
        self,
        tenant_id: str,
        actor: ActorContext,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        view_mode: Optional[ViewMode] = None,
        period: Optional[AnalyticsPeriod] = None,
        today: Optional[date] = None
    ) -> TicketAnalytics:
        """
        Aggregate tickets resolved in the range

        Args:
            tenant_id: Tenant to aggregate
            actor: Requesting user (USER is refused, AGENT sees own departments)
            start_date: First day (inclusive)
            end_date: Last day (inclusive)
            view_mode: Bucket granularity
            period: Legacy window used when no range is given
            today: Reference day for defaults

        Returns:
            TicketAnalytics
        """
        if actor.tenant_id != tenant_id:
            raise PermissionDeniedError("Token was not issued for this tenant")

        scope = self.scope_resolver.for_analytics(actor)
        if scope is None:
            raise PermissionDeniedError("You cannot view analytics")

        start, end, mode = self.resolve_range(
            start_date, end_date, view_mode, period, today or utc_now().date()
        )

        tickets: List[Ticket] = []
        if scope.unrestricted:
            departments = self.directory_repo.list_departments(tenant_id)
            tickets = self.ticket_repo.find_resolved_between(tenant_id, start, end)
        elif scope.department_ids:
            departments = self.directory_repo.list_departments(tenant_id, scope.department_ids)
            tickets = self.ticket_repo.find_resolved_between(
                tenant_id, start, end, department_ids=scope.department_ids
            )
        else:
            departments = []

        refs: List[DepartmentRef] = [d.to_ref() for d in departments]
        analytics = aggregate_resolutions(tickets, start, end, mode, refs)

        logger.info(
            f"Computed analytics {start.isoformat()}..{end.isoformat()} ({mode.value})",
            extra={"tenant_id": tenant_id, "actor_id": actor.user_id, "count": len(tickets)}
        )
        return analytics
