"""Sweeper Service - Close tickets left resolved for too long"""
from datetime import datetime
from typing import Optional

from ..config.settings import settings
from ..domain.enums import TransitionEvent
from ..engine.transition_resolver import TRANSITION_TABLE
from ..repositories.ticket_repo import TicketRepository
from ..utils.time import days_ago, utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SweeperService:
    """Idle-resolution sweep. Writes no history and is safe to re-run."""

    def __init__(self, ticket_repo: Optional[TicketRepository] = None):
        self.ticket_repo = ticket_repo or TicketRepository()

    def sweep_idle_resolved(
        self,
        tenant_id: Optional[str] = None,
        now: Optional[datetime] = None,
        after_days: Optional[int] = None
    ) -> int:
        """
        Close RESOLVED tickets not updated for `after_days` days

        Args:
            tenant_id: Restrict to one tenant (all tenants when None)
            now: Reference time
            after_days: Idle threshold, defaults to settings.auto_close_after_days

        Returns:
            Number of tickets closed
        """
        now = now or utc_now()
        days = after_days if after_days is not None else settings.auto_close_after_days
        cutoff = days_ago(days, now)

        from_statuses, to_status = TRANSITION_TABLE[TransitionEvent.AUTO_CLOSE]
        closed = self.ticket_repo.transition_idle(from_statuses, to_status, cutoff, now, tenant_id)

        logger.info(
            f"Idle-resolution sweep closed {closed} tickets",
            extra={"tenant_id": tenant_id, "count": closed, "action": TransitionEvent.AUTO_CLOSE.value}
        )
        return closed
