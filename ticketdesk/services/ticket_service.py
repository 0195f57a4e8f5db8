"""Ticket Service - Ticket management business logic"""
from typing import List, Optional, Tuple

from ..config.settings import settings
from ..domain.models import (
    Ticket, TicketCreate, TicketPatch, TicketFilters, HistoryEntry, ActorContext
)
from ..domain.errors import PermissionDeniedError, TicketNotFoundError
from ..repositories.ticket_repo import TicketRepository
from ..repositories.history_repo import HistoryRepository
from ..repositories.directory_repo import DirectoryRepository
from ..engine.engine import LifecycleEngine
from ..engine.access_scope import AccessScopeResolver
from ..engine.permission_guard import PermissionGuard
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TicketService:
    """Service for ticket operations"""

    def __init__(self):
        self.ticket_repo = TicketRepository()
        self.history_repo = HistoryRepository()
        self.directory_repo = DirectoryRepository()
        self.engine = LifecycleEngine(
            ticket_repo=self.ticket_repo,
            directory_repo=self.directory_repo
        )
        self.scope_resolver = AccessScopeResolver(directory_repo=self.directory_repo)
        self.permission_guard = PermissionGuard()

    def _check_tenant(self, actor: ActorContext, tenant_id: str) -> None:
        if not self.permission_guard.belongs_to_tenant(actor, tenant_id):
            raise PermissionDeniedError("Token was not issued for this tenant")

    def create_ticket(self, tenant_id: str, data: TicketCreate, actor: ActorContext) -> Ticket:
        """Open a ticket in the actor's tenant"""
        self._check_tenant(actor, tenant_id)
        return self.engine.create_ticket(tenant_id, data, actor)

    def list_tickets(
        self,
        tenant_id: str,
        actor: ActorContext,
        filters: Optional[TicketFilters] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> Tuple[List[Ticket], int]:
        """List tickets visible to the actor, newest first"""
        self._check_tenant(actor, tenant_id)

        page = max(page, 1)
        page_size = min(max(page_size or settings.default_page_size, 1), settings.max_page_size)

        scope = self.scope_resolver.for_listing(actor)
        tickets = self.ticket_repo.list_tickets(
            scope,
            filters,
            skip=(page - 1) * page_size,
            limit=page_size
        )
        total = self.ticket_repo.count_tickets(scope, filters)
        return tickets, total

    def get_ticket(self, ticket_id: str, tenant_id: str, actor: ActorContext) -> Ticket:
        """Get a ticket the actor may view; internal comments are hidden from requesters"""
        self._check_tenant(actor, tenant_id)

        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id, tenant_id)
        if not self.scope_resolver.for_viewing(actor).allows(ticket):
            raise PermissionDeniedError(
                "You cannot view this ticket",
                details={"ticket_id": ticket_id}
            )

        visible = [c for c in ticket.comments if self.permission_guard.can_see_comment(actor, c)]
        return ticket.model_copy(update={"comments": visible})

    def update_ticket(
        self,
        ticket_id: str,
        tenant_id: str,
        patch: TicketPatch,
        actor: ActorContext
    ) -> Ticket:
        """Apply a partial update"""
        self._check_tenant(actor, tenant_id)
        ticket = self.engine.load_for_mutation(ticket_id, tenant_id)
        return self.engine.update_ticket(ticket, patch, actor)

    def assign_ticket(
        self,
        ticket_id: str,
        tenant_id: str,
        assignee_id: str,
        actor: ActorContext
    ) -> Ticket:
        """Assign an agent to the ticket"""
        self._check_tenant(actor, tenant_id)
        ticket = self.engine.load_for_mutation(ticket_id, tenant_id)
        return self.engine.assign_ticket(ticket, assignee_id, actor)

    def delete_ticket(self, ticket_id: str, tenant_id: str, actor: ActorContext) -> None:
        """Hard delete a ticket with its comments and history"""
        self._check_tenant(actor, tenant_id)

        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id, tenant_id)
        if not self.permission_guard.can_delete_ticket(actor, ticket):
            raise PermissionDeniedError(
                "You cannot delete this ticket",
                details={"ticket_id": ticket_id}
            )

        if not self.ticket_repo.delete_ticket(ticket_id, tenant_id):
            raise TicketNotFoundError(f"Ticket {ticket_id} not found", details={"ticket_id": ticket_id})

        logger.info(
            f"Ticket {ticket_id} deleted by {actor.user_id}",
            extra={"ticket_id": ticket_id, "tenant_id": tenant_id, "actor_id": actor.user_id, "action": "delete"}
        )

    def get_history(self, ticket_id: str, tenant_id: str, actor: ActorContext) -> List[HistoryEntry]:
        """Ledger entries of a ticket, oldest first"""
        self._check_tenant(actor, tenant_id)

        if not self.permission_guard.can_view_history(actor):
            raise PermissionDeniedError(
                "You cannot view ticket history",
                details={"ticket_id": ticket_id}
            )
        return self.history_repo.get_history_for_ticket(ticket_id, tenant_id)
