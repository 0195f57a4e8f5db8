"""Permission Guard - Role rules for ticket and comment actions"""
from typing import Optional

from ..domain.models import ActorContext, Comment, Ticket, TicketPatch
from ..domain.enums import UserRole, ASSIGNABLE_ROLES
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PermissionGuard:
    """
    Permission enforcement for ticket operations

    Rules:
    - Requesters (USER) edit only subject/description of their own tickets
    - ADMIN, SUPERVISOR and AGENT may change status, priority, assignee,
      department and section
    - Only AGENT and ADMIN may run the dedicated assign action
    - USER deletes own tickets, AGENT deletes tickets they requested,
      ADMIN and SUPERVISOR delete any ticket
    - USER cannot write or read internal comments
    """

    def belongs_to_tenant(self, actor: ActorContext, tenant_id: str) -> bool:
        """Tokens only act inside the tenant they were issued for"""
        return actor.tenant_id == tenant_id

    def can_update_ticket(self, actor: ActorContext, ticket: Ticket, patch: TicketPatch) -> bool:
        """Check if actor may apply the patch"""
        if actor.is_privileged:
            return True

        if not ticket.is_requested_by(actor.user_id):
            return False

        privileged = patch.privileged_fields_set()
        if privileged:
            logger.warning(
                f"Requester attempted privileged change: {privileged}",
                extra={"ticket_id": ticket.ticket_id, "actor_id": actor.user_id}
            )
            return False
        return True

    def writes_history(self, actor: ActorContext) -> bool:
        """Only staff mutations land in the ledger"""
        return actor.role != UserRole.USER

    def can_assign(self, actor: ActorContext) -> bool:
        """Check if actor may run the assign action"""
        return actor.role in ASSIGNABLE_ROLES

    def requires_department_membership(self, actor: ActorContext) -> bool:
        """Non-admin actors may only assign members of the ticket's department"""
        return not actor.is_admin

    def can_delete_ticket(self, actor: ActorContext, ticket: Ticket) -> bool:
        """Check if actor may delete the ticket"""
        if actor.role in (UserRole.ADMIN, UserRole.SUPERVISOR):
            return True
        return ticket.is_requested_by(actor.user_id)

    def can_view_history(self, actor: ActorContext) -> bool:
        return actor.is_privileged

    def can_run_auto_close(self, actor: ActorContext) -> bool:
        return actor.is_admin

    # =========================================================================
    # Comments
    # =========================================================================

    def can_create_internal_comment(self, actor: ActorContext) -> bool:
        return actor.role != UserRole.USER

    def can_see_comment(self, actor: ActorContext, comment: Comment) -> bool:
        return not comment.is_internal or actor.role != UserRole.USER

    def can_update_comment(
        self,
        actor: ActorContext,
        comment: Comment,
        changes_visibility: bool
    ) -> bool:
        """Users edit only their own comments and never the visibility flag"""
        if actor.role != UserRole.USER:
            return True
        if changes_visibility:
            return False
        return comment.author.user_id == actor.user_id

    def can_delete_comment(
        self,
        actor: ActorContext,
        comment: Comment,
        ticket: Optional[Ticket] = None
    ) -> bool:
        """
        Check if actor may delete a comment

        USER: own comments. AGENT: own comments or any comment on a ticket
        assigned to them. ADMIN/SUPERVISOR: any comment.
        """
        if actor.role in (UserRole.ADMIN, UserRole.SUPERVISOR):
            return True
        if comment.author.user_id == actor.user_id:
            return True
        if actor.role == UserRole.AGENT and ticket is not None:
            return ticket.is_assigned_to(actor.user_id)
        return False
