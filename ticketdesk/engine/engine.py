"""
Lifecycle Engine - Ticket state changes and their side effects

This module contains the LifecycleEngine class that validates and applies every
ticket mutation and derives the automatic status transitions.

=============================================================================
MODULE STRUCTURE
=============================================================================

1. TICKET CREATION
   - create_ticket: Open a ticket in a department (status forced to OPEN)

2. LOADING
   - load_for_mutation: Tenant-scoped load with the department/section check

3. MUTATIONS
   - update_ticket: Partial update (subject, description, status, priority,
     assignee, department, section)
   - assign_ticket: Dedicated assign action
   - add_comment: Append a comment, applying the reply transition

4. HELPERS
   - _resolve_section / _resolve_assignee: Relationship validation
   - _resolved_at: Maintain the resolution timestamp across status changes
   - _persist: Single atomic write of fields + ledger entries

Every validation runs before the write. A mutation and its ledger entries are
one find_one_and_update on the ticket document.

=============================================================================
DEPENDENCIES
=============================================================================

Repositories:
    - TicketRepository: Ticket reads/writes
    - CommentRepository: Embedded comment writes
    - DirectoryRepository: Departments, sections, users, memberships

Guards & Resolvers:
    - PermissionGuard: Role rules
    - transition_resolver: Automatic status transitions
    - HistoryWriter: Ledger entries

=============================================================================
"""

from typing import Any, Dict, Optional, Tuple
from datetime import datetime

from pydantic import BaseModel

from ..domain.models import (
    Ticket, TicketCreate, TicketPatch, Comment, UserSnapshot, ActorContext,
    DepartmentRef, SectionRef
)
from ..domain.enums import (
    TicketStatus, TicketPriority, TransitionEvent, HistoryEventType,
    ASSIGNABLE_ROLES, RESOLVED_STATUSES
)
from ..domain.errors import (
    PermissionDeniedError, InvalidRelationshipError, ConsistencyViolationError
)
from ..repositories.ticket_repo import TicketRepository
from ..repositories.comment_repo import CommentRepository
from ..repositories.directory_repo import DirectoryRepository
from .permission_guard import PermissionGuard
from .history_writer import HistoryWriter
from .transition_resolver import resolve_next_status, status_after_comment
from ..utils.idgen import generate_ticket_id, generate_comment_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Reloads allowed when a concurrent write moves the status under a reply
REPLY_TRANSITION_ATTEMPTS = 3


class LifecycleEngine:
    """
    The Lifecycle Engine - Central orchestrator for ticket mutations

    Responsibilities:
    - Validate department/section/assignee relationships inside the tenant
    - Enforce role rules via PermissionGuard
    - Apply assignment and reply auto-transitions
    - Write ledger entries together with the ticket change
    """

    def __init__(
        self,
        ticket_repo: Optional[TicketRepository] = None,
        comment_repo: Optional[CommentRepository] = None,
        directory_repo: Optional[DirectoryRepository] = None
    ):
        self.ticket_repo = ticket_repo or TicketRepository()
        self.comment_repo = comment_repo or CommentRepository()
        self.directory_repo = directory_repo or DirectoryRepository()
        self.permission_guard = PermissionGuard()
        self.history_writer = HistoryWriter()

    # =========================================================================
    # Ticket Creation
    # =========================================================================

    def create_ticket(self, tenant_id: str, data: TicketCreate, actor: ActorContext) -> Ticket:
        """
        Open a new ticket

        Algorithm:
        1. Department must exist in the tenant
        2. Section, when given, must belong to that department
        3. Requester must be a user of the tenant; snapshot from the directory
        4. Status OPEN, priority MEDIUM unless given
        """
        department = self.directory_repo.get_department_or_raise(tenant_id, data.department_id).to_ref()

        section = None
        if data.section_id:
            section = self._resolve_section(tenant_id, data.section_id, department)

        requester_snapshot = self.directory_repo.get_user_or_raise(tenant_id, actor.user_id).to_snapshot()

        now = utc_now()
        ticket = Ticket(
            ticket_id=generate_ticket_id(),
            tenant_id=tenant_id,
            subject=data.subject,
            description=data.description,
            status=TicketStatus.OPEN,
            priority=data.priority or TicketPriority.MEDIUM,
            requester=requester_snapshot,
            department=department,
            section=section,
            created_at=now,
            updated_at=now,
        )
        return self.ticket_repo.create_ticket(ticket)

    # =========================================================================
    # Loading
    # =========================================================================

    def load_for_mutation(self, ticket_id: str, tenant_id: str) -> Ticket:
        """Load a ticket of the tenant and check its department/section pair"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id, tenant_id)

        if ticket.section is not None:
            department_id = ticket.department.department_id if ticket.department else None
            if ticket.section.department_id != department_id:
                logger.error(
                    f"Section {ticket.section.section_id} does not belong to department {department_id}",
                    extra={"ticket_id": ticket_id, "tenant_id": tenant_id}
                )
                raise ConsistencyViolationError(
                    f"Ticket {ticket_id} has a section outside its department",
                    details={"ticket_id": ticket_id}
                )
        return ticket

    # =========================================================================
    # Mutations
    # =========================================================================

    def update_ticket(self, ticket: Ticket, patch: TicketPatch, actor: ActorContext) -> Ticket:
        """
        Apply a partial update

        Only fields present in the patch are considered. A non-null assignee
        forces IN_PROGRESS, overriding a status sent in the same patch.
        """
        if not self.permission_guard.can_update_ticket(actor, ticket, patch):
            raise PermissionDeniedError(
                "You cannot make this change to the ticket",
                details={"ticket_id": ticket.ticket_id}
            )

        tenant_id = ticket.tenant_id
        fields = patch.model_fields_set
        changes: Dict[str, Any] = {}

        if "subject" in fields and patch.subject is not None:
            changes["subject"] = patch.subject
        if "description" in fields and patch.description is not None:
            changes["description"] = patch.description
        if "priority" in fields and patch.priority is not None:
            changes["priority"] = patch.priority

        status = ticket.status
        if "status" in fields and patch.status is not None:
            status = patch.status

        # Department first: the section and assignee are validated against it
        department = ticket.department
        section = ticket.section
        if "department_id" in fields:
            if patch.department_id is None:
                department, section = None, None
            elif department is None or department.department_id != patch.department_id:
                department = self.directory_repo.get_department_or_raise(
                    tenant_id, patch.department_id
                ).to_ref()
                section = None

        if "section_id" in fields:
            if patch.section_id is None:
                section = None
            else:
                section = self._resolve_section(tenant_id, patch.section_id, department)

        assignee = ticket.assignee
        if "assignee_id" in fields:
            if patch.assignee_id is None:
                assignee = None
            else:
                assignee = self._resolve_assignee(tenant_id, patch.assignee_id, department, actor)
                status = resolve_next_status(status, TransitionEvent.AGENT_ASSIGNED) or status

        now = utc_now()
        changes.update({
            "status": status,
            "department": department,
            "section": section,
            "assignee": assignee,
            "resolved_at": self._resolved_at(ticket, status, now),
            "updated_at": now,
        })

        return self._persist(ticket, changes, actor, now)

    def assign_ticket(self, ticket: Ticket, assignee_id: str, actor: ActorContext) -> Ticket:
        """Assign an agent and move the ticket to IN_PROGRESS"""
        if not self.permission_guard.can_assign(actor):
            raise PermissionDeniedError(
                "Only agents and admins can assign tickets",
                details={"ticket_id": ticket.ticket_id}
            )

        assignee = self._resolve_assignee(ticket.tenant_id, assignee_id, ticket.department, actor)
        status = resolve_next_status(ticket.status, TransitionEvent.AGENT_ASSIGNED) or ticket.status

        now = utc_now()
        changes = {
            "assignee": assignee,
            "status": status,
            "resolved_at": self._resolved_at(ticket, status, now),
            "updated_at": now,
        }
        return self._persist(ticket, changes, actor, now, kinds=[HistoryEventType.AGENT_ASSIGNED])

    def add_comment(
        self,
        ticket: Ticket,
        content: str,
        is_internal: bool,
        actor: ActorContext
    ) -> Tuple[Comment, Ticket]:
        """
        Append a comment and apply the reply transition

        Reply transitions are not written to the ledger. The comment is only
        written while the ticket still has the status the transition was
        derived from; otherwise the ticket is reloaded and re-evaluated.

        Returns:
            (comment, ticket after the write)
        """
        if is_internal and not self.permission_guard.can_create_internal_comment(actor):
            raise PermissionDeniedError("Requesters cannot write internal comments")

        author = self.directory_repo.get_user_or_raise(ticket.tenant_id, actor.user_id)

        now = utc_now()
        comment = Comment(
            comment_id=generate_comment_id(),
            tenant_id=ticket.tenant_id,
            content=content,
            is_internal=is_internal,
            author=author.to_snapshot(),
            created_at=now,
        )

        for _ in range(REPLY_TRANSITION_ATTEMPTS):
            new_status = status_after_comment(
                current=ticket.status,
                author_role=actor.role,
                author_is_requester=ticket.is_requested_by(actor.user_id),
                ticket_has_assignee=ticket.assignee is not None,
                is_internal=is_internal,
            )
            ticket_updates = {"status": new_status, "updated_at": now} if new_status is not None else None

            updated = self.comment_repo.add_comment(
                ticket.ticket_id,
                ticket.tenant_id,
                comment,
                ticket_updates,
                expected_status=ticket.status,
            )
            if updated is not None:
                if new_status is not None:
                    logger.info(
                        f"Reply moved ticket {ticket.ticket_id}: {ticket.status.value} -> {new_status.value}",
                        extra={
                            "ticket_id": ticket.ticket_id,
                            "tenant_id": ticket.tenant_id,
                            "status": new_status.value
                        }
                    )
                return comment, updated

            logger.info(
                f"Ticket {ticket.ticket_id} left {ticket.status.value} before the reply was stored, re-evaluating",
                extra={"ticket_id": ticket.ticket_id, "tenant_id": ticket.tenant_id}
            )
            ticket = self.load_for_mutation(ticket.ticket_id, ticket.tenant_id)

        logger.warning(
            f"Ticket {ticket.ticket_id} kept changing status, comment stored without a transition",
            extra={"ticket_id": ticket.ticket_id, "tenant_id": ticket.tenant_id}
        )
        updated = self.comment_repo.add_comment(ticket.ticket_id, ticket.tenant_id, comment)
        return comment, updated

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve_section(
        self,
        tenant_id: str,
        section_id: str,
        department: Optional[DepartmentRef]
    ) -> SectionRef:
        """Load a section and check it belongs to the department"""
        section = self.directory_repo.get_section_or_raise(tenant_id, section_id)
        if department is None or section.department_id != department.department_id:
            raise InvalidRelationshipError(
                f"Section {section_id} does not belong to the ticket's department",
                details={
                    "section_id": section_id,
                    "department_id": department.department_id if department else None
                }
            )
        return section.to_ref()

    def _resolve_assignee(
        self,
        tenant_id: str,
        assignee_id: str,
        department: Optional[DepartmentRef],
        actor: ActorContext
    ) -> UserSnapshot:
        """Load the assignee and check role and department membership"""
        user = self.directory_repo.get_user_or_raise(tenant_id, assignee_id)

        if user.role not in ASSIGNABLE_ROLES:
            raise InvalidRelationshipError(
                f"User {assignee_id} cannot be assigned tickets",
                details={"user_id": assignee_id, "role": user.role.value}
            )

        if self.permission_guard.requires_department_membership(actor):
            if department is None or not self.directory_repo.is_department_member(
                tenant_id, assignee_id, department.department_id
            ):
                raise InvalidRelationshipError(
                    f"User {assignee_id} is not a member of the ticket's department",
                    details={
                        "user_id": assignee_id,
                        "department_id": department.department_id if department else None
                    }
                )

        return user.to_snapshot()

    def _resolved_at(self, ticket: Ticket, new_status: TicketStatus, now: datetime) -> Optional[datetime]:
        """Set on entering RESOLVED/CLOSED, kept between them, cleared on reopen"""
        if new_status not in RESOLVED_STATUSES:
            return None
        if ticket.status in RESOLVED_STATUSES and ticket.resolved_at is not None:
            return ticket.resolved_at
        return now

    def _persist(
        self,
        ticket: Ticket,
        changes: Dict[str, Any],
        actor: ActorContext,
        now: datetime,
        kinds=None
    ) -> Ticket:
        """Write the changes and their ledger entries atomically"""
        history = []
        if self.permission_guard.writes_history(actor):
            after = ticket.model_copy(update=changes)
            history = self.history_writer.diff(ticket, after, actor, kinds=kinds, now=now)

        updates = {
            key: value.model_dump() if isinstance(value, BaseModel) else value
            for key, value in changes.items()
        }

        updated = self.ticket_repo.update_ticket(ticket.ticket_id, ticket.tenant_id, updates, history)
        logger.info(
            f"Ticket {ticket.ticket_id} updated by {actor.user_id}",
            extra={
                "ticket_id": ticket.ticket_id,
                "tenant_id": ticket.tenant_id,
                "actor_id": actor.user_id,
                "status": updated.status.value,
                "count": len(history)
            }
        )
        return updated
