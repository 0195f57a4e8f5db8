"""Comment Service - Ticket conversation business logic"""
from typing import List, Optional

from ..domain.models import Comment, Ticket, ActorContext
from ..domain.errors import PermissionDeniedError, CommentNotFoundError
from ..repositories.ticket_repo import TicketRepository
from ..repositories.comment_repo import CommentRepository
from ..repositories.directory_repo import DirectoryRepository
from ..engine.engine import LifecycleEngine
from ..engine.access_scope import AccessScopeResolver
from ..engine.permission_guard import PermissionGuard
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CommentService:
    """Service for comment operations"""

    def __init__(self):
        self.ticket_repo = TicketRepository()
        self.comment_repo = CommentRepository()
        self.directory_repo = DirectoryRepository()
        self.engine = LifecycleEngine(
            ticket_repo=self.ticket_repo,
            comment_repo=self.comment_repo,
            directory_repo=self.directory_repo
        )
        self.scope_resolver = AccessScopeResolver(directory_repo=self.directory_repo)
        self.permission_guard = PermissionGuard()

    def _load_visible_ticket(self, ticket_id: str, tenant_id: str, actor: ActorContext) -> Ticket:
        if not self.permission_guard.belongs_to_tenant(actor, tenant_id):
            raise PermissionDeniedError("Token was not issued for this tenant")

        ticket = self.engine.load_for_mutation(ticket_id, tenant_id)
        if not self.scope_resolver.for_viewing(actor).allows(ticket):
            raise PermissionDeniedError(
                "You cannot access this ticket",
                details={"ticket_id": ticket_id}
            )
        return ticket

    def _visible_comment(self, ticket: Ticket, comment_id: str, actor: ActorContext) -> Comment:
        """Find a comment the actor may see; hidden ones look missing"""
        for comment in ticket.comments:
            if comment.comment_id == comment_id and self.permission_guard.can_see_comment(actor, comment):
                return comment
        raise CommentNotFoundError(
            f"Comment {comment_id} not found",
            details={"ticket_id": ticket.ticket_id, "comment_id": comment_id}
        )

    def create_comment(
        self,
        ticket_id: str,
        tenant_id: str,
        content: str,
        is_internal: bool,
        actor: ActorContext
    ) -> Comment:
        """Add a comment; public replies may move the ticket status"""
        ticket = self._load_visible_ticket(ticket_id, tenant_id, actor)
        comment, _ = self.engine.add_comment(ticket, content, is_internal, actor)
        return comment

    def list_comments(self, ticket_id: str, tenant_id: str, actor: ActorContext) -> List[Comment]:
        """Comments visible to the actor, oldest first"""
        self._load_visible_ticket(ticket_id, tenant_id, actor)
        comments = self.comment_repo.list_comments(ticket_id, tenant_id)
        return [c for c in comments if self.permission_guard.can_see_comment(actor, c)]

    def get_comment(
        self,
        ticket_id: str,
        tenant_id: str,
        comment_id: str,
        actor: ActorContext
    ) -> Comment:
        ticket = self._load_visible_ticket(ticket_id, tenant_id, actor)
        return self._visible_comment(ticket, comment_id, actor)

    def update_comment(
        self,
        ticket_id: str,
        tenant_id: str,
        comment_id: str,
        actor: ActorContext,
        content: Optional[str] = None,
        is_internal: Optional[bool] = None
    ) -> Comment:
        """Edit content or visibility of a comment"""
        ticket = self._load_visible_ticket(ticket_id, tenant_id, actor)
        comment = self._visible_comment(ticket, comment_id, actor)

        changes_visibility = is_internal is not None and is_internal != comment.is_internal
        if not self.permission_guard.can_update_comment(actor, comment, changes_visibility):
            raise PermissionDeniedError(
                "You cannot edit this comment",
                details={"comment_id": comment_id}
            )

        updates = {"updated_at": utc_now()}
        if content is not None:
            updates["content"] = content
        if is_internal is not None:
            updates["is_internal"] = is_internal

        updated = self.comment_repo.update_comment(ticket_id, tenant_id, comment_id, updates)
        logger.info(
            f"Comment {comment_id} updated by {actor.user_id}",
            extra={"ticket_id": ticket_id, "comment_id": comment_id, "actor_id": actor.user_id}
        )
        return updated

    def delete_comment(
        self,
        ticket_id: str,
        tenant_id: str,
        comment_id: str,
        actor: ActorContext
    ) -> None:
        ticket = self._load_visible_ticket(ticket_id, tenant_id, actor)
        comment = self._visible_comment(ticket, comment_id, actor)

        if not self.permission_guard.can_delete_comment(actor, comment, ticket):
            raise PermissionDeniedError(
                "You cannot delete this comment",
                details={"comment_id": comment_id}
            )

        if not self.comment_repo.delete_comment(ticket_id, tenant_id, comment_id):
            raise CommentNotFoundError(
                f"Comment {comment_id} not found",
                details={"ticket_id": ticket_id, "comment_id": comment_id}
            )
