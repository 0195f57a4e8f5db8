"""Comment Repository - Data access for comments embedded in tickets"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ReturnDocument

from .mongo_client import get_collection
from ..domain.models import Comment, Ticket
from ..domain.enums import TicketStatus
from ..domain.errors import TicketNotFoundError, CommentNotFoundError
from ..utils.time import to_storage_document
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CommentRepository:
    """Repository for comment operations"""

    def __init__(self):
        self._tickets: Collection = get_collection("tickets")

    def add_comment(
        self,
        ticket_id: str,
        tenant_id: str,
        comment: Comment,
        ticket_updates: Optional[Dict[str, Any]] = None,
        expected_status: Optional[TicketStatus] = None
    ) -> Optional[Ticket]:
        """
        Append a comment and apply ticket field changes in one write.

        Args:
            ticket_id: Ticket being commented
            tenant_id: Owning tenant
            comment: Comment to append
            ticket_updates: Ticket fields to set alongside (status, updated_at)
            expected_status: Write only while the ticket still has this status

        Returns:
            Ticket as stored after the update, or None when the ticket exists
            but no longer has ``expected_status`` (nothing was written)
        """
        update_doc: Dict[str, Any] = {
            "$push": {"comments": to_storage_document(comment.model_dump())}
        }
        if ticket_updates:
            update_doc["$set"] = to_storage_document(ticket_updates)

        query: Dict[str, Any] = {"ticket_id": ticket_id, "tenant_id": tenant_id}
        if expected_status is not None:
            query["status"] = expected_status.value

        result = self._tickets.find_one_and_update(
            query,
            update_doc,
            return_document=ReturnDocument.AFTER
        )

        if result is None:
            if expected_status is not None and self._tickets.find_one(
                {"ticket_id": ticket_id, "tenant_id": tenant_id}, {"_id": 1}
            ) is not None:
                return None
            raise TicketNotFoundError(
                f"Ticket {ticket_id} not found",
                details={"ticket_id": ticket_id}
            )

        result.pop("_id", None)
        logger.info(
            f"Added comment to ticket: {ticket_id}",
            extra={"ticket_id": ticket_id, "tenant_id": tenant_id, "comment_id": comment.comment_id}
        )
        return Ticket.model_validate(result)

    def list_comments(self, ticket_id: str, tenant_id: str) -> List[Comment]:
        """Get comments for a ticket, oldest first"""
        doc = self._tickets.find_one(
            {"ticket_id": ticket_id, "tenant_id": tenant_id},
            {"comments": 1}
        )
        if doc is None:
            raise TicketNotFoundError(
                f"Ticket {ticket_id} not found",
                details={"ticket_id": ticket_id}
            )

        comments = [Comment.model_validate(item) for item in doc.get("comments", [])]
        comments.sort(key=lambda c: c.created_at)
        return comments

    def update_comment(
        self,
        ticket_id: str,
        tenant_id: str,
        comment_id: str,
        updates: Dict[str, Any]
    ) -> Comment:
        """Update fields of an embedded comment"""
        set_updates = {f"comments.$.{k}": v for k, v in to_storage_document(updates).items()}

        result = self._tickets.find_one_and_update(
            {"ticket_id": ticket_id, "tenant_id": tenant_id, "comments.comment_id": comment_id},
            {"$set": set_updates},
            return_document=ReturnDocument.AFTER
        )

        if result is None:
            raise CommentNotFoundError(
                f"Comment {comment_id} not found",
                details={"ticket_id": ticket_id, "comment_id": comment_id}
            )

        logger.info(
            f"Updated comment: {comment_id}",
            extra={"ticket_id": ticket_id, "tenant_id": tenant_id, "comment_id": comment_id}
        )
        for item in result.get("comments", []):
            if item.get("comment_id") == comment_id:
                return Comment.model_validate(item)
        raise CommentNotFoundError(f"Comment {comment_id} not found")

    def delete_comment(self, ticket_id: str, tenant_id: str, comment_id: str) -> bool:
        """Remove a comment from a ticket"""
        result = self._tickets.update_one(
            {"ticket_id": ticket_id, "tenant_id": tenant_id, "comments.comment_id": comment_id},
            {"$pull": {"comments": {"comment_id": comment_id}}}
        )
        if result.modified_count:
            logger.info(
                f"Deleted comment: {comment_id}",
                extra={"ticket_id": ticket_id, "tenant_id": tenant_id, "comment_id": comment_id}
            )
        return result.modified_count > 0
