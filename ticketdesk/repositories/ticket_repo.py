"""Ticket Repository - Data access for tickets"""
import re
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, date
from pymongo.collection import Collection
from pymongo import DESCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import AccessScope, Ticket, TicketFilters, HistoryEntry
from ..domain.enums import TicketStatus, RESOLVED_STATUSES
from ..domain.errors import TicketNotFoundError
from ..utils.time import to_storage, to_storage_document, start_of_day, end_of_day
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Embedded arrays are only loaded where they are needed
SUMMARY_PROJECTION = {"comments": 0, "history": 0}


class TicketRepository:
    """Repository for ticket operations"""

    def __init__(self):
        self._tickets: Collection = get_collection("tickets")

    # =========================================================================
    # Ticket CRUD
    # =========================================================================

    def create_ticket(self, ticket: Ticket) -> Ticket:
        """Create a new ticket"""
        # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
        doc = to_storage_document(ticket.model_dump())
        doc["_id"] = ticket.ticket_id

        self._tickets.insert_one(doc)
        logger.info(
            f"Created ticket: {ticket.ticket_id}",
            extra={"ticket_id": ticket.ticket_id, "tenant_id": ticket.tenant_id}
        )
        return ticket

    def get_ticket(self, ticket_id: str, tenant_id: str) -> Optional[Ticket]:
        """Get ticket by ID within a tenant"""
        doc = self._tickets.find_one({"ticket_id": ticket_id, "tenant_id": tenant_id})
        if doc:
            doc.pop("_id", None)
            return Ticket.model_validate(doc)
        return None

    def get_ticket_or_raise(self, ticket_id: str, tenant_id: str) -> Ticket:
        """Get ticket by ID or raise error"""
        ticket = self.get_ticket(ticket_id, tenant_id)
        if not ticket:
            raise TicketNotFoundError(
                f"Ticket {ticket_id} not found",
                details={"ticket_id": ticket_id}
            )
        return ticket

    def update_ticket(
        self,
        ticket_id: str,
        tenant_id: str,
        updates: Dict[str, Any],
        history: Optional[List[HistoryEntry]] = None
    ) -> Ticket:
        """
        Update ticket fields and append ledger entries in one write.

        Args:
            ticket_id: Ticket to update
            tenant_id: Owning tenant
            updates: Field values to set (None clears a field)
            history: Ledger entries to append

        Returns:
            Ticket as stored after the update
        """
        update_doc: Dict[str, Any] = {"$set": to_storage_document(updates)}
        if history:
            update_doc["$push"] = {
                "history": {"$each": [to_storage_document(h.model_dump()) for h in history]}
            }

        result = self._tickets.find_one_and_update(
            {"ticket_id": ticket_id, "tenant_id": tenant_id},
            update_doc,
            return_document=ReturnDocument.AFTER
        )

        if result is None:
            raise TicketNotFoundError(
                f"Ticket {ticket_id} not found",
                details={"ticket_id": ticket_id}
            )

        result.pop("_id", None)
        logger.info(
            f"Updated ticket: {ticket_id}",
            extra={"ticket_id": ticket_id, "tenant_id": tenant_id, "count": len(history or [])}
        )
        return Ticket.model_validate(result)

    def delete_ticket(self, ticket_id: str, tenant_id: str) -> bool:
        """Hard delete a ticket together with its comments and history"""
        result = self._tickets.delete_one({"ticket_id": ticket_id, "tenant_id": tenant_id})
        if result.deleted_count:
            logger.info(f"Deleted ticket: {ticket_id}", extra={"ticket_id": ticket_id, "tenant_id": tenant_id})
        return result.deleted_count > 0

    # =========================================================================
    # Listing
    # =========================================================================

    def _build_query(self, scope: AccessScope, filters: Optional[TicketFilters]) -> Dict[str, Any]:
        """Translate access scope and list filters into a MongoDB query"""
        and_conditions: List[Dict[str, Any]] = [{"tenant_id": scope.tenant_id}]

        if not scope.unrestricted:
            scope_conditions = []
            if scope.requester_id:
                scope_conditions.append({"requester.user_id": scope.requester_id})
            if scope.department_ids:
                scope_conditions.append({"department.department_id": {"$in": scope.department_ids}})
            if scope.section_ids:
                scope_conditions.append({"section.section_id": {"$in": scope.section_ids}})
            and_conditions.append({"$or": scope_conditions})

        if filters:
            if filters.status:
                and_conditions.append({"status": filters.status.value})
            if filters.priority:
                and_conditions.append({"priority": filters.priority.value})
            if filters.assignee_id:
                and_conditions.append({"assignee.user_id": filters.assignee_id})
            if filters.requester_id:
                and_conditions.append({"requester.user_id": filters.requester_id})
            if filters.department_id:
                and_conditions.append({"department.department_id": filters.department_id})
            if filters.search:
                pattern = re.escape(filters.search)
                and_conditions.append({"$or": [
                    {"subject": {"$regex": pattern, "$options": "i"}},
                    {"description": {"$regex": pattern, "$options": "i"}},
                ]})
            if filters.created_in:
                and_conditions.append({"created_at": {
                    "$gte": to_storage(start_of_day(filters.created_in)),
                    "$lte": to_storage(end_of_day(filters.created_in)),
                }})

        return {"$and": and_conditions}

    def list_tickets(
        self,
        scope: AccessScope,
        filters: Optional[TicketFilters] = None,
        skip: int = 0,
        limit: int = 20
    ) -> List[Ticket]:
        """List tickets visible in a scope, newest first, without comments and history"""
        if scope.is_empty:
            return []

        cursor = self._tickets.find(
            self._build_query(scope, filters),
            SUMMARY_PROJECTION
        ).sort("created_at", DESCENDING).skip(skip).limit(limit)

        tickets = []
        for doc in cursor:
            doc.pop("_id", None)
            tickets.append(Ticket.model_validate(doc))
        return tickets

    def count_tickets(self, scope: AccessScope, filters: Optional[TicketFilters] = None) -> int:
        """Count tickets visible in a scope"""
        if scope.is_empty:
            return 0
        return self._tickets.count_documents(self._build_query(scope, filters))

    # =========================================================================
    # Sweeper & Analytics
    # =========================================================================

    def transition_idle(
        self,
        from_statuses: Iterable[TicketStatus],
        to_status: TicketStatus,
        cutoff: datetime,
        now: datetime,
        tenant_id: Optional[str] = None
    ) -> int:
        """
        Move tickets idle since the cutoff from one of `from_statuses` to `to_status`.

        The selection predicate travels with the write, so tickets changed
        concurrently are left alone. resolved_at is not touched.

        Returns:
            Number of tickets transitioned
        """
        query: Dict[str, Any] = {
            "status": {"$in": [s.value for s in from_statuses]},
            "updated_at": {"$lte": to_storage(cutoff)}
        }
        if tenant_id:
            query["tenant_id"] = tenant_id

        result = self._tickets.update_many(
            query,
            {"$set": {"status": to_status.value, "updated_at": to_storage(now)}}
        )

        if result.modified_count > 0:
            logger.info(
                f"Moved {result.modified_count} idle tickets to {to_status.value}",
                extra={"tenant_id": tenant_id, "status": to_status.value, "count": result.modified_count}
            )
        return result.modified_count

    def find_resolved_between(
        self,
        tenant_id: str,
        start: date,
        end: date,
        department_ids: Optional[List[str]] = None
    ) -> List[Ticket]:
        """
        Resolved or closed tickets whose resolution falls in [start, end].

        Both bounds are whole UTC days. department_ids restricts the result
        to those departments when given.
        """
        query: Dict[str, Any] = {
            "tenant_id": tenant_id,
            "status": {"$in": [s.value for s in RESOLVED_STATUSES]},
            "resolved_at": {
                "$gte": to_storage(start_of_day(start)),
                "$lte": to_storage(end_of_day(end)),
            }
        }
        if department_ids is not None:
            query["department.department_id"] = {"$in": list(department_ids)}

        tickets = []
        for doc in self._tickets.find(query, SUMMARY_PROJECTION):
            doc.pop("_id", None)
            tickets.append(Ticket.model_validate(doc))
        return tickets
