"""History Repository - Read access to the ticket history ledger"""
from typing import List
from pymongo.collection import Collection

from .mongo_client import get_collection
from ..domain.models import HistoryEntry
from ..domain.errors import TicketNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class HistoryRepository:
    """
    Repository for history entries (append-only).

    Entries are embedded in the ticket document and appended by
    TicketRepository.update_ticket; this repository only reads them.
    """

    def __init__(self):
        self._tickets: Collection = get_collection("tickets")

    def get_history_for_ticket(self, ticket_id: str, tenant_id: str) -> List[HistoryEntry]:
        """Get ledger entries for a ticket, oldest first"""
        doc = self._tickets.find_one(
            {"ticket_id": ticket_id, "tenant_id": tenant_id},
            {"history": 1}
        )
        if doc is None:
            raise TicketNotFoundError(
                f"Ticket {ticket_id} not found",
                details={"ticket_id": ticket_id}
            )

        entries = [HistoryEntry.model_validate(item) for item in doc.get("history", [])]
        # Stable sort keeps append order for entries written by the same update
        entries.sort(key=lambda e: e.created_at)
        return entries

