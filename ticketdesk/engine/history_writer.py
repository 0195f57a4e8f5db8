"""History Writer - Build append-only ledger entries from ticket changes"""
import operator
from datetime import datetime
from typing import Callable, Iterable, List, NamedTuple, Optional

from ..domain.models import Ticket, HistoryEntry, ActorContext
from ..domain.enums import HistoryEventType
from ..utils.idgen import generate_history_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

NONE_PLACEHOLDER = "none"
UNASSIGNED_PLACEHOLDER = "unassigned"


class TrackedField(NamedTuple):
    """A ticket field whose changes are recorded in the ledger"""
    kind: HistoryEventType
    formatter: Callable[[Ticket], str]
    equals: Callable[[str, str], bool] = operator.eq


TRACKED_FIELDS = (
    TrackedField(
        HistoryEventType.STATUS_CHANGED,
        lambda t: t.status.value,
    ),
    TrackedField(
        HistoryEventType.PRIORITY_CHANGED,
        lambda t: t.priority.value,
    ),
    TrackedField(
        HistoryEventType.DEPARTMENT_ASSIGNED,
        lambda t: t.department.name if t.department else NONE_PLACEHOLDER,
    ),
    TrackedField(
        HistoryEventType.SECTION_ASSIGNED,
        lambda t: t.section.name if t.section else NONE_PLACEHOLDER,
    ),
    TrackedField(
        HistoryEventType.AGENT_ASSIGNED,
        lambda t: t.assignee.display_name if t.assignee else UNASSIGNED_PLACEHOLDER,
    ),
)


class HistoryWriter:
    """
    Compute ledger entries for a ticket mutation.

    Values are compared by their display form, not by raw IDs, so a change
    that leaves the visible value untouched never produces an entry. The
    entries are persisted by the caller together with the ticket update.
    """

    def __init__(self, fields: Iterable[TrackedField] = TRACKED_FIELDS):
        self.fields = tuple(fields)

    def diff(
        self,
        before: Ticket,
        after: Ticket,
        actor: ActorContext,
        kinds: Optional[Iterable[HistoryEventType]] = None,
        now: Optional[datetime] = None
    ) -> List[HistoryEntry]:
        """
        Build one entry per tracked field whose display value changed.

        Args:
            before: Ticket as stored
            after: Ticket as it will be stored
            actor: User making the change
            kinds: Restrict the comparison to these entry kinds
            now: Timestamp for the entries

        Returns:
            Entries in field-table order (possibly empty)
        """
        allowed = set(kinds) if kinds is not None else None
        timestamp = now or utc_now()
        snapshot = actor.to_snapshot()

        entries = []
        for field in self.fields:
            if allowed is not None and field.kind not in allowed:
                continue
            old_value = field.formatter(before)
            new_value = field.formatter(after)
            if field.equals(old_value, new_value):
                continue
            entries.append(HistoryEntry(
                history_id=generate_history_id(),
                ticket_id=before.ticket_id,
                kind=field.kind,
                actor=snapshot,
                old_value=old_value,
                new_value=new_value,
                created_at=timestamp,
            ))

        if entries:
            logger.debug(
                f"Computed {len(entries)} history entries",
                extra={"ticket_id": before.ticket_id, "count": len(entries)}
            )
        return entries
