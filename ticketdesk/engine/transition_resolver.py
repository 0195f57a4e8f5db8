"""Transition Resolver - Decide automatic status changes from ticket events"""
from typing import Dict, FrozenSet, Optional, Tuple

from ..domain.enums import TicketStatus, TransitionEvent, UserRole
from ..utils.logger import get_logger

logger = get_logger(__name__)


# event -> (statuses the event applies in, resulting status)
# An empty source set means the event applies from any status.
TRANSITION_TABLE: Dict[TransitionEvent, Tuple[FrozenSet[TicketStatus], TicketStatus]] = {
    TransitionEvent.AGENT_ASSIGNED: (
        frozenset(),
        TicketStatus.IN_PROGRESS,
    ),
    TransitionEvent.STAFF_REPLIED: (
        frozenset({TicketStatus.WAITING_AGENT, TicketStatus.IN_PROGRESS, TicketStatus.OPEN}),
        TicketStatus.WAITING_REQUESTER,
    ),
    TransitionEvent.REQUESTER_REPLIED: (
        frozenset({TicketStatus.WAITING_REQUESTER, TicketStatus.IN_PROGRESS, TicketStatus.OPEN}),
        TicketStatus.WAITING_AGENT,
    ),
    TransitionEvent.AUTO_CLOSE: (
        frozenset({TicketStatus.RESOLVED}),
        TicketStatus.CLOSED,
    ),
}

REPLY_ROLES = (UserRole.AGENT, UserRole.ADMIN)


def resolve_next_status(current: TicketStatus, event: TransitionEvent) -> Optional[TicketStatus]:
    """
    Resolve the status a ticket moves to when `event` happens.

    Args:
        current: Current ticket status
        event: Event that occurred

    Returns:
        New status, or None when the event does not move the ticket
    """
    sources, target = TRANSITION_TABLE[event]
    if sources and current not in sources:
        return None
    if current == target:
        return None
    return target


def classify_comment(
    author_role: UserRole,
    author_is_requester: bool,
    ticket_has_assignee: bool,
    is_internal: bool,
    current: TicketStatus
) -> Optional[TransitionEvent]:
    """
    Map a new comment to the transition event it raises, if any.

    The staff rule is checked before the requester rule.
    """
    if is_internal:
        return None

    if author_role in REPLY_ROLES and ticket_has_assignee:
        if resolve_next_status(current, TransitionEvent.STAFF_REPLIED) is not None:
            return TransitionEvent.STAFF_REPLIED

    if author_is_requester:
        if resolve_next_status(current, TransitionEvent.REQUESTER_REPLIED) is not None:
            return TransitionEvent.REQUESTER_REPLIED

    return None


def status_after_comment(
    current: TicketStatus,
    author_role: UserRole,
    author_is_requester: bool,
    ticket_has_assignee: bool,
    is_internal: bool
) -> Optional[TicketStatus]:
    """New status caused by a comment, or None when the status stays"""
    event = classify_comment(
        author_role=author_role,
        author_is_requester=author_is_requester,
        ticket_has_assignee=ticket_has_assignee,
        is_internal=is_internal,
        current=current,
    )
    if event is None:
        return None

    new_status = resolve_next_status(current, event)
    logger.debug(
        f"Comment transition: {current.value} -> {new_status.value if new_status else None}",
        extra={"action": event.value}
    )
    return new_status
