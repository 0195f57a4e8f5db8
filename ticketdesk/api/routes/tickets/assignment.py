"""
Assignment Routes

Endpoint for assigning an agent to a ticket.
"""

from typing import Any, Dict
from fastapi import APIRouter, Depends

from ...deps import get_current_user_dep, get_correlation_id_dep, get_tenant_id_dep
from ....domain.models import ActorContext
from ....services.ticket_service import TicketService
from .schemas import AssignRequest

router = APIRouter()


@router.post("/{ticket_id}/assign")
async def assign_agent(
    ticket_id: str,
    request: AssignRequest,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
) -> Dict[str, Any]:
    """
    Assign agent to ticket.

    Only agents and admins can assign. The assignee must be an agent or admin;
    agents may only assign members of the ticket's department. The ticket
    moves to IN_PROGRESS.
    """
    service = TicketService()
    ticket = service.assign_ticket(ticket_id, tenant_id, request.assignee_id, actor)
    return ticket.model_dump(mode="json", exclude={"comments", "history"})
