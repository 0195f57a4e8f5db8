"""
History Routes

Read access to the per-ticket change ledger.
"""

from fastapi import APIRouter, Depends

from ...deps import get_current_user_dep, get_correlation_id_dep, get_tenant_id_dep
from ....domain.models import ActorContext
from ....services.ticket_service import TicketService
from .schemas import HistoryListResponse

router = APIRouter()


@router.get("/{ticket_id}/history", response_model=HistoryListResponse)
async def get_ticket_history(
    ticket_id: str,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
):
    """Ledger entries oldest first (agents, supervisors and admins only)"""
    service = TicketService()
    entries = service.get_history(ticket_id, tenant_id, actor)
    return HistoryListResponse(items=[e.model_dump(mode="json") for e in entries])
