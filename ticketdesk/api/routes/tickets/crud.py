"""
Ticket CRUD Routes

Create, read, list, update and delete ticket endpoints.
"""

from typing import Any, Dict, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, Response, status

from ...deps import get_current_user_dep, get_correlation_id_dep, get_tenant_id_dep
from ....domain.models import ActorContext, TicketFilters
from ....domain.enums import TicketStatus, TicketPriority
from ....services.ticket_service import TicketService
from .schemas import CreateTicketRequest, UpdateTicketRequest, TicketListResponse

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_ticket(
    request: CreateTicketRequest,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
) -> Dict[str, Any]:
    """
    Create a new ticket

    The department must exist in the tenant and the section, when given,
    must belong to it. New tickets always start OPEN.
    """
    service = TicketService()
    ticket = service.create_ticket(tenant_id, request.to_domain(), actor)
    return ticket.model_dump(mode="json")


@router.get("/", response_model=TicketListResponse)
async def list_tickets(
    status: Optional[TicketStatus] = Query(None, description="Filter by status"),
    priority: Optional[TicketPriority] = Query(None, description="Filter by priority"),
    assignee_id: Optional[str] = Query(None, description="Filter by assigned agent"),
    requester_id: Optional[str] = Query(None, description="Filter by requester"),
    department_id: Optional[str] = Query(None, description="Filter by department"),
    search: Optional[str] = Query(None, description="Search in subject and description"),
    created_in: Optional[date] = Query(None, description="Creation day (YYYY-MM-DD)"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
):
    """
    List tickets visible to the caller

    - USER: tickets they opened
    - AGENT / SUPERVISOR: tickets they opened plus their departments and sections
    - ADMIN: every ticket of the tenant
    """
    filters = TicketFilters(
        status=status,
        priority=priority,
        assignee_id=assignee_id,
        requester_id=requester_id,
        department_id=department_id,
        search=search,
        created_in=created_in,
    )

    service = TicketService()
    tickets, total = service.list_tickets(tenant_id, actor, filters, page=page, page_size=page_size)

    return TicketListResponse(
        items=[t.model_dump(mode="json", exclude={"comments", "history"}) for t in tickets],
        page=page,
        page_size=page_size,
        total=total
    )


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: str,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
) -> Dict[str, Any]:
    """Get ticket details with the comments visible to the caller"""
    service = TicketService()
    ticket = service.get_ticket(ticket_id, tenant_id, actor)
    return ticket.model_dump(mode="json", exclude={"history"})


@router.put("/{ticket_id}")
async def update_ticket(
    ticket_id: str,
    request: UpdateTicketRequest,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
) -> Dict[str, Any]:
    """
    Update a ticket

    Requesters may change subject and description only. Setting an
    assignee moves the ticket to IN_PROGRESS.
    """
    service = TicketService()
    ticket = service.update_ticket(ticket_id, tenant_id, request.to_domain(), actor)
    return ticket.model_dump(mode="json", exclude={"comments", "history"})


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(
    ticket_id: str,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
) -> Response:
    """Delete a ticket with its comments and history"""
    service = TicketService()
    service.delete_ticket(ticket_id, tenant_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
