"""
Comment Routes

Conversation endpoints. Public replies may move the ticket status:
- agent/admin reply on an assigned ticket -> WAITING_REQUESTER
- requester reply -> WAITING_AGENT
"""

from typing import Any, Dict
from fastapi import APIRouter, Depends, Response, status

from ...deps import get_current_user_dep, get_correlation_id_dep, get_tenant_id_dep
from ....domain.models import ActorContext
from ....services.comment_service import CommentService
from .schemas import CreateCommentRequest, UpdateCommentRequest, CommentListResponse

router = APIRouter()


@router.post("/{ticket_id}/comments", status_code=status.HTTP_201_CREATED)
async def create_comment(
    ticket_id: str,
    request: CreateCommentRequest,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
) -> Dict[str, Any]:
    service = CommentService()
    comment = service.create_comment(ticket_id, tenant_id, request.content, request.is_internal, actor)
    return comment.model_dump(mode="json")


@router.get("/{ticket_id}/comments", response_model=CommentListResponse)
async def list_comments(
    ticket_id: str,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
):
    """List comments, oldest first. Requesters never see internal comments."""
    service = CommentService()
    comments = service.list_comments(ticket_id, tenant_id, actor)
    return CommentListResponse(items=[c.model_dump(mode="json") for c in comments])


@router.get("/{ticket_id}/comments/{comment_id}")
async def get_comment(
    ticket_id: str,
    comment_id: str,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
) -> Dict[str, Any]:
    service = CommentService()
    comment = service.get_comment(ticket_id, tenant_id, comment_id, actor)
    return comment.model_dump(mode="json")


@router.put("/{ticket_id}/comments/{comment_id}")
async def update_comment(
    ticket_id: str,
    comment_id: str,
    request: UpdateCommentRequest,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
) -> Dict[str, Any]:
    service = CommentService()
    comment = service.update_comment(
        ticket_id,
        tenant_id,
        comment_id,
        actor,
        content=request.content,
        is_internal=request.is_internal
    )
    return comment.model_dump(mode="json")


@router.delete("/{ticket_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    ticket_id: str,
    comment_id: str,
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
) -> Response:
    service = CommentService()
    service.delete_comment(ticket_id, tenant_id, comment_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
