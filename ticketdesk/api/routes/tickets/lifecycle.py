"""
Lifecycle Routes

Maintenance operations on the ticket lifecycle:
- Auto-close tickets left resolved for too long
"""

from fastapi import APIRouter, Depends

from ...deps import get_current_user_dep, get_correlation_id_dep, get_tenant_id_dep
from ....domain.models import ActorContext
from ....domain.errors import PermissionDeniedError
from ....engine.permission_guard import PermissionGuard
from ....services.sweeper_service import SweeperService
from ....utils.logger import get_logger
from .schemas import AutoCloseResponse

logger = get_logger(__name__)
router = APIRouter()


@router.post("/auto-close", response_model=AutoCloseResponse)
async def auto_close_resolved(
    correlation_id: str = Depends(get_correlation_id_dep),
    actor: ActorContext = Depends(get_current_user_dep),
    tenant_id: str = Depends(get_tenant_id_dep)
):
    """
    Close the caller's tenant tickets left RESOLVED past the idle threshold.

    Admin only. Safe to call repeatedly.
    """
    if not PermissionGuard().can_run_auto_close(actor):
        raise PermissionDeniedError("Only admins can run auto-close")

    closed = SweeperService().sweep_idle_resolved(tenant_id=tenant_id)
    logger.info(
        f"Manual auto-close by {actor.user_id}: {closed} tickets",
        extra={"tenant_id": tenant_id, "actor_id": actor.user_id, "count": closed}
    )
    return AutoCloseResponse(closed=closed)
