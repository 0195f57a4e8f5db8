"""
/tickets endpoints.

Sub-routers by concern: crud, assignment, comments, history, analytics and
lifecycle (auto-close). Paths are relative to the /tickets prefix.
"""

from fastapi import APIRouter

from .analytics import router as analytics_router
from .lifecycle import router as lifecycle_router
from .crud import router as crud_router
from .assignment import router as assignment_router
from .comments import router as comments_router
from .history import router as history_router

router = APIRouter()

# Literal paths (/analytics/stats, /auto-close) before /{ticket_id}
for sub_router in (
    analytics_router,
    lifecycle_router,
    crud_router,
    assignment_router,
    comments_router,
    history_router,
):
    router.include_router(sub_router)

__all__ = ["router"]
