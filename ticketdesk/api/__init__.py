"""HTTP layer: FastAPI dependencies, middleware and the /api/v1 routers"""
from .deps import get_current_user_dep, get_correlation_id_dep, get_tenant_id_dep

__all__ = ["get_current_user_dep", "get_correlation_id_dep", "get_tenant_id_dep"]
