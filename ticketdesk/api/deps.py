"""
Route dependencies: correlation id, acting user, acting tenant.

Errors raised here are DomainErrors and reach the registered handlers like
any route error.
"""
from typing import Optional
from fastapi import Depends, Header, Request

from ..domain.models import ActorContext
from ..domain.errors import PermissionDeniedError, TenantNotFoundError
from ..repositories.directory_repo import DirectoryRepository
from ..utils.jwt import get_current_user
from ..utils.logger import set_correlation_id, get_logger
from ..utils.idgen import generate_correlation_id
from .middleware.correlation import CORRELATION_HEADER

logger = get_logger(__name__)


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias=CORRELATION_HEADER)
) -> str:
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


async def get_current_user_dep(authorization: Optional[str] = Header(None)) -> ActorContext:
    """Actor from the bearer token; 401 when it is missing or invalid."""
    return get_current_user(authorization or "")


async def get_tenant_id_dep(
    request: Request,
    actor: ActorContext = Depends(get_current_user_dep)
) -> str:
    """
    Tenant every query of the request is scoped to.

    This is the token's ``tenantId``. A request addressed to a tenant
    subdomain is refused unless the subdomain names that same tenant:
    404 for an unknown slug, 403 for another tenant's slug.
    """
    slug = getattr(request.state, "tenant_slug", None)
    if not slug:
        return actor.tenant_id

    tenant = DirectoryRepository().get_tenant_by_slug(slug)
    if tenant is None:
        raise TenantNotFoundError(f"Tenant '{slug}' not found", details={"slug": slug})
    if tenant.tenant_id != actor.tenant_id:
        logger.warning(
            f"Token for {actor.tenant_id} used on subdomain '{slug}'",
            extra={"tenant_id": actor.tenant_id, "actor_id": actor.user_id, "tenant_slug": slug}
        )
        raise PermissionDeniedError("Token was not issued for this tenant")
    return actor.tenant_id
