"""Access Scope - Which tickets a user may see, resolved once per request"""
from typing import Optional

from ..domain.models import AccessScope, ActorContext
from ..domain.enums import UserRole
from ..repositories.directory_repo import DirectoryRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AccessScopeResolver:
    """Resolve role + memberships into an AccessScope"""

    def __init__(self, directory_repo: Optional[DirectoryRepository] = None):
        self.directory_repo = directory_repo or DirectoryRepository()

    def for_listing(self, actor: ActorContext) -> AccessScope:
        """
        Scope used by ticket listing.

        ADMIN sees everything, USER sees their own tickets, AGENT and
        SUPERVISOR see their department/section queue plus the tickets they
        opened. Staff without any membership get an empty list.
        """
        if actor.role == UserRole.ADMIN:
            return AccessScope(tenant_id=actor.tenant_id, unrestricted=True)

        if actor.role == UserRole.USER:
            return AccessScope(tenant_id=actor.tenant_id, requester_id=actor.user_id)

        department_ids = self.directory_repo.get_user_department_ids(actor.tenant_id, actor.user_id)
        section_ids = self.directory_repo.get_user_section_ids(actor.tenant_id, actor.user_id)
        if not department_ids and not section_ids:
            logger.info(
                "Staff user has no department or section memberships",
                extra={"actor_id": actor.user_id, "tenant_id": actor.tenant_id}
            )
            return AccessScope(tenant_id=actor.tenant_id)

        return AccessScope(
            tenant_id=actor.tenant_id,
            requester_id=actor.user_id,
            department_ids=department_ids,
            section_ids=section_ids,
        )

    def for_viewing(self, actor: ActorContext) -> AccessScope:
        """Scope used for single-ticket reads and comments"""
        if actor.role in (UserRole.ADMIN, UserRole.SUPERVISOR):
            return AccessScope(tenant_id=actor.tenant_id, unrestricted=True)

        if actor.role == UserRole.USER:
            return AccessScope(tenant_id=actor.tenant_id, requester_id=actor.user_id)

        return AccessScope(
            tenant_id=actor.tenant_id,
            requester_id=actor.user_id,
            department_ids=self.directory_repo.get_user_department_ids(actor.tenant_id, actor.user_id),
            section_ids=self.directory_repo.get_user_section_ids(actor.tenant_id, actor.user_id),
        )

    def for_analytics(self, actor: ActorContext) -> Optional[AccessScope]:
        """
        Scope used by analytics.

        Returns None for roles that may not read analytics at all. AGENT is
        limited to their departments; an AGENT without departments gets an
        empty scope.
        """
        if actor.role == UserRole.USER:
            return None

        if actor.role == UserRole.AGENT:
            return AccessScope(
                tenant_id=actor.tenant_id,
                department_ids=self.directory_repo.get_user_department_ids(actor.tenant_id, actor.user_id),
            )

        return AccessScope(tenant_id=actor.tenant_id, unrestricted=True)
