"""Directory Repository - Read access to tenants, users, departments and sections"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection
from ..domain.models import Tenant, User, Department, Section
from ..domain.errors import (
    UserNotFoundError, DepartmentNotFoundError, SectionNotFoundError
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


class DirectoryRepository:
    """
    Repository for collaborator records.

    These records are managed by the admin side; the ticket core only reads
    them. Every lookup is scoped by tenant.
    """

    def __init__(self):
        self._tenants: Collection = get_collection("tenants")
        self._users: Collection = get_collection("users")
        self._departments: Collection = get_collection("departments")
        self._sections: Collection = get_collection("sections")
        self._user_departments: Collection = get_collection("user_departments")
        self._user_sections: Collection = get_collection("user_sections")

    # =========================================================================
    # Tenants
    # =========================================================================

    def get_tenant_by_slug(self, slug: str) -> Optional[Tenant]:
        """Get tenant by subdomain slug"""
        doc = self._tenants.find_one({"slug": slug.lower()})
        if doc:
            doc.pop("_id", None)
            return Tenant.model_validate(doc)
        return None

    # =========================================================================
    # Users
    # =========================================================================

    def get_user(self, tenant_id: str, user_id: str) -> Optional[User]:
        """Get user by ID within a tenant"""
        doc = self._users.find_one({"tenant_id": tenant_id, "user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return User.model_validate(doc)
        return None

    def get_user_or_raise(self, tenant_id: str, user_id: str) -> User:
        """Get user by ID or raise error"""
        user = self.get_user(tenant_id, user_id)
        if not user:
            raise UserNotFoundError(
                f"User {user_id} not found",
                details={"user_id": user_id}
            )
        return user

    # =========================================================================
    # Departments & Sections
    # =========================================================================

    def get_department(self, tenant_id: str, department_id: str) -> Optional[Department]:
        """Get department by ID within a tenant"""
        doc = self._departments.find_one({"tenant_id": tenant_id, "department_id": department_id})
        if doc:
            doc.pop("_id", None)
            return Department.model_validate(doc)
        return None

    def get_department_or_raise(self, tenant_id: str, department_id: str) -> Department:
        """Get department by ID or raise error"""
        department = self.get_department(tenant_id, department_id)
        if not department:
            raise DepartmentNotFoundError(
                f"Department {department_id} not found",
                details={"department_id": department_id}
            )
        return department

    def list_departments(
        self,
        tenant_id: str,
        department_ids: Optional[List[str]] = None
    ) -> List[Department]:
        """List departments of a tenant, optionally restricted to some IDs"""
        query = {"tenant_id": tenant_id}
        if department_ids is not None:
            query["department_id"] = {"$in": list(department_ids)}

        departments = []
        for doc in self._departments.find(query).sort("name", ASCENDING):
            doc.pop("_id", None)
            departments.append(Department.model_validate(doc))
        return departments

    def get_section(self, tenant_id: str, section_id: str) -> Optional[Section]:
        """Get section by ID within a tenant"""
        doc = self._sections.find_one({"tenant_id": tenant_id, "section_id": section_id})
        if doc:
            doc.pop("_id", None)
            return Section.model_validate(doc)
        return None

    def get_section_or_raise(self, tenant_id: str, section_id: str) -> Section:
        """Get section by ID or raise error"""
        section = self.get_section(tenant_id, section_id)
        if not section:
            raise SectionNotFoundError(
                f"Section {section_id} not found",
                details={"section_id": section_id}
            )
        return section

    # =========================================================================
    # Memberships
    # =========================================================================

    def is_department_member(self, tenant_id: str, user_id: str, department_id: str) -> bool:
        """Check if a user belongs to a department"""
        return self._user_departments.find_one({
            "tenant_id": tenant_id,
            "user_id": user_id,
            "department_id": department_id
        }) is not None

    def get_user_department_ids(self, tenant_id: str, user_id: str) -> List[str]:
        """Department IDs the user is a member of"""
        cursor = self._user_departments.find({"tenant_id": tenant_id, "user_id": user_id})
        return sorted({doc["department_id"] for doc in cursor})

    def get_user_section_ids(self, tenant_id: str, user_id: str) -> List[str]:
        """Section IDs the user is a member of"""
        cursor = self._user_sections.find({"tenant_id": tenant_id, "user_id": user_id})
        return sorted({doc["section_id"] for doc in cursor})
