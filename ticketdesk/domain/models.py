"""Domain Models - Pydantic schemas for all entities"""
from datetime import date, datetime
from typing import Annotated, ClassVar, List, Optional, Tuple
from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field

from .enums import (
    TicketStatus, TicketPriority, UserRole, HistoryEventType, ViewMode,
    PRIVILEGED_ROLES,
)
from ..utils.time import ensure_utc


# Stored datetimes come back naive from MongoDB; the domain always sees UTC
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


# ============================================================================
# User & Identity Snapshots
# ============================================================================

class UserSnapshot(BaseModel):
    """Snapshot of user identity at a point in time"""
    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(..., description="User ID")
    email: EmailStr = Field(..., description="User email")
    name: Optional[str] = Field(None, description="User display name")
    role: Optional[UserRole] = Field(None, description="Role when snapshot was taken")

    @property
    def display_name(self) -> str:
        return self.name or self.email


class ActorContext(BaseModel):
    """Current actor context from JWT token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="User ID (token subject)")
    tenant_id: str = Field(..., description="Tenant the token was issued for")
    email: EmailStr = Field(..., description="User email")
    name: Optional[str] = Field(None, description="User display name")
    role: UserRole = Field(..., description="Tenant role")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def to_snapshot(self) -> UserSnapshot:
        return UserSnapshot(user_id=self.user_id, email=self.email, name=self.name, role=self.role)


# ============================================================================
# Directory records (owned by the admin side, read here)
# ============================================================================

class Tenant(BaseModel):
    """Isolated customer workspace"""
    model_config = ConfigDict(extra="ignore")

    tenant_id: str
    name: str
    slug: str


class User(BaseModel):
    """Tenant user"""
    model_config = ConfigDict(extra="ignore")

    user_id: str
    tenant_id: str
    email: EmailStr
    name: Optional[str] = None
    role: UserRole = UserRole.USER

    def to_snapshot(self) -> UserSnapshot:
        return UserSnapshot(user_id=self.user_id, email=self.email, name=self.name, role=self.role)


class Department(BaseModel):
    """Department of a tenant"""
    model_config = ConfigDict(extra="ignore")

    department_id: str
    tenant_id: str
    name: str
    description: Optional[str] = None

    def to_ref(self) -> "DepartmentRef":
        return DepartmentRef(department_id=self.department_id, name=self.name)


class Section(BaseModel):
    """Section inside a department"""
    model_config = ConfigDict(extra="ignore")

    section_id: str
    tenant_id: str
    department_id: str
    name: str

    def to_ref(self) -> "SectionRef":
        return SectionRef(section_id=self.section_id, department_id=self.department_id, name=self.name)


class DepartmentRef(BaseModel):
    """Department reference embedded in a ticket"""
    department_id: str
    name: str


class SectionRef(BaseModel):
    """Section reference embedded in a ticket"""
    section_id: str
    department_id: str
    name: str


# ============================================================================
# Ticket, Comment, History
# ============================================================================

class Comment(BaseModel):
    """Message attached to a ticket"""
    model_config = ConfigDict(extra="ignore")

    comment_id: str
    tenant_id: str
    content: str
    is_internal: bool = False
    author: UserSnapshot
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None


class HistoryEntry(BaseModel):
    """Ledger entry (append-only)"""
    model_config = ConfigDict(extra="ignore")

    history_id: str
    ticket_id: str
    kind: HistoryEventType
    actor: UserSnapshot
    old_value: str
    new_value: str
    created_at: UtcDatetime


class Ticket(BaseModel):
    """Ticket instance"""
    model_config = ConfigDict(extra="ignore")

    ticket_id: str = Field(..., description="Unique ticket ID")
    tenant_id: str = Field(..., description="Owning tenant")
    subject: str
    description: str
    status: TicketStatus = Field(default=TicketStatus.OPEN)
    priority: TicketPriority = Field(default=TicketPriority.MEDIUM)
    requester: UserSnapshot
    assignee: Optional[UserSnapshot] = None
    department: Optional[DepartmentRef] = None
    section: Optional[SectionRef] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime
    resolved_at: Optional[UtcDatetime] = Field(default=None, description="When the ticket was last resolved")
    comments: List[Comment] = Field(default_factory=list)
    history: List[HistoryEntry] = Field(default_factory=list)

    def is_requested_by(self, user_id: str) -> bool:
        return self.requester.user_id == user_id

    def is_assigned_to(self, user_id: str) -> bool:
        return self.assignee is not None and self.assignee.user_id == user_id


# ============================================================================
# Inputs
# ============================================================================

class TicketCreate(BaseModel):
    """Data required to open a ticket"""
    model_config = ConfigDict(extra="forbid")

    subject: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    department_id: str = Field(..., min_length=1)
    priority: Optional[TicketPriority] = None
    section_id: Optional[str] = None


class TicketPatch(BaseModel):
    """
    Partial ticket update.

    Only fields present in ``model_fields_set`` are applied, so an explicit
    ``None`` (unassign, clear section/department) differs from omission.
    """
    model_config = ConfigDict(extra="forbid")

    subject: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    assignee_id: Optional[str] = None
    department_id: Optional[str] = None
    section_id: Optional[str] = None

    PRIVILEGED_FIELDS: ClassVar[Tuple[str, ...]] = ("status", "priority", "assignee_id", "department_id", "section_id")

    def privileged_fields_set(self) -> List[str]:
        return [f for f in self.PRIVILEGED_FIELDS if f in self.model_fields_set]


class TicketFilters(BaseModel):
    """Ticket list filters"""
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    assignee_id: Optional[str] = None
    requester_id: Optional[str] = None
    department_id: Optional[str] = None
    search: Optional[str] = None
    created_in: Optional[date] = None


# ============================================================================
# Analytics (derived, never stored)
# ============================================================================

class PeriodCount(BaseModel):
    period: str
    count: int = 0


class BreakdownEntry(BaseModel):
    id: str
    name: str
    count: int = 0
    average_time: float = 0.0


class AverageEntry(BaseModel):
    id: str
    name: str
    average_time: float = 0.0
    tickets_count: int = 0


class TicketAnalytics(BaseModel):
    """Aggregated resolution statistics for a date range"""
    start_date: date
    end_date: date
    view_mode: ViewMode
    general: List[PeriodCount] = Field(default_factory=list)
    by_person: List[BreakdownEntry] = Field(default_factory=list)
    by_department: List[BreakdownEntry] = Field(default_factory=list)
    average_resolution_time: float = 0.0
    average_per_person: List[AverageEntry] = Field(default_factory=list)
    average_per_department: List[AverageEntry] = Field(default_factory=list)


# ============================================================================
# Access scope (resolved per request, never stored)
# ============================================================================

class AccessScope(BaseModel):
    """
    Ticket visibility for one actor inside one tenant.

    - unrestricted: every ticket of the tenant
    - requester_id: tickets opened by this user
    - department_ids / section_ids: tickets routed to these departments/sections

    Restrictions are OR-ed; a scope with none of them matches nothing.
    """
    tenant_id: str
    unrestricted: bool = False
    requester_id: Optional[str] = None
    department_ids: List[str] = Field(default_factory=list)
    section_ids: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.unrestricted or self.requester_id or self.department_ids or self.section_ids)

    def allows(self, ticket: Ticket) -> bool:
        """Check a loaded ticket against the scope"""
        if ticket.tenant_id != self.tenant_id:
            return False
        if self.unrestricted:
            return True
        if self.requester_id and ticket.is_requested_by(self.requester_id):
            return True
        if ticket.department and ticket.department.department_id in self.department_ids:
            return True
        if ticket.section and ticket.section.section_id in self.section_ids:
            return True
        return False
