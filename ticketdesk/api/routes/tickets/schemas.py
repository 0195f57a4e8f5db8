"""
Ticket Schemas

Request and response models for ticket API endpoints.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ....domain.enums import TicketPriority, TicketStatus
from ....domain.models import TicketCreate, TicketPatch


# =============================================================================
# Ticket CRUD Schemas
# =============================================================================

class CreateTicketRequest(BaseModel):
    """Request to create a new ticket"""
    model_config = ConfigDict(extra="forbid")

    subject: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1, max_length=10000)
    department_id: str = Field(..., min_length=1)
    priority: Optional[TicketPriority] = None
    section_id: Optional[str] = None

    def to_domain(self) -> TicketCreate:
        return TicketCreate(**self.model_dump())


class UpdateTicketRequest(BaseModel):
    """
    Partial ticket update

    Omitted fields are left alone; an explicit null clears assignee,
    department or section.
    """
    model_config = ConfigDict(extra="forbid")

    subject: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, min_length=1, max_length=10000)
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    assignee_id: Optional[str] = None
    department_id: Optional[str] = None
    section_id: Optional[str] = None

    def to_domain(self) -> TicketPatch:
        # exclude_unset keeps the difference between null and omitted
        return TicketPatch(**self.model_dump(exclude_unset=True))


class TicketListResponse(BaseModel):
    """Response for ticket list"""
    items: List[Dict[str, Any]]
    page: int
    page_size: int
    total: int


# =============================================================================
# Action Schemas
# =============================================================================

class AssignRequest(BaseModel):
    """Request to assign an agent"""
    assignee_id: str = Field(..., min_length=1)


class AutoCloseResponse(BaseModel):
    """Result of an idle-resolution sweep"""
    closed: int


# =============================================================================
# Comment Schemas
# =============================================================================

class CreateCommentRequest(BaseModel):
    """Request to add a comment"""
    content: str = Field(..., min_length=1, max_length=10000)
    is_internal: bool = False


class UpdateCommentRequest(BaseModel):
    """Request to edit a comment"""
    content: Optional[str] = Field(None, min_length=1, max_length=10000)
    is_internal: Optional[bool] = None


class CommentListResponse(BaseModel):
    items: List[Dict[str, Any]]


class HistoryListResponse(BaseModel):
    items: List[Dict[str, Any]]
