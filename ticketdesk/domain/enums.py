"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class TicketStatus(str, Enum):
    """Global ticket status"""
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    WAITING_REQUESTER = "WAITING_REQUESTER"  # Agent replied, ball is with the requester
    WAITING_AGENT = "WAITING_AGENT"  # Requester replied, ball is with the agent
    ON_HOLD = "ON_HOLD"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


RESOLVED_STATUSES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)


class TicketPriority(str, Enum):
    """Ticket priority"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class UserRole(str, Enum):
    """Tenant user roles"""
    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    AGENT = "AGENT"
    USER = "USER"  # Requester


PRIVILEGED_ROLES = (UserRole.ADMIN, UserRole.SUPERVISOR, UserRole.AGENT)
ASSIGNABLE_ROLES = (UserRole.ADMIN, UserRole.AGENT)


class TransitionEvent(str, Enum):
    """Events that can move a ticket to a new status on their own"""
    AGENT_ASSIGNED = "AGENT_ASSIGNED"
    STAFF_REPLIED = "STAFF_REPLIED"  # Public comment by an agent/admin
    REQUESTER_REPLIED = "REQUESTER_REPLIED"  # Public comment by the requester
    AUTO_CLOSE = "AUTO_CLOSE"  # Idle resolved ticket swept


class HistoryEventType(str, Enum):
    """Kinds of ledger entries"""
    STATUS_CHANGED = "STATUS_CHANGED"
    PRIORITY_CHANGED = "PRIORITY_CHANGED"
    DEPARTMENT_ASSIGNED = "DEPARTMENT_ASSIGNED"
    SECTION_ASSIGNED = "SECTION_ASSIGNED"
    AGENT_ASSIGNED = "AGENT_ASSIGNED"


class ViewMode(str, Enum):
    """Analytics bucket granularity"""
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    BIMONTHLY = "BIMONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class AnalyticsPeriod(str, Enum):
    """Legacy analytics windows, anchored on today"""
    YEAR = "YEAR"
    SEMIANNUAL = "SEMIANNUAL"
    BIMONTHLY = "BIMONTHLY"
    MONTHLY = "MONTHLY"
