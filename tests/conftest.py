"""
Pytest Configuration and Fixtures

This file contains shared fixtures and configuration for all tests.
MongoDB is replaced by mongomock; every test gets an empty database seeded
with two tenants (acme, globex) and their directory records.
"""

import os
import tempfile

# Settings are read at import time
os.environ.setdefault("LOGS_PATH", tempfile.mkdtemp(prefix="ticketdesk-logs-"))
os.environ["AUTO_CLOSE_ENABLED"] = "false"
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, Optional

import mongomock
import pytest

from ticketdesk.repositories import mongo_client
from ticketdesk.repositories.ticket_repo import TicketRepository
from ticketdesk.domain.models import (
    ActorContext, Ticket, UserSnapshot, DepartmentRef, SectionRef
)
from ticketdesk.domain.enums import TicketStatus, TicketPriority, UserRole


ACME = "t-acme"
GLOBEX = "t-globex"

TENANTS = [
    {"tenant_id": ACME, "name": "Acme Corp", "slug": "acme"},
    {"tenant_id": GLOBEX, "name": "Globex", "slug": "globex"},
]

DEPARTMENTS = [
    {"department_id": "d-it", "tenant_id": ACME, "name": "IT"},
    {"department_id": "d-hr", "tenant_id": ACME, "name": "HR"},
    {"department_id": "d-ops", "tenant_id": GLOBEX, "name": "Operations"},
]

SECTIONS = [
    {"section_id": "s-net", "tenant_id": ACME, "department_id": "d-it", "name": "Network"},
    {"section_id": "s-pay", "tenant_id": ACME, "department_id": "d-hr", "name": "Payroll"},
]

USERS = [
    {"user_id": "u-admin", "tenant_id": ACME, "email": "ada@acme.com", "name": "Ada Admin", "role": "ADMIN"},
    {"user_id": "u-sup", "tenant_id": ACME, "email": "sam@acme.com", "name": "Sam Supervisor", "role": "SUPERVISOR"},
    {"user_id": "u-agent", "tenant_id": ACME, "email": "alex@acme.com", "name": "Alex Agent", "role": "AGENT"},
    {"user_id": "u-hr-agent", "tenant_id": ACME, "email": "hana@acme.com", "name": "Hana Hr", "role": "AGENT"},
    {"user_id": "u-loner", "tenant_id": ACME, "email": "lou@acme.com", "name": "Lou Loner", "role": "AGENT"},
    {"user_id": "u-req", "tenant_id": ACME, "email": "rita@acme.com", "name": "Rita Requester", "role": "USER"},
    {"user_id": "u-req2", "tenant_id": ACME, "email": "ray@acme.com", "name": "Ray Other", "role": "USER"},
    {"user_id": "g-admin", "tenant_id": GLOBEX, "email": "gil@globex.com", "name": "Gil Admin", "role": "ADMIN"},
    {"user_id": "g-agent", "tenant_id": GLOBEX, "email": "gus@globex.com", "name": "Gus Agent", "role": "AGENT"},
    {"user_id": "g-req", "tenant_id": GLOBEX, "email": "gina@globex.com", "name": "Gina Requester", "role": "USER"},
]

USER_DEPARTMENTS = [
    {"tenant_id": ACME, "user_id": "u-agent", "department_id": "d-it"},
    {"tenant_id": ACME, "user_id": "u-hr-agent", "department_id": "d-hr"},
    {"tenant_id": ACME, "user_id": "u-sup", "department_id": "d-it"},
    {"tenant_id": GLOBEX, "user_id": "g-agent", "department_id": "d-ops"},
]

USER_SECTIONS = [
    {"tenant_id": ACME, "user_id": "u-agent", "section_id": "s-net"},
]


def make_actor(user: Dict[str, Any]) -> ActorContext:
    return ActorContext(
        user_id=user["user_id"],
        tenant_id=user["tenant_id"],
        email=user["email"],
        name=user["name"],
        role=UserRole(user["role"]),
    )


@pytest.fixture(autouse=True)
def mongo_db():
    """In-memory database shared by every repository during one test"""
    db = mongomock.MongoClient()["ticketdesk_test"]
    mongo_client._database = db
    yield db
    mongo_client._database = None


@pytest.fixture
def directory(mongo_db):
    """Seed tenants, departments, sections, users and memberships"""
    mongo_db["tenants"].insert_many([dict(d) for d in TENANTS])
    mongo_db["departments"].insert_many([dict(d) for d in DEPARTMENTS])
    mongo_db["sections"].insert_many([dict(d) for d in SECTIONS])
    mongo_db["users"].insert_many([dict(d) for d in USERS])
    mongo_db["user_departments"].insert_many([dict(d) for d in USER_DEPARTMENTS])
    mongo_db["user_sections"].insert_many([dict(d) for d in USER_SECTIONS])
    return SimpleNamespace(acme=ACME, globex=GLOBEX)


@pytest.fixture
def actors(directory) -> SimpleNamespace:
    """Actor contexts keyed by short role name"""
    by_id = {u["user_id"]: make_actor(u) for u in USERS}
    return SimpleNamespace(
        admin=by_id["u-admin"],
        supervisor=by_id["u-sup"],
        agent=by_id["u-agent"],
        hr_agent=by_id["u-hr-agent"],
        loner=by_id["u-loner"],
        requester=by_id["u-req"],
        other_requester=by_id["u-req2"],
        globex_admin=by_id["g-admin"],
        globex_agent=by_id["g-agent"],
        globex_requester=by_id["g-req"],
    )


DEPARTMENT_REFS = {d["department_id"]: DepartmentRef(department_id=d["department_id"], name=d["name"]) for d in DEPARTMENTS}
SECTION_REFS = {
    s["section_id"]: SectionRef(section_id=s["section_id"], department_id=s["department_id"], name=s["name"])
    for s in SECTIONS
}


@pytest.fixture
def insert_ticket(directory) -> Callable[..., Ticket]:
    """
    Store a ticket directly, bypassing the engine.

    Useful when a test needs control over timestamps or stored state.
    """
    repo = TicketRepository()
    counter = {"n": 0}

    def _insert(
        tenant_id: str = ACME,
        requester: Optional[ActorContext] = None,
        department_id: Optional[str] = "d-it",
        section_id: Optional[str] = None,
        assignee: Optional[ActorContext] = None,
        status: TicketStatus = TicketStatus.OPEN,
        priority: TicketPriority = TicketPriority.MEDIUM,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        resolved_at: Optional[datetime] = None,
        subject: str = "Printer on fire",
        **extra: Any
    ) -> Ticket:
        counter["n"] += 1
        created = created_at or datetime.now(timezone.utc)
        requester_snapshot = (
            requester.to_snapshot() if requester
            else UserSnapshot(user_id="u-req", email="rita@acme.com", name="Rita Requester", role=UserRole.USER)
        )
        ticket = Ticket(
            ticket_id=f"TKT-test{counter['n']:08d}",
            tenant_id=tenant_id,
            subject=subject,
            description="Smoke everywhere",
            status=status,
            priority=priority,
            requester=requester_snapshot,
            assignee=assignee.to_snapshot() if assignee else None,
            department=DEPARTMENT_REFS[department_id] if department_id else None,
            section=SECTION_REFS[section_id] if section_id else None,
            created_at=created,
            updated_at=updated_at or created,
            resolved_at=resolved_at,
            **extra
        )
        return repo.create_ticket(ticket)

    return _insert

