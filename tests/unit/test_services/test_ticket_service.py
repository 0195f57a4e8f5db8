"""Tests for TicketService"""

from datetime import datetime, timezone

import pytest

from ticketdesk.domain.enums import HistoryEventType, TicketPriority, TicketStatus, UserRole
from ticketdesk.domain.errors import (
    ConsistencyViolationError,
    DepartmentNotFoundError,
    InvalidRelationshipError,
    PermissionDeniedError,
    TicketNotFoundError,
    UserNotFoundError,
)
from ticketdesk.domain.models import ActorContext, SectionRef, TicketCreate, TicketFilters, TicketPatch
from ticketdesk.services.ticket_service import TicketService


@pytest.fixture
def service(directory):
    return TicketService()


@pytest.fixture
def open_ticket(service, actors):
    return service.create_ticket(
        "t-acme",
        TicketCreate(subject="VPN down", description="Cannot connect", department_id="d-it"),
        actors.requester,
    )


class TestCreateTicket:

    def test_new_ticket_is_open_with_default_priority(self, service, actors):
        ticket = service.create_ticket(
            "t-acme",
            TicketCreate(subject="Laptop", description="Broken screen", department_id="d-it", section_id="s-net"),
            actors.requester,
        )

        assert ticket.status == TicketStatus.OPEN
        assert ticket.priority == TicketPriority.MEDIUM
        assert ticket.requester.user_id == "u-req"
        assert ticket.department.name == "IT"
        assert ticket.section.name == "Network"
        assert ticket.assignee is None
        assert ticket.resolved_at is None
        assert ticket.ticket_id.startswith("TKT-")

    def test_unknown_department_is_rejected(self, service, actors):
        with pytest.raises(DepartmentNotFoundError):
            service.create_ticket(
                "t-acme",
                TicketCreate(subject="x", description="y", department_id="d-nope"),
                actors.requester,
            )

    def test_department_of_other_tenant_is_not_found(self, service, actors):
        with pytest.raises(DepartmentNotFoundError):
            service.create_ticket(
                "t-acme",
                TicketCreate(subject="x", description="y", department_id="d-ops"),
                actors.requester,
            )

    def test_section_must_belong_to_department(self, service, actors):
        with pytest.raises(InvalidRelationshipError):
            service.create_ticket(
                "t-acme",
                TicketCreate(subject="x", description="y", department_id="d-it", section_id="s-pay"),
                actors.requester,
            )

    def test_token_tenant_must_match(self, service, actors):
        with pytest.raises(PermissionDeniedError):
            service.create_ticket(
                "t-acme",
                TicketCreate(subject="x", description="y", department_id="d-it"),
                actors.globex_requester,
            )

    def test_requester_missing_from_directory_is_not_found(self, service, mongo_db):
        stranger = ActorContext(
            user_id="u-gone", tenant_id="t-acme", email="gone@acme.com", name="Gone User", role=UserRole.USER
        )

        with pytest.raises(UserNotFoundError):
            service.create_ticket(
                "t-acme",
                TicketCreate(subject="x", description="y", department_id="d-it"),
                stranger,
            )
        assert mongo_db["tickets"].count_documents({}) == 0


class TestAssignment:

    def test_assign_moves_to_in_progress_and_records_history(self, service, actors, open_ticket):
        ticket = service.assign_ticket(open_ticket.ticket_id, "t-acme", "u-agent", actors.agent)

        assert ticket.status == TicketStatus.IN_PROGRESS
        assert ticket.assignee.user_id == "u-agent"

        history = service.get_history(ticket.ticket_id, "t-acme", actors.admin)
        assert [(h.kind, h.old_value, h.new_value) for h in history] == [
            (HistoryEventType.AGENT_ASSIGNED, "unassigned", "Alex Agent")
        ]

    @pytest.mark.parametrize("status", [TicketStatus.ON_HOLD, TicketStatus.WAITING_REQUESTER])
    def test_assign_from_any_status(self, service, actors, insert_ticket, status):
        stored = insert_ticket(status=status)

        ticket = service.assign_ticket(stored.ticket_id, "t-acme", "u-agent", actors.agent)

        assert ticket.status == TicketStatus.IN_PROGRESS

    def test_assign_resolved_ticket_reopens_and_clears_resolution(self, service, actors, insert_ticket):
        stored = insert_ticket(status=TicketStatus.RESOLVED, resolved_at=datetime(2024, 1, 1, tzinfo=timezone.utc))

        ticket = service.assign_ticket(stored.ticket_id, "t-acme", "u-agent", actors.agent)

        assert ticket.status == TicketStatus.IN_PROGRESS
        assert ticket.resolved_at is None

    def test_supervisor_cannot_assign(self, service, actors, open_ticket):
        with pytest.raises(PermissionDeniedError):
            service.assign_ticket(open_ticket.ticket_id, "t-acme", "u-agent", actors.supervisor)

    def test_assignee_must_be_agent_or_admin(self, service, actors, open_ticket):
        with pytest.raises(InvalidRelationshipError):
            service.assign_ticket(open_ticket.ticket_id, "t-acme", "u-req2", actors.admin)

    def test_agent_may_only_assign_department_members(self, service, actors, open_ticket):
        with pytest.raises(InvalidRelationshipError):
            service.assign_ticket(open_ticket.ticket_id, "t-acme", "u-hr-agent", actors.agent)

    def test_admin_may_assign_outside_department(self, service, actors, open_ticket):
        ticket = service.assign_ticket(open_ticket.ticket_id, "t-acme", "u-hr-agent", actors.admin)
        assert ticket.assignee.user_id == "u-hr-agent"

    def test_assignee_of_other_tenant_is_not_found(self, service, actors, open_ticket):
        with pytest.raises(UserNotFoundError):
            service.assign_ticket(open_ticket.ticket_id, "t-acme", "g-agent", actors.admin)


class TestUpdateTicket:

    def test_noop_patch_writes_no_history(self, service, actors, open_ticket):
        patch = TicketPatch(status=TicketStatus.OPEN, priority=TicketPriority.MEDIUM, department_id="d-it")

        service.update_ticket(open_ticket.ticket_id, "t-acme", patch, actors.agent)

        assert service.get_history(open_ticket.ticket_id, "t-acme", actors.admin) == []

    def test_status_change_records_one_entry(self, service, actors, open_ticket):
        ticket = service.update_ticket(
            open_ticket.ticket_id, "t-acme", TicketPatch(status=TicketStatus.ON_HOLD), actors.agent
        )

        assert ticket.status == TicketStatus.ON_HOLD
        history = service.get_history(ticket.ticket_id, "t-acme", actors.admin)
        assert [(h.kind, h.old_value, h.new_value) for h in history] == [
            (HistoryEventType.STATUS_CHANGED, "OPEN", "ON_HOLD")
        ]
        assert history[0].actor.user_id == "u-agent"

    def test_assignee_overrides_status_in_same_patch(self, service, actors, open_ticket):
        patch = TicketPatch(status=TicketStatus.ON_HOLD, assignee_id="u-agent")

        ticket = service.update_ticket(open_ticket.ticket_id, "t-acme", patch, actors.agent)

        assert ticket.status == TicketStatus.IN_PROGRESS
        kinds = {h.kind for h in service.get_history(ticket.ticket_id, "t-acme", actors.admin)}
        assert kinds == {HistoryEventType.STATUS_CHANGED, HistoryEventType.AGENT_ASSIGNED}

    def test_unassign_keeps_status(self, service, actors, open_ticket):
        service.assign_ticket(open_ticket.ticket_id, "t-acme", "u-agent", actors.agent)

        ticket = service.update_ticket(
            open_ticket.ticket_id, "t-acme", TicketPatch(assignee_id=None), actors.agent
        )

        assert ticket.assignee is None
        assert ticket.status == TicketStatus.IN_PROGRESS
        last = service.get_history(ticket.ticket_id, "t-acme", actors.admin)[-1]
        assert (last.old_value, last.new_value) == ("Alex Agent", "unassigned")

    def test_resolve_sets_resolved_at_and_reopen_clears_it(self, service, actors, open_ticket):
        resolved = service.update_ticket(
            open_ticket.ticket_id, "t-acme", TicketPatch(status=TicketStatus.RESOLVED), actors.agent
        )
        assert resolved.resolved_at is not None

        closed = service.update_ticket(
            open_ticket.ticket_id, "t-acme", TicketPatch(status=TicketStatus.CLOSED), actors.agent
        )
        assert closed.resolved_at == resolved.resolved_at

        reopened = service.update_ticket(
            open_ticket.ticket_id, "t-acme", TicketPatch(status=TicketStatus.IN_PROGRESS), actors.agent
        )
        assert reopened.resolved_at is None

    def test_changing_department_clears_section(self, service, actors, insert_ticket):
        stored = insert_ticket(section_id="s-net")

        ticket = service.update_ticket(stored.ticket_id, "t-acme", TicketPatch(department_id="d-hr"), actors.admin)

        assert ticket.department.department_id == "d-hr"
        assert ticket.section is None
        history = service.get_history(ticket.ticket_id, "t-acme", actors.admin)
        assert [(h.kind, h.new_value) for h in history] == [
            (HistoryEventType.DEPARTMENT_ASSIGNED, "HR"),
            (HistoryEventType.SECTION_ASSIGNED, "none"),
        ]

    def test_department_and_matching_section_together(self, service, actors, open_ticket):
        ticket = service.update_ticket(
            open_ticket.ticket_id,
            "t-acme",
            TicketPatch(department_id="d-hr", section_id="s-pay"),
            actors.admin,
        )

        assert ticket.section.section_id == "s-pay"

    def test_section_of_other_department_is_rejected(self, service, actors, open_ticket):
        with pytest.raises(InvalidRelationshipError):
            service.update_ticket(open_ticket.ticket_id, "t-acme", TicketPatch(section_id="s-pay"), actors.agent)

        stored = service.get_ticket(open_ticket.ticket_id, "t-acme", actors.admin)
        assert stored.section is None

    def test_clearing_department_clears_section(self, service, actors, insert_ticket):
        stored = insert_ticket(section_id="s-net")

        ticket = service.update_ticket(stored.ticket_id, "t-acme", TicketPatch(department_id=None), actors.admin)

        assert ticket.department is None
        assert ticket.section is None

    def test_requester_edits_text_without_history(self, service, actors, open_ticket):
        ticket = service.update_ticket(
            open_ticket.ticket_id, "t-acme", TicketPatch(subject="VPN really down"), actors.requester
        )

        assert ticket.subject == "VPN really down"
        assert service.get_history(ticket.ticket_id, "t-acme", actors.admin) == []

    def test_requester_cannot_change_status(self, service, actors, open_ticket):
        with pytest.raises(PermissionDeniedError):
            service.update_ticket(
                open_ticket.ticket_id, "t-acme", TicketPatch(status=TicketStatus.CLOSED), actors.requester
            )

    def test_inconsistent_stored_ticket_is_refused(self, service, actors, insert_ticket, mongo_db):
        stored = insert_ticket()
        mongo_db["tickets"].update_one(
            {"ticket_id": stored.ticket_id},
            {"$set": {"section": SectionRef(section_id="s-pay", department_id="d-hr", name="Payroll").model_dump()}},
        )

        with pytest.raises(ConsistencyViolationError):
            service.update_ticket(stored.ticket_id, "t-acme", TicketPatch(priority=TicketPriority.LOW), actors.admin)


class TestReadAndDelete:

    def test_requester_sees_own_tickets_only(self, service, actors, open_ticket, insert_ticket):
        insert_ticket(requester=actors.other_requester)

        tickets, total = service.list_tickets("t-acme", actors.requester)

        assert total == 1
        assert [t.ticket_id for t in tickets] == [open_ticket.ticket_id]

    def test_agent_sees_department_queue(self, service, actors, insert_ticket):
        insert_ticket(department_id="d-it")
        insert_ticket(department_id="d-hr")

        tickets, total = service.list_tickets("t-acme", actors.agent)

        assert total == 1
        assert tickets[0].department.department_id == "d-it"

    def test_agent_without_memberships_sees_nothing(self, service, actors, insert_ticket):
        insert_ticket()
        assert service.list_tickets("t-acme", actors.loner) == ([], 0)

    def test_admin_lists_newest_first_with_filters(self, service, actors, insert_ticket):
        older = insert_ticket(created_at=datetime(2024, 3, 1, tzinfo=timezone.utc), subject="Old printer")
        newer = insert_ticket(created_at=datetime(2024, 3, 2, tzinfo=timezone.utc), subject="New printer")
        insert_ticket(priority=TicketPriority.URGENT, subject="Server room flooded")

        tickets, total = service.list_tickets(
            "t-acme", actors.admin, TicketFilters(search="PRINTER")
        )

        assert total == 2
        assert [t.ticket_id for t in tickets] == [newer.ticket_id, older.ticket_id]

        urgent, _ = service.list_tickets("t-acme", actors.admin, TicketFilters(priority=TicketPriority.URGENT))
        assert [t.subject for t in urgent] == ["Server room flooded"]

    def test_pagination(self, service, actors, insert_ticket):
        for day in range(1, 6):
            insert_ticket(created_at=datetime(2024, 3, day, tzinfo=timezone.utc))

        page, total = service.list_tickets("t-acme", actors.admin, page=2, page_size=2)

        assert total == 5
        assert [t.created_at.day for t in page] == [3, 2]

    def test_requester_cannot_view_foreign_ticket(self, service, actors, open_ticket):
        with pytest.raises(PermissionDeniedError):
            service.get_ticket(open_ticket.ticket_id, "t-acme", actors.other_requester)

    def test_requester_cannot_view_history(self, service, actors, open_ticket):
        with pytest.raises(PermissionDeniedError):
            service.get_history(open_ticket.ticket_id, "t-acme", actors.requester)

    def test_requester_deletes_own_ticket(self, service, actors, open_ticket):
        service.delete_ticket(open_ticket.ticket_id, "t-acme", actors.requester)

        with pytest.raises(TicketNotFoundError):
            service.get_ticket(open_ticket.ticket_id, "t-acme", actors.admin)

    def test_agent_cannot_delete_foreign_ticket(self, service, actors, open_ticket):
        with pytest.raises(PermissionDeniedError):
            service.delete_ticket(open_ticket.ticket_id, "t-acme", actors.agent)
