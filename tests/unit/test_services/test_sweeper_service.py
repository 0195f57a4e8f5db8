"""Tests for the idle-resolution sweep"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from ticketdesk.domain.enums import TicketStatus
from ticketdesk.repositories.ticket_repo import TicketRepository
from ticketdesk.repositories.history_repo import HistoryRepository
from ticketdesk.services.sweeper_service import SweeperService
from ticketdesk.scheduler.auto_close_scheduler import AutoCloseScheduler

NOW = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sweeper(directory):
    return SweeperService()


def resolved_idle_for(insert_ticket, idle, tenant_id="t-acme", department_id="d-it", **kwargs):
    last_touch = NOW - idle
    return insert_ticket(
        tenant_id=tenant_id,
        department_id=department_id,
        status=kwargs.pop("status", TicketStatus.RESOLVED),
        created_at=last_touch - timedelta(days=1),
        updated_at=last_touch,
        resolved_at=last_touch,
        **kwargs
    )


class TestSweepIdleResolved:

    def test_cutoff_is_seven_days(self, sweeper, insert_ticket):
        fresh = resolved_idle_for(insert_ticket, timedelta(days=6, hours=23))
        stale = resolved_idle_for(insert_ticket, timedelta(days=7, hours=1))

        assert sweeper.sweep_idle_resolved(now=NOW) == 1

        repo = TicketRepository()
        assert repo.get_ticket(fresh.ticket_id, "t-acme").status == TicketStatus.RESOLVED
        closed = repo.get_ticket(stale.ticket_id, "t-acme")
        assert closed.status == TicketStatus.CLOSED
        assert closed.updated_at == NOW
        # Resolution time is not moved by the sweep
        assert closed.resolved_at == stale.resolved_at.replace(microsecond=0)

    def test_second_run_is_a_noop(self, sweeper, insert_ticket):
        resolved_idle_for(insert_ticket, timedelta(days=10))

        assert sweeper.sweep_idle_resolved(now=NOW) == 1
        assert sweeper.sweep_idle_resolved(now=NOW) == 0

    def test_sweep_writes_no_history(self, sweeper, insert_ticket):
        stale = resolved_idle_for(insert_ticket, timedelta(days=10))

        sweeper.sweep_idle_resolved(now=NOW)

        assert HistoryRepository().get_history_for_ticket(stale.ticket_id, "t-acme") == []

    @pytest.mark.parametrize("status", [TicketStatus.ON_HOLD, TicketStatus.WAITING_REQUESTER, TicketStatus.CLOSED])
    def test_other_statuses_are_left_alone(self, sweeper, insert_ticket, status):
        ticket = resolved_idle_for(insert_ticket, timedelta(days=30), status=status)

        assert sweeper.sweep_idle_resolved(now=NOW) == 0
        assert TicketRepository().get_ticket(ticket.ticket_id, "t-acme").status == status

    def test_tenant_restriction(self, sweeper, insert_ticket):
        resolved_idle_for(insert_ticket, timedelta(days=10))
        globex = resolved_idle_for(insert_ticket, timedelta(days=10), tenant_id="t-globex", department_id="d-ops")

        assert sweeper.sweep_idle_resolved(tenant_id="t-acme", now=NOW) == 1
        assert TicketRepository().get_ticket(globex.ticket_id, "t-globex").status == TicketStatus.RESOLVED

        assert sweeper.sweep_idle_resolved(now=NOW) == 1

    def test_threshold_override(self, sweeper, insert_ticket):
        resolved_idle_for(insert_ticket, timedelta(days=2))

        assert sweeper.sweep_idle_resolved(now=NOW, after_days=1) == 1


class TestAutoCloseScheduler:

    def test_job_runs_sweep(self, insert_ticket):
        old = NOW - timedelta(days=30)
        insert_ticket(status=TicketStatus.RESOLVED, created_at=old, updated_at=old, resolved_at=old)

        asyncio.run(AutoCloseScheduler()._sweep_idle_resolved())

        tickets = TicketRepository().find_resolved_between("t-acme", old.date(), old.date())
        assert [t.status for t in tickets] == [TicketStatus.CLOSED]

    def test_job_survives_sweep_errors(self):
        class BrokenSweeper:
            def sweep_idle_resolved(self):
                raise RuntimeError("mongo down")

        # Must not raise, the next interval still runs
        asyncio.run(AutoCloseScheduler(sweeper=BrokenSweeper())._sweep_idle_resolved())
