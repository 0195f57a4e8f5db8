"""Aggregator - Turn resolved tickets into analytics buckets and averages"""
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..domain.models import (
    Ticket, DepartmentRef, TicketAnalytics, PeriodCount, BreakdownEntry, AverageEntry
)
from ..domain.enums import ViewMode
from ..utils.time import hours_between
from .bucketing import bucket_key, bucket_sequence


class _Group:
    """Running count and resolution hours for one person or department"""

    def __init__(self, group_id: str, name: str):
        self.group_id = group_id
        self.name = name
        self.count = 0
        self.total_hours = 0.0

    def add(self, hours: float) -> None:
        self.count += 1
        self.total_hours += hours

    @property
    def average(self) -> float:
        return self.total_hours / self.count if self.count else 0.0

    def breakdown(self) -> BreakdownEntry:
        return BreakdownEntry(id=self.group_id, name=self.name, count=self.count, average_time=self.average)

    def averages(self) -> AverageEntry:
        return AverageEntry(id=self.group_id, name=self.name, average_time=self.average, tickets_count=self.count)


def resolution_hours(ticket: Ticket) -> float:
    """Hours from creation to resolution"""
    if ticket.resolved_at is None:
        return 0.0
    return max(hours_between(ticket.created_at, ticket.resolved_at), 0.0)


def aggregate_resolutions(
    tickets: Iterable[Ticket],
    start_date: date,
    end_date: date,
    view_mode: ViewMode,
    departments: Optional[Iterable[DepartmentRef]] = None
) -> TicketAnalytics:
    """
    Aggregate resolved tickets into the analytics shape.

    Tickets must already be filtered by tenant, access scope and resolution
    date; tickets without ``resolved_at`` are ignored.

    Args:
        tickets: Resolved tickets in range
        start_date: First day of the range (inclusive)
        end_date: Last day of the range (inclusive)
        view_mode: Bucket granularity for the time series
        departments: Departments listed even when they have no tickets

    Returns:
        TicketAnalytics with zero-filled time series and per-group averages
    """
    labels = bucket_sequence(start_date, end_date, view_mode)
    counts: Dict[str, int] = {label: 0 for label in labels}

    people: Dict[str, _Group] = {}
    depts: Dict[str, _Group] = {}
    for dept in departments or []:
        depts[dept.department_id] = _Group(dept.department_id, dept.name)

    total_hours = 0.0
    total_tickets = 0

    for ticket in tickets:
        if ticket.resolved_at is None:
            continue

        key = bucket_key(ticket.resolved_at, view_mode)
        if key not in counts:
            continue
        counts[key] += 1

        hours = resolution_hours(ticket)
        total_hours += hours
        total_tickets += 1

        if ticket.assignee is not None:
            person = people.setdefault(
                ticket.assignee.user_id,
                _Group(ticket.assignee.user_id, ticket.assignee.display_name)
            )
            person.add(hours)

        if ticket.department is not None:
            dept = depts.setdefault(
                ticket.department.department_id,
                _Group(ticket.department.department_id, ticket.department.name)
            )
            dept.add(hours)

    person_groups: List[_Group] = sorted(people.values(), key=lambda g: (-g.count, g.name))
    dept_groups: List[_Group] = sorted(depts.values(), key=lambda g: g.name)

    return TicketAnalytics(
        start_date=start_date,
        end_date=end_date,
        view_mode=view_mode,
        general=[PeriodCount(period=label, count=counts[label]) for label in labels],
        by_person=[g.breakdown() for g in person_groups],
        by_department=[g.breakdown() for g in dept_groups],
        average_resolution_time=total_hours / total_tickets if total_tickets else 0.0,
        average_per_person=[g.averages() for g in person_groups],
        average_per_department=[g.averages() for g in dept_groups],
    )
