"""
Display-number generators for projects, tasks and invoices.

Each generator is a pure function of the live collection and must be
called at creation time; numbers are never cached.
"""
import re
from datetime import date
from enum import Enum
from typing import Iterable, Optional, Tuple

from backoffice.models.enums import ProjectType
from backoffice.schemas import Invoice, Project, Task

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class TaskAudience(str, Enum):
    CUSTOMER = "customer"
    INTERNAL = "internal"


def _parse_sequence(value: str) -> int:
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def next_in_sequence(existing: Iterable[Optional[str]], prefix: str, width: int) -> str:
    """max(existing numbers sharing the prefix) + 1, zero-padded to width."""
    numbers = [
        _parse_sequence(value[len(prefix):])
        for value in existing
        if value and value.startswith(prefix)
    ]
    return f"{prefix}{max(numbers, default=0) + 1:0{width}d}"


def project_number_scheme(project_type: ProjectType, today: date) -> Tuple[str, int]:
    if project_type == ProjectType.INTERNAL:
        return "Pro-", 3
    if project_type == ProjectType.DEMO:
        return "Demo-", 3
    return f"{today.year % 100:02d}-", 2


def next_project_number(
    projects: Iterable[Project],
    project_type: Optional[ProjectType] = None,
    today: Optional[date] = None,
) -> str:
    """26-01 for client work, Pro-001 for internal products, Demo-001 for demos."""
    prefix, width = project_number_scheme(project_type or ProjectType.CLIENT, today or date.today())
    return next_in_sequence((p.project_number for p in projects), prefix, width)


def task_number_prefix(audience: TaskAudience, today: date) -> str:
    if audience == TaskAudience.INTERNAL:
        return f"DEV{today.year}-"
    return f"T{today.year}-"


def next_task_number(
    tasks: Iterable[Task],
    audience: TaskAudience = TaskAudience.CUSTOMER,
    today: Optional[date] = None,
) -> str:
    """
    T2026-001 for customer tasks, DEV2026-001 for internal ones. Legacy data
    used T{year}- for every task; those numbers continue the customer sequence.
    """
    prefix = task_number_prefix(audience, today or date.today())
    return next_in_sequence((t.task_number for t in tasks), prefix, 3)


def next_invoice_number(invoices: Iterable[Invoice], today: Optional[date] = None) -> str:
    """
    INV-YYYYMM-NNN where NNN counts this month's invoices (by issue date) + 1.

    Count-based: deleting an invoice from the month and creating another can
    repeat a number.
    """
    today = today or date.today()
    count = sum(
        1 for i in invoices
        if i.issue_date.year == today.year and i.issue_date.month == today.month
    )
    return f"INV-{today.year}{today.month:02d}-{count + 1:03d}"
