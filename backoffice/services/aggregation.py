"""
Aggregation engine - dashboard summaries, revenue and monthly sales rollups,
next-action queues and list ordering.

Every function is pure and recomputes from the full in-memory collections.
"""
import math
from collections import Counter
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from backoffice.models.enums import (
    InvoiceStatus,
    ProjectStatus,
    ProjectType,
    TaskPriority,
    TaskStatus,
)
from backoffice.schemas import (
    Activity,
    Customer,
    Invoice,
    Project,
    Record,
    Task,
    effective_project_type,
    invoice_total,
)

NON_CLIENT_TYPES = {ProjectType.INTERNAL, ProjectType.DEMO}
ACTIVE_PROJECT_STATUSES = {ProjectStatus.IN_PROGRESS, ProjectStatus.WAITING_REVIEW}
CLOSED_PROJECT_STATUSES = {ProjectStatus.COMPLETED, ProjectStatus.LOST}

STATUS_ORDER = {TaskStatus.TODO: 0, TaskStatus.IN_PROGRESS: 1, TaskStatus.DONE: 2}
PRIORITY_ORDER = {TaskPriority.HIGH: 0, TaskPriority.MEDIUM: 1, TaskPriority.LOW: 2}

# Missing due dates sort as this date in user-selected sorts
MAX_DUE_DATE = date(9999, 12, 31)


# --- Result types ---

class RevenueSummary(Record):
    total_ex_tax: int = 0
    total_with_tax: int = 0
    paid_ex_tax: int = 0
    paid_with_tax: int = 0
    unpaid_ex_tax: int = 0
    unpaid_with_tax: int = 0


class SalesBasis(str, Enum):
    ISSUE = "issue"
    PAID = "paid"


class MonthlySalesRow(Record):
    month: Optional[int] = None  # None on the year-total row
    count: int = 0
    amount_ex_tax: int = 0
    amount_with_tax: int = 0
    paid_with_tax: int = 0
    unpaid_with_tax: Optional[int] = 0  # None under the paid basis


class MonthlySales(Record):
    year: int
    basis: SalesBasis
    months: List[MonthlySalesRow]
    total: MonthlySalesRow


class OwnerKind(str, Enum):
    TASK = "task"
    PROJECT = "project"


class NextAction(Record):
    activity: Activity
    owner_kind: OwnerKind
    owner_id: str
    owner_name: str
    customer_name: Optional[str] = None


class ProjectProgress(Record):
    project: Project
    customer_name: Optional[str] = None
    task_count: int = 0
    done_count: int = 0
    progress: int = 0


class DashboardSummary(Record):
    client_count: int
    active_project_count: int
    revenue: RevenueSummary
    pending_tasks: List[Task]
    upcoming_deadlines: List[Project]
    active_projects: List[ProjectProgress]
    next_actions: List[NextAction]
    # collection -> load failure, filled in by the caller
    load_errors: Dict[str, str] = {}


class TaskSortKey(str, Enum):
    ID = "id"
    NAME = "name"
    CATEGORY = "category"
    STATUS = "status"
    PRIORITY = "priority"
    DUE_DATE = "due_date"


# --- Customers ---

def is_client_visible(customer: Customer, projects: Iterable[Project]) -> bool:
    """
    True when the customer has no projects, or at least one project that is
    neither internal nor demo. Internal/demo-only customers are synthetic
    buckets for non-billable work.
    """
    own = [p for p in projects if p.customer_id == customer.id]
    if not own:
        return True
    return any(effective_project_type(p) not in NON_CLIENT_TYPES for p in own)


def client_visible_customers(customers: Iterable[Customer], projects: Sequence[Project]) -> List[Customer]:
    return [c for c in customers if is_client_visible(c, projects)]


def customer_project_counts(projects: Iterable[Project]) -> Dict[str, int]:
    return dict(Counter(p.customer_id for p in projects))


def customer_name(customers: Iterable[Customer], customer_id: Optional[str]) -> Optional[str]:
    if not customer_id:
        return None
    return next((c.name for c in customers if c.id == customer_id), None)


# --- Projects ---

def active_projects(projects: Iterable[Project]) -> List[Project]:
    return [p for p in projects if p.status in ACTIVE_PROJECT_STATUSES]


def filter_projects(
    projects: Iterable[Project],
    project_type: Optional[ProjectType] = None,
    status: Optional[ProjectStatus] = None,
) -> List[Project]:
    return [
        p for p in projects
        if (project_type is None or effective_project_type(p) == project_type)
        and (status is None or p.status == status)
    ]


def upcoming_deadlines(projects: Iterable[Project], now: datetime, days: int = 7) -> List[Project]:
    """Open projects due strictly between now and now + days, soonest first."""
    window_end = now + timedelta(days=days)
    upcoming = [
        p for p in projects
        if p.due_date is not None
        and p.status not in CLOSED_PROJECT_STATUSES
        and now < datetime.combine(p.due_date, time.min) < window_end
    ]
    return sorted(upcoming, key=lambda p: p.due_date)


def task_progress(project_id: str, tasks: Iterable[Task]) -> int:
    """Percent of the project's tasks that are done, rounded half up; 0 without tasks."""
    own = [t for t in tasks if t.project_id == project_id]
    if not own:
        return 0
    done = sum(1 for t in own if t.status == TaskStatus.DONE)
    return math.floor(done * 100 / len(own) + 0.5)


# --- Tasks ---

def filter_tasks(tasks: Iterable[Task], status: Optional[TaskStatus] = None) -> List[Task]:
    return [t for t in tasks if status is None or t.status == status]


def pending_tasks(tasks: Iterable[Task], limit: Optional[int] = None) -> List[Task]:
    """Tasks not done, soonest due first; undated tasks last."""
    pending = sorted(
        (t for t in tasks if t.status != TaskStatus.DONE),
        key=lambda t: (t.due_date is None, t.due_date or MAX_DUE_DATE),
    )
    return pending[:limit] if limit is not None else pending


def sort_tasks_default(tasks: Iterable[Task]) -> List[Task]:
    """todo < in_progress < done, then high < medium < low."""
    return sorted(tasks, key=lambda t: (STATUS_ORDER[t.status], PRIORITY_ORDER[t.priority]))


def sort_tasks(
    tasks: Iterable[Task],
    key: Optional[TaskSortKey] = None,
    descending: bool = False,
    projects: Sequence[Project] = (),
) -> List[Task]:
    if key is None:
        return sort_tasks_default(tasks)

    categories = {p.id: (p.category.value if p.category else "") for p in projects}

    def sort_value(task: Task):
        if key == TaskSortKey.ID:
            return task.task_number or ""
        if key == TaskSortKey.NAME:
            return task.name
        if key == TaskSortKey.CATEGORY:
            return categories.get(task.project_id, "")
        if key == TaskSortKey.STATUS:
            return STATUS_ORDER[task.status]
        if key == TaskSortKey.PRIORITY:
            return PRIORITY_ORDER[task.priority]
        return task.due_date or MAX_DUE_DATE

    return sorted(tasks, key=sort_value, reverse=descending)


# --- Invoices ---

def _is_unpaid(invoice: Invoice) -> bool:
    return invoice.status not in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)


def revenue_summary(invoices: Iterable[Invoice]) -> RevenueSummary:
    """
    Paid and unpaid totals, tax-exclusive and inclusive. Cancelled invoices
    fall in neither bucket but still count toward the grand total.
    """
    summary = RevenueSummary()
    for inv in invoices:
        summary.total_ex_tax += inv.amount
        summary.total_with_tax += invoice_total(inv)
        if inv.status == InvoiceStatus.PAID:
            summary.paid_ex_tax += inv.amount
            summary.paid_with_tax += invoice_total(inv)
        elif _is_unpaid(inv):
            summary.unpaid_ex_tax += inv.amount
            summary.unpaid_with_tax += invoice_total(inv)
    return summary


def sort_invoices_by_issue_date(invoices: Iterable[Invoice]) -> List[Invoice]:
    return sorted(invoices, key=lambda i: i.issue_date, reverse=True)


def monthly_sales(invoices: Iterable[Invoice], year: int, basis: SalesBasis = SalesBasis.ISSUE) -> MonthlySales:
    """
    Twelve monthly rows plus a year total.

    issue basis: bucketed by issue date, every status included, with the
    tax-inclusive amount split into paid and unpaid.
    paid basis: paid invoices only, bucketed by paid date; no unpaid column.
    """
    by_paid = basis == SalesBasis.PAID
    months = [
        MonthlySalesRow(month=m, unpaid_with_tax=None if by_paid else 0)
        for m in range(1, 13)
    ]

    for inv in invoices:
        if by_paid:
            if inv.status != InvoiceStatus.PAID or inv.paid_date is None:
                continue
            bucket_date = inv.paid_date
        else:
            bucket_date = inv.issue_date
        if bucket_date.year != year:
            continue

        row = months[bucket_date.month - 1]
        row.count += 1
        row.amount_ex_tax += inv.amount
        row.amount_with_tax += invoice_total(inv)
        if inv.status == InvoiceStatus.PAID:
            row.paid_with_tax += invoice_total(inv)
        elif not by_paid and _is_unpaid(inv):
            row.unpaid_with_tax += invoice_total(inv)

    total = MonthlySalesRow(
        month=None,
        count=sum(r.count for r in months),
        amount_ex_tax=sum(r.amount_ex_tax for r in months),
        amount_with_tax=sum(r.amount_with_tax for r in months),
        paid_with_tax=sum(r.paid_with_tax for r in months),
        unpaid_with_tax=None if by_paid else sum(r.unpaid_with_tax for r in months),
    )
    return MonthlySales(year=year, basis=basis, months=months, total=total)


# --- Next actions ---

def next_actions(
    tasks: Iterable[Task],
    projects: Sequence[Project],
    customers: Sequence[Customer],
    today: date,
    include_overdue: bool = False,
    limit: Optional[int] = None,
    self_project_name: Optional[str] = None,
) -> List[NextAction]:
    """
    Incomplete activities across tasks and projects, oldest date first.
    Without include_overdue only activities dated today or later are kept.
    """
    projects_by_id = {p.id: p for p in projects}
    items: List[NextAction] = []

    def wanted(activity: Activity) -> bool:
        return not activity.completed and (include_overdue or activity.date >= today)

    for task in tasks:
        project = projects_by_id.get(task.project_id)
        name = None
        if project is not None and project.name != self_project_name:
            name = customer_name(customers, task.customer_id or project.customer_id)
        for activity in task.activities:
            if wanted(activity):
                items.append(NextAction(
                    activity=activity,
                    owner_kind=OwnerKind.TASK,
                    owner_id=task.id,
                    owner_name=task.name,
                    customer_name=name,
                ))

    for project in projects:
        name = customer_name(customers, project.customer_id)
        for activity in project.activities:
            if wanted(activity):
                items.append(NextAction(
                    activity=activity,
                    owner_kind=OwnerKind.PROJECT,
                    owner_id=project.id,
                    owner_name=project.name,
                    customer_name=name,
                ))

    items.sort(key=lambda item: item.activity.date)
    return items[:limit] if limit is not None else items


# --- Dashboard ---

def project_progress(project: Project, tasks: Sequence[Task], customers: Sequence[Customer]) -> ProjectProgress:
    own = [t for t in tasks if t.project_id == project.id]
    return ProjectProgress(
        project=project,
        customer_name=customer_name(customers, project.customer_id),
        task_count=len(own),
        done_count=sum(1 for t in own if t.status == TaskStatus.DONE),
        progress=task_progress(project.id, own),
    )


def dashboard_summary(
    customers: Sequence[Customer],
    projects: Sequence[Project],
    tasks: Sequence[Task],
    invoices: Sequence[Invoice],
    now: datetime,
    pending_limit: int = 5,
    next_action_limit: int = 10,
    active_project_limit: int = 6,
    deadline_days: int = 7,
    self_project_name: Optional[str] = None,
) -> DashboardSummary:
    active = active_projects(projects)
    return DashboardSummary(
        client_count=len(client_visible_customers(customers, projects)),
        active_project_count=len(active),
        revenue=revenue_summary(invoices),
        pending_tasks=pending_tasks(tasks, limit=pending_limit),
        upcoming_deadlines=upcoming_deadlines(projects, now, days=deadline_days),
        active_projects=[project_progress(p, tasks, customers) for p in active[:active_project_limit]],
        next_actions=next_actions(
            tasks, projects, customers, now.date(),
            limit=next_action_limit,
            self_project_name=self_project_name,
        ),
    )
