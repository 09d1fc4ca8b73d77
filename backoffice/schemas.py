"""
Domain records shared by the stores, the aggregation engine and the API.

Attributes are snake_case; serialized keys are camelCase (the local
key-value format and the HTTP payloads both use the aliases).
"""
import math
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backoffice.models.enums import (
    ActivityType,
    InvoiceStatus,
    ProjectCategory,
    ProjectStatus,
    ProjectType,
    TaskPriority,
    TaskStatus,
)


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- Activity (embedded in projects and tasks) ---

class Activity(Record):
    id: str
    date: date
    type: ActivityType = ActivityType.OTHER
    content: str
    completed: bool = False
    created_at: datetime


class ActivityCreate(Record):
    date: date
    type: ActivityType = ActivityType.OTHER
    content: str


# --- Customer ---

class CustomerBase(Record):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    position: Optional[str] = None
    contact_person: Optional[str] = None
    category: Optional[str] = None
    referral_source: Optional[str] = None
    memo: Optional[str] = None


class CustomerCreate(CustomerBase):
    pass


class Customer(CustomerBase):
    id: str
    created_at: datetime
    updated_at: datetime


# --- Project ---

class ProjectBase(Record):
    project_number: Optional[str] = None
    external_ref: Optional[str] = None
    customer_id: str
    name: str
    description: Optional[str] = None
    # Absent means client; resolve with effective_project_type()
    type: Optional[ProjectType] = None
    category: Optional[ProjectCategory] = None
    status: ProjectStatus = ProjectStatus.CONSULTING
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    budget: Optional[int] = None
    domain_info: Optional[str] = None
    ai_consult_url: Optional[str] = None
    code_folder: Optional[str] = None
    meeting_folder: Optional[str] = None
    contract_folder: Optional[str] = None
    staging_url: Optional[str] = None
    production_url: Optional[str] = None
    activities: List[Activity] = Field(default_factory=list)


class ProjectCreate(ProjectBase):
    pass


class Project(ProjectBase):
    id: str
    created_at: datetime
    updated_at: datetime


# --- Task ---

class TaskBase(Record):
    task_number: Optional[str] = None
    project_id: str
    customer_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = None
    domain_info: Optional[str] = None
    ai_consult_url: Optional[str] = None
    code_folder: Optional[str] = None
    meeting_folder: Optional[str] = None
    contract_folder: Optional[str] = None
    staging_url: Optional[str] = None
    production_url: Optional[str] = None
    activities: List[Activity] = Field(default_factory=list)


class TaskCreate(TaskBase):
    pass


class Task(TaskBase):
    id: str
    created_at: datetime
    updated_at: datetime


# --- Invoice ---

class InvoiceBase(Record):
    customer_id: str
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    invoice_number: Optional[str] = None
    estimate_amount: Optional[int] = None
    amount: int
    tax: Optional[int] = None
    issue_date: date
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    memo: Optional[str] = None


class InvoiceCreate(InvoiceBase):
    pass


class Invoice(InvoiceBase):
    invoice_number: str
    id: str
    created_at: datetime
    updated_at: datetime


def effective_project_type(project: ProjectBase) -> ProjectType:
    """A project's type with client substituted when absent."""
    return project.type or ProjectType.CLIENT


def invoice_total(invoice: InvoiceBase) -> int:
    """Tax-inclusive total of an invoice."""
    return invoice.amount + (invoice.tax or 0)


def default_tax(amount: int, rate: float) -> int:
    """Consumption tax on a tax-exclusive amount, rounded down."""
    return math.floor(amount * rate)
