from backoffice.models.customer import Customer
from backoffice.models.project import Project
from backoffice.models.task import Task
from backoffice.models.invoice import Invoice

__all__ = [
    "Customer",
    "Project",
    "Task",
    "Invoice",
]
