"""
Application state - in-memory collections loaded from the entity stores.

BoardState is the single owner of the four collections. Mutations go
through the store and the cached list is refreshed from the store's return
value. Observers registered with subscribe() are called with
(collection, event) after every successful load or mutation.
"""
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Set

from backoffice.config import Settings, get_settings
from backoffice.models.enums import ProjectType, TaskStatus
from backoffice.schemas import (
    Customer,
    CustomerCreate,
    Invoice,
    InvoiceCreate,
    Project,
    ProjectCreate,
    Task,
    TaskCreate,
    effective_project_type,
)
from backoffice.services.numbering import (
    TaskAudience,
    next_invoice_number,
    next_project_number,
    next_task_number,
)
from backoffice.store import Stores, StoreError
from backoffice.utils.logger import get_logger

logger = get_logger(__name__)

COLLECTIONS = ("customers", "projects", "tasks", "invoices")

Observer = Callable[[str, str], None]


class BoardState:
    def __init__(self, stores: Stores, settings: Optional[Settings] = None):
        self.stores = stores
        self.settings = settings or get_settings()
        self.customers: List[Customer] = []
        self.projects: List[Project] = []
        self.tasks: List[Task] = []
        self.invoices: List[Invoice] = []
        # collection -> last load failure; cleared by the next successful load
        self.load_errors: Dict[str, str] = {}
        self.loaded: Set[str] = set()
        self._observers: List[Observer] = []

    # ===================== Observers =====================

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it."""
        self._observers.append(callback)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _notify(self, collection: str, event: str) -> None:
        for callback in list(self._observers):
            callback(collection, event)

    # ===================== Loading =====================

    async def load(self, collection: str) -> None:
        """
        Reload one collection from its store. A failing store is logged and
        the previous contents are kept; the failure is recorded in load_errors.
        """
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        store = getattr(self.stores, collection)
        try:
            items = await store.get_all()
        except StoreError as e:
            logger.error(f"Failed to load {collection}: {e}")
            self.load_errors[collection] = str(e)
            return

        items.sort(key=lambda item: item.created_at, reverse=True)
        setattr(self, collection, items)
        self.load_errors.pop(collection, None)
        self.loaded.add(collection)
        logger.info(f"Loaded {len(items)} {collection}")
        self._notify(collection, "loaded")

    async def load_all(self) -> None:
        for collection in COLLECTIONS:
            await self.load(collection)

    # ===================== Generic mutations =====================

    async def _create(self, collection: str, data):
        # Store failures propagate to the caller
        record = await getattr(self.stores, collection).create(data)
        getattr(self, collection).insert(0, record)
        self._notify(collection, "created")
        return record

    async def _update(self, collection: str, entity_id: str, changes: Dict[str, Any]):
        # InvalidRecordError (bad changes) propagates; store failures are swallowed
        try:
            record = await getattr(self.stores, collection).update(entity_id, changes)
        except StoreError as e:
            logger.error(f"Failed to update {collection} {entity_id}: {e}")
            return None
        if record is None:
            return None

        items = getattr(self, collection)
        setattr(self, collection, [record if item.id == entity_id else item for item in items])
        self._notify(collection, "updated")
        return record

    async def _delete(self, collection: str, entity_id: str) -> bool:
        try:
            deleted = await getattr(self.stores, collection).delete(entity_id)
        except StoreError as e:
            logger.error(f"Failed to delete {collection} {entity_id}: {e}")
            return False
        if not deleted:
            return False

        items = getattr(self, collection)
        setattr(self, collection, [item for item in items if item.id != entity_id])
        self._notify(collection, "deleted")
        return True

    # ===================== Customers =====================

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return next((c for c in self.customers if c.id == customer_id), None)

    async def add_customer(self, data: CustomerCreate) -> Customer:
        customer = await self._create("customers", data)
        logger.info(f"Created customer {customer.id}: {customer.name}")
        return customer

    async def update_customer(self, customer_id: str, changes: Dict[str, Any]) -> Optional[Customer]:
        return await self._update("customers", customer_id, changes)

    async def delete_customer(self, customer_id: str) -> bool:
        """Delete a customer with its projects (and their tasks) and its invoices."""
        if self.get_customer(customer_id) is None:
            return False
        logger.info(f"Deleting customer {customer_id} with its projects and invoices")
        for project in self.projects_by_customer(customer_id):
            await self.delete_project(project.id)
        for invoice in self.invoices_by_customer(customer_id):
            await self.delete_invoice(invoice.id)
        return await self._delete("customers", customer_id)

    # ===================== Projects =====================

    def get_project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    def find_project_by_name(self, name: str) -> Optional[Project]:
        return next((p for p in self.projects if p.name == name), None)

    def projects_by_customer(self, customer_id: str) -> List[Project]:
        return [p for p in self.projects if p.customer_id == customer_id]

    async def add_project(self, data: ProjectCreate) -> Project:
        if not data.project_number:
            data = data.model_copy(update={
                "project_number": next_project_number(self.projects, data.type, date.today()),
            })
        project = await self._create("projects", data)
        logger.info(f"Created project {project.project_number}: {project.name}")
        return project

    async def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        return await self._update("projects", project_id, changes)

    async def delete_project(self, project_id: str) -> bool:
        """Delete a project with its tasks and invoices."""
        if self.get_project(project_id) is None:
            return False
        logger.info(f"Deleting project {project_id} with its tasks and invoices")
        for task in self.tasks_by_project(project_id):
            await self.delete_task(task.id)
        for invoice in self.invoices_by_project(project_id):
            await self.delete_invoice(invoice.id)
        return await self._delete("projects", project_id)

    # ===================== Tasks =====================

    def get_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def tasks_by_project(self, project_id: str) -> List[Task]:
        return [t for t in self.tasks if t.project_id == project_id]

    def tasks_by_status(self, status: TaskStatus) -> List[Task]:
        return [t for t in self.tasks if t.status == status]

    def task_audience(self, project_id: str) -> TaskAudience:
        """Internal for tasks under internal/demo projects or the self-development project."""
        project = self.get_project(project_id)
        if project is None:
            return TaskAudience.CUSTOMER
        if effective_project_type(project) in (ProjectType.INTERNAL, ProjectType.DEMO):
            return TaskAudience.INTERNAL
        if project.name == self.settings.SELF_DEV_PROJECT_NAME:
            return TaskAudience.INTERNAL
        return TaskAudience.CUSTOMER

    async def add_task(self, data: TaskCreate) -> Task:
        if not data.task_number:
            audience = self.task_audience(data.project_id)
            data = data.model_copy(update={
                "task_number": next_task_number(self.tasks, audience, date.today()),
            })
        task = await self._create("tasks", data)
        logger.info(f"Created task {task.task_number}: {task.name}")
        return task

    async def update_task(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        return await self._update("tasks", task_id, changes)

    async def move_task(self, task_id: str, status: TaskStatus) -> Optional[Task]:
        return await self.update_task(task_id, {"status": status})

    async def delete_task(self, task_id: str) -> bool:
        """Delete a task; invoices that referenced it keep their customer/project."""
        if self.get_task(task_id) is None:
            return False
        for invoice in self.invoices_by_task(task_id):
            await self.update_invoice(invoice.id, {"task_id": None})
        return await self._delete("tasks", task_id)

    # ===================== Invoices =====================

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        return next((i for i in self.invoices if i.id == invoice_id), None)

    def invoices_by_customer(self, customer_id: str) -> List[Invoice]:
        return [i for i in self.invoices if i.customer_id == customer_id]

    def invoices_by_project(self, project_id: str) -> List[Invoice]:
        return [i for i in self.invoices if i.project_id == project_id]

    def invoices_by_task(self, task_id: str) -> List[Invoice]:
        return [i for i in self.invoices if i.task_id == task_id]

    async def add_invoice(self, data: InvoiceCreate) -> Invoice:
        if not data.invoice_number:
            data = data.model_copy(update={
                "invoice_number": next_invoice_number(self.invoices, date.today()),
            })
        invoice = await self._create("invoices", data)
        logger.info(f"Created invoice {invoice.invoice_number} ({invoice.amount})")
        return invoice

    async def update_invoice(self, invoice_id: str, changes: Dict[str, Any]) -> Optional[Invoice]:
        return await self._update("invoices", invoice_id, changes)

    async def delete_invoice(self, invoice_id: str) -> bool:
        return await self._delete("invoices", invoice_id)
