"""
Import/reconciliation of the three legacy ledgers.

- progress ledger (進行台帳): one customer (matched by name), one project and,
  when an amount is present, one invoice per row
- development ledger (開発台帳): one task per row, linked to the progress
  ledger project by its 案件ID or to the self-development project
- product registry (プロダクト管理): one internal/demo project per row under a
  customer named after the category

Rows are processed in order and each row's records are created before the
next row starts. Nothing is rolled back: when a store write fails the
import stops and the error carries the counts created so far.
"""
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Union

from backoffice.models.enums import (
    InvoiceStatus,
    ProjectStatus,
    ProjectType,
    TaskPriority,
    TaskStatus,
)
from backoffice.schemas import CustomerCreate, InvoiceCreate, ProjectCreate, Record, TaskCreate
from backoffice.services.csv_parser import parse_csv
from backoffice.state import BoardState
from backoffice.store import StoreError
from backoffice.utils.logger import get_logger

logger = get_logger(__name__)


class ImportKind(str, Enum):
    PROGRESS = "progress"
    DEVELOPMENT = "development"
    PRODUCT = "product"


class ImportResult(Record):
    customers: int = 0
    projects: int = 0
    tasks: int = 0
    invoices: int = 0
    skipped: int = 0


class CsvImportError(Exception):
    """An import stopped on a store failure; records created before it remain."""

    def __init__(self, message: str, result: ImportResult):
        super().__init__(message)
        self.result = result


# ===================== Vocabulary =====================

PROJECT_STATUS_MAP = {
    "相談中": ProjectStatus.CONSULTING,
    "見積中": ProjectStatus.ESTIMATING,
    "制作中": ProjectStatus.IN_PROGRESS,
    "確認待ち": ProjectStatus.WAITING_REVIEW,
    "完了": ProjectStatus.COMPLETED,
    "保守中": ProjectStatus.MAINTENANCE,
    "失注": ProjectStatus.LOST,
    "保留": ProjectStatus.CONSULTING,
    "中止": ProjectStatus.LOST,
}

TASK_STATUS_MAP = {
    "完了": TaskStatus.DONE,
    "進行中": TaskStatus.IN_PROGRESS,
    "確認待ち": TaskStatus.IN_PROGRESS,
    "未着手": TaskStatus.TODO,
}

TASK_PRIORITY_MAP = {
    "高": TaskPriority.HIGH,
    "中": TaskPriority.MEDIUM,
    "低": TaskPriority.LOW,
}

INVOICE_STATUS_MAP = {
    "未請求": InvoiceStatus.DRAFT,
    "請求済": InvoiceStatus.SENT,
    "入金済": InvoiceStatus.PAID,
    "期限超過": InvoiceStatus.OVERDUE,
}

# Legacy join key written into project descriptions
LEGACY_PROJECT_REF = re.compile(r"案件ID:\s*(\S+)")

_FULL_DATE = re.compile(r"(\d{4})/(\d{1,2})/(\d{1,2})")
_MONTH_DAY = re.compile(r"^(\d{1,2})/(\d{1,2})$")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def map_project_status(text: str) -> ProjectStatus:
    return PROJECT_STATUS_MAP.get(text, ProjectStatus.CONSULTING)


def map_task_status(text: str, completed_date: str = "") -> TaskStatus:
    # A completion date wins over the status column
    if completed_date:
        return TaskStatus.DONE
    return TASK_STATUS_MAP.get(text, TaskStatus.TODO)


def map_task_priority(text: str) -> TaskPriority:
    return TASK_PRIORITY_MAP.get(text, TaskPriority.MEDIUM)


def map_invoice_status(text: str, paid_date: str = "") -> InvoiceStatus:
    if paid_date:
        return InvoiceStatus.PAID
    return INVOICE_STATUS_MAP.get(text, InvoiceStatus.DRAFT)


def parse_ledger_date(value: str, today: Optional[date] = None) -> Optional[date]:
    """YYYY/M/D anywhere in the text, or a bare M/D in the current year."""
    if not value:
        return None
    try:
        match = _FULL_DATE.search(value)
        if match:
            year, month, day = match.groups()
            return date(int(year), int(month), int(day))
        match = _MONTH_DAY.match(value)
        if match:
            month, day = match.groups()
            return date((today or date.today()).year, int(month), int(day))
    except ValueError:
        return None
    return None


def parse_amount(value: str) -> int:
    """¥1,234,567 -> 1234567; anything non-numeric is 0."""
    if not value:
        return 0
    match = _LEADING_INT.match(value.replace("¥", "").replace("￥", "").replace(",", ""))
    return int(match.group(1)) if match else 0


def _join_labeled(*pairs) -> Optional[str]:
    text = "\n\n".join(f"{label}: {value}" for label, value in pairs if value)
    return text or None


# ===================== Row types =====================

@dataclass
class ProgressRow:
    project_ref: str
    client_name: str
    project_name: str
    kind: str
    status: str
    priority: str
    ai_consult_url: str
    next_action: str
    next_action_due: str
    due_date: str
    amount: str
    invoice_status: str
    contact: str
    invoice_date: str
    payment_due_date: str
    paid_date: str
    last_contact_date: str
    reminder_date: str
    folder_url: str
    reference_url: str
    staging_url: str
    production_url: str
    memo: str
    domain: str

    @classmethod
    def from_record(cls, record: Dict[str, str]) -> "ProgressRow":
        return cls(
            project_ref=record.get("案件ID", ""),
            client_name=record.get("クライアント名", ""),
            project_name=record.get("案件名", ""),
            kind=record.get("種別", ""),
            status=record.get("ステータス", ""),
            priority=record.get("優先度", ""),
            ai_consult_url=record.get("開発相談AI URL", ""),
            next_action=record.get("次アクション", ""),
            next_action_due=record.get("次アクション期限", ""),
            due_date=record.get("納期/公開予定日", ""),
            amount=record.get("見積金額（税抜）", ""),
            invoice_status=record.get("請求ステータス", ""),
            contact=record.get("連絡先", ""),
            invoice_date=record.get("請求日", ""),
            payment_due_date=record.get("入金予定日", ""),
            paid_date=record.get("入金日", ""),
            last_contact_date=record.get("最終連絡日", ""),
            reminder_date=record.get("催促予定日", ""),
            folder_url=record.get("フォルダURL", ""),
            reference_url=record.get("参考URL/デザインURL", ""),
            staging_url=record.get("検証用URL", ""),
            production_url=record.get("公開URL", ""),
            memo=record.get("メモ", ""),
            domain=record.get("ドメイン", ""),
        )

    def is_importable(self) -> bool:
        return bool(self.client_name and self.project_name)


@dataclass
class DevelopmentRow:
    dev_id: str
    project_ref: str
    progress_link: str
    product_name: str
    title: str
    kind: str
    status: str
    priority: str
    start_date: str
    progress_memo: str
    due_date: str
    memo_link: str
    completed_date: str
    status_memo: str

    @classmethod
    def from_record(cls, record: Dict[str, str]) -> "DevelopmentRow":
        return cls(
            dev_id=record.get("開発ID", ""),
            project_ref=record.get("案件ID", ""),
            progress_link=record.get("進行台帳へ", ""),
            product_name=record.get("プロダクト/案件名", ""),
            title=record.get("タイトル", ""),
            kind=record.get("種別", ""),
            status=record.get("状態", ""),
            priority=record.get("優先度", ""),
            start_date=record.get("開始日", ""),
            progress_memo=record.get("進行メモ", ""),
            due_date=record.get("期限", ""),
            memo_link=record.get("メモ/リンク", ""),
            completed_date=record.get("完了日", ""),
            status_memo=record.get("ステイタスメモ", ""),
        )

    def is_importable(self) -> bool:
        return bool(self.product_name or self.title)


@dataclass
class ProductRow:
    category: str
    product: str
    link: str
    location: str
    github: str
    deploy_target: str
    cms: str
    database: str

    @classmethod
    def from_record(cls, record: Dict[str, str]) -> "ProductRow":
        return cls(
            category=record.get("カテゴリ", ""),
            product=record.get("プロダクト", ""),
            link=record.get("リンク", ""),
            location=record.get("格納場所", ""),
            github=record.get("github", ""),
            deploy_target=record.get("デプロイ先", ""),
            cms=record.get("CMS", ""),
            # Misspelled header in the source sheet
            database=record.get("Datebase", ""),
        )

    def is_importable(self) -> bool:
        return bool(self.product)


LedgerRow = Union[ProgressRow, DevelopmentRow, ProductRow]

ROW_TYPES = {
    ImportKind.PROGRESS: ProgressRow,
    ImportKind.DEVELOPMENT: DevelopmentRow,
    ImportKind.PRODUCT: ProductRow,
}


def decode_rows(kind: ImportKind, text: str) -> List[LedgerRow]:
    """Every data row of the CSV decoded as the ledger's row type."""
    row_type = ROW_TYPES[kind]
    return [row_type.from_record(record) for record in parse_csv(text)]


def preview_rows(kind: ImportKind, text: str) -> List[LedgerRow]:
    """Rows that carry the fields the ledger needs."""
    return [row for row in decode_rows(kind, text) if row.is_importable()]


# ===================== Importer =====================

class LedgerImporter:
    """
    One import run against a loaded BoardState. Customers are matched by
    exact name against the customers loaded when the run starts, plus the
    ones the run creates.
    """

    def __init__(self, board: BoardState, today: Optional[date] = None):
        self.board = board
        self.settings = board.settings
        self.today = today or date.today()
        self.result = ImportResult()
        self.customer_ids: Dict[str, str] = {c.name: c.id for c in board.customers}
        self.project_ids = self._project_lookup()

    def _project_lookup(self) -> Dict[str, str]:
        lookup = {}
        for project in self.board.projects:
            if project.description:
                match = LEGACY_PROJECT_REF.search(project.description)
                if match:
                    lookup.setdefault(match.group(1), project.id)
        # Real references take precedence over ones parsed from descriptions
        for project in self.board.projects:
            if project.external_ref:
                lookup[project.external_ref] = project.id
        return lookup

    async def run(self, kind: ImportKind, text: str) -> ImportResult:
        rows = decode_rows(kind, text)
        logger.info(f"Importing {len(rows)} {kind.value} rows")

        handlers = {
            ImportKind.PROGRESS: self._import_progress_row,
            ImportKind.DEVELOPMENT: self._import_development_row,
            ImportKind.PRODUCT: self._import_product_row,
        }
        handler = handlers[kind]

        for index, row in enumerate(rows, start=1):
            if not row.is_importable():
                self.result.skipped += 1
                continue
            try:
                await handler(row)
            except StoreError as e:
                logger.error(f"Import of {kind.value} stopped at row {index}: {e}")
                raise CsvImportError(f"Row {index}: {e}", self.result) from e

        logger.info(
            f"Import {kind.value} complete: {self.result.customers} customers, "
            f"{self.result.projects} projects, {self.result.tasks} tasks, "
            f"{self.result.invoices} invoices, {self.result.skipped} skipped"
        )
        return self.result

    async def _customer_id(self, name: str, **fields) -> str:
        customer_id = self.customer_ids.get(name)
        if customer_id is None:
            customer = await self.board.add_customer(CustomerCreate(name=name, **fields))
            customer_id = customer.id
            self.customer_ids[name] = customer_id
            self.result.customers += 1
        return customer_id

    async def _self_project_id(self) -> str:
        project = self.board.find_project_by_name(self.settings.SELF_DEV_PROJECT_NAME)
        if project is not None:
            return project.id
        customer_id = await self._customer_id(self.settings.SELF_DEV_CUSTOMER_NAME)
        project = await self.board.add_project(ProjectCreate(
            customer_id=customer_id,
            name=self.settings.SELF_DEV_PROJECT_NAME,
            type=ProjectType.INTERNAL,
            status=ProjectStatus.IN_PROGRESS,
        ))
        self.result.projects += 1
        return project.id

    async def _import_progress_row(self, row: ProgressRow) -> None:
        customer_id = await self._customer_id(
            row.client_name,
            email=row.contact or None,
            memo=f"ドメイン情報:\n{row.domain}" if row.domain else None,
        )

        amount = parse_amount(row.amount)
        project = await self.board.add_project(ProjectCreate(
            customer_id=customer_id,
            name=row.project_name or f"{row.client_name}案件",
            description=_join_labeled(
                ("種別", row.kind),
                ("次アクション", row.next_action),
                ("参考URL", row.reference_url),
                ("メモ", row.memo),
            ),
            type=ProjectType.CLIENT,
            status=map_project_status(row.status),
            due_date=parse_ledger_date(row.due_date, self.today),
            budget=amount or None,
            project_number=row.project_ref or None,
            external_ref=row.project_ref or None,
            domain_info=row.domain or None,
            ai_consult_url=row.ai_consult_url or None,
            meeting_folder=row.folder_url or None,
            staging_url=row.staging_url or None,
            production_url=row.production_url or None,
        ))
        self.result.projects += 1
        if row.project_ref:
            self.project_ids[row.project_ref] = project.id

        if amount > 0:
            await self.board.add_invoice(InvoiceCreate(
                customer_id=customer_id,
                project_id=project.id,
                invoice_number=row.project_ref or None,
                amount=amount,
                issue_date=parse_ledger_date(row.invoice_date, self.today) or self.today,
                due_date=parse_ledger_date(row.payment_due_date, self.today),
                paid_date=parse_ledger_date(row.paid_date, self.today),
                status=map_invoice_status(row.invoice_status, row.paid_date),
            ))
            self.result.invoices += 1

    async def _import_development_row(self, row: DevelopmentRow) -> None:
        project_id = self.project_ids.get(row.project_ref) if row.project_ref else None
        customer_id = None
        if project_id is not None:
            linked = self.board.get_project(project_id)
            customer_id = linked.customer_id if linked else None
        else:
            project_id = await self._self_project_id()

        await self.board.add_task(TaskCreate(
            project_id=project_id,
            customer_id=customer_id,
            name=row.product_name or row.title or "無題タスク",
            description=_join_labeled(
                ("タイトル", row.title),
                ("種別", row.kind),
                ("進行メモ", row.progress_memo),
                ("メモ/リンク", row.memo_link),
                ("ステイタスメモ", row.status_memo),
            ),
            status=map_task_status(row.status, row.completed_date),
            priority=map_task_priority(row.priority),
            due_date=parse_ledger_date(row.due_date, self.today),
            task_number=row.dev_id or None,
        ))
        self.result.tasks += 1

    async def _import_product_row(self, row: ProductRow) -> None:
        category = row.category or "未分類"
        # Client work is owned by the progress ledger
        if category.lower() == "client":
            self.result.skipped += 1
            return

        customer_id = await self._customer_id(category)
        await self.board.add_project(ProjectCreate(
            customer_id=customer_id,
            name=row.product,
            description=_join_labeled(
                ("URL", row.link),
                ("格納場所", row.location),
                ("GitHub", row.github),
                ("デプロイ先", row.deploy_target),
                ("CMS", row.cms),
                ("Database", row.database),
            ),
            type=ProjectType.DEMO if category.lower().startswith("demo") else ProjectType.INTERNAL,
            status=ProjectStatus.COMPLETED,
        ))
        self.result.projects += 1


async def import_ledger(board: BoardState, kind: ImportKind, text: str, today: Optional[date] = None) -> ImportResult:
    return await LedgerImporter(board, today).run(kind, text)
