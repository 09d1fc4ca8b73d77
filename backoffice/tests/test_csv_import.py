"""
Ledger import - field mapping, customer matching, cross-ledger linkage and
partial-failure reporting. Runs against both storage backends.
"""
from datetime import date

import pytest

from backoffice.models.enums import (
    InvoiceStatus,
    ProjectStatus,
    ProjectType,
    TaskPriority,
    TaskStatus,
)
from backoffice.services.aggregation import client_visible_customers
from backoffice.services.csv_import import (
    CsvImportError,
    DevelopmentRow,
    ImportKind,
    ProgressRow,
    import_ledger,
    map_invoice_status,
    map_project_status,
    map_task_priority,
    map_task_status,
    parse_amount,
    parse_ledger_date,
    preview_rows,
)
from backoffice.state import BoardState
from backoffice.store import EntityStore, StoreError

TODAY = date(2026, 4, 20)

PROGRESS_HEADER = "案件ID,クライアント名,案件名,種別,ステータス,見積金額（税抜）,請求ステータス,請求日,入金日,連絡先,参考URL/デザインURL,メモ,ドメイン,公開URL"
DEVELOPMENT_HEADER = "開発ID,案件ID,プロダクト/案件名,タイトル,種別,状態,優先度,進行メモ,期限,完了日"
PRODUCT_HEADER = "カテゴリ,プロダクト,リンク,格納場所,github,デプロイ先,CMS,Datebase"


def _csv(header, *rows):
    return "\n".join([header, *rows]) + "\n"


class BrokenStore(EntityStore):
    """Store whose writes always fail"""

    async def get_all(self):
        return []

    async def get_by_id(self, entity_id):
        return None

    async def create(self, data):
        raise StoreError("disk full")

    async def update(self, entity_id, changes):
        raise StoreError("disk full")

    async def delete(self, entity_id):
        raise StoreError("disk full")


# ===================== VOCABULARY =====================


def test_project_status_vocabulary():
    assert map_project_status("制作中") == ProjectStatus.IN_PROGRESS
    assert map_project_status("確認待ち") == ProjectStatus.WAITING_REVIEW
    assert map_project_status("保留") == ProjectStatus.CONSULTING
    assert map_project_status("中止") == ProjectStatus.LOST
    assert map_project_status("不明な状態") == ProjectStatus.CONSULTING


def test_completion_date_wins_over_status_text():
    assert map_task_status("未着手", "2026/4/1") == TaskStatus.DONE
    assert map_task_status("完了") == TaskStatus.DONE
    assert map_task_status("確認待ち") == TaskStatus.IN_PROGRESS
    assert map_task_status("???") == TaskStatus.TODO

    assert map_invoice_status("未請求", "2026/4/1") == InvoiceStatus.PAID
    assert map_invoice_status("期限超過") == InvoiceStatus.OVERDUE
    assert map_invoice_status("") == InvoiceStatus.DRAFT


def test_priority_vocabulary():
    assert map_task_priority("高") == TaskPriority.HIGH
    assert map_task_priority("低") == TaskPriority.LOW
    assert map_task_priority("") == TaskPriority.MEDIUM


def test_parse_ledger_date():
    assert parse_ledger_date("2026/4/5") == date(2026, 4, 5)
    assert parse_ledger_date("公開 2026/12/01 予定") == date(2026, 12, 1)
    assert parse_ledger_date("4/5", today=TODAY) == date(2026, 4, 5)
    assert parse_ledger_date("2026-04-05") is None
    assert parse_ledger_date("2026/13/40") is None
    assert parse_ledger_date("未定") is None
    assert parse_ledger_date("") is None


def test_parse_amount():
    assert parse_amount("¥500,000") == 500000
    assert parse_amount("1,200円") == 1200
    assert parse_amount("見積中") == 0
    assert parse_amount("") == 0


def test_preview_filters_rows_missing_required_fields():
    progress = _csv(PROGRESS_HEADER, "P-1,Acme,Site,,,,,,,,,,,", "P-2,,Orphan,,,,,,,,,,,", "P-3,Acme,,,,,,,,,,,,")
    rows = preview_rows(ImportKind.PROGRESS, progress)
    assert len(rows) == 1
    assert isinstance(rows[0], ProgressRow)
    assert rows[0].client_name == "Acme"

    development = _csv(DEVELOPMENT_HEADER, "D-1,,,タイトルのみ,,,,,,", "D-2,,,,,,,,,")
    rows = preview_rows(ImportKind.DEVELOPMENT, development)
    assert [type(r) for r in rows] == [DevelopmentRow]
    assert rows[0].title == "タイトルのみ"


# ===================== PROGRESS LEDGER =====================


async def test_progress_row_yields_customer_project_invoice(board):
    text = _csv(
        PROGRESS_HEADER,
        'P-001,Beta Corp,Site Revamp,HP,制作中,"¥500,000",請求済,2026/4/1,,info@beta.example.com,https://design.example.com,初回打ち合わせ済,beta.example.com,https://beta.example.com',
    )

    result = await import_ledger(board, ImportKind.PROGRESS, text, today=TODAY)

    assert (result.customers, result.projects, result.tasks, result.invoices) == (1, 1, 0, 1)

    customer = board.customers[0]
    assert customer.name == "Beta Corp"
    assert customer.email == "info@beta.example.com"
    assert customer.memo == "ドメイン情報:\nbeta.example.com"

    project = board.projects[0]
    assert project.name == "Site Revamp"
    assert project.customer_id == customer.id
    assert project.status == ProjectStatus.IN_PROGRESS
    assert project.type == ProjectType.CLIENT
    assert project.project_number == "P-001"
    assert project.external_ref == "P-001"
    assert project.budget == 500000
    assert project.production_url == "https://beta.example.com"
    assert project.description == "種別: HP\n\n参考URL: https://design.example.com\n\nメモ: 初回打ち合わせ済"
    assert "500" not in project.description

    invoice = board.invoices[0]
    assert invoice.amount == 500000
    assert invoice.tax is None
    assert invoice.invoice_number == "P-001"
    assert invoice.project_id == project.id
    assert invoice.issue_date == date(2026, 4, 1)
    assert invoice.status == InvoiceStatus.SENT


async def test_zero_amount_creates_no_invoice(board):
    text = _csv(PROGRESS_HEADER, "P-002,Acme,LP,,相談中,見積中,,,,,,,,")

    result = await import_ledger(board, ImportKind.PROGRESS, text, today=TODAY)

    assert result.invoices == 0
    assert board.invoices == []
    assert board.projects[0].budget is None
    assert board.projects[0].description is None


async def test_paid_date_marks_invoice_paid_and_defaults_issue_date(board):
    text = _csv(PROGRESS_HEADER, ",Acme,LP,,完了,100000,請求済,,2026/3/31,,,,,")

    await import_ledger(board, ImportKind.PROGRESS, text, today=TODAY)

    invoice = board.invoices[0]
    assert invoice.status == InvoiceStatus.PAID
    assert invoice.paid_date == date(2026, 3, 31)
    assert invoice.issue_date == TODAY
    assert invoice.invoice_number.startswith("INV-")
    assert board.projects[0].external_ref is None


async def test_rows_in_one_run_share_a_new_customer(board):
    text = _csv(
        PROGRESS_HEADER,
        "P-1,Acme,Site,,,,,,,,,,,",
        "P-2,Acme,App,,,,,,,,,,,",
        "P-3,Beta,LP,,,,,,,,,,,",
    )

    result = await import_ledger(board, ImportKind.PROGRESS, text, today=TODAY)

    assert result.customers == 2
    assert result.projects == 3
    acme = next(c for c in board.customers if c.name == "Acme")
    assert len(board.projects_by_customer(acme.id)) == 2


async def test_second_run_reuses_existing_customer(board, stores, settings):
    text = _csv(PROGRESS_HEADER, "P-1,Acme,Site,,,,,,,,,,,")

    await import_ledger(board, ImportKind.PROGRESS, text, today=TODAY)

    reloaded = BoardState(stores, settings)
    await reloaded.load_all()
    second = await import_ledger(reloaded, ImportKind.PROGRESS, text, today=TODAY)

    assert second.customers == 0
    assert [c.name for c in reloaded.customers] == ["Acme"]
    assert {p.customer_id for p in reloaded.projects} == {reloaded.customers[0].id}


async def test_store_failure_stops_import_and_keeps_created_records(board):
    board.stores.invoices = BrokenStore(board.stores.invoices.model)
    text = _csv(
        PROGRESS_HEADER,
        "P-1,Acme,Site,,,100000,,,,,,,,",
        "P-2,Beta,LP,,,200000,,,,,,,,",
    )

    with pytest.raises(CsvImportError) as exc_info:
        await import_ledger(board, ImportKind.PROGRESS, text, today=TODAY)

    result = exc_info.value.result
    assert (result.customers, result.projects, result.invoices) == (1, 1, 0)
    assert [p.name for p in board.projects] == ["Site"]
    assert "Row 1" in str(exc_info.value)


# ===================== DEVELOPMENT LEDGER =====================


async def test_development_rows_link_by_project_id(board):
    await import_ledger(board, ImportKind.PROGRESS, _csv(PROGRESS_HEADER, "P-001,Acme,Site,,,,,,,,,,,"), today=TODAY)
    site = board.projects[0]

    text = _csv(
        DEVELOPMENT_HEADER,
        "D-01,P-001,トップページ,デザイン調整,HP,進行中,高,ヒーロー画像差し替え,2026/5/1,",
        ",,社内ツール,,,未着手,低,,,",
        ",,,バグ修正,,進行中,,,,2026/4/2",
    )
    result = await import_ledger(board, ImportKind.DEVELOPMENT, text, today=TODAY)

    assert (result.customers, result.projects, result.tasks) == (1, 1, 3)

    linked = next(t for t in board.tasks if t.task_number == "D-01")
    assert linked.project_id == site.id
    assert linked.customer_id == site.customer_id
    assert linked.name == "トップページ"
    assert linked.status == TaskStatus.IN_PROGRESS
    assert linked.priority == TaskPriority.HIGH
    assert linked.due_date == date(2026, 5, 1)
    assert linked.description == "タイトル: デザイン調整\n\n種別: HP\n\n進行メモ: ヒーロー画像差し替え"

    self_project = board.find_project_by_name("自社開発タスク")
    assert self_project is not None
    assert self_project.type == ProjectType.INTERNAL
    assert self_project.status == ProjectStatus.IN_PROGRESS
    assert board.get_customer(self_project.customer_id).name == "自社開発"

    internal = next(t for t in board.tasks if t.name == "社内ツール")
    assert internal.project_id == self_project.id
    assert internal.customer_id is None
    assert internal.task_number.startswith("DEV")

    done = next(t for t in board.tasks if t.name == "バグ修正")
    assert done.status == TaskStatus.DONE


async def test_self_development_project_created_once(board):
    text = _csv(DEVELOPMENT_HEADER, ",,作業A,,,,,,,")

    first = await import_ledger(board, ImportKind.DEVELOPMENT, text, today=TODAY)
    second = await import_ledger(board, ImportKind.DEVELOPMENT, text, today=TODAY)

    assert (first.customers, first.projects) == (1, 1)
    assert (second.customers, second.projects) == (0, 0)
    assert len([p for p in board.projects if p.name == "自社開発タスク"]) == 1
    assert len(board.tasks) == 2


async def test_legacy_description_reference_links_tasks(board):
    await import_ledger(board, ImportKind.PROGRESS, _csv(PROGRESS_HEADER, ",Acme,Old Site,,,,,,,,,,,"), today=TODAY)
    old_site = board.projects[0]
    await board.update_project(old_site.id, {"description": "種別: HP\n\n案件ID: LEG-9"})

    text = _csv(DEVELOPMENT_HEADER, ",LEG-9,改修,,,,,,,")
    result = await import_ledger(board, ImportKind.DEVELOPMENT, text, today=TODAY)

    assert result.projects == 0
    assert board.tasks[0].project_id == old_site.id


async def test_unknown_project_id_falls_back_to_self_project(board):
    text = _csv(DEVELOPMENT_HEADER, ",NOPE-1,迷子タスク,,,,,,,")

    await import_ledger(board, ImportKind.DEVELOPMENT, text, today=TODAY)

    self_project = board.find_project_by_name("自社開発タスク")
    assert board.tasks[0].project_id == self_project.id


# ===================== PRODUCT REGISTRY =====================


async def test_product_registry_rows(board):
    text = _csv(
        PRODUCT_HEADER,
        "Client,顧客サイト,,,,,,",
        "Demo系,デモアプリ,https://demo.example.com,,,,,",
        ",無分類ツール,,,,,,",
        "ツール,請求書メーカー,,Drive,https://github.com/example/invoice,Vercel,,Supabase",
        "ツール,議事録AI,,,,,,",
    )

    result = await import_ledger(board, ImportKind.PRODUCT, text, today=TODAY)

    assert (result.customers, result.projects, result.skipped) == (3, 4, 1)
    assert board.find_project_by_name("顧客サイト") is None

    demo = board.find_project_by_name("デモアプリ")
    assert demo.type == ProjectType.DEMO
    assert demo.status == ProjectStatus.COMPLETED
    assert demo.description == "URL: https://demo.example.com"
    assert demo.project_number == "Demo-001"

    uncategorised = board.find_project_by_name("無分類ツール")
    assert uncategorised.type == ProjectType.INTERNAL
    assert board.get_customer(uncategorised.customer_id).name == "未分類"

    invoice_maker = board.find_project_by_name("請求書メーカー")
    assert invoice_maker.description == (
        "格納場所: Drive\n\nGitHub: https://github.com/example/invoice\n\n"
        "デプロイ先: Vercel\n\nDatabase: Supabase"
    )
    minutes = board.find_project_by_name("議事録AI")
    assert minutes.customer_id == invoice_maker.customer_id
    assert {invoice_maker.project_number, minutes.project_number} == {"Pro-002", "Pro-003"}


async def test_product_projects_keep_customers_out_of_client_list(board):
    await import_ledger(board, ImportKind.PRODUCT, _csv(PRODUCT_HEADER, "ツール,議事録AI,,,,,,"), today=TODAY)

    assert board.customers
    assert client_visible_customers(board.customers, board.projects) == []

