"""
Invoice API endpoints - invoices, revenue summary and monthly sales
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from backoffice.api.deps import get_board, require, require_loaded
from backoffice.models.enums import InvoiceStatus
from backoffice.schemas import Invoice, InvoiceCreate, Record, default_tax, invoice_total
from backoffice.services.aggregation import (
    MonthlySales,
    RevenueSummary,
    SalesBasis,
    monthly_sales,
    revenue_summary,
    sort_invoices_by_issue_date,
)
from backoffice.state import BoardState
from backoffice.store import InvalidRecordError, StoreError

router = APIRouter()


# --- Pydantic Schemas ---

class InvoiceUpdate(Record):
    customer_id: Optional[str] = None
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    invoice_number: Optional[str] = None
    estimate_amount: Optional[int] = None
    amount: Optional[int] = None
    tax: Optional[int] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    status: Optional[InvoiceStatus] = None
    memo: Optional[str] = None


class InvoiceResponse(Invoice):
    total: int = 0


def _build_invoice_response(invoice: Invoice) -> InvoiceResponse:
    return InvoiceResponse(**invoice.model_dump(), total=invoice_total(invoice))


# --- Endpoints ---

@router.get("/", response_model=List[InvoiceResponse])
async def list_invoices(
    status: Optional[InvoiceStatus] = None,
    customer_id: Optional[str] = None,
    project_id: Optional[str] = None,
    board: BoardState = Depends(get_board),
):
    """List invoices, newest issue date first"""
    require_loaded(board, "invoices")
    invoices = [
        i for i in board.invoices
        if (status is None or i.status == status)
        and (customer_id is None or i.customer_id == customer_id)
        and (project_id is None or i.project_id == project_id)
    ]
    return [_build_invoice_response(i) for i in sort_invoices_by_issue_date(invoices)]


@router.get("/summary", response_model=RevenueSummary)
async def get_revenue_summary(board: BoardState = Depends(get_board)):
    return revenue_summary(board.invoices)


@router.get("/monthly-sales", response_model=MonthlySales)
async def get_monthly_sales(
    year: Optional[int] = None,
    basis: SalesBasis = SalesBasis.ISSUE,
    board: BoardState = Depends(get_board),
):
    """Twelve months plus a year total; basis=paid counts paid invoices by paid date"""
    return monthly_sales(board.invoices, year or date.today().year, basis)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: str, board: BoardState = Depends(get_board)):
    return _build_invoice_response(require(board.get_invoice(invoice_id), "Invoice"))


@router.post("/", response_model=InvoiceResponse)
async def create_invoice(data: InvoiceCreate, board: BoardState = Depends(get_board)):
    """Create an invoice. Tax defaults to the configured rate when omitted"""
    require(board.get_customer(data.customer_id), "Customer")
    if "tax" not in data.model_fields_set:
        data = data.model_copy(update={"tax": default_tax(data.amount, board.settings.TAX_RATE)})
    try:
        invoice = await board.add_invoice(data)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to create invoice: {e}")
    return _build_invoice_response(invoice)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: str,
    data: InvoiceUpdate,
    board: BoardState = Depends(get_board),
):
    require(board.get_invoice(invoice_id), "Invoice")
    try:
        invoice = await board.update_invoice(invoice_id, data.model_dump(exclude_unset=True))
    except InvalidRecordError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if invoice is None:
        raise HTTPException(status_code=503, detail="Failed to update invoice")
    return _build_invoice_response(invoice)


@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: str, board: BoardState = Depends(get_board)):
    require(board.get_invoice(invoice_id), "Invoice")
    if not await board.delete_invoice(invoice_id):
        raise HTTPException(status_code=503, detail="Failed to delete invoice")
    return {"message": "Invoice deleted"}
