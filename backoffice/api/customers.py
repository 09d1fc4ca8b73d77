"""
Customer API endpoints - client list, detail with projects and invoices
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from backoffice.api.deps import get_board, require, require_loaded
from backoffice.schemas import Customer, CustomerCreate, Invoice, Project, Record
from backoffice.services.aggregation import (
    client_visible_customers,
    customer_project_counts,
    sort_invoices_by_issue_date,
)
from backoffice.state import BoardState
from backoffice.store import InvalidRecordError, StoreError

router = APIRouter()


# --- Pydantic Schemas ---

class CustomerUpdate(Record):
    name: Optional[str] = None
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


class CustomerResponse(Customer):
    project_count: int = 0


class CustomerDetail(Customer):
    projects: List[Project] = []
    invoices: List[Invoice] = []


# --- Endpoints ---

@router.get("/", response_model=List[CustomerResponse])
async def list_customers(
    client_only: bool = False,
    board: BoardState = Depends(get_board),
):
    """List customers. client_only hides customers that only hold internal/demo work"""
    require_loaded(board, "customers")
    customers = client_visible_customers(board.customers, board.projects) if client_only else board.customers
    counts = customer_project_counts(board.projects)
    return [
        CustomerResponse(**c.model_dump(), project_count=counts.get(c.id, 0))
        for c in customers
    ]


@router.get("/{customer_id}", response_model=CustomerDetail)
async def get_customer(customer_id: str, board: BoardState = Depends(get_board)):
    customer = require(board.get_customer(customer_id), "Customer")
    return CustomerDetail(
        **customer.model_dump(),
        projects=board.projects_by_customer(customer_id),
        invoices=sort_invoices_by_issue_date(board.invoices_by_customer(customer_id)),
    )


@router.post("/", response_model=Customer)
async def create_customer(data: CustomerCreate, board: BoardState = Depends(get_board)):
    try:
        return await board.add_customer(data)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to create customer: {e}")


@router.put("/{customer_id}", response_model=Customer)
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    board: BoardState = Depends(get_board),
):
    require(board.get_customer(customer_id), "Customer")
    try:
        customer = await board.update_customer(customer_id, data.model_dump(exclude_unset=True))
    except InvalidRecordError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if customer is None:
        raise HTTPException(status_code=503, detail="Failed to update customer")
    return customer


@router.delete("/{customer_id}")
async def delete_customer(customer_id: str, board: BoardState = Depends(get_board)):
    """Delete a customer with its projects, tasks and invoices"""
    require(board.get_customer(customer_id), "Customer")
    if not await board.delete_customer(customer_id):
        raise HTTPException(status_code=503, detail="Failed to delete customer")
    return {"message": "Customer deleted"}
