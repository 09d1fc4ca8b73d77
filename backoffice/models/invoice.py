"""
Invoice model - amounts are whole currency units, tax is an absolute amount
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime

from backoffice.database import Base
from backoffice.utils.helpers import utc_now


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True)
    customer_id = Column(String(36), nullable=False, index=True)
    project_id = Column(String(36), nullable=True, index=True)
    task_id = Column(String(36), nullable=True)
    invoice_number = Column(String, nullable=False)
    estimate_amount = Column(Integer, nullable=True)
    amount = Column(Integer, nullable=False, default=0)
    tax = Column(Integer, nullable=True)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    paid_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default="draft")
    memo = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
