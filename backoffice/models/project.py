"""
Project model - client work, internal products and demos with an embedded activity log
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, JSON

from backoffice.database import Base
from backoffice.utils.helpers import utc_now


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True)
    project_number = Column(String, nullable=True)
    # Progress-ledger project id the record was imported from
    external_ref = Column(String, nullable=True, index=True)
    customer_id = Column(String(36), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String, nullable=True)
    category = Column(String, nullable=True)
    status = Column(String, nullable=False, default="consulting")
    start_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    budget = Column(Integer, nullable=True)

    domain_info = Column(Text, nullable=True)
    ai_consult_url = Column(String, nullable=True)
    code_folder = Column(String, nullable=True)
    meeting_folder = Column(String, nullable=True)
    contract_folder = Column(String, nullable=True)
    staging_url = Column(String, nullable=True)
    production_url = Column(String, nullable=True)

    activities = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
