"""
Task model - work items under a project, customer-facing or internal
"""
from sqlalchemy import Column, String, Text, Date, DateTime, JSON

from backoffice.database import Base
from backoffice.utils.helpers import utc_now


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True)
    task_number = Column(String, nullable=True)
    project_id = Column(String(36), nullable=False, index=True)
    customer_id = Column(String(36), nullable=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="todo")
    priority = Column(String, nullable=False, default="medium")
    due_date = Column(Date, nullable=True)

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
