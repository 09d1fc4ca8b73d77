"""
Customer model - clients and the synthetic buckets that hold internal work
"""
from sqlalchemy import Column, String, Text, DateTime

from backoffice.database import Base
from backoffice.utils.helpers import utc_now


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    company = Column(String, nullable=True)
    website = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    position = Column(String, nullable=True)
    contact_person = Column(String, nullable=True)
    category = Column(String, nullable=True)
    referral_source = Column(String, nullable=True)
    memo = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
