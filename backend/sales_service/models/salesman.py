from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, UniqueConstraint

from sales_service.db import Base


class Salesman(Base):
    __tablename__ = "salesmen"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_salesmen_tenant_code"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    tenant_id = Column(String(36), nullable=False, index=True)
    code = Column(String(10), nullable=False)
    email = Column(String(50), nullable=False)
    name = Column(String(45), nullable=False)
    address = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    created_by = Column(String(36), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_by = Column(String(36), nullable=False)
