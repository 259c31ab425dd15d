from sqlalchemy import Column, Integer, String, UniqueConstraint

from sales_service.db import Base


class DocumentSequence(Base):
    """Per tenant, per prefix, per calendar month counter behind document codes."""

    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("tenant_id", "prefix", "period", name="uq_document_sequences_scope"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=False)
    prefix = Column(String(8), nullable=False)
    period = Column(String(6), nullable=False)  # YYYYMM
    current_number = Column(Integer, nullable=False, default=0)
