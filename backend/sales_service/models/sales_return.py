from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from sales_service.db import Base


def _uuid():
    return str(uuid4())


class SalesReturn(Base):
    __tablename__ = "returns"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_returns_tenant_code"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), nullable=False, index=True)
    branch_id = Column(String(36), nullable=False, index=True)
    branch_name = Column(String(100), nullable=False, default="")
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    code = Column(String(32), nullable=False)
    return_date = Column(Date, nullable=False)
    remark = Column(String(255), nullable=False, default="")
    price = Column(Float, nullable=False, default=0)
    # share of the order's header discount allocated to this return
    discount_amount = Column(Float, nullable=False, default=0)
    discount_percentage = Column(Float, nullable=False, default=0)
    total_price = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    created_by = Column(String(36), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_by = Column(String(36), nullable=False)

    order = relationship("Order", back_populates="returns")
    lines = relationship(
        "ReturnLine",
        back_populates="sales_return",
        cascade="all, delete-orphan",
        order_by="ReturnLine.line_no",
    )

    def __repr__(self):
        return f"<SalesReturn code={self.code} order={self.order_id}>"


class ReturnLine(Base):
    __tablename__ = "return_lines"
    __table_args__ = (
        UniqueConstraint("return_id", "product_id", name="uq_return_lines_return_product"),
        CheckConstraint("quantity > 0", name="ck_return_lines_quantity"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    return_id = Column(
        String(36),
        ForeignKey("returns.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    line_no = Column(Integer, nullable=False, default=0)
    product_id = Column(String(36), nullable=False)
    quantity = Column(Integer, nullable=False)
    # copied from the matching order line at allocation time
    price = Column(Float, nullable=False)
    discount_amount = Column(Float, nullable=False, default=0)
    discount_percentage = Column(Float, nullable=False, default=0)
    total_price = Column(Float, nullable=False)

    sales_return = relationship("SalesReturn", back_populates="lines")
