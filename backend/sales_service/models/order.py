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


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_orders_tenant_code"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), nullable=False, index=True)
    branch_id = Column(String(36), nullable=False, index=True)
    branch_name = Column(String(100), nullable=False, default="")
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    salesman_id = Column(String(36), ForeignKey("salesmen.id"), nullable=False, index=True)
    code = Column(String(32), nullable=False)
    order_date = Column(Date, nullable=False)
    remark = Column(String(255), nullable=False, default="")
    # sum of line totals before the header discount
    price = Column(Float, nullable=False, default=0)
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

    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.line_no",
    )
    returns = relationship("SalesReturn", back_populates="order")

    def __repr__(self):
        return f"<Order code={self.code} tenant={self.tenant_id}>"


class OrderLine(Base):
    __tablename__ = "order_lines"
    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_lines_order_product"),
        CheckConstraint("quantity > 0", name="ck_order_lines_quantity"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    line_no = Column(Integer, nullable=False, default=0)
    product_id = Column(String(36), nullable=False)
    product_code = Column(String(64), nullable=False, default="")
    product_name = Column(String(255), nullable=False, default="")
    price = Column(Float, nullable=False)
    discount_amount = Column(Float, nullable=False, default=0)
    discount_percentage = Column(Float, nullable=False, default=0)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="lines")
