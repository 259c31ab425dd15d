from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from sales_service.context import CallerContext
from sales_service.models.order import Order, OrderLine
from sales_service.models.sales_return import ReturnLine, SalesReturn


class OutstandingLedger:
    """
    What is left to return on an order, derived from the return documents
    already written against it.

    Nothing here is stored: both figures are recomputed from the return
    lines on every call, so the result is only as fresh as the transaction
    reading it.
    """

    def __init__(self, db: Session):
        self.db = db

    def outstanding(
        self, ctx: CallerContext, order_id: str, exclude_return_id: Optional[str] = None
    ) -> Dict[str, int]:
        """
        ``{product_id: remaining_quantity}`` for every order line with
        something left to return. Fully returned products are absent.
        ``exclude_return_id`` leaves one return out of the count (the return
        being edited must not count against itself).
        """
        returned = (
            self.db.query(
                ReturnLine.product_id.label("product_id"),
                func.sum(ReturnLine.quantity).label("quantity"),
            )
            .join(SalesReturn, SalesReturn.id == ReturnLine.return_id)
            .filter(SalesReturn.order_id == order_id)
        )
        if exclude_return_id:
            returned = returned.filter(SalesReturn.id != exclude_return_id)
        returned = returned.group_by(ReturnLine.product_id).subquery()

        remaining = OrderLine.quantity - func.coalesce(returned.c.quantity, 0)
        rows = (
            self.db.query(OrderLine.product_id, remaining)
            .join(Order, Order.id == OrderLine.order_id)
            .outerjoin(returned, returned.c.product_id == OrderLine.product_id)
            .filter(
                OrderLine.order_id == order_id,
                Order.tenant_id == ctx.tenant_id,
                remaining > 0,
            )
            .all()
        )
        return {product_id: int(quantity) for product_id, quantity in rows}

    def allocated_discount(
        self, ctx: CallerContext, order_id: str, exclude_return_id: Optional[str] = None
    ) -> float:
        """Header discount already carried by the order's returns."""
        qry = self.db.query(func.coalesce(func.sum(SalesReturn.discount_amount), 0)).filter(
            SalesReturn.order_id == order_id,
            SalesReturn.tenant_id == ctx.tenant_id,
        )
        if exclude_return_id:
            qry = qry.filter(SalesReturn.id != exclude_return_id)
        return float(qry.scalar() or 0)
