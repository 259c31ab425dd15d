from typing import Optional

from sqlalchemy.orm import Session

from sales_service.context import CallerContext
from sales_service.errors import NotFound, Unauthenticated
from sales_service.models.order import Order
from sales_service.models.sales_return import SalesReturn


def ensure_tenant(row, ctx: CallerContext):
    # a row of another tenant is an authorization failure, not a miss
    if row.tenant_id != ctx.tenant_id:
        raise Unauthenticated("its not your company")
    return row


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, ctx: CallerContext, order_id: str, for_update: bool = False) -> Order:
        qry = self.db.query(Order).filter(Order.id == order_id)
        if for_update:
            qry = qry.with_for_update()
        order = qry.first()
        if not order:
            raise NotFound(f"sales order {order_id} not found")
        return ensure_tenant(order, ctx)

    def get_by_code(self, ctx: CallerContext, code: str) -> Order:
        order = (
            self.db.query(Order)
            .filter(Order.code == code, Order.tenant_id == ctx.tenant_id)
            .first()
        )
        if not order:
            raise NotFound(f"sales order {code} not found")
        return order

    def has_return(self, order_id: str) -> bool:
        return (
            self.db.query(SalesReturn.id).filter(SalesReturn.order_id == order_id).first()
            is not None
        )
