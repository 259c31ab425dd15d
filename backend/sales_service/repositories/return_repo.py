from sqlalchemy.orm import Session

from sales_service.context import CallerContext
from sales_service.errors import NotFound
from sales_service.models.sales_return import SalesReturn
from sales_service.repositories.order_repo import ensure_tenant


class ReturnRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, ctx: CallerContext, return_id: str) -> SalesReturn:
        sales_return = self.db.query(SalesReturn).filter(SalesReturn.id == return_id).first()
        if not sales_return:
            raise NotFound(f"sales return {return_id} not found")
        return ensure_tenant(sales_return, ctx)
