from typing import Optional

from sqlalchemy.orm import Session

from sales_service.context import CallerContext
from sales_service.errors import NotFound
from sales_service.repositories.order_repo import ensure_tenant


class PartyRepository:
    """Lookups shared by the customer and salesman tables."""

    def __init__(self, db: Session, model, label: str):
        self.db = db
        self.model = model
        self.label = label

    def get(self, ctx: CallerContext, party_id: str):
        row = self.db.query(self.model).filter(self.model.id == party_id).first()
        if not row:
            raise NotFound(f"{self.label} {party_id} not found")
        return ensure_tenant(row, ctx)

    def get_by_code(self, ctx: CallerContext, code: str) -> Optional[object]:
        return (
            self.db.query(self.model)
            .filter(self.model.tenant_id == ctx.tenant_id, self.model.code == code)
            .first()
        )
