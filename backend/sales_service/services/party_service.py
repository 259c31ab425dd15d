import logging
from typing import Callable, Dict, Iterator, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sales_service.context import CallerContext
from sales_service.errors import AlreadyExists, Cancelled, FailedPrecondition, InvalidArgument
from sales_service.models.customer import Customer
from sales_service.models.order import Order
from sales_service.models.salesman import Salesman
from sales_service.repositories.party_repo import PartyRepository
from sales_service.services.query_builder import PageInfo, PageRequest, QueryBuilder
from sales_service.utils.transactions import write_transaction

log = logging.getLogger(__name__)


class PartyService:
    """
    Plain CRUD for the counterparts an order points at.

    ``fields`` are the caller-editable columns, all required on create;
    ``code`` is also required on create and unique within the tenant.
    """

    model = None
    label = ""
    fields: Tuple[str, ...] = ()
    order_column = ""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PartyRepository(db, self.model, self.label)

    def create(self, ctx: CallerContext, data: Dict):
        for field in self.fields:
            if not data.get(field):
                raise InvalidArgument(f"Please supply valid {field}")
        code = data.get("code")
        if not code:
            raise InvalidArgument("Please supply valid code")
        if self.repo.get_by_code(ctx, code) is not None:
            raise AlreadyExists("code must be unique")

        try:
            with write_transaction(self.db, raise_conflicts=True):
                row = self.model(
                    tenant_id=ctx.tenant_id,
                    code=code,
                    created_by=ctx.caller_id,
                    updated_by=ctx.caller_id,
                    **{field: data[field] for field in self.fields},
                )
                self.db.add(row)
        except IntegrityError as exc:
            raise AlreadyExists("code must be unique") from exc
        log.info("%s %s created (tenant=%s)", self.label, code, ctx.tenant_id)
        return row

    def update(self, ctx: CallerContext, party_id: str, data: Dict):
        if not party_id:
            raise InvalidArgument("Please supply valid id")
        self.repo.get(ctx, party_id)
        with write_transaction(self.db):
            row = self.repo.get(ctx, party_id)
            for field in self.fields:
                if data.get(field):
                    setattr(row, field, data[field])
            row.updated_by = ctx.caller_id
        return row

    def view(self, ctx: CallerContext, party_id: str):
        if not party_id:
            raise InvalidArgument("Please supply valid id")
        return self.repo.get(ctx, party_id)

    def delete(self, ctx: CallerContext, party_id: str) -> bool:
        if not party_id:
            raise InvalidArgument("Please supply valid id")
        self.repo.get(ctx, party_id)
        with write_transaction(self.db):
            row = self.repo.get(ctx, party_id)
            in_use = (
                self.db.query(Order.id)
                .filter(getattr(Order, self.order_column) == party_id)
                .first()
            )
            if in_use is not None:
                raise FailedPrecondition(f"{self.label} is used by sales")
            self.db.delete(row)
        log.info("%s %s deleted (tenant=%s)", self.label, party_id, ctx.tenant_id)
        return True

    def iter_rows(
        self,
        ctx: CallerContext,
        page: PageRequest,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> Iterator[Tuple[PageInfo, object]]:
        builder = QueryBuilder(self.db, self.model, search_columns=("code", "name"))
        info, qry = builder.build(ctx, None, page)
        for row in qry:
            if should_stop is not None and should_stop():
                raise Cancelled("list cancelled by caller")
            yield info, row


class CustomerService(PartyService):
    model = Customer
    label = "customer"
    fields = ("name", "address", "phone")
    order_column = "customer_id"


class SalesmanService(PartyService):
    model = Salesman
    label = "salesman"
    fields = ("name", "email", "address", "phone")
    order_column = "salesman_id"
