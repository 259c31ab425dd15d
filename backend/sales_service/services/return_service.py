import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sales_service.config import settings
from sales_service.context import CallerContext
from sales_service.errors import (
    AlreadyExists,
    Cancelled,
    FailedPrecondition,
    InvalidArgument,
)
from sales_service.models.order import Order
from sales_service.models.sales_return import ReturnLine, SalesReturn
from sales_service.repositories.order_repo import OrderRepository
from sales_service.repositories.return_repo import ReturnRepository
from sales_service.services import pricing
from sales_service.services.access_scope import AccessScopeResolver
from sales_service.services.code_sequence import next_code
from sales_service.services.delivery_guard import DeliveryStateGuard
from sales_service.services.ledger import OutstandingLedger
from sales_service.services.query_builder import PageInfo, PageRequest, QueryBuilder
from sales_service.utils.dates import parse_date
from sales_service.utils.transactions import order_write_lock, write_transaction

log = logging.getLogger(__name__)


def _requested_lines(lines: Optional[List[Dict]]) -> Dict[str, int]:
    """``{product_id: quantity}`` from the incoming lines, rejecting blanks and repeats."""
    if not lines:
        raise InvalidArgument("Please supply valid product")
    requested: Dict[str, int] = {}
    for line in lines:
        product_id = line.get("product_id")
        if not product_id or product_id in requested:
            raise InvalidArgument("Please supply valid product")
        quantity = line.get("quantity")
        if quantity is None or int(quantity) <= 0:
            raise InvalidArgument("Please supply valid quantity")
        requested[product_id] = int(quantity)
    return requested


def _check_line_ids(sales_return: SalesReturn, lines: List[Dict]):
    # a return holds each product once, so lines are matched by product; an
    # id sent along must name the stored line carrying that product
    stored = {line.id: line.product_id for line in sales_return.lines}
    for line in lines:
        line_id = line.get("id")
        if line_id and stored.get(line_id) != line.get("product_id"):
            raise InvalidArgument("Please supply valid sales return detail")


def _check_outstanding(requested: Dict[str, int], outstanding: Dict[str, int]):
    for product_id, quantity in requested.items():
        if quantity > outstanding.get(product_id, 0):
            raise InvalidArgument("Please supply valid outstanding product")


class ReturnService:
    """
    Return documents against a sales order.

    A return only names products and quantities. Prices and line discounts
    come from the order lines; the order's header discount is shared out
    across its returns.
    """

    def __init__(self, db: Session, identity, logistics):
        self.db = db
        self.orders = OrderRepository(db)
        self.returns = ReturnRepository(db)
        self.ledger = OutstandingLedger(db)
        self.scope = AccessScopeResolver(identity)
        self.delivery = DeliveryStateGuard(logistics)

    def _outstanding_or_fail(
        self, ctx: CallerContext, order_id: str, exclude_return_id: Optional[str] = None
    ) -> Dict[str, int]:
        outstanding = self.ledger.outstanding(ctx, order_id, exclude_return_id=exclude_return_id)
        if not outstanding:
            log.warning("order=%s has nothing left to return", order_id)
            raise FailedPrecondition("Sales has been returned")
        return outstanding

    def _ensure_no_delivery(self, ctx: CallerContext, order_id: str):
        if self.delivery.has_fulfillment(ctx, order_id):
            log.warning("order=%s return refused: has delivery", order_id)
            raise FailedPrecondition("Sales has delivery transaction")

    def _allocate(
        self,
        ctx: CallerContext,
        order: Order,
        requested: Dict[str, int],
        exclude_return_id: Optional[str] = None,
    ) -> Tuple[List[Dict], Dict]:
        """
        Price the return from the order lines and work out its share of the
        order's header discount. Returns ``(lines, header)``.
        """
        order_lines = {line.product_id: line for line in order.lines}
        lines = []
        sum_price = 0.0
        for product_id, quantity in requested.items():
            source = order_lines[product_id]
            discount, total = pricing.return_line_total(
                source.price, source.discount_amount, source.discount_percentage, quantity
            )
            lines.append(
                {
                    "product_id": product_id,
                    "quantity": quantity,
                    "price": source.price,
                    "discount_amount": discount,
                    "discount_percentage": source.discount_percentage or 0.0,
                    "total_price": total,
                }
            )
            sum_price += total

        if order.discount_percentage and order.discount_percentage > 0:
            discount_percentage = order.discount_percentage
            discount = pricing.header_discount(sum_price, 0.0, discount_percentage)
        else:
            discount_percentage = 0.0
            discount = pricing.proportional_return_discount(
                order.discount_amount or 0.0,
                sum(line.quantity for line in order.lines),
                sum(requested.values()),
                self.ledger.allocated_discount(ctx, order.id, exclude_return_id=exclude_return_id),
            )
        header = {
            "price": sum_price,
            "discount_amount": discount,
            "discount_percentage": discount_percentage,
            "total_price": pricing.header_total(sum_price, discount),
        }
        return lines, header

    def create_return(self, ctx: CallerContext, data: Dict) -> SalesReturn:
        """
        ``data`` holds branch_id, order_id, return_date, remark and lines of
        ``{product_id, quantity}``. Any price or discount on a line is ignored.
        """
        branch_id = data.get("branch_id")
        if not branch_id:
            raise InvalidArgument("Please supply valid branch")
        order_id = data.get("order_id")
        if not order_id:
            raise InvalidArgument("Please supply valid sales")
        return_date = parse_date(data.get("return_date"), "return date")
        requested = _requested_lines(data.get("lines"))

        self.orders.get(ctx, order_id)
        self._ensure_no_delivery(ctx, order_id)
        _check_outstanding(requested, self._outstanding_or_fail(ctx, order_id))
        branch = self.scope.resolve_branch(ctx, branch_id)

        for attempt in (1, 2):
            try:
                with order_write_lock(order_id):
                    with write_transaction(self.db, raise_conflicts=True):
                        order = self.orders.get(ctx, order_id, for_update=True)
                        # another return may have committed since the first read
                        _check_outstanding(requested, self._outstanding_or_fail(ctx, order_id))
                        lines, header = self._allocate(ctx, order, requested)
                        sales_return = SalesReturn(
                            tenant_id=ctx.tenant_id,
                            branch_id=branch_id,
                            branch_name=branch.get("name") or "",
                            order_id=order_id,
                            code=next_code(self.db, ctx.tenant_id, settings.RETURN_CODE_PREFIX, SalesReturn),
                            return_date=return_date,
                            remark=data.get("remark") or "",
                            created_by=ctx.caller_id,
                            updated_by=ctx.caller_id,
                            **header,
                        )
                        sales_return.lines = [ReturnLine(line_no=i, **line) for i, line in enumerate(lines, 1)]
                        self.db.add(sales_return)
                break
            except IntegrityError as exc:
                if attempt == 2:
                    raise AlreadyExists("code must be unique") from exc
                log.warning("return code collision for tenant=%s, retrying", ctx.tenant_id)

        log.info(
            "return %s created for order=%s (id=%s tenant=%s)",
            sales_return.code,
            order_id,
            sales_return.id,
            ctx.tenant_id,
        )
        return sales_return

    def update_return(self, ctx: CallerContext, return_id: str, data: Dict) -> SalesReturn:
        """
        Partial update of a return. ``return_date`` and ``remark`` merge by
        presence. ``lines``, when present, is the full new line set; lines are
        matched to stored ones by product (an optional ``id`` must agree with
        it) and only quantity and total change.
        Prices and the header discount are derived again from the order.
        """
        if not return_id:
            raise InvalidArgument("Please supply valid id")
        sales_return = self.returns.get(ctx, return_id)
        order_id = sales_return.order_id

        return_date = sales_return.return_date
        if data.get("return_date") is not None:
            return_date = parse_date(data["return_date"], "return date")
        remark = sales_return.remark
        if data.get("remark") is not None:
            remark = data["remark"]

        if "lines" in data and data["lines"] is not None:
            requested = _requested_lines(data["lines"])
            _check_line_ids(sales_return, data["lines"])
        else:
            requested = {line.product_id: line.quantity for line in sales_return.lines}

        self._ensure_no_delivery(ctx, order_id)
        _check_outstanding(requested, self._outstanding_or_fail(ctx, order_id, exclude_return_id=return_id))
        self.scope.authorize(ctx, sales_return.branch_id)

        with order_write_lock(order_id):
            with write_transaction(self.db):
                order = self.orders.get(ctx, order_id, for_update=True)
                _check_outstanding(
                    requested, self._outstanding_or_fail(ctx, order_id, exclude_return_id=return_id)
                )
                sales_return = self.returns.get(ctx, return_id)
                lines, header = self._allocate(ctx, order, requested, exclude_return_id=return_id)

                # two passes: match stored lines by product, then delete the rest
                stored = {line.product_id: line for line in sales_return.lines}
                to_insert = []
                for line in lines:
                    current = stored.pop(line["product_id"], None)
                    if current is None:
                        to_insert.append(line)
                        continue
                    current.quantity = line["quantity"]
                    current.total_price = line["total_price"]
                for leftover in stored.values():
                    sales_return.lines.remove(leftover)
                self.db.flush()
                next_no = max([line.line_no for line in sales_return.lines] or [0]) + 1
                for offset, line in enumerate(to_insert):
                    sales_return.lines.append(ReturnLine(line_no=next_no + offset, **line))

                sales_return.return_date = return_date
                sales_return.remark = remark or ""
                for field, value in header.items():
                    setattr(sales_return, field, value)
                sales_return.updated_by = ctx.caller_id

        log.info("return %s updated (id=%s tenant=%s)", sales_return.code, return_id, ctx.tenant_id)
        return sales_return

    def view_return(self, ctx: CallerContext, return_id: str) -> SalesReturn:
        if not return_id:
            raise InvalidArgument("Please supply valid id")
        return self.returns.get(ctx, return_id)

    def outstanding(self, ctx: CallerContext, order_id: str) -> Dict[str, int]:
        self.orders.get(ctx, order_id)
        return self.ledger.outstanding(ctx, order_id)

    def iter_returns(
        self,
        ctx: CallerContext,
        filters: Optional[Dict[str, str]],
        page: PageRequest,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> Iterator[Tuple[PageInfo, SalesReturn]]:
        builder = QueryBuilder(self.db, SalesReturn, filter_columns=("branch_id", "order_id"))
        info, qry = builder.build(ctx, filters, page)
        for sales_return in qry:
            if should_stop is not None and should_stop():
                log.info("return list cancelled by caller (tenant=%s)", ctx.tenant_id)
                raise Cancelled("list cancelled by caller")
            yield info, sales_return
