import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sales_service.config import settings
from sales_service.context import CallerContext
from sales_service.errors import AlreadyExists, Cancelled, InvalidArgument, PermissionDenied
from sales_service.models.customer import Customer
from sales_service.models.order import Order, OrderLine
from sales_service.models.salesman import Salesman
from sales_service.repositories.order_repo import OrderRepository
from sales_service.services import pricing
from sales_service.services.access_scope import AccessScopeResolver
from sales_service.services.catalog_validator import CatalogValidator
from sales_service.services.code_sequence import next_code
from sales_service.services.delivery_guard import DeliveryStateGuard
from sales_service.services.query_builder import PageInfo, PageRequest, QueryBuilder
from sales_service.utils.dates import parse_date
from sales_service.utils.transactions import order_write_lock, write_transaction

log = logging.getLogger(__name__)

# header fields an update may change; anything absent keeps its stored value
MERGEABLE_HEADER_FIELDS = (
    "customer_id",
    "salesman_id",
    "order_date",
    "remark",
    "discount_amount",
    "discount_percentage",
)
LINE_VALUE_FIELDS = ("price", "discount_amount", "discount_percentage", "quantity")


def _require(data: Dict, key: str, label: str) -> str:
    value = data.get(key)
    if not value:
        raise InvalidArgument(f"Please supply valid {label}")
    return value


def _quantity(value) -> int:
    if value is None or int(value) <= 0:
        raise InvalidArgument("Please supply valid quantity")
    return int(value)


def _num(value) -> float:
    return float(value) if value is not None else 0.0


class OrderService:
    """
    Create, update, view and list sales orders.

    Every write validates against the remote services first, with no local
    transaction open, then writes header and lines in one transaction.
    """

    def __init__(self, db: Session, identity, catalog, logistics):
        self.db = db
        self.orders = OrderRepository(db)
        self.scope = AccessScopeResolver(identity)
        self.catalog = CatalogValidator(catalog)
        self.delivery = DeliveryStateGuard(logistics)

    # ---- helpers ----
    def _ensure_parties(self, ctx: CallerContext, customer_id: str, salesman_id: str):
        customer = (
            self.db.query(Customer.id)
            .filter(Customer.id == customer_id, Customer.tenant_id == ctx.tenant_id)
            .first()
        )
        if customer is None:
            raise InvalidArgument("Please supply valid customer")
        salesman = (
            self.db.query(Salesman.id)
            .filter(Salesman.id == salesman_id, Salesman.tenant_id == ctx.tenant_id)
            .first()
        )
        if salesman is None:
            raise InvalidArgument("Please supply valid salesman")

    @staticmethod
    def _price_lines(lines: List[Dict]) -> float:
        """Fill ``discount_amount``/``total_price`` on each line dict; returns the sum of line totals."""
        total = 0.0
        for line in lines:
            discount, line_total = pricing.order_line_total(
                line["price"], line["discount_amount"], line["discount_percentage"], line["quantity"]
            )
            line["discount_amount"] = discount
            line["total_price"] = line_total
            total += line_total
        return total

    @staticmethod
    def _header_totals(sum_price: float, discount_amount: float, discount_percentage: float) -> Dict:
        discount = pricing.header_discount(sum_price, discount_amount, discount_percentage)
        return {
            "price": sum_price,
            "discount_amount": discount,
            "discount_percentage": discount_percentage or 0.0,
            "total_price": pricing.header_total(sum_price, discount),
        }

    # ---- create ----
    def create_order(self, ctx: CallerContext, data: Dict) -> Order:
        """
        ``data`` holds branch_id, customer_id, salesman_id, order_date,
        remark, discount_amount, discount_percentage and lines (each with
        product_id, quantity and optionally price/discount). Lines without a
        price take the catalog unit price.
        """
        branch_id = _require(data, "branch_id", "branch")
        customer_id = _require(data, "customer_id", "customer")
        salesman_id = _require(data, "salesman_id", "salesman")
        order_date = parse_date(data.get("order_date"), "order date")

        incoming = data.get("lines") or []
        if not incoming:
            raise InvalidArgument("Please supply valid product")
        product_ids = [line.get("product_id") for line in incoming]
        if any(not pid for pid in product_ids):
            raise InvalidArgument("Please supply valid product")
        quantities = [_quantity(line.get("quantity")) for line in incoming]

        products = self.catalog.resolve(ctx, product_ids)
        self._ensure_parties(ctx, customer_id, salesman_id)
        branch = self.scope.resolve_branch(ctx, branch_id)

        lines = []
        for line, quantity in zip(incoming, quantities):
            product = products[line["product_id"]]
            price = line.get("price")
            lines.append(
                {
                    "product_id": line["product_id"],
                    "product_code": product["code"],
                    "product_name": product["name"],
                    "price": float(price) if price is not None else product["unit_price"],
                    "discount_amount": _num(line.get("discount_amount")),
                    "discount_percentage": _num(line.get("discount_percentage")),
                    "quantity": quantity,
                }
            )
        header = self._header_totals(
            self._price_lines(lines),
            _num(data.get("discount_amount")),
            _num(data.get("discount_percentage")),
        )

        for attempt in (1, 2):
            try:
                with write_transaction(self.db, raise_conflicts=True):
                    order = Order(
                        tenant_id=ctx.tenant_id,
                        branch_id=branch_id,
                        branch_name=branch.get("name") or "",
                        customer_id=customer_id,
                        salesman_id=salesman_id,
                        code=next_code(self.db, ctx.tenant_id, settings.ORDER_CODE_PREFIX, Order),
                        order_date=order_date,
                        remark=data.get("remark") or "",
                        created_by=ctx.caller_id,
                        updated_by=ctx.caller_id,
                        **header,
                    )
                    order.lines = [OrderLine(line_no=i, **line) for i, line in enumerate(lines, 1)]
                    self.db.add(order)
                break
            except IntegrityError as exc:
                if attempt == 2:
                    raise AlreadyExists("code must be unique") from exc
                log.warning("order code collision for tenant=%s, retrying", ctx.tenant_id)

        log.info("order %s created (id=%s tenant=%s)", order.code, order.id, ctx.tenant_id)
        return order

    # ---- update ----
    def _check_edit_gates(self, ctx: CallerContext, order_id: str):
        if self.orders.has_return(order_id):
            log.warning("order=%s update refused: has return", order_id)
            raise PermissionDenied("Can not updated because the sales has return transaction")
        if self.delivery.has_fulfillment(ctx, order_id):
            log.warning("order=%s update refused: has delivery", order_id)
            raise PermissionDenied("Can not updated because the sales has delivery transaction")

    def _plan_lines(
        self, ctx: CallerContext, order: Order, incoming: List[Dict]
    ) -> Tuple[Dict[str, Dict], List[Dict], List[str]]:
        """
        Two-pass diff of incoming lines against the stored ones.

        Returns ``(updates by line id, inserts, ids to delete)`` with every
        line value already merged and priced.
        """
        persisted = {line.id: line for line in order.lines}
        updates: Dict[str, Dict] = {}
        inserts: List[Dict] = []

        for line in incoming:
            line_id = line.get("id")
            if line_id:
                current = persisted.get(line_id)
                if current is None or line_id in updates:
                    raise InvalidArgument("Please supply valid sales detail")
                merged = {field: getattr(current, field) for field in LINE_VALUE_FIELDS}
                merged["product_id"] = current.product_id
                for field in ("product_id",) + LINE_VALUE_FIELDS:
                    if field in line and line[field] is not None:
                        merged[field] = line[field]
                merged["quantity"] = _quantity(merged["quantity"])
                updates[line_id] = merged
            else:
                if not line.get("product_id"):
                    raise InvalidArgument("Please supply valid product")
                inserts.append(
                    {
                        "product_id": line["product_id"],
                        "price": line.get("price"),
                        "discount_amount": _num(line.get("discount_amount")),
                        "discount_percentage": _num(line.get("discount_percentage")),
                        "quantity": _quantity(line.get("quantity")),
                    }
                )
        deletes = [line_id for line_id in persisted if line_id not in updates]

        products = self.catalog.resolve(
            ctx, [m["product_id"] for m in updates.values()] + [m["product_id"] for m in inserts]
        )
        for merged in list(updates.values()) + inserts:
            product = products[merged["product_id"]]
            merged["product_code"] = product["code"]
            merged["product_name"] = product["name"]
            if merged["price"] is None:
                merged["price"] = product["unit_price"]
            merged["price"] = float(merged["price"])
            merged["discount_amount"] = float(merged["discount_amount"])
            merged["discount_percentage"] = float(merged["discount_percentage"])
        return updates, inserts, deletes

    def update_order(self, ctx: CallerContext, order_id: str, data: Dict) -> Order:
        """
        Partial update. Only keys present in ``data`` change the header; an
        explicit zero discount resets it. When ``lines`` is present it is the
        full new line set: lines with an ``id`` are merged field by field,
        lines without one are inserted, stored lines left out are deleted.
        Refused once the order has a return or a delivery.
        """
        if not order_id:
            raise InvalidArgument("Please supply valid id")
        self._check_edit_gates(ctx, order_id)
        order = self.orders.get(ctx, order_id)

        header = {field: getattr(order, field) for field in MERGEABLE_HEADER_FIELDS}
        for field in MERGEABLE_HEADER_FIELDS:
            if field in data and data[field] is not None:
                header[field] = data[field]
        header["order_date"] = parse_date(header["order_date"], "order date")
        if not header["customer_id"]:
            raise InvalidArgument("Please supply valid customer")
        if not header["salesman_id"]:
            raise InvalidArgument("Please supply valid salesman")

        if "lines" in data and data["lines"] is not None:
            if not data["lines"]:
                raise InvalidArgument("Please supply valid product")
            updates, inserts, deletes = self._plan_lines(ctx, order, data["lines"])
        else:
            updates, inserts, deletes = None, [], []
        self._ensure_parties(ctx, header["customer_id"], header["salesman_id"])
        self.scope.authorize(ctx, order.branch_id)

        with order_write_lock(order_id):
            with write_transaction(self.db):
                order = self.orders.get(ctx, order_id, for_update=True)
                # a return may have been written since the gate was checked
                if self.orders.has_return(order_id):
                    raise PermissionDenied("Can not updated because the sales has return transaction")

                if updates is not None:
                    by_id = {line.id: line for line in order.lines}
                    if any(line_id not in by_id for line_id in list(updates) + deletes):
                        raise InvalidArgument("Please supply valid sales detail")
                    for line_id in deletes:
                        order.lines.remove(by_id[line_id])
                    # lines changing product are parked under their own id so two
                    # lines may swap products without a transient duplicate
                    for line_id, merged in updates.items():
                        if by_id[line_id].product_id != merged["product_id"]:
                            by_id[line_id].product_id = line_id
                    # deletes and parked lines reach the table before any product reappears
                    self.db.flush()
                    for line_id, merged in updates.items():
                        line = by_id[line_id]
                        for field, value in merged.items():
                            setattr(line, field, value)
                    self.db.flush()
                    next_no = max([line.line_no for line in order.lines] or [0]) + 1
                    for offset, merged in enumerate(inserts):
                        order.lines.append(OrderLine(line_no=next_no + offset, **merged))

                final_lines = [
                    {field: getattr(line, field) for field in LINE_VALUE_FIELDS} for line in order.lines
                ]
                sum_price = self._price_lines(final_lines)
                for line, priced in zip(order.lines, final_lines):
                    line.discount_amount = priced["discount_amount"]
                    line.total_price = priced["total_price"]

                order.customer_id = header["customer_id"]
                order.salesman_id = header["salesman_id"]
                order.order_date = header["order_date"]
                order.remark = header["remark"] or ""
                for field, value in self._header_totals(
                    sum_price, _num(header["discount_amount"]), _num(header["discount_percentage"])
                ).items():
                    setattr(order, field, value)
                order.updated_by = ctx.caller_id

        log.info("order %s updated (id=%s tenant=%s)", order.code, order.id, ctx.tenant_id)
        return order

    # ---- reads ----
    def view_order(self, ctx: CallerContext, order_id: str) -> Order:
        if not order_id:
            raise InvalidArgument("Please supply valid id")
        return self.orders.get(ctx, order_id)

    def view_order_by_code(self, ctx: CallerContext, code: str) -> Order:
        if not code:
            raise InvalidArgument("Please supply valid code")
        return self.orders.get_by_code(ctx, code)

    def has_return(self, ctx: CallerContext, order_id: str) -> bool:
        self.orders.get(ctx, order_id)
        return self.orders.has_return(order_id)

    def iter_orders(
        self,
        ctx: CallerContext,
        filters: Optional[Dict[str, str]],
        page: PageRequest,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> Iterator[Tuple[PageInfo, Order]]:
        """
        Yield ``(pagination, order)`` per matching row. ``should_stop`` is
        polled before every row; when it returns True the stream ends with
        Cancelled.
        """
        builder = QueryBuilder(self.db, Order, filter_columns=("branch_id", "customer_id", "salesman_id"))
        info, qry = builder.build(ctx, filters, page)
        for order in qry:
            if should_stop is not None and should_stop():
                log.info("order list cancelled by caller (tenant=%s)", ctx.tenant_id)
                raise Cancelled("list cancelled by caller")
            yield info, order
