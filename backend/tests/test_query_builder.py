import pytest

from sales_service.context import CallerContext
from sales_service.models.order import Order
from sales_service.services.query_builder import PageRequest, QueryBuilder, escape_like


@pytest.fixture
def orders(order_service, order_payload, ctx):
    made = []
    for remark, branch in [("rice for shop", "branch-1"), ("oil", "branch-1"), ("Rice bulk", "branch-2")]:
        made.append(
            order_service.create_order(
                ctx,
                order_payload([{"product_id": "prod-1", "quantity": 1}], remark=remark, branch_id=branch),
            )
        )
    return made


def _builder(db):
    return QueryBuilder(db, Order, filter_columns=("branch_id", "customer_id", "salesman_id"))


def test_tenant_filter_is_always_applied(db, orders, other_ctx):
    info, qry = _builder(db).build(other_ctx, None, PageRequest())
    assert info.count == 0
    assert qry.all() == []


def test_count_ignores_paging(db, orders, ctx):
    info, qry = _builder(db).build(ctx, None, PageRequest(order_by="code", sort="asc", limit=2, offset=1))
    assert info.count == 3
    assert (info.limit, info.offset) == (2, 1)
    assert [o.code for o in qry.all()] == sorted(o.code for o in orders)[1:3]


def test_no_limit_returns_everything(db, orders, ctx):
    info, qry = _builder(db).build(ctx, None, PageRequest(limit=0, offset=2))
    assert info.offset == 0
    assert len(qry.all()) == 3


def test_filters_and_search(db, orders, ctx):
    info, qry = _builder(db).build(ctx, {"branch_id": "branch-1", "customer_id": ""}, PageRequest())
    assert info.count == 2
    info, qry = _builder(db).build(ctx, None, PageRequest(search="RICE"))
    assert {o.remark for o in qry.all()} == {"rice for shop", "Rice bulk"}


def test_sort_column_is_allowlisted(db, orders, ctx):
    info, qry = _builder(db).build(ctx, None, PageRequest(order_by="remark; drop table orders", sort="sideways"))
    assert (info.order_by, info.sort) == ("created_at", "desc")
    assert len(qry.all()) == 3

    info, qry = _builder(db).build(ctx, None, PageRequest(order_by="code", sort="desc"))
    codes = [o.code for o in qry.all()]
    assert codes == sorted(codes, reverse=True)


def test_page_request_normalisation():
    assert PageRequest(order_by="code", sort="ASC").normalized_sort() == "asc"
    assert PageRequest(order_by="price").normalized_order_by() == "created_at"
    assert CallerContext("t", "u").as_headers() == {"X-Tenant-Id": "t", "X-User-Id": "u"}


def test_search_treats_wildcards_literally(db, order_service, order_payload, ctx):
    for remark in ("50% off", "500 units", "box_a", "boxba"):
        order_service.create_order(
            ctx, order_payload([{"product_id": "prod-1", "quantity": 1}], remark=remark)
        )
    info, qry = _builder(db).build(ctx, None, PageRequest(search="50%"))
    assert [o.remark for o in qry.all()] == ["50% off"]
    assert info.count == 1
    info, qry = _builder(db).build(ctx, None, PageRequest(search="x_a"))
    assert [o.remark for o in qry.all()] == ["box_a"]


def test_escape_like():
    assert escape_like("50%") == "50\\%"
    assert escape_like("a_b\\c") == "a\\_b\\\\c"
