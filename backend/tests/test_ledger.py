import pytest

from sales_service.services.ledger import OutstandingLedger


@pytest.fixture
def order(order_service, order_payload, ctx):
    return order_service.create_order(
        ctx,
        order_payload(
            [{"product_id": "prod-1", "quantity": 10}, {"product_id": "prod-2", "quantity": 5}],
            discount_amount=30.0,
        ),
    )


def _return(return_service, ctx, order, lines):
    return return_service.create_return(
        ctx,
        {"branch_id": "branch-1", "order_id": order.id, "return_date": "2024-05-02", "lines": lines},
    )


def test_untouched_order_is_fully_outstanding(db, ctx, order):
    assert OutstandingLedger(db).outstanding(ctx, order.id) == {"prod-1": 10, "prod-2": 5}


def test_returns_are_subtracted_and_exhausted_products_omitted(db, ctx, order, return_service):
    _return(return_service, ctx, order, [{"product_id": "prod-1", "quantity": 4}])
    _return(return_service, ctx, order, [{"product_id": "prod-2", "quantity": 5}])
    assert OutstandingLedger(db).outstanding(ctx, order.id) == {"prod-1": 6}


def test_excluded_return_does_not_count_against_itself(db, ctx, order, return_service):
    first = _return(return_service, ctx, order, [{"product_id": "prod-1", "quantity": 4}])
    _return(return_service, ctx, order, [{"product_id": "prod-1", "quantity": 2}])
    ledger = OutstandingLedger(db)
    assert ledger.outstanding(ctx, order.id) == {"prod-1": 4, "prod-2": 5}
    assert ledger.outstanding(ctx, order.id, exclude_return_id=first.id) == {"prod-1": 8, "prod-2": 5}


def test_allocated_discount_sums_prior_returns(db, ctx, order, return_service):
    # 30 over 15 ordered units: 2 per unit
    first = _return(return_service, ctx, order, [{"product_id": "prod-1", "quantity": 3}])
    _return(return_service, ctx, order, [{"product_id": "prod-2", "quantity": 2}])
    ledger = OutstandingLedger(db)
    assert ledger.allocated_discount(ctx, order.id) == pytest.approx(10.0)
    assert ledger.allocated_discount(ctx, order.id, exclude_return_id=first.id) == pytest.approx(4.0)


def test_other_tenant_sees_nothing(db, other_ctx, order):
    ledger = OutstandingLedger(db)
    assert ledger.outstanding(other_ctx, order.id) == {}
    assert ledger.allocated_discount(other_ctx, order.id) == 0.0
