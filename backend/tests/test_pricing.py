import pytest

from sales_service.services import pricing


def test_percentage_wins_over_amount():
    assert pricing.resolve_discount(200.0, 15.0, 10.0) == pytest.approx(20.0)
    assert pricing.resolve_discount(200.0, 15.0, 0.0) == 15.0
    assert pricing.resolve_discount(200.0, None, None) == 0.0


def test_order_and_return_lines_total_with_opposite_signs():
    # same inputs, different stored totals: order adds the discount, return subtracts it
    assert pricing.order_line_total(100.0, 0.0, 10.0, 3) == (pytest.approx(10.0), pytest.approx(330.0))
    assert pricing.return_line_total(100.0, 0.0, 10.0, 3) == (pytest.approx(10.0), pytest.approx(270.0))


def test_line_without_discount_is_price_times_quantity():
    assert pricing.order_line_total(100.0, 0.0, 0.0, 10) == (0.0, 1000.0)
    assert pricing.return_line_total(100.0, 0.0, 0.0, 4) == (0.0, 400.0)


def test_header_discount_and_total():
    discount = pricing.header_discount(1000.0, 0.0, 10.0)
    assert discount == pytest.approx(100.0)
    assert pricing.header_total(1000.0, discount) == pytest.approx(900.0)
    assert pricing.header_discount(1000.0, 75.0, 0.0) == 75.0


def test_proportional_return_discount():
    # 100 over 10 units, 4 returned
    assert pricing.proportional_return_discount(100.0, 10, 4, 0.0) == pytest.approx(40.0)


def test_proportional_return_discount_is_capped_by_what_is_left():
    assert pricing.proportional_return_discount(100.0, 10, 4, 80.0) == pytest.approx(20.0)
    assert pricing.proportional_return_discount(100.0, 10, 4, 120.0) == 0.0


def test_proportional_return_discount_without_discount_or_quantity():
    assert pricing.proportional_return_discount(0.0, 10, 4, 0.0) == 0.0
    assert pricing.proportional_return_discount(100.0, 0, 4, 0.0) == 0.0
