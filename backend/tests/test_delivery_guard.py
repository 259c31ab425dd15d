from sales_service.services.delivery_guard import DeliveryStateGuard


def test_no_record_means_no_fulfillment(logistics, ctx):
    assert DeliveryStateGuard(logistics).has_fulfillment(ctx, "order-1") is False


def test_any_record_counts_whatever_its_status(logistics, ctx):
    logistics.add_fulfillment("order-1", status="draft")
    guard = DeliveryStateGuard(logistics)
    assert guard.has_fulfillment(ctx, "order-1") is True
    assert guard.has_fulfillment(ctx, "order-2") is False
