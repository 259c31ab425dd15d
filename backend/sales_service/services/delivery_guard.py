import logging

from sales_service.context import CallerContext

log = logging.getLogger(__name__)


class DeliveryStateGuard:
    def __init__(self, logistics):
        self.logistics = logistics

    def has_fulfillment(self, ctx: CallerContext, order_id: str) -> bool:
        """True as soon as any delivery record exists for the order, whatever its status."""
        stream = self.logistics.list_fulfillment_by_order(ctx, order_id)
        try:
            for record in stream:
                log.debug("order=%s has delivery %s", order_id, record.get("id"))
                return True
            return False
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()
