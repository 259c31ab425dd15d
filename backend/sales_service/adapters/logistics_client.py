from typing import Dict, Iterator

from sales_service.adapters.remote import RemoteServiceClient
from sales_service.context import CallerContext


class LogisticsClient(RemoteServiceClient):
    service_name = "logistics"

    def list_fulfillment_by_order(self, ctx: CallerContext, order_id: str) -> Iterator[Dict]:
        return self._stream(ctx, "/deliveries", params={"sales_order_id": order_id})
