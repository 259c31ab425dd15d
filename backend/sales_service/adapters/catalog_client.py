from typing import Dict, Iterable, Iterator

from sales_service.adapters.remote import RemoteServiceClient
from sales_service.context import CallerContext


class CatalogClient(RemoteServiceClient):
    service_name = "catalog"

    def view_product(self, ctx: CallerContext, product_id: str) -> Dict:
        return self._get(ctx, f"/products/{product_id}")

    def list_products(self, ctx: CallerContext, product_ids: Iterable[str]) -> Iterator[Dict]:
        """Stream of {id, code, name, price} for the requested ids (unknown ids are skipped remotely)."""
        return self._stream(ctx, "/products", params={"ids": list(product_ids)})
