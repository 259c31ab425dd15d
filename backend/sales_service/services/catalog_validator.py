from typing import Dict, List

from sales_service.context import CallerContext
from sales_service.errors import InvalidArgument


class CatalogValidator:
    def __init__(self, catalog):
        self.catalog = catalog

    def resolve(self, ctx: CallerContext, product_ids: List[str]) -> Dict[str, Dict]:
        """
        Map every product id to ``{code, name, unit_price}``.

        All or nothing: duplicates in the input, or any id the catalog does
        not answer for, fail the whole call.
        """
        if not product_ids or any(not pid for pid in product_ids):
            raise InvalidArgument("Please supply valid product")
        if len(set(product_ids)) != len(product_ids):
            raise InvalidArgument("Please supply valid product: duplicated product")

        products = list(self.catalog.list_products(ctx, product_ids))
        resolved = {
            p["id"]: {
                "code": p.get("code") or "",
                "name": p.get("name") or "",
                "unit_price": float(p.get("price") or 0),
            }
            for p in products
        }
        if len(products) != len(product_ids) or set(resolved) != set(product_ids):
            raise InvalidArgument("Please supply valid product")
        return resolved
