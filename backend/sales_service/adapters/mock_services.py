"""
In-memory stand-ins for the identity, catalog and logistics services.

Same method names and return shapes as the HTTP clients, so they can be
wired in for local development (USE_MOCK_SERVICES=1) and in tests.
"""
from typing import Dict, Iterable, Iterator, List, Optional

from sales_service.context import CallerContext
from sales_service.errors import NotFound


class InMemoryIdentityService:
    def __init__(self, branches: Optional[List[Dict]] = None):
        self.branches: Dict[str, Dict] = {}
        self.regions: Dict[str, Dict] = {}
        self.users: Dict[str, Dict] = {}
        self.calls: List[str] = []
        for branch in branches or []:
            self.add_branch(branch["id"], branch.get("name", branch["id"]))

    def add_branch(self, branch_id: str, name: str):
        self.branches[branch_id] = {"id": branch_id, "name": name}

    def add_region(self, region_id: str, branch_ids: Iterable[str], name: str = ""):
        self.regions[region_id] = {
            "id": region_id,
            "name": name or region_id,
            "branches": [self.branches[b] for b in branch_ids],
        }

    def add_user(self, user_id: str, branch_id: str = "", region_id: str = ""):
        self.users[user_id] = {"id": user_id, "branch_id": branch_id, "region_id": region_id}

    def view_caller(self, ctx: CallerContext) -> Dict:
        self.calls.append("view_caller")
        user = self.users.get(ctx.caller_id)
        if user is None:
            raise NotFound("Error when calling identity service: user not found")
        return dict(user)

    def view_region(self, ctx: CallerContext, region_id: str) -> Dict:
        self.calls.append("view_region")
        region = self.regions.get(region_id)
        if region is None:
            raise NotFound("Error when calling identity service: region not found")
        return dict(region)

    def list_branches(self, ctx: CallerContext) -> Iterator[Dict]:
        self.calls.append("list_branches")
        for branch in list(self.branches.values()):
            yield dict(branch)

    def view_branch(self, ctx: CallerContext, branch_id: str) -> Dict:
        self.calls.append("view_branch")
        branch = self.branches.get(branch_id)
        if branch is None:
            raise NotFound("Error when calling identity service: branch not found")
        return dict(branch)


class InMemoryCatalogService:
    def __init__(self, products: Optional[List[Dict]] = None):
        self.products: Dict[str, Dict] = {}
        for product in products or []:
            self.add_product(**product)

    def add_product(self, id: str, code: str, name: str, price: float):
        self.products[id] = {"id": id, "code": code, "name": name, "price": price}

    def view_product(self, ctx: CallerContext, product_id: str) -> Dict:
        product = self.products.get(product_id)
        if product is None:
            raise NotFound("Error when calling catalog service: product not found")
        return dict(product)

    def list_products(self, ctx: CallerContext, product_ids: Iterable[str]) -> Iterator[Dict]:
        # an id-set query: each known id answers once, unknown ids are skipped
        for product_id in dict.fromkeys(product_ids):
            if product_id in self.products:
                yield dict(self.products[product_id])


class InMemoryLogisticsService:
    def __init__(self):
        self.deliveries: Dict[str, List[Dict]] = {}

    def add_fulfillment(self, order_id: str, status: str = "draft") -> Dict:
        record = {"id": f"DLV-{len(self.deliveries) + 1}", "sales_order_id": order_id, "status": status}
        self.deliveries.setdefault(order_id, []).append(record)
        return record

    def list_fulfillment_by_order(self, ctx: CallerContext, order_id: str) -> Iterator[Dict]:
        for record in list(self.deliveries.get(order_id, [])):
            yield dict(record)
