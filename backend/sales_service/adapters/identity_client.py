from typing import Dict, Iterator

from sales_service.adapters.remote import RemoteServiceClient
from sales_service.context import CallerContext


class IdentityClient(RemoteServiceClient):
    """Users, regions and branches as seen by the calling tenant."""

    service_name = "identity"

    def view_caller(self, ctx: CallerContext) -> Dict:
        # {id, branch_id, region_id}
        return self._get(ctx, f"/users/{ctx.caller_id}")

    def view_region(self, ctx: CallerContext, region_id: str) -> Dict:
        # {id, name, branches: [{id, name}]}
        return self._get(ctx, f"/regions/{region_id}")

    def list_branches(self, ctx: CallerContext) -> Iterator[Dict]:
        return self._stream(ctx, "/branches")

    def view_branch(self, ctx: CallerContext, branch_id: str) -> Dict:
        return self._get(ctx, f"/branches/{branch_id}")
