import logging
from typing import Dict, Iterable

from sales_service.context import CallerContext
from sales_service.errors import Unauthenticated

log = logging.getLogger(__name__)


class AccessScopeResolver:
    """
    Decides whether the caller may act on a branch.

    The scope always comes from the caller's profile in the identity
    service. Three tiers, first match wins:
      1. the caller is assigned to one branch -> it must be that branch
      2. the caller is assigned to a region   -> the branch must belong to it
      3. otherwise the caller sees every branch the identity service lists

    A branch or region carried on the request context can only narrow that
    scope further, never widen it.
    """

    def __init__(self, identity):
        self.identity = identity

    @staticmethod
    def _contains(branches: Iterable[Dict], branch_id: str) -> bool:
        return any(branch.get("id") == branch_id for branch in branches)

    def _in_region(self, ctx: CallerContext, region_id: str, branch_id: str) -> bool:
        region = self.identity.view_region(ctx, region_id)
        return self._contains(region.get("branches") or [], branch_id)

    def _profile_allows(self, ctx: CallerContext, branch_id: str) -> bool:
        profile = self.identity.view_caller(ctx)
        assigned_branch = profile.get("branch_id") or None
        assigned_region = profile.get("region_id") or None

        if assigned_branch:
            return assigned_branch == branch_id
        if assigned_region:
            return self._in_region(ctx, assigned_region, branch_id)
        return self._contains(self.identity.list_branches(ctx), branch_id)

    def _context_allows(self, ctx: CallerContext, branch_id: str) -> bool:
        if ctx.branch_id:
            return ctx.branch_id == branch_id
        if ctx.region_id:
            return self._in_region(ctx, ctx.region_id, branch_id)
        return True

    def authorize(self, ctx: CallerContext, branch_id: str) -> None:
        allowed = self._profile_allows(ctx, branch_id) and self._context_allows(ctx, branch_id)
        if not allowed:
            log.warning("caller=%s tenant=%s refused on branch=%s", ctx.caller_id, ctx.tenant_id, branch_id)
            raise Unauthenticated("its not your branch")

    def resolve_branch(self, ctx: CallerContext, branch_id: str) -> Dict:
        """Authorize, then fetch the branch for its display name."""
        self.authorize(ctx, branch_id)
        return self.identity.view_branch(ctx, branch_id)
