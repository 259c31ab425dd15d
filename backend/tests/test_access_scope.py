import pytest

from sales_service.context import CallerContext
from sales_service.errors import Unauthenticated
from sales_service.services.access_scope import AccessScopeResolver


@pytest.fixture
def resolver(identity):
    identity.add_branch("branch-3", "Airport")
    identity.add_region("region-1", ["branch-1", "branch-2"], "West")
    return AccessScopeResolver(identity)


def test_branch_assignment_allows_only_that_branch(identity, resolver):
    identity.add_user("cashier", branch_id="branch-2")
    ctx = CallerContext(tenant_id="t", caller_id="cashier")
    resolver.authorize(ctx, "branch-2")
    with pytest.raises(Unauthenticated, match="its not your branch"):
        resolver.authorize(ctx, "branch-1")
    # tier one never looks further
    assert "view_region" not in identity.calls
    assert "list_branches" not in identity.calls


def test_region_assignment_allows_member_branches(identity, resolver):
    identity.add_user("area-manager", region_id="region-1")
    ctx = CallerContext(tenant_id="t", caller_id="area-manager")
    resolver.authorize(ctx, "branch-1")
    resolver.authorize(ctx, "branch-2")
    with pytest.raises(Unauthenticated):
        resolver.authorize(ctx, "branch-3")
    assert "list_branches" not in identity.calls


def test_unassigned_caller_sees_every_listed_branch(identity, resolver, ctx):
    resolver.authorize(ctx, "branch-3")
    assert "list_branches" in identity.calls
    with pytest.raises(Unauthenticated):
        resolver.authorize(ctx, "branch-unknown")


def test_resolve_branch_returns_branch_record(resolver, ctx):
    assert resolver.resolve_branch(ctx, "branch-1")["name"] == "Main Branch"


def test_branch_on_context_cannot_widen_the_profile(identity, resolver):
    identity.add_user("cashier", branch_id="branch-1")
    ctx = CallerContext(tenant_id="t", caller_id="cashier", branch_id="branch-2")
    with pytest.raises(Unauthenticated, match="its not your branch"):
        resolver.authorize(ctx, "branch-2")
    assert "view_caller" in identity.calls


def test_region_on_context_cannot_widen_the_profile(identity, resolver):
    identity.add_user("cashier", branch_id="branch-3")
    ctx = CallerContext(tenant_id="t", caller_id="cashier", region_id="region-1")
    with pytest.raises(Unauthenticated):
        resolver.authorize(ctx, "branch-1")


def test_context_narrows_an_unassigned_profile(identity, resolver, ctx):
    narrowed = CallerContext(tenant_id=ctx.tenant_id, caller_id=ctx.caller_id, branch_id="branch-1")
    resolver.authorize(narrowed, "branch-1")
    with pytest.raises(Unauthenticated):
        resolver.authorize(narrowed, "branch-2")

    in_region = CallerContext(tenant_id=ctx.tenant_id, caller_id=ctx.caller_id, region_id="region-1")
    resolver.authorize(in_region, "branch-2")
    with pytest.raises(Unauthenticated):
        resolver.authorize(in_region, "branch-3")
