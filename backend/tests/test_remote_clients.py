import io
import json
from urllib.parse import parse_qs, urlparse

import pytest
import requests
from requests.adapters import BaseAdapter

from sales_service.adapters.catalog_client import CatalogClient
from sales_service.adapters.identity_client import IdentityClient
from sales_service.adapters.logistics_client import LogisticsClient
from sales_service.context import CallerContext
from sales_service.errors import Internal, InvalidArgument, NotFound, PermissionDenied, Unauthenticated


class StubAdapter(BaseAdapter):
    """Answers requests from a ``{path: (status, body)}`` table; list bodies go out as NDJSON."""

    def __init__(self, routes, fail=False):
        super().__init__()
        self.routes = routes
        self.fail = fail
        self.sent = []

    def send(self, request, **kwargs):
        self.sent.append(request)
        if self.fail:
            raise requests.ConnectionError("connection refused")
        status, body = self.routes.get(urlparse(request.url).path, (404, {"detail": "not found"}))
        if isinstance(body, list):
            content = "\n".join(json.dumps(item) for item in body).encode()
        else:
            content = json.dumps(body).encode()
        resp = requests.Response()
        resp.status_code = status
        resp.request = request
        resp.url = request.url
        resp.raw = io.BytesIO(content)
        return resp

    def close(self):
        pass


def _session(adapter):
    session = requests.Session()
    session.mount("http://", adapter)
    return session


CTX = CallerContext(tenant_id="tenant-1", caller_id="user-1", branch_id="branch-1")


def test_view_caller_forwards_context_headers():
    adapter = StubAdapter({"/users/user-1": (200, {"id": "user-1", "branch_id": "branch-1"})})
    client = IdentityClient("http://identity", session=_session(adapter))
    assert client.view_caller(CTX)["branch_id"] == "branch-1"
    sent = adapter.sent[0]
    assert sent.headers["X-Tenant-Id"] == "tenant-1"
    assert sent.headers["X-User-Id"] == "user-1"
    assert sent.headers["X-Branch-Id"] == "branch-1"


def test_streams_are_read_line_by_line():
    branches = [{"id": "branch-1", "name": "Main"}, {"id": "branch-2", "name": "Harbour"}]
    adapter = StubAdapter({"/branches": (200, branches)})
    client = IdentityClient("http://identity/", session=_session(adapter))
    assert list(client.list_branches(CTX)) == branches


def test_product_ids_go_out_as_repeated_query_params():
    adapter = StubAdapter({"/products": (200, [{"id": "prod-1", "code": "P", "name": "n", "price": 1}])})
    client = CatalogClient("http://catalog", session=_session(adapter))
    assert [p["id"] for p in client.list_products(CTX, ["prod-1", "prod-2"])] == ["prod-1"]
    assert parse_qs(urlparse(adapter.sent[0].url).query) == {"ids": ["prod-1", "prod-2"]}


def test_delivery_lookup_by_order():
    adapter = StubAdapter({"/deliveries": (200, [{"id": "DLV-1", "status": "draft"}])})
    client = LogisticsClient("http://logistics", session=_session(adapter))
    assert len(list(client.list_fulfillment_by_order(CTX, "order-1"))) == 1
    assert parse_qs(urlparse(adapter.sent[0].url).query) == {"sales_order_id": ["order-1"]}


@pytest.mark.parametrize(
    "status, error",
    [(400, InvalidArgument), (401, Unauthenticated), (403, PermissionDenied), (404, NotFound), (502, Internal)],
)
def test_remote_status_maps_to_error(status, error):
    adapter = StubAdapter({"/products/prod-1": (status, {"detail": "nope"})})
    client = CatalogClient("http://catalog", session=_session(adapter))
    with pytest.raises(error, match="Error when calling catalog service: nope"):
        client.view_product(CTX, "prod-1")


def test_transport_failure_is_internal():
    client = IdentityClient("http://identity", session=_session(StubAdapter({}, fail=True)))
    with pytest.raises(Internal, match="identity"):
        client.view_region(CTX, "region-1")
    with pytest.raises(Internal):
        list(client.list_branches(CTX))
