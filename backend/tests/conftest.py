"""
Shared fixtures: a throwaway sqlite database per test, in-memory identity,
catalog and logistics services, and a TestClient wired to both.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from sales_service.adapters.mock_services import (
    InMemoryCatalogService,
    InMemoryIdentityService,
    InMemoryLogisticsService,
)
from sales_service.api import deps
from sales_service.config import settings
from sales_service.context import CallerContext
from sales_service.db import get_session_factory, init_db
from sales_service.main import app
from sales_service.models.customer import Customer
from sales_service.models.salesman import Salesman
from sales_service.services.order_service import OrderService
from sales_service.services.return_service import ReturnService

TENANT = "tenant-1"
CALLER = "user-1"


@pytest.fixture(autouse=True)
def lock_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "WRITE_LOCK_DIR", str(tmp_path))


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'sales.db'}", connect_args={"check_same_thread": False}
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def identity():
    svc = InMemoryIdentityService(
        branches=[{"id": "branch-1", "name": "Main Branch"}, {"id": "branch-2", "name": "Harbour"}]
    )
    # no branch or region assignment: sees every listed branch
    svc.add_user(CALLER)
    return svc


@pytest.fixture
def catalog():
    return InMemoryCatalogService(
        products=[
            {"id": "prod-1", "code": "P-001", "name": "Rice 5kg", "price": 100.0},
            {"id": "prod-2", "code": "P-002", "name": "Cooking Oil", "price": 100.0},
            {"id": "prod-3", "code": "P-003", "name": "Sugar 1kg", "price": 50.0},
        ]
    )


@pytest.fixture
def logistics():
    return InMemoryLogisticsService()


@pytest.fixture
def ctx():
    return CallerContext(tenant_id=TENANT, caller_id=CALLER)


@pytest.fixture
def other_ctx():
    return CallerContext(tenant_id="tenant-2", caller_id=CALLER)


@pytest.fixture
def parties(db):
    customer = Customer(
        tenant_id=TENANT, code="C001", name="Ana", address="Jl. Merdeka 1", phone="0811",
        created_by=CALLER, updated_by=CALLER,
    )
    salesman = Salesman(
        tenant_id=TENANT, code="S001", name="Budi", email="budi@example.com",
        address="Jl. Sudirman 2", phone="0812", created_by=CALLER, updated_by=CALLER,
    )
    db.add_all([customer, salesman])
    db.commit()
    return {"customer_id": customer.id, "salesman_id": salesman.id}


@pytest.fixture
def order_service(db, identity, catalog, logistics):
    return OrderService(db, identity=identity, catalog=catalog, logistics=logistics)


@pytest.fixture
def return_service(db, identity, logistics):
    return ReturnService(db, identity=identity, logistics=logistics)


@pytest.fixture
def order_payload(parties):
    def build(lines, **header):
        payload = {
            "branch_id": "branch-1",
            "order_date": "2024-05-01",
            "remark": "",
            "lines": lines,
        }
        payload.update(parties)
        payload.update(header)
        return payload

    return build


@pytest.fixture
def client(session_factory, identity, catalog, logistics):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[deps.get_identity_service] = lambda: identity
    app.dependency_overrides[deps.get_catalog_service] = lambda: catalog
    app.dependency_overrides[deps.get_logistics_service] = lambda: logistics
    # no context manager: the lifespan would initialise the configured database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    return {"X-Tenant-Id": TENANT, "X-User-Id": CALLER}
