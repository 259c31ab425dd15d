from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from sales_service.adapters.catalog_client import CatalogClient
from sales_service.adapters.identity_client import IdentityClient
from sales_service.adapters.logistics_client import LogisticsClient
from sales_service.adapters.mock_services import (
    InMemoryCatalogService,
    InMemoryIdentityService,
    InMemoryLogisticsService,
)
from sales_service.config import settings
from sales_service.context import CallerContext
from sales_service.db import get_session_factory
from sales_service.services.order_service import OrderService
from sales_service.services.party_service import CustomerService, SalesmanService
from sales_service.services.return_service import ReturnService


def get_db(factory=Depends(get_session_factory)):
    db = factory()
    try:
        yield db
    finally:
        db.close()


def get_caller_context(
    x_tenant_id: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
    x_branch_id: Optional[str] = Header(None),
    x_region_id: Optional[str] = Header(None),
) -> CallerContext:
    if not x_tenant_id or not x_user_id:
        raise HTTPException(status_code=401, detail="Please supply valid metadata")
    return CallerContext(
        tenant_id=x_tenant_id,
        caller_id=x_user_id,
        branch_id=x_branch_id or None,
        region_id=x_region_id or None,
    )


# one client (and one pooled requests.Session) per process
@lru_cache
def get_identity_service():
    if settings.USE_MOCK_SERVICES:
        return InMemoryIdentityService()
    return IdentityClient(settings.IDENTITY_SERVICE_URL, timeout=settings.REMOTE_TIMEOUT_SECONDS)


@lru_cache
def get_catalog_service():
    if settings.USE_MOCK_SERVICES:
        return InMemoryCatalogService()
    return CatalogClient(settings.CATALOG_SERVICE_URL, timeout=settings.REMOTE_TIMEOUT_SECONDS)


@lru_cache
def get_logistics_service():
    if settings.USE_MOCK_SERVICES:
        return InMemoryLogisticsService()
    return LogisticsClient(settings.LOGISTICS_SERVICE_URL, timeout=settings.REMOTE_TIMEOUT_SECONDS)


def get_order_service(
    db: Session = Depends(get_db),
    identity=Depends(get_identity_service),
    catalog=Depends(get_catalog_service),
    logistics=Depends(get_logistics_service),
) -> OrderService:
    return OrderService(db, identity=identity, catalog=catalog, logistics=logistics)


def get_return_service(
    db: Session = Depends(get_db),
    identity=Depends(get_identity_service),
    logistics=Depends(get_logistics_service),
) -> ReturnService:
    return ReturnService(db, identity=identity, logistics=logistics)


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    return CustomerService(db)


def get_salesman_service(db: Session = Depends(get_db)) -> SalesmanService:
    return SalesmanService(db)
