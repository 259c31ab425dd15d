from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from sales_service.api.deps import (
    get_caller_context,
    get_catalog_service,
    get_identity_service,
    get_logistics_service,
    get_order_service,
    get_return_service,
)
from sales_service.api.streaming import ndjson_response
from sales_service.context import CallerContext
from sales_service.db import get_session_factory
from sales_service.errors import SalesServiceException
from sales_service.schemas.order_schema import OrderIn, OrderOut
from sales_service.services.order_service import OrderService
from sales_service.services.query_builder import PageRequest
from sales_service.services.return_service import ReturnService

router = APIRouter(tags=["orders"])


def _out(order) -> dict:
    return OrderOut.model_validate(order).model_dump(mode="json")


@router.post("", summary="Create sales order")
def create_order(
    payload: OrderIn,
    ctx: CallerContext = Depends(get_caller_context),
    svc: OrderService = Depends(get_order_service),
):
    try:
        order = svc.create_order(ctx, payload.model_dump(exclude_unset=True))
        return _out(order)
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("", summary="List sales orders (NDJSON stream)")
def list_orders(
    request: Request,
    branch_id: Optional[str] = Query(None),
    customer_id: Optional[str] = Query(None),
    salesman_id: Optional[str] = Query(None),
    search: str = Query(""),
    order_by: str = Query("created_at"),
    sort: str = Query("desc"),
    limit: int = Query(0, ge=0),
    offset: int = Query(0, ge=0),
    ctx: CallerContext = Depends(get_caller_context),
    session_factory=Depends(get_session_factory),
    identity=Depends(get_identity_service),
    catalog=Depends(get_catalog_service),
    logistics=Depends(get_logistics_service),
):
    filters = {"branch_id": branch_id, "customer_id": customer_id, "salesman_id": salesman_id}
    page = PageRequest(search=search, order_by=order_by, sort=sort, limit=limit, offset=offset)

    def rows(db, should_stop):
        svc = OrderService(db, identity=identity, catalog=catalog, logistics=logistics)
        for info, order in svc.iter_orders(ctx, filters, page, should_stop=should_stop):
            yield {"pagination": info.as_dict(), "order": _out(order)}

    return ndjson_response(request, session_factory, rows)


@router.get("/by-code/{code}", summary="View sales order by code")
def view_order_by_code(
    code: str,
    ctx: CallerContext = Depends(get_caller_context),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return _out(svc.view_order_by_code(ctx, code))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{order_id}", summary="View sales order")
def view_order(
    order_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return _out(svc.view_order(ctx, order_id))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{order_id}/outstanding", summary="Quantities still returnable per product")
def order_outstanding(
    order_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    svc: ReturnService = Depends(get_return_service),
):
    try:
        return {"order_id": order_id, "outstanding": svc.outstanding(ctx, order_id)}
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{order_id}", summary="Update sales order (partial)")
def update_order(
    order_id: str,
    payload: OrderIn,
    ctx: CallerContext = Depends(get_caller_context),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return _out(svc.update_order(ctx, order_id, payload.model_dump(exclude_unset=True)))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
