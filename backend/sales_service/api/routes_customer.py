from fastapi import APIRouter, Depends, HTTPException, Query, Request

from sales_service.api.deps import get_caller_context, get_customer_service
from sales_service.api.streaming import ndjson_response
from sales_service.context import CallerContext
from sales_service.db import get_session_factory
from sales_service.errors import SalesServiceException
from sales_service.schemas.party_schema import CustomerIn, CustomerOut
from sales_service.services.party_service import CustomerService
from sales_service.services.query_builder import PageRequest

router = APIRouter(tags=["customers"])


def _out(row) -> dict:
    return CustomerOut.model_validate(row).model_dump()


@router.post("", summary="Create customer")
def create_customer(
    payload: CustomerIn,
    ctx: CallerContext = Depends(get_caller_context),
    svc: CustomerService = Depends(get_customer_service),
):
    try:
        return _out(svc.create(ctx, payload.model_dump(exclude_unset=True)))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("", summary="List customers (NDJSON stream)")
def list_customers(
    request: Request,
    search: str = Query(""),
    order_by: str = Query("created_at"),
    sort: str = Query("desc"),
    limit: int = Query(0, ge=0),
    offset: int = Query(0, ge=0),
    ctx: CallerContext = Depends(get_caller_context),
    session_factory=Depends(get_session_factory),
):
    page = PageRequest(search=search, order_by=order_by, sort=sort, limit=limit, offset=offset)

    def rows(db, should_stop):
        for info, row in CustomerService(db).iter_rows(ctx, page, should_stop=should_stop):
            yield {"pagination": info.as_dict(), "customer": _out(row)}

    return ndjson_response(request, session_factory, rows)


@router.get("/{customer_id}", summary="View customer")
def view_customer(
    customer_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    svc: CustomerService = Depends(get_customer_service),
):
    try:
        return _out(svc.view(ctx, customer_id))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{customer_id}", summary="Update customer")
def update_customer(
    customer_id: str,
    payload: CustomerIn,
    ctx: CallerContext = Depends(get_caller_context),
    svc: CustomerService = Depends(get_customer_service),
):
    try:
        return _out(svc.update(ctx, customer_id, payload.model_dump(exclude_unset=True)))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{customer_id}", summary="Delete customer")
def delete_customer(
    customer_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    svc: CustomerService = Depends(get_customer_service),
):
    try:
        return {"deleted": svc.delete(ctx, customer_id)}
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
