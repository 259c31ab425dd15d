from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from sales_service.api.deps import get_caller_context, get_identity_service, get_logistics_service, get_return_service
from sales_service.api.streaming import ndjson_response
from sales_service.context import CallerContext
from sales_service.db import get_session_factory
from sales_service.errors import SalesServiceException
from sales_service.schemas.return_schema import ReturnIn, ReturnOut
from sales_service.services.query_builder import PageRequest
from sales_service.services.return_service import ReturnService

router = APIRouter(tags=["returns"])


def _out(sales_return) -> dict:
    return ReturnOut.model_validate(sales_return).model_dump(mode="json")


@router.post("", summary="Create sales return")
def create_return(
    payload: ReturnIn,
    ctx: CallerContext = Depends(get_caller_context),
    svc: ReturnService = Depends(get_return_service),
):
    try:
        return _out(svc.create_return(ctx, payload.model_dump(exclude_unset=True)))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("", summary="List sales returns (NDJSON stream)")
def list_returns(
    request: Request,
    branch_id: Optional[str] = Query(None),
    sales_id: Optional[str] = Query(None),
    search: str = Query(""),
    order_by: str = Query("created_at"),
    sort: str = Query("desc"),
    limit: int = Query(0, ge=0),
    offset: int = Query(0, ge=0),
    ctx: CallerContext = Depends(get_caller_context),
    session_factory=Depends(get_session_factory),
    identity=Depends(get_identity_service),
    logistics=Depends(get_logistics_service),
):
    filters = {"branch_id": branch_id, "order_id": sales_id}
    page = PageRequest(search=search, order_by=order_by, sort=sort, limit=limit, offset=offset)

    def rows(db, should_stop):
        svc = ReturnService(db, identity=identity, logistics=logistics)
        for info, sales_return in svc.iter_returns(ctx, filters, page, should_stop=should_stop):
            yield {"pagination": info.as_dict(), "sales_return": _out(sales_return)}

    return ndjson_response(request, session_factory, rows)


@router.get("/{return_id}", summary="View sales return")
def view_return(
    return_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    svc: ReturnService = Depends(get_return_service),
):
    try:
        return _out(svc.view_return(ctx, return_id))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{return_id}", summary="Update sales return (partial)")
def update_return(
    return_id: str,
    payload: ReturnIn,
    ctx: CallerContext = Depends(get_caller_context),
    svc: ReturnService = Depends(get_return_service),
):
    try:
        return _out(svc.update_return(ctx, return_id, payload.model_dump(exclude_unset=True)))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
