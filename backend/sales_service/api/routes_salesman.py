from fastapi import APIRouter, Depends, HTTPException, Query, Request

from sales_service.api.deps import get_caller_context, get_salesman_service
from sales_service.api.streaming import ndjson_response
from sales_service.context import CallerContext
from sales_service.db import get_session_factory
from sales_service.errors import SalesServiceException
from sales_service.schemas.party_schema import SalesmanIn, SalesmanOut
from sales_service.services.party_service import SalesmanService
from sales_service.services.query_builder import PageRequest

router = APIRouter(tags=["salesmen"])


def _out(row) -> dict:
    return SalesmanOut.model_validate(row).model_dump()


@router.post("", summary="Create salesman")
def create_salesman(
    payload: SalesmanIn,
    ctx: CallerContext = Depends(get_caller_context),
    svc: SalesmanService = Depends(get_salesman_service),
):
    try:
        return _out(svc.create(ctx, payload.model_dump(exclude_unset=True)))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("", summary="List salesmen (NDJSON stream)")
def list_salesmen(
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
        for info, row in SalesmanService(db).iter_rows(ctx, page, should_stop=should_stop):
            yield {"pagination": info.as_dict(), "salesman": _out(row)}

    return ndjson_response(request, session_factory, rows)


@router.get("/{salesman_id}", summary="View salesman")
def view_salesman(
    salesman_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    svc: SalesmanService = Depends(get_salesman_service),
):
    try:
        return _out(svc.view(ctx, salesman_id))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{salesman_id}", summary="Update salesman")
def update_salesman(
    salesman_id: str,
    payload: SalesmanIn,
    ctx: CallerContext = Depends(get_caller_context),
    svc: SalesmanService = Depends(get_salesman_service),
):
    try:
        return _out(svc.update(ctx, salesman_id, payload.model_dump(exclude_unset=True)))
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{salesman_id}", summary="Delete salesman")
def delete_salesman(
    salesman_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    svc: SalesmanService = Depends(get_salesman_service),
):
    try:
        return {"deleted": svc.delete(ctx, salesman_id)}
    except SalesServiceException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
