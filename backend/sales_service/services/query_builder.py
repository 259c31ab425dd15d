from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from sales_service.context import CallerContext

# the only columns a caller may sort on
SORTABLE_COLUMNS = ("created_at", "code")
DEFAULT_ORDER_BY = "created_at"
LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Make ``%`` and ``_`` in a search term match themselves."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


@dataclass
class PageRequest:
    search: str = ""
    order_by: str = DEFAULT_ORDER_BY
    sort: str = "desc"
    limit: int = 0
    offset: int = 0

    def normalized_order_by(self) -> str:
        return self.order_by if self.order_by in SORTABLE_COLUMNS else DEFAULT_ORDER_BY

    def normalized_sort(self) -> str:
        return "asc" if (self.sort or "").lower() == "asc" else "desc"


@dataclass
class PageInfo:
    count: int
    limit: int
    offset: int
    order_by: str
    sort: str
    search: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "limit": self.limit,
            "offset": self.offset,
            "order_by": self.order_by,
            "sort": self.sort,
            "search": self.search,
        }


class QueryBuilder:
    """
    Tenant-scoped list query over one header model.

    ``filter_columns`` names the equality filters a caller may use; empty
    filter values are skipped. ``search_columns`` are matched with a
    case-insensitive substring.
    """

    def __init__(
        self,
        db: Session,
        model: Any,
        filter_columns: Tuple[str, ...] = (),
        search_columns: Tuple[str, ...] = ("code", "remark"),
    ):
        self.db = db
        self.model = model
        self.filter_columns = filter_columns
        self.search_columns = search_columns

    def _filtered(self, ctx: CallerContext, filters: Optional[Dict[str, str]], search: str) -> Query:
        model = self.model
        qry = self.db.query(model).filter(model.tenant_id == ctx.tenant_id)
        for column in self.filter_columns:
            value = (filters or {}).get(column)
            if value:
                qry = qry.filter(getattr(model, column) == value)
        if search:
            like = f"%{escape_like(search)}%"
            qry = qry.filter(
                or_(*(getattr(model, c).ilike(like, escape=LIKE_ESCAPE) for c in self.search_columns))
            )
        return qry

    def build(
        self, ctx: CallerContext, filters: Optional[Dict[str, str]], page: PageRequest
    ) -> Tuple[PageInfo, Query]:
        """
        Returns the pagination metadata (total count of matching rows,
        independent of limit/offset) and the ordered, paged row query.
        The count runs first.
        """
        qry = self._filtered(ctx, filters, page.search)
        total = qry.with_entities(func.count()).scalar() or 0

        order_by = page.normalized_order_by()
        sort = page.normalized_sort()
        column = getattr(self.model, order_by)
        qry = qry.order_by(column.asc() if sort == "asc" else column.desc())

        limit = page.limit if page.limit and page.limit > 0 else 0
        offset = page.offset if limit and page.offset and page.offset > 0 else 0
        if limit:
            qry = qry.limit(limit).offset(offset)

        info = PageInfo(
            count=total, limit=limit, offset=offset, order_by=order_by, sort=sort, search=page.search
        )
        return info, qry
