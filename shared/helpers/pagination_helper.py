import math
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Query

from shared.core.schemas import CommonQueryParams


def total_pages(total_items: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total_items / limit)


def page_envelope(items: List[Any], total_items: int, params: CommonQueryParams) -> Dict[str, Any]:
    return {
        "items": items,
        "total_items": total_items,
        "total_pages": total_pages(total_items, params.limit),
        "current_page": params.page,
        "items_per_page": params.limit,
    }


def paginate(query: Query, params: CommonQueryParams, order_by=None,
             serializer: Optional[Callable[[Any], Any]] = None) -> Dict[str, Any]:
    """Count, order and slice a query into the paginated envelope."""
    total_items = query.order_by(None).count()

    if order_by is not None:
        query = query.order_by(order_by)

    rows = query.offset(params.skip).limit(params.limit).all()
    items = [serializer(row) for row in rows] if serializer else rows
    return page_envelope(items, total_items, params)


def paginate_list(rows: List[Any], params: CommonQueryParams) -> Dict[str, Any]:
    """Paginate an already materialized list (flattened trees)."""
    sliced = rows[params.skip: params.skip + params.limit]
    return page_envelope(sliced, len(rows), params)
