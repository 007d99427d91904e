"""
Page/limit windowing over aggregation pipelines.

The total and the window are computed by a single $facet stage appended to
the caller's pipeline, so both come back from one round-trip. No snapshot
isolation is implied against concurrent writers.
"""

import math
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# $skip is encoded as a BSON int64
MAX_SKIP = 2 ** 63 - 1


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def normalize_page_params(page: Any = None, limit: Any = None) -> Tuple[int, int]:
    """
    Non-numeric or non-positive values fall back to the defaults. A limit
    above MAX_LIMIT is capped, and a page whose offset cannot be encoded
    falls back to the first page.
    """
    page = _positive_int(page, DEFAULT_PAGE)
    limit = min(_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT)
    if (page - 1) * limit > MAX_SKIP:
        page = DEFAULT_PAGE
    return page, limit


def build_page(docs: List[dict], total: int, page: int, limit: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if total else 0
    has_prev = page > 1
    has_next = page < total_pages
    return {
        "docs": docs,
        "totalDocs": total,
        "limit": limit,
        "page": page,
        "totalPages": total_pages,
        "pagingCounter": (page - 1) * limit + 1,
        "hasPrevPage": has_prev,
        "hasNextPage": has_next,
        "prevPage": page - 1 if has_prev else None,
        "nextPage": page + 1 if has_next else None,
    }


def paginate(collection, pipeline: List[dict], page: Any = None, limit: Any = None) -> Dict[str, Any]:
    page, limit = normalize_page_params(page, limit)
    facet = {
        "$facet": {
            "metadata": [{"$count": "total"}],
            "docs": [{"$skip": (page - 1) * limit}, {"$limit": limit}],
        }
    }
    result: Optional[dict] = next(iter(collection.aggregate(list(pipeline) + [facet])), None)
    if not result:
        return build_page([], 0, page, limit)

    metadata = result.get("metadata") or [{}]
    total = metadata[0].get("total", 0)
    return build_page(result.get("docs", []), total, page, limit)
