# prosperian/services/pagination.py
from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional, Tuple

from prosperian.services.search_format import SearchResult

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def leading_int(raw: Any) -> Optional[int]:
    """Integer formed by the leading digits of ``raw`` ("12abc" -> 12), or None."""
    if raw is None:
        return None
    match = _LEADING_INT.match(str(raw))
    return int(match.group(1)) if match else None


def resolve_page(page: Optional[str], paginate: Optional[str]) -> Optional[int]:
    """
    Page requested through ``paginate`` (preferred) or ``page``.

    Returns None when neither is given, which selects grouped mode. A value
    without leading digits, or below 1, falls back to page 1.
    """
    raw = paginate or page
    if not raw:
        return None
    value = leading_int(raw)
    return value if value is not None and value >= 1 else 1


def flatten(results: List[SearchResult]) -> List[Dict[str, Any]]:
    return [
        {"search_id": result.search_id, "search_name": result.search_name, "lead": lead}
        for result in results
        for lead in result.leads
    ]


def page_slice(entries: List[Any], page: int, page_size: int) -> List[Any]:
    start = (page - 1) * page_size
    return entries[start:start + page_size]


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return math.ceil(total / page_size)


def paginate_flat(
    results: List[SearchResult],
    page: int,
    page_size: int,
) -> Tuple[List[Dict[str, Any]], int]:
    """Slice of flattened leads for ``page`` and the total number of leads."""
    entries = flatten(results)
    return page_slice(entries, page, page_size), len(entries)
