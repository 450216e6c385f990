# prosperian/services/sales_navigator.py
"""
Build, parse and validate LinkedIn Sales Navigator search URLs.

Sales Navigator encodes a search in its ``query`` parameter using the Rest.li
text format: objects are ``(key:value,...)``, lists are ``List(a,b)``, strings
are either double-quoted or bare. For example::

    (spellCorrectionEnabled:true,filters:List((type:REGION,values:List(
        (id:105015875,text:"France",selectionType:INCLUDED)))),keywords:"cto")
"""
from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import parse_qs, quote, unquote, urlsplit

from prosperian.core.logging import get_structlog_logger
from prosperian.schemas.linkedin_sales import FilterIssue, FilterType, ParsedSalesUrl, SalesFilter

logger = get_structlog_logger(__name__)

SALES_SEARCH_BASE_URL = "https://www.linkedin.com/sales/search"
SALES_SEARCH_MARKER = "linkedin.com/sales/search/"
SEARCH_TYPES = ("people", "company")
SELECTION_TYPES = ("INCLUDED", "EXCLUDED")

# Characters encodeURIComponent leaves alone.
_URI_COMPONENT_SAFE = "-_.!~*'()"

FILTER_TYPES: Dict[str, List[FilterType]] = {
    "people": [
        FilterType(type="CURRENT_COMPANY", name="Current company", description="Filter by current company"),
        FilterType(type="PAST_COMPANY", name="Past company", description="Filter by past company"),
        FilterType(type="COMPANY_HEADCOUNT", name="Company headcount", description="Filter by number of employees"),
        FilterType(type="FUNCTION", name="Function", description="Filter by function or role"),
        FilterType(type="CURRENT_TITLE", name="Current title", description="Filter by current job title"),
        FilterType(type="SENIORITY_LEVEL", name="Seniority level", description="Filter by seniority level"),
        FilterType(type="REGION", name="Region", description="Filter by geographic region"),
        FilterType(type="POSTAL_CODE", name="Postal code", description="Filter by postal code"),
        FilterType(type="INDUSTRY", name="Industry", description="Filter by industry"),
    ],
    "company": [
        FilterType(type="ANNUAL_REVENUE", name="Annual revenue", description="Filter by annual revenue"),
        FilterType(type="COMPANY_HEADCOUNT", name="Company headcount", description="Filter by number of employees"),
        FilterType(type="COMPANY_HEADCOUNT_GROWTH", name="Headcount growth", description="Filter by company growth"),
        FilterType(type="INDUSTRY", name="Industry", description="Filter by industry"),
        FilterType(type="REGION", name="Region", description="Filter by geographic region"),
        FilterType(type="POSTAL_CODE", name="Postal code", description="Filter by postal code"),
    ],
}


class SalesNavigatorError(ValueError):
    """Invalid Sales Navigator input (search type, URL or session)."""


@dataclass
class SalesSearchUrl:
    url: str
    query: str


@dataclass
class FilterValidation:
    errors: List[FilterIssue] = field(default_factory=list)
    warnings: List[FilterIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def check_search_type(search_type: Optional[str]) -> str:
    if search_type not in SEARCH_TYPES:
        raise SalesNavigatorError("Invalid search type, use 'people' or 'company'")
    return search_type


def random_search_id() -> int:
    return random.randint(1_000_000_000, 9_999_999_999)


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------

def _quoted(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _format_filter(sales_filter: SalesFilter, with_parent: bool) -> str:
    values = []
    for value in sales_filter.values:
        parts = []
        if value.id:
            parts.append(f"id:{value.id}")
        parts.append(f"text:{_quoted(value.text)}")
        parts.append(f"selectionType:{value.selection_type or 'INCLUDED'}")
        if with_parent:
            parts.append("parent:()")
        values.append("(" + ",".join(parts) + ")")
    return f"(type:{sales_filter.type},values:List({','.join(values)}))"


def build_query(
    filters: Sequence[SalesFilter],
    keywords: Optional[str] = None,
    *,
    search_id: Optional[int] = None,
    session_mode: bool = False,
) -> str:
    """
    Rest.li ``query`` value for a search.

    ``session_mode`` produces the shape LinkedIn emits inside an authenticated
    session: no spell correction flag, no recent search id, ``parent:()`` on
    every value.
    """
    if session_mode:
        parts = ["recentSearchParam:(doLogHistory:true)"]
    else:
        search_id = search_id if search_id is not None else random_search_id()
        parts = ["spellCorrectionEnabled:true", f"recentSearchParam:(id:{search_id},doLogHistory:true)"]

    if filters:
        formatted = ",".join(_format_filter(sales_filter, session_mode) for sales_filter in filters)
        parts.append(f"filters:List({formatted})")
    if keywords:
        parts.append(f"keywords:{_quoted(keywords)}")
    return "(" + ",".join(parts) + ")"


def build_search_url(
    search_type: Optional[str],
    filters: Sequence[SalesFilter] = (),
    keywords: Optional[str] = None,
    *,
    session_id: Optional[str] = None,
    view_all_filters: bool = False,
    search_id: Optional[int] = None,
    session_mode: bool = False,
) -> SalesSearchUrl:
    search_type = check_search_type(search_type)
    if session_mode and not session_id:
        raise SalesNavigatorError("sessionId is required")

    query = build_query(filters, keywords, search_id=search_id, session_mode=session_mode)
    url = f"{SALES_SEARCH_BASE_URL}/{search_type}?query={quote(query, safe=_URI_COMPONENT_SAFE)}"
    if session_id:
        url += f"&sessionId={quote(session_id, safe=_URI_COMPONENT_SAFE)}"
    if view_all_filters:
        url += "&viewAllFilters=true"

    logger.info("sales_navigator.url_built", search_type=search_type, filters=len(filters), session=bool(session_id))
    return SalesSearchUrl(url=url, query=query)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class _RestliParser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def parse(self) -> Any:
        value = self._value()
        if self.pos != len(self.text):
            raise ValueError(f"unexpected input at position {self.pos}")
        return value

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _value(self) -> Any:
        if self.text.startswith("List(", self.pos):
            self.pos += len("List(")
            return self._items(self._value)
        char = self._peek()
        if char == "(":
            self.pos += 1
            return dict(self._items(self._pair))
        if char == '"':
            return self._quoted()
        return self._bare()

    def _items(self, parse_item) -> List[Any]:
        items: List[Any] = []
        if self._peek() == ")":
            self.pos += 1
            return items
        while True:
            items.append(parse_item())
            char = self._peek()
            self.pos += 1
            if char == ")":
                return items
            if char != ",":
                raise ValueError(f"expected ',' or ')' at position {self.pos - 1}")

    def _pair(self) -> Tuple[str, Any]:
        end = self.text.find(":", self.pos)
        if end == -1:
            raise ValueError(f"missing ':' after position {self.pos}")
        key = self.text[self.pos:end]
        self.pos = end + 1
        return key, self._value()

    def _quoted(self) -> str:
        self.pos += 1
        chars = []
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == "\\" and self.pos + 1 < len(self.text):
                chars.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            self.pos += 1
            if char == '"':
                return "".join(chars)
            chars.append(char)
        raise ValueError("unterminated string")

    def _bare(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in ",)":
            self.pos += 1
        return self.text[start:self.pos]


def parse_query(query: str) -> Dict[str, Any]:
    """Decode a Rest.li ``query`` value; raises ValueError when malformed."""
    value = _RestliParser(query).parse()
    if not isinstance(value, dict):
        raise ValueError("query is not an object")
    return value


def _filters_from_query(tree: Dict[str, Any]) -> List[Dict[str, Any]]:
    filters = []
    for entry in tree.get("filters") or []:
        if not isinstance(entry, dict):
            continue
        values = [
            {
                "id": value.get("id"),
                "text": value.get("text"),
                "selectionType": value.get("selectionType"),
            }
            for value in entry.get("values") or []
            if isinstance(value, dict)
        ]
        filters.append({"type": entry.get("type"), "values": values})
    return filters


def _keywords_fallback(query: str) -> Optional[str]:
    match = re.search(r"keywords:([^,)]+)", query)
    return match.group(1).replace('"', "") if match else None


def parse_search_url(url: Optional[str]) -> ParsedSalesUrl:
    if not url or SALES_SEARCH_MARKER not in url:
        raise SalesNavigatorError("Invalid LinkedIn Sales Navigator URL")

    type_match = re.search(r"/sales/search/(people|company)", url)
    params = parse_qs(urlsplit(url).query, keep_blank_values=True)
    parsed = ParsedSalesUrl(
        search_type=type_match.group(1) if type_match else None,
        session_id=(params.get("sessionId") or [None])[0],
        view_all_filters="viewAllFilters" in params,
    )

    query = (params.get("query") or [None])[0]
    if not query:
        return parsed

    try:
        tree = parse_query(query)
    except ValueError as e:
        logger.warning("sales_navigator.query_unparsed", error=str(e))
        parsed.keywords = _keywords_fallback(query)
        return parsed

    keywords = tree.get("keywords")
    parsed.keywords = keywords if isinstance(keywords, str) and keywords else None
    parsed.filters = _filters_from_query(tree)
    return parsed


def extract_session_id(url: Optional[str]) -> Tuple[str, str]:
    """``sessionId`` of a Sales Navigator URL, as (encoded, decoded)."""
    if not url:
        raise SalesNavigatorError("URL is required")
    if SALES_SEARCH_MARKER not in url:
        raise SalesNavigatorError("Invalid LinkedIn Sales Navigator URL")
    match = re.search(r"[?&]sessionId=([^&]+)", url)
    if not match:
        raise SalesNavigatorError("sessionId not found in URL")
    return match.group(1), unquote(match.group(1))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_filters(search_type: Optional[str], filters: Any) -> FilterValidation:
    """Check raw filter dicts against the filter types allowed for ``search_type``."""
    search_type = check_search_type(search_type)
    if not isinstance(filters, list):
        raise SalesNavigatorError("Invalid filters, expected a list")

    allowed = {filter_type.type for filter_type in FILTER_TYPES[search_type]}
    result = FilterValidation()

    for index, raw in enumerate(filters):
        raw = raw if isinstance(raw, dict) else {}
        filter_type = raw.get("type")
        if not filter_type:
            result.errors.append(FilterIssue(filter=f"filter[{index}]", message="Filter type is missing"))
            continue

        if filter_type not in allowed:
            result.errors.append(FilterIssue(
                filter=filter_type,
                message=f"Filter type '{filter_type}' is not valid for a '{search_type}' search",
            ))

        values = raw.get("values")
        if not isinstance(values, list) or not values:
            result.errors.append(FilterIssue(filter=filter_type, message="Filter must contain at least one value"))
            continue

        for value_index, value in enumerate(values):
            value = value if isinstance(value, dict) else {}
            label = f"{filter_type}[{value_index}]"
            if not value.get("id") or not value.get("text"):
                result.errors.append(FilterIssue(filter=label, message="Each value needs an id and a text"))
            selection_type = value.get("selectionType")
            if selection_type and selection_type not in SELECTION_TYPES:
                result.warnings.append(FilterIssue(
                    filter=label,
                    message="selectionType should be 'INCLUDED' or 'EXCLUDED'",
                ))

    return result
