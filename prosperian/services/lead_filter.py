# prosperian/services/lead_filter.py
"""
Case-insensitive substring filtering of leads.

Each filter field accepts a comma-separated list of alternatives. A lead
matches a field when any alternative is a substring of the field's derived
value, and matches a ``FilterSet`` when it matches every non-empty field.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from prosperian.core.logging import get_structlog_logger
from prosperian.services.search_format import SearchResult, count_leads

logger = get_structlog_logger(__name__)

Accessor = Callable[[Mapping[str, Any]], Any]


def path(*keys: str) -> Accessor:
    """Accessor reading a nested key, or None when any step is missing."""

    def _get(item: Mapping[str, Any]) -> Any:
        value: Any = item
        for key in keys:
            if not isinstance(value, Mapping):
                return None
            value = value.get(key)
        return value

    return _get


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower()


@dataclass(frozen=True)
class FilterField:
    """
    A filterable attribute of a lead.

    ``accessors`` are tried in order and the first non-empty value wins, unless
    ``combine`` is set, in which case every non-empty value is joined.
    """
    name: str
    accessors: Tuple[Accessor, ...]
    combine: bool = False

    def extract(self, item: Mapping[str, Any]) -> str:
        if not isinstance(item, Mapping):
            raise TypeError(f"lead must be a mapping, got {type(item).__name__}")
        values = [_text(accessor(item)) for accessor in self.accessors]
        present = [value for value in values if value]
        if not present:
            return ""
        return " ".join(present) if self.combine else present[0]


FILTER_FIELDS: Dict[str, FilterField] = {
    f.name: f
    for f in (
        FilterField(
            "company_name",
            (path("name"), path("cleaned_name"), path("company", "name"),
             path("company", "cleaned_name"), path("lead", "company", "name")),
        ),
        FilterField("first_name", (path("first_name"), path("lead", "first_name"))),
        FilterField("last_name", (path("last_name"), path("lead", "last_name"))),
        FilterField("title", (path("lead", "title"), path("title"))),
        FilterField(
            "lead_location",
            (path("lead", "location"), path("lead", "current_location")),
            combine=True,
        ),
        FilterField("employee_range", (path("company", "employee_range"),)),
        FilterField(
            "company_location",
            (path("company", "location"), path("company", "headquarters")),
            combine=True,
        ),
        FilterField("industry", (path("company", "industry"), path("industry"))),
    )
}


def company_name(item: Mapping[str, Any]) -> str:
    """Company name of a lead as written upstream (not lowercased)."""
    for accessor in FILTER_FIELDS["company_name"].accessors:
        value = accessor(item)
        if value:
            return str(value)
    return ""


def parse_filter(raw: Optional[str]) -> List[str]:
    if not raw or not isinstance(raw, str):
        return []
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


@dataclass
class FilterSet:
    criteria: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, **raw: Optional[str]) -> "FilterSet":
        criteria: Dict[str, List[str]] = {}
        for name, value in raw.items():
            if name not in FILTER_FIELDS:
                raise KeyError(f"unknown filter field: {name}")
            criteria[name] = parse_filter(value)
        return cls(criteria=criteria)

    def get(self, name: str) -> List[str]:
        return self.criteria.get(name, [])

    def active(self) -> List[Tuple[FilterField, List[str]]]:
        return [
            (FILTER_FIELDS[name], alternatives)
            for name, alternatives in self.criteria.items()
            if alternatives
        ]

    @property
    def is_empty(self) -> bool:
        return not self.active()


def _field_matches(filter_field: FilterField, alternatives: Sequence[str], item: Mapping[str, Any]) -> bool:
    value = filter_field.extract(item)
    return any(alternative in value for alternative in alternatives)


def lead_matches(item: Mapping[str, Any], filters: FilterSet) -> bool:
    return all(
        _field_matches(filter_field, alternatives, item)
        for filter_field, alternatives in filters.active()
    )


def _safe_matches(item: Any, filters: FilterSet) -> bool:
    try:
        return lead_matches(item, filters)
    except Exception as e:
        logger.error("lead_filter.item_error", error=str(e), error_type=type(e).__name__)
        return False


def _log_field_counts(items: Sequence[Any], filters: FilterSet) -> None:
    for filter_field, alternatives in filters.active():
        matched = 0
        for item in items:
            try:
                matched += _field_matches(filter_field, alternatives, item)
            except Exception:
                continue
        logger.info(
            "lead_filter.field",
            field=filter_field.name,
            alternatives=alternatives,
            before=len(items),
            matched=matched,
        )


def filter_leads(items: Iterable[Any], filters: FilterSet) -> List[Any]:
    """Return the leads matching ``filters``; malformed leads are dropped and logged."""
    items = list(items)
    if filters.is_empty:
        return items

    _log_field_counts(items, filters)
    kept = [item for item in items if _safe_matches(item, filters)]
    logger.info("lead_filter.applied", before=len(items), after=len(kept))
    return kept


def filter_search_results(results: List[SearchResult], filters: FilterSet) -> List[SearchResult]:
    """
    Filter the leads of every search result, dropping results left empty.

    An empty ``FilterSet`` returns the input untouched.
    """
    if filters.is_empty:
        return results

    all_leads = [lead for result in results for lead in result.leads]
    _log_field_counts(all_leads, filters)

    filtered: List[SearchResult] = []
    for result in results:
        leads = [lead for lead in result.leads if _safe_matches(lead, filters)]
        if leads:
            filtered.append(SearchResult(result.search_id, result.search_name, leads))

    logger.info(
        "lead_filter.applied",
        before=len(all_leads),
        after=count_leads(filtered),
        searches_before=len(results),
        searches_after=len(filtered),
    )
    return filtered
