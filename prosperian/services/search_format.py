# prosperian/services/search_format.py
"""
Reshape raw Pronto search payloads into the shapes exposed by this API.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Lead fields copied from the upstream item, with the default used when absent.
LEAD_FIELDS: Dict[str, Any] = {
    "first_name": "",
    "last_name": "",
    "full_name": "",
    "gender": "",
    "most_probable_email": "",
    "phones": [],
    "title": "",
    "title_description": "",
    "summary": "",
    "linkedin_profile_url": "",
    "profile_image_url": "",
    "is_premium_linkedin": False,
    "connection_degree": 0,
    "status": "",
    "rejection_reason": [],
    "lk_headline": "",
    "sales_navigator_profile_url": "",
    "current_positions_count": 0,
    "years_in_position": 0,
    "months_in_position": 0,
    "years_in_company": 0,
    "months_in_company": 0,
    "lk_connections_count": 0,
    "is_open_profile_linkedin": False,
    "is_open_to_work_linkedin": False,
    "most_probable_email_status": "",
    "location": "",
    "current_location": "",
}

COMPANY_FIELDS = (
    "name",
    "cleaned_name",
    "website",
    "location",
    "industry",
    "headquarters",
    "description",
    "linkedin_url",
    "employee_range",
    "company_profile_picture",
)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def format_search_list(payload: Any) -> List[Dict[str, Any]]:
    searches = _as_dict(payload).get("searches") or []
    return [
        {
            "id": search.get("id"),
            "name": search.get("name"),
            "leads_count": search.get("leads_count") or 0,
            "created_at": search.get("created_at"),
            "access_url": f"/api/pronto/searches/{search.get('id')}",
        }
        for search in searches
        if isinstance(search, dict)
    ]


def format_lead_item(item: Dict[str, Any]) -> Dict[str, Any]:
    nested = _as_dict(item.get("lead"))
    company = _as_dict(item.get("company"))

    lead = {}
    for name, default in LEAD_FIELDS.items():
        value = nested.get(name) or item.get(name)
        if not value:
            value = list(default) if isinstance(default, list) else default
        lead[name] = value

    return {
        "lead": lead,
        "company": {name: company.get(name) or "" for name in COMPANY_FIELDS},
    }


def format_search_detail(
    payload: Any,
    search_id: str,
    include_leads: bool = True,
) -> Dict[str, Any]:
    data = _as_dict(payload)
    search = _as_dict(data.get("search"))

    leads: List[Dict[str, Any]] = []
    raw_leads = data.get("leads")
    if include_leads and isinstance(raw_leads, list):
        leads = [format_lead_item(item) for item in raw_leads if isinstance(item, dict)]

    return {
        "search": {
            "id": search.get("id") or data.get("id") or search_id,
            "name": search.get("name") or data.get("name") or "Unnamed search",
            "created_at": search.get("created_at") or data.get("created_at"),
        },
        "leads": leads,
    }


def search_meta(payload: Any, fallback: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Id, name and created_at of a detail payload, falling back to the listing entry."""
    search = _as_dict(_as_dict(payload).get("search"))
    fallback = fallback or {}
    return {
        "id": search.get("id") or fallback.get("id"),
        "name": search.get("name") or fallback.get("name"),
        "created_at": search.get("created_at") or fallback.get("created_at"),
    }


def advisory_count(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class Search:
    """A search as listed by Pronto. ``expected_lead_count`` is advisory only."""
    id: str
    name: str
    expected_lead_count: int = 0
    created_at: Optional[str] = None

    @classmethod
    def from_listing(cls, entry: Dict[str, Any]) -> "Search":
        return cls(
            id=str(entry.get("id")),
            name=entry.get("name") or "Unknown search",
            expected_lead_count=advisory_count(entry.get("leads_count")),
            created_at=entry.get("created_at"),
        )


@dataclass
class SearchResult:
    """Leads fetched for one search, kept in upstream order."""
    search_id: str
    search_name: str
    leads: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search_id": self.search_id,
            "search_name": self.search_name,
            "leads": self.leads,
        }


def parse_searches(payload: Any) -> List[Search]:
    data = payload.get("searches") if isinstance(payload, dict) else payload
    if not isinstance(data, list):
        return []
    return [
        Search.from_listing(entry)
        for entry in data
        if isinstance(entry, dict) and entry.get("id") is not None
    ]


def count_leads(results: List[SearchResult]) -> int:
    return sum(len(result.leads) for result in results)


def format_list_summary(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": entry.get("id"),
        "name": entry.get("name") or "Unnamed list",
        "type": entry.get("type") or "unknown",
        "companies_count": advisory_count(entry.get("companies_count") or entry.get("count")),
        "linkedin_id": entry.get("linkedin_id"),
        "created_at": entry.get("created_at"),
        "updated_at": entry.get("updated_at"),
        "webhook_url": entry.get("webhook_url"),
        "status": entry.get("status"),
    }


def format_lists(payload: Any) -> List[Dict[str, Any]]:
    """Pronto answers ``GET /lists`` with either ``{"lists": [...]}`` or a bare array."""
    lists = payload.get("lists") if isinstance(payload, dict) else payload
    if not isinstance(lists, list):
        return []
    return [format_list_summary(entry) for entry in lists if isinstance(entry, dict)]


def format_list_detail(payload: Any, list_id: str) -> Dict[str, Any]:
    data = _as_dict(payload)
    companies = data.get("companies") if isinstance(data.get("companies"), list) else []
    return {
        "id": data.get("id") or list_id,
        "name": data.get("name") or "Unnamed list",
        "type": data.get("type") or "unknown",
        "companies_count": len(companies),
        "linkedin_id": data.get("linkedin_id"),
        "created_at": data.get("created_at"),
        "updated_at": data.get("updated_at"),
        "companies": companies,
    }
