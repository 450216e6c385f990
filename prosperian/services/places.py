# prosperian/services/places.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from prosperian.core.config import Settings, settings as default_settings


def build_places_input(
    enseigne: str,
    location: str = "France",
    max_results: Optional[int] = None,
    config: Settings = default_settings,
) -> Dict[str, Any]:
    """Google Places crawler input, limited to search page data to keep runs short."""
    cap = config.places_max_results
    return {
        "searchStringsArray": [enseigne],
        "locationQuery": location,
        "maxCrawledPlacesPerSearch": min(max_results or cap, cap),
        "includeReviews": False,
        "includeImages": False,
        "includeOpeningHours": False,
        "includePeopleAlsoSearch": False,
        "maxReviews": 0,
        "language": "fr",
        "exportPlaceUrls": False,
        "additionalInfo": False,
        "onlyDataFromSearchPage": True,
    }


def normalize_place(item: Dict[str, Any]) -> Dict[str, Any]:
    location = item.get("location") if isinstance(item.get("location"), dict) else {}
    return {
        "title": item.get("title") or item.get("name") or "",
        "address": item.get("address") or "",
        "phone": item.get("phoneNumber") or item.get("phone") or "",
        "website": item.get("website") or item.get("url") or "",
        "category": item.get("categoryName") or item.get("category") or "",
        "rating": item.get("totalScore") or item.get("rating") or 0,
        "reviewsCount": item.get("reviewsCount") or 0,
        "latitude": location.get("lat", item.get("latitude")),
        "longitude": location.get("lng", item.get("longitude")),
        "placeId": item.get("placeId") or item.get("id") or "",
        "isAdvertisement": bool(item.get("isAdvertisement")),
        "description": item.get("description") or "",
        "imageUrls": item.get("imageUrls") or [],
    }


def normalize_places(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [normalize_place(item) for item in items]


def quota_recommendations(user: Dict[str, Any], usage: Dict[str, Any]) -> List[str]:
    plan = user.get("plan")
    plan_id = plan.get("id") if isinstance(plan, dict) else plan
    return [
        "Free plan, tighter limits apply" if plan_id == "FREE" else "Paid plan",
        f"{usage.get('computeUnits') or 0} compute units used this month",
    ]
