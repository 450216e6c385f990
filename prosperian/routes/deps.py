# prosperian/routes/deps.py
from __future__ import annotations

from fastapi import Request

from prosperian.clients.apify import ApifyClient
from prosperian.clients.pronto import ProntoClient
from prosperian.core.exceptions import ServiceUnavailableError


def get_pronto_client(request: Request) -> ProntoClient:
    client = getattr(request.app.state, "pronto_client", None)
    if client is None:
        raise ServiceUnavailableError("Pronto client is not initialised")
    return client


def get_apify_client(request: Request) -> ApifyClient:
    client = getattr(request.app.state, "apify_client", None)
    if client is None:
        raise ServiceUnavailableError("Google Places search is not configured", code="apify_not_configured")
    return client
