import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("PRONTO_API_KEY", "test-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
from fastapi.testclient import TestClient

from apify_fake import ACTOR_ID, BASE_URL as APIFY_BASE_URL, FakeApify
from pronto_fake import BASE_URL, FakePronto
from prosperian.clients.apify import ApifyClient
from prosperian.clients.pronto import ProntoClient


@pytest.fixture
def fake_pronto():
    return FakePronto()


@pytest.fixture
def pronto_client(fake_pronto):
    return ProntoClient(
        base_url=BASE_URL,
        api_key="test-key",
        timeout=5.0,
        transport=httpx.MockTransport(fake_pronto.handler),
    )


@pytest.fixture
def fake_apify():
    return FakeApify()


@pytest.fixture
def apify_client(fake_apify):
    return ApifyClient(
        base_url=APIFY_BASE_URL,
        token="apify-token",
        actor_id=ACTOR_ID,
        timeout=5.0,
        poll_interval=0,
        max_wait=1.0,
        transport=httpx.MockTransport(fake_apify.handler),
    )


@pytest.fixture
def api_client(pronto_client, apify_client):
    from prosperian.main import app
    from prosperian.routes.deps import get_apify_client, get_pronto_client

    app.dependency_overrides[get_pronto_client] = lambda: pronto_client
    app.dependency_overrides[get_apify_client] = lambda: apify_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
