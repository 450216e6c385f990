import json

import httpx
import pytest

from prosperian.clients.pronto import ProntoClient, ProntoError, ProntoTimeoutError
from pronto_fake import BASE_URL, make_lead


@pytest.mark.asyncio
async def test_sends_api_key_and_lists_searches(pronto_client, fake_pronto):
    fake_pronto.add_search("s1", "CTOs", [make_lead("Jean", "Dupont", "Acme")])

    payload = await pronto_client.list_searches()

    assert payload["searches"][0]["id"] == "s1"
    request = fake_pronto.requests[0]
    assert request.headers["X-API-KEY"] == "test-key"
    assert request.url.path == "/api/v2/searches"


@pytest.mark.asyncio
async def test_get_search_passes_lead_paging(pronto_client, fake_pronto):
    leads = [make_lead(f"Lead{i}", "X", "Acme") for i in range(5)]
    fake_pronto.add_search("s1", "CTOs", leads)

    payload = await pronto_client.get_search("s1", limit=2, offset=1)

    assert [item["lead"]["first_name"] for item in payload["leads"]] == ["Lead1", "Lead2"]
    params = fake_pronto.requests[-1].url.params
    assert params["include_leads"] == "true"
    assert params["limit"] == "2"
    assert params["offset"] == "1"


@pytest.mark.asyncio
async def test_get_search_without_leads_sends_no_params(pronto_client, fake_pronto):
    fake_pronto.add_search("s1", "CTOs", [])
    await pronto_client.get_search("s1", include_leads=False)
    assert not fake_pronto.requests[-1].url.params


@pytest.mark.asyncio
async def test_http_errors_carry_status_and_payload(pronto_client, fake_pronto):
    fake_pronto.list_status = 401

    with pytest.raises(ProntoError) as exc_info:
        await pronto_client.list_searches()

    assert exc_info.value.status_code == 401
    assert exc_info.value.payload == {"message": "searches unavailable"}


@pytest.mark.asyncio
async def test_enrich_account_omits_empty_hints(pronto_client, fake_pronto):
    await pronto_client.enrich_account(name="Acme", domain="", country="FR")
    assert fake_pronto.enrich_calls == [{"name": "Acme", "country": "FR"}]


@pytest.mark.asyncio
async def test_transport_timeout_maps_to_timeout_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = ProntoClient(BASE_URL, "key", transport=httpx.MockTransport(handler))
    with pytest.raises(ProntoTimeoutError) as exc_info:
        await client.get_search("s1")
    assert exc_info.value.message == "Timeout"
    await client.aclose()


@pytest.mark.asyncio
async def test_connection_error_has_no_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with ProntoClient(BASE_URL, "key", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ProntoError) as exc_info:
            await client.list_searches()
    assert exc_info.value.status_code is None
    assert "connection refused" in exc_info.value.message


@pytest.mark.asyncio
async def test_create_leads_search_posts_body(pronto_client, fake_pronto):
    created = await pronto_client.create_leads_search({"search_url": "https://example.com/s", "limit": 10})
    assert created["id"] == "new-search"
    assert json.loads(fake_pronto.requests[-1].content) == {"search_url": "https://example.com/s", "limit": 10}


@pytest.mark.asyncio
async def test_list_endpoints(pronto_client, fake_pronto):
    fake_pronto.lists = [{"id": "l1", "name": "Targets"}]

    assert await pronto_client.list_lists() == {"lists": [{"id": "l1", "name": "Targets"}]}
    assert (await pronto_client.get_list("l1"))["name"] == "Targets"

    created = await pronto_client.create_list({"name": "New", "companies": [{"name": "Acme"}]})
    assert created["id"] == "list-1"
    assert fake_pronto.requests[-1].method == "POST"
    assert fake_pronto.requests[-1].url.path.endswith("/lists")
