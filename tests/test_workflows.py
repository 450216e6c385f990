import pytest

from prosperian.clients.pronto import ProntoError
from prosperian.core.config import settings
from prosperian.services.workflows import all_searches_complete, bounded_int, flag, search_leads
from pronto_fake import make_lead


@pytest.fixture
def config():
    return settings.model_copy(update={"global_result_enrich_timeout_ms": 500})


@pytest.fixture
def searches(fake_pronto):
    fake_pronto.add_search("s1", "Paris tech", [
        make_lead("Jean", "Dupont", "Acme"),
        make_lead("Marie", "Curie", "Acme"),
        make_lead("Paul", "Durand", "Globex"),
    ])
    fake_pronto.add_search("s2", "Lyon", [make_lead("Jeanne", "Martin", "Initech")])
    fake_pronto.add_search("s3", "Empty", [])
    return fake_pronto


def test_flag():
    assert flag(None, True) is True
    assert flag("true", False) is True
    assert flag(" FALSE ", True) is False
    assert flag("yes", False) is False


def test_bounded_int():
    assert bounded_int(None, 50, 1000) == 50
    assert bounded_int("0", 50, 1000) == 50
    assert bounded_int("20rows", 50, 1000) == 20
    assert bounded_int("5000", 50, 1000) == 1000


@pytest.mark.asyncio
async def test_all_searches_with_leads(pronto_client, searches, config):
    result = await all_searches_complete(pronto_client, leads_per_search=2, config=config)

    data = result["data"]
    assert [entry["id"] for entry in data["searches"]] == ["s1", "s2", "s3"]
    first = data["searches"][0]
    assert [lead["lead"]["first_name"] for lead in first["leads"]] == ["Jean", "Marie"]
    assert first["leads_pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    assert first["details"]["name"] == "Paris tech"
    assert result["summary"]["total_leads_extracted"] == 3
    assert result["summary"]["searches_with_leads"] == 2
    assert result["summary"]["leads_enriched"] == 0


@pytest.mark.asyncio
async def test_all_searches_reports_failed_search(pronto_client, searches, config):
    searches.detail_status["s2"] = 500
    result = await all_searches_complete(pronto_client, config=config)

    failed = result["data"]["searches"][1]
    assert failed["processed"] is False
    assert "500" in failed["error"]
    assert failed["leads"] == []
    assert result["summary"]["errors_encountered"] == 1
    assert result["summary"]["searches_processed"] == 2


@pytest.mark.asyncio
async def test_all_searches_respects_max_searches(pronto_client, searches, config):
    result = await all_searches_complete(pronto_client, max_searches=1, config=config)

    assert len(result["data"]["searches"]) == 1
    assert result["data"]["total_searches"] == 3


@pytest.mark.asyncio
async def test_all_searches_without_leads(pronto_client, searches, config):
    result = await all_searches_complete(pronto_client, include_leads=False, config=config)

    assert all(entry["leads"] == [] for entry in result["data"]["searches"])
    assert all(entry["leads_pagination"] is None for entry in result["data"]["searches"])
    assert result["summary"]["searches_processed"] == 3


@pytest.mark.asyncio
async def test_all_searches_enriches_each_company_once(pronto_client, searches, config):
    searches.enrich_status["Globex"] = 404
    result = await all_searches_complete(pronto_client, include_enrichment=True, config=config)

    leads = result["data"]["searches"][0]["leads"]
    assert leads[0]["company_enrichment"] == {"name": "Acme", "employees": 42}
    assert leads[2]["company_enrichment"] is None
    assert result["summary"]["leads_enriched"] == 3
    assert sorted(call["name"] for call in searches.enrich_calls) == ["Acme", "Globex", "Initech"]


@pytest.mark.asyncio
async def test_all_searches_listing_failure_propagates(pronto_client, fake_pronto, config):
    fake_pronto.list_status = 503
    with pytest.raises(ProntoError):
        await all_searches_complete(pronto_client, config=config)


@pytest.mark.asyncio
async def test_search_leads_page(pronto_client, searches, config):
    result = await search_leads(pronto_client, "s1", page=2, limit=2, config=config)

    data = result["data"]
    assert [lead["lead"]["first_name"] for lead in data["leads"]] == ["Paul"]
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
    assert result["summary"]["search_name"] == "Paris tech"
    assert searches.requests[-1].url.params["offset"] == "2"


@pytest.mark.asyncio
async def test_search_leads_not_found(pronto_client, searches, config):
    with pytest.raises(ProntoError) as excinfo:
        await search_leads(pronto_client, "missing", config=config)
    assert excinfo.value.status_code == 404
