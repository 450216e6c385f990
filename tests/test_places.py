import httpx
import pytest

from apify_fake import ACTOR_ID, BASE_URL
from prosperian.clients.apify import ApifyClient, ApifyError, ApifyTimeoutError
from prosperian.core.config import settings
from prosperian.services.places import build_places_input, normalize_place, quota_recommendations

PLACE = {
    "title": "Boulangerie Paul",
    "address": "1 Rue de Rivoli, Paris",
    "phoneNumber": "01 23 45 67 89",
    "website": "https://paul.fr",
    "categoryName": "Bakery",
    "totalScore": 4.4,
    "reviewsCount": 120,
    "location": {"lat": 48.85, "lng": 2.35},
    "placeId": "ChIJabc",
}


def test_places_input_is_capped():
    run_input = build_places_input("Paul", "Paris", 50)

    assert run_input["searchStringsArray"] == ["Paul"]
    assert run_input["locationQuery"] == "Paris"
    assert run_input["maxCrawledPlacesPerSearch"] == settings.places_max_results
    assert run_input["onlyDataFromSearchPage"] is True
    assert build_places_input("Paul", max_results=5)["maxCrawledPlacesPerSearch"] == 5


def test_normalize_place():
    place = normalize_place(PLACE)

    assert place["phone"] == "01 23 45 67 89"
    assert place["category"] == "Bakery"
    assert place["rating"] == 4.4
    assert (place["latitude"], place["longitude"]) == (48.85, 2.35)
    assert place["isAdvertisement"] is False


def test_normalize_place_fallbacks():
    place = normalize_place({"name": "Chez Marie", "phone": "02", "url": "https://marie.fr", "id": "p1",
                             "latitude": 45.7, "longitude": 4.8})

    assert place["title"] == "Chez Marie"
    assert place["website"] == "https://marie.fr"
    assert place["placeId"] == "p1"
    assert place["latitude"] == 45.7
    assert place["rating"] == 0
    assert place["imageUrls"] == []


def test_quota_recommendations():
    assert quota_recommendations({"plan": {"id": "FREE"}}, {"computeUnits": 2})[0].startswith("Free plan")
    assert quota_recommendations({"plan": "TEAM"}, {})[1] == "0 compute units used this month"


@pytest.mark.asyncio
async def test_run_actor_polls_until_success(apify_client, fake_apify):
    fake_apify.statuses = ["READY", "RUNNING", "SUCCEEDED"]
    fake_apify.items = [PLACE, "not a place"]

    items = await apify_client.run_actor({"searchStringsArray": ["Paul"]})

    assert items == [PLACE]
    assert fake_apify.polls == 3
    assert fake_apify.run_inputs == [{"searchStringsArray": ["Paul"]}]
    assert fake_apify.requests[0].headers["Authorization"] == "Bearer apify-token"


@pytest.mark.asyncio
async def test_failed_run_raises(apify_client, fake_apify):
    fake_apify.statuses = ["RUNNING", "ABORTED"]

    with pytest.raises(ApifyError, match="ABORTED"):
        await apify_client.run_actor({})


@pytest.mark.asyncio
async def test_run_that_never_finishes_times_out(fake_apify):
    fake_apify.statuses = ["RUNNING"]
    client = ApifyClient(
        base_url=BASE_URL,
        token="apify-token",
        actor_id=ACTOR_ID,
        poll_interval=0.01,
        max_wait=0.05,
        transport=httpx.MockTransport(fake_apify.handler),
    )

    with pytest.raises(ApifyTimeoutError):
        await client.run_actor({})
    await client.aclose()


@pytest.mark.asyncio
async def test_start_failure_carries_status(apify_client, fake_apify):
    fake_apify.start_status = 402

    with pytest.raises(ApifyError) as excinfo:
        await apify_client.start_run({})

    assert excinfo.value.status_code == 402
    assert excinfo.value.payload == {"error": {"message": "cannot start"}}


class TestGooglePlacesRoutes:
    def test_search_enseigne(self, api_client, fake_apify):
        fake_apify.items = [PLACE]
        response = api_client.post("/api/google-places/search-enseigne", json={
            "enseigne": " Paul ", "location": "Paris", "maxResults": 3,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["totalResults"] == 1
        assert data["searchQuery"] == "Paul Paris"
        assert data["results"][0]["title"] == "Boulangerie Paul"
        assert fake_apify.run_inputs[0]["maxCrawledPlacesPerSearch"] == 3

    def test_search_enseigne_requires_name(self, api_client):
        response = api_client.post("/api/google-places/search-enseigne", json={"location": "Paris"})
        assert response.status_code == 400

    def test_failed_run_is_bad_gateway(self, api_client, fake_apify):
        fake_apify.statuses = ["FAILED"]
        response = api_client.post("/api/google-places/search-enseigne", json={"enseigne": "Paul"})

        assert response.status_code == 502
        assert response.json()["error"] == "apify_error"

    def test_check_quota(self, api_client):
        data = api_client.get("/api/google-places/check-quota").json()

        assert data["user"] == {"id": "u1", "username": "prosperian", "plan": "FREE"}
        assert data["usage"] == {"computeUnits": 3.5}
        assert data["recommendations"][1] == "3.5 compute units used this month"

    def test_not_configured(self, pronto_client):
        from fastapi.testclient import TestClient

        from prosperian.main import app
        from prosperian.routes.deps import get_pronto_client

        app.dependency_overrides[get_pronto_client] = lambda: pronto_client
        try:
            response = TestClient(app).get("/api/google-places/check-quota")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.json()["error"] == "apify_not_configured"
