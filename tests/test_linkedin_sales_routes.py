REGION_FILTER = {"type": "REGION", "values": [{"id": "105015875", "text": "France"}]}


class TestGenerateUrl:
    def test_generates_people_url(self, api_client):
        response = api_client.post("/api/linkedin-sales/generate-url", json={
            "searchType": "people",
            "keywords": "cto",
            "filters": [REGION_FILTER],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["url"].startswith("https://www.linkedin.com/sales/search/people?query=")
        assert 'keywords:"cto"' in data["queryString"]
        assert data["filters"][0]["values"][0]["selectionType"] == "INCLUDED"

    def test_invalid_search_type(self, api_client):
        response = api_client.post("/api/linkedin-sales/generate-url", json={"searchType": "jobs"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_search"

    def test_filter_value_needs_text(self, api_client):
        response = api_client.post("/api/linkedin-sales/generate-url", json={
            "searchType": "people",
            "filters": [{"type": "REGION", "values": [{"id": "1", "text": ""}]}],
        })

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_with_session(self, api_client):
        response = api_client.post("/api/linkedin-sales/generate-url-with-session", json={
            "searchType": "company",
            "sessionId": "s==",
            "filters": [REGION_FILTER],
        })

        data = response.json()
        assert response.status_code == 200
        assert data["sessionId"] == "s=="
        assert data["url"].endswith("&sessionId=s%3D%3D")
        assert "parent:()" in data["queryString"]

    def test_with_session_requires_session_id(self, api_client):
        response = api_client.post("/api/linkedin-sales/generate-url-with-session", json={"searchType": "people"})
        assert response.status_code == 400


class TestParseUrl:
    def test_generated_url_parses_back(self, api_client):
        url = api_client.post("/api/linkedin-sales/generate-url", json={
            "searchType": "people", "keywords": "cto", "filters": [REGION_FILTER],
        }).json()["url"]

        response = api_client.post("/api/linkedin-sales/parse-url", json={"url": url})

        parsed = response.json()["parsed"]
        assert parsed["searchType"] == "people"
        assert parsed["keywords"] == "cto"
        assert parsed["filters"][0]["values"][0]["text"] == "France"

    def test_rejects_non_sales_url(self, api_client):
        response = api_client.post("/api/linkedin-sales/parse-url", json={"url": "https://example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_url"

    def test_extract_session(self, api_client):
        response = api_client.post("/api/linkedin-sales/extract-session", json={
            "url": "https://www.linkedin.com/sales/search/people?sessionId=abc%3D%3D",
        })

        assert response.json()["sessionId"] == "abc%3D%3D"
        assert response.json()["sessionIdDecoded"] == "abc=="


def test_filter_types(api_client):
    data = api_client.get("/api/linkedin-sales/filter-types").json()

    assert len(data["people"]) == 9
    assert "ANNUAL_REVENUE" in [entry["type"] for entry in data["company"]]


def test_validate_filters_reports_errors(api_client):
    response = api_client.post("/api/linkedin-sales/validate-filters", json={
        "searchType": "company",
        "filters": [{"type": "CURRENT_TITLE", "values": [{"id": "1", "text": "CTO"}]}],
    })

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert data["errors"][0]["filter"] == "CURRENT_TITLE"
