import pytest

from prosperian.schemas.linkedin_sales import SalesFilter
from prosperian.services.sales_navigator import (
    SALES_SEARCH_BASE_URL,
    SalesNavigatorError,
    build_query,
    build_search_url,
    extract_session_id,
    parse_query,
    parse_search_url,
    validate_filters,
)


def _region(text="France", id="105015875", selection="INCLUDED"):
    return SalesFilter(type="REGION", values=[{"id": id, "text": text, "selectionType": selection}])


class TestBuildQuery:
    def test_standard_query(self):
        query = build_query([_region()], "cto", search_id=1234567890)

        assert query == (
            "(spellCorrectionEnabled:true,"
            "recentSearchParam:(id:1234567890,doLogHistory:true),"
            'filters:List((type:REGION,values:List((id:105015875,text:"France",selectionType:INCLUDED)))),'
            'keywords:"cto")'
        )

    def test_session_query(self):
        query = build_query([_region()], None, session_mode=True)

        assert query.startswith("(recentSearchParam:(doLogHistory:true),")
        assert "spellCorrectionEnabled" not in query
        assert "selectionType:INCLUDED,parent:())" in query

    def test_several_filters_and_values(self):
        filters = [
            SalesFilter(type="REGION", values=[
                {"id": "1", "text": "France"},
                {"id": "2", "text": "Belgium", "selectionType": "EXCLUDED"},
            ]),
            SalesFilter(type="SENIORITY_LEVEL", values=[{"id": "8", "text": "CXO"}]),
        ]
        tree = parse_query(build_query(filters, None, search_id=1))

        assert [entry["type"] for entry in tree["filters"]] == ["REGION", "SENIORITY_LEVEL"]
        assert [value["text"] for value in tree["filters"][0]["values"]] == ["France", "Belgium"]
        assert tree["filters"][0]["values"][1]["selectionType"] == "EXCLUDED"

    def test_no_filters_no_keywords(self):
        assert build_query([], None, search_id=5) == "(spellCorrectionEnabled:true,recentSearchParam:(id:5,doLogHistory:true))"

    def test_random_search_id_has_ten_digits(self):
        tree = parse_query(build_query([], None))
        assert len(tree["recentSearchParam"]["id"]) == 10


class TestBuildSearchUrl:
    def test_url_is_encoded(self):
        built = build_search_url("people", [_region()], "head of sales", search_id=1)

        assert built.url.startswith(f"{SALES_SEARCH_BASE_URL}/people?query=(spellCorrectionEnabled%3Atrue%2C")
        assert "head%20of%20sales" in built.url
        assert '"' not in built.url

    def test_session_and_view_all_filters(self):
        built = build_search_url("company", [], None, session_id="a b==", view_all_filters=True, search_id=1)
        assert built.url.endswith("&sessionId=a%20b%3D%3D&viewAllFilters=true")

    def test_invalid_search_type(self):
        with pytest.raises(SalesNavigatorError):
            build_search_url("jobs", [])

    def test_session_mode_requires_session_id(self):
        with pytest.raises(SalesNavigatorError):
            build_search_url("people", [], session_mode=True)


class TestParseQuery:
    def test_escaped_quotes(self):
        query = build_query([_region(text='Say "hi" \\ bye')], 'a "b"', search_id=1)
        tree = parse_query(query)

        assert tree["keywords"] == 'a "b"'
        assert tree["filters"][0]["values"][0]["text"] == 'Say "hi" \\ bye'

    def test_empty_object(self):
        assert parse_query("(a:(),b:List())") == {"a": {}, "b": []}

    @pytest.mark.parametrize("query", ['(keywords:"cto"', "(a:1)x", "List(1)", "(novalue)"])
    def test_malformed(self, query):
        with pytest.raises(ValueError):
            parse_query(query)


class TestParseSearchUrl:
    def test_built_url_parses_back(self):
        built = build_search_url(
            "people", [_region()], "cto", session_id="abc", view_all_filters=True, search_id=1
        )
        parsed = parse_search_url(built.url)

        assert parsed.search_type == "people"
        assert parsed.session_id == "abc"
        assert parsed.view_all_filters is True
        assert parsed.keywords == "cto"
        assert parsed.filters == [{
            "type": "REGION",
            "values": [{"id": "105015875", "text": "France", "selectionType": "INCLUDED"}],
        }]

    def test_without_query(self):
        parsed = parse_search_url("https://www.linkedin.com/sales/search/company")
        assert parsed.search_type == "company"
        assert parsed.filters == []
        assert parsed.keywords is None

    def test_unparseable_query_keeps_keywords(self):
        parsed = parse_search_url('https://www.linkedin.com/sales/search/people?query=(keywords:"cto",filters:List(')
        assert parsed.keywords == "cto"
        assert parsed.filters == []

    @pytest.mark.parametrize("url", [None, "", "https://www.linkedin.com/in/someone"])
    def test_rejects_other_urls(self, url):
        with pytest.raises(SalesNavigatorError):
            parse_search_url(url)


class TestExtractSessionId:
    def test_encoded_and_decoded(self):
        url = "https://www.linkedin.com/sales/search/people?query=()&sessionId=abc%3D%3D&viewAllFilters=true"
        assert extract_session_id(url) == ("abc%3D%3D", "abc==")

    def test_missing_session(self):
        with pytest.raises(SalesNavigatorError, match="sessionId not found"):
            extract_session_id("https://www.linkedin.com/sales/search/people?query=()")


class TestValidateFilters:
    def test_valid(self):
        result = validate_filters("people", [
            {"type": "REGION", "values": [{"id": "1", "text": "France", "selectionType": "INCLUDED"}]},
        ])
        assert result.valid
        assert result.errors == [] and result.warnings == []

    def test_type_not_allowed_for_search(self):
        result = validate_filters("company", [{"type": "FUNCTION", "values": [{"id": "1", "text": "Sales"}]}])

        assert not result.valid
        assert result.errors[0].filter == "FUNCTION"

    def test_missing_type_values_and_ids(self):
        result = validate_filters("people", [
            {"values": [{"id": "1", "text": "x"}]},
            {"type": "REGION", "values": []},
            {"type": "INDUSTRY", "values": [{"text": "Software"}]},
        ])

        assert [issue.filter for issue in result.errors] == ["filter[0]", "REGION", "INDUSTRY[0]"]

    def test_unknown_selection_type_is_a_warning(self):
        result = validate_filters("people", [
            {"type": "REGION", "values": [{"id": "1", "text": "France", "selectionType": "MAYBE"}]},
        ])
        assert result.valid
        assert result.warnings[0].filter == "REGION[0]"

    def test_filters_must_be_a_list(self):
        with pytest.raises(SalesNavigatorError):
            validate_filters("people", {"type": "REGION"})
