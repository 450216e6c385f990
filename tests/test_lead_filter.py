import pytest

from pronto_fake import make_lead
from prosperian.services.lead_filter import (
    FilterSet,
    company_name,
    filter_leads,
    filter_search_results,
    lead_matches,
    parse_filter,
)
from prosperian.services.search_format import SearchResult


def _tagged(lead, search_id="s1"):
    return {"search_id": search_id, "search_name": f"Search {search_id}", **lead}


LEADS = [
    _tagged(make_lead("Jean", "Dupont", "Acme", title="CTO", location="Paris, France",
                      employee_range="51-200", company_location="Paris", industry="Software")),
    _tagged(make_lead("Marie", "Curie", "Globex", title="Head of Sales", location="Lyon",
                      employee_range="1000+", company_location="Lyon", industry="Energy")),
    _tagged(make_lead("Jeanne", "Martin", "Initech", title="Chief Technology Officer",
                      location="London", employee_range="11-50", headquarters="London, UK",
                      industry="Software")),
]


def test_parse_filter():
    assert parse_filter("Acme, Globex") == ["acme", "globex"]
    assert parse_filter("a,,b") == ["a", "b"]
    assert parse_filter("   ") == []
    assert parse_filter("") == []
    assert parse_filter(None) == []
    assert parse_filter("  PaRiS ") == ["paris"]


def test_unknown_filter_field_rejected():
    with pytest.raises(KeyError):
        FilterSet.from_raw(colour="blue")


def test_alternatives_are_or_within_a_field():
    filters = FilterSet.from_raw(company_name="acme,INITECH")
    assert [company_name(lead) for lead in filter_leads(LEADS, filters)] == ["Acme", "Initech"]


def test_fields_are_and_across_fields():
    filters = FilterSet.from_raw(industry="software", company_location="paris")
    result = filter_leads(LEADS, filters)
    assert [company_name(lead) for lead in result] == ["Acme"]


def test_substring_and_case_insensitive():
    filters = FilterSet.from_raw(first_name="JEAN")
    assert [lead["lead"]["first_name"] for lead in filter_leads(LEADS, filters)] == ["Jean", "Jeanne"]


def test_location_fields_combine_every_source():
    # Initech has no company location, only a headquarters value
    filters = FilterSet.from_raw(company_location="uk")
    assert [company_name(lead) for lead in filter_leads(LEADS, filters)] == ["Initech"]


def test_missing_value_never_matches_non_empty_filter():
    lead = _tagged(make_lead("Paul", "Smith", "Umbrella"))
    assert not lead_matches(lead, FilterSet.from_raw(industry="software"))
    assert lead_matches(lead, FilterSet.from_raw(industry=""))


def test_company_name_fallback_paths():
    assert company_name({"name": "Flat Co"}) == "Flat Co"
    assert company_name({"cleaned_name": "Cleaned Co"}) == "Cleaned Co"
    assert company_name({"lead": {"company": {"name": "Nested Co"}}}) == "Nested Co"
    assert company_name({"company": {"name": ""}, "lead": {}}) == ""


def test_empty_filter_set_is_identity():
    filters = FilterSet.from_raw(company_name="", title=" , ")
    assert filters.is_empty
    result = filter_leads(LEADS, filters)
    assert result == LEADS

    groups = [SearchResult("s1", "One", LEADS[:1]), SearchResult("s2", "Two", [])]
    assert filter_search_results(groups, filters) is groups


def test_filtering_is_idempotent():
    filters = FilterSet.from_raw(title="cto,chief", industry="software")
    once = filter_leads(LEADS, filters)
    assert filter_leads(once, filters) == once
    assert len(once) == 2


def test_malformed_lead_is_excluded_not_raised():
    leads = LEADS + ["not-a-lead", None]
    result = filter_leads(leads, FilterSet.from_raw(company_name="e"))
    assert "not-a-lead" not in result
    assert None not in result
    assert [company_name(lead) for lead in result] == ["Acme", "Globex", "Initech"]


def test_filter_search_results_drops_empty_groups_and_keeps_order():
    groups = [
        SearchResult("s1", "One", [LEADS[1]]),
        SearchResult("s2", "Two", [LEADS[2], LEADS[0]]),
    ]
    result = filter_search_results(groups, FilterSet.from_raw(industry="software"))
    assert [group.search_id for group in result] == ["s2"]
    assert [company_name(lead) for lead in result[0].leads] == ["Initech", "Acme"]
    # input groups are left untouched
    assert len(groups[1].leads) == 2
