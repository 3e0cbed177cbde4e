"""Unit tests for the SAM.gov client with mocked httpx responses (respx)."""

import httpx
import pytest
import respx

from govscout.adapters import NoticeNotFoundError, SamGovClient
from govscout.models import SearchParams

from .fakes import SAM_GOV_URL


@pytest.fixture
def client():
    with SamGovClient(api_key="test-key") as sam:
        yield sam


@respx.mock
def test_search_parses_nested_opportunity(client, sample_sam_gov_response):
    respx.get(SAM_GOV_URL).mock(return_value=httpx.Response(200, json=sample_sam_gov_response))

    response = client.search(SearchParams(limit=10, posted_from="01/01/2024", posted_to="01/31/2024"))

    assert response.total_records == 1
    assert response.page_count == 1
    opp = response.opportunities_data[0]
    assert opp.notice_id == "abc123"
    assert opp.opp_type == "Solicitation"
    assert opp.response_deadline == "03/18/2024"
    assert opp.set_aside == "SBA"
    assert opp.posted_date == "01/15/2024"  # kept as the upstream string
    assert opp.award.amount == "250000"
    assert opp.award.awardee.uei_sam == "ACME12345678"
    assert opp.place_of_performance.state.code == "MD"
    assert [c.full_name for c in opp.point_of_contact] == ["Jane Smith", "Bob Jones"]
    assert opp.point_of_contact[0].contact_type == "primary"


@respx.mock
def test_search_sends_paging_dates_and_filters(client):
    route = respx.get(SAM_GOV_URL).mock(
        return_value=httpx.Response(200, json={"totalRecords": 0, "opportunitiesData": []})
    )

    client.search(
        SearchParams(
            limit=25,
            offset=50,
            posted_from="01/01/2024",
            posted_to="01/31/2024",
            title="robotics",
            ptype="o",
            naics="541715",
            state="MD",
            set_aside="SBA",
        )
    )

    sent = route.calls.last.request.url.params
    assert sent["api_key"] == "test-key"
    assert sent["limit"] == "25"
    assert sent["offset"] == "50"
    assert sent["postedFrom"] == "01/01/2024"
    assert sent["postedTo"] == "01/31/2024"
    assert sent["title"] == "robotics"
    assert sent["ptype"] == "o"
    assert sent["ncode"] == "541715"
    assert sent["state"] == "MD"
    assert sent["typeOfSetAside"] == "SBA"
    assert "noticeid" not in sent


@respx.mock
def test_notice_lookup_omits_date_range(client, sample_sam_gov_response):
    route = respx.get(SAM_GOV_URL).mock(return_value=httpx.Response(200, json=sample_sam_gov_response))

    opp = client.get("abc123")

    sent = route.calls.last.request.url.params
    assert opp.notice_id == "abc123"
    assert sent["noticeid"] == "abc123"
    assert sent["limit"] == "1"
    assert "postedFrom" not in sent
    assert "postedTo" not in sent


@respx.mock
def test_notice_lookup_not_found(client):
    respx.get(SAM_GOV_URL).mock(
        return_value=httpx.Response(200, json={"totalRecords": 0, "opportunitiesData": None})
    )

    with pytest.raises(NoticeNotFoundError) as exc_info:
        client.get("missing-1")
    assert "missing-1" in str(exc_info.value)


@respx.mock
def test_null_envelope_fields_are_accepted(client):
    respx.get(SAM_GOV_URL).mock(
        return_value=httpx.Response(200, json={"totalRecords": None, "opportunitiesData": None})
    )

    response = client.search(SearchParams(posted_from="01/01/2024", posted_to="01/02/2024"))

    assert response.total_records is None
    assert response.opportunities_data is None
    assert response.page_count == 0


@respx.mock
def test_naics_list_is_joined(client):
    payload = {
        "totalRecords": 1,
        "opportunitiesData": [{"noticeId": "N-1", "naicsCode": ["541511", "541512"]}],
    }
    respx.get(SAM_GOV_URL).mock(return_value=httpx.Response(200, json=payload))

    response = client.search(SearchParams(posted_from="01/01/2024", posted_to="01/02/2024"))

    assert response.opportunities_data[0].naics_code == "541511,541512"
