import requests

from CompsMVP.services.mls_client import MLSClient, build_datafiniti_query
from CompsMVP.services.property_filters import PropertyFilters
from CompsMVP.services.provider_types import DATAFINITI
from CompsMVP.services.response_cache import ResponseCache

from conftest import FakeResponse, FakeSession, datafiniti_record


def make_client(session, api_key="df-key", cache=None):
    return MLSClient(api_key=api_key, base_url="https://api.datafiniti.co/v4", timeout=12,
                     cache=cache if cache is not None else ResponseCache(), session=session)


def test_query_dsl():
    f = PropertyFilters.from_dict({
        "location": "Austin, TX",
        "propertyType": "Condo",
        "maxPrice": "500000",
        "minBeds": "3",
        "minSqft": "1200",
        "yearBuilt": "any_year",
    })
    assert build_datafiniti_query(f) == (
        'address.city:"Austin" AND address.state:"TX" AND type:"Condo" '
        'AND prices.amountMax:<=500000 AND bedrooms:>=3 AND building.squareFootage:>=1200'
    )


def test_query_dsl_zip_and_empty():
    assert build_datafiniti_query(PropertyFilters(location="78701")) == 'address.postalCode:"78701"'
    assert build_datafiniti_query(PropertyFilters()) == "keys:*"


def test_not_configured_makes_no_call():
    session = FakeSession()
    client = make_client(session, api_key="")
    result = client.search(PropertyFilters(location="Austin"))

    assert result.status == "not_configured"
    assert not result.ok
    assert session.calls == []


def test_search_posts_query_and_tags_records():
    session = FakeSession(FakeResponse(200, {"num_found": 1, "records": [datafiniti_record()]}))
    client = make_client(session)

    result = client.search(PropertyFilters(location="Austin"))

    assert result.ok
    assert [r.provider for r in result.records] == [DATAFINITI]
    assert result.records[0].payload["id"] == "DF-99"

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://api.datafiniti.co/v4/properties/search"
    assert call["headers"]["Authorization"] == "Bearer df-key"
    assert call["timeout"] == 12
    assert call["json"]["query"] == 'address.city:"Austin"'
    assert call["json"]["format"] == "JSON"
    assert call["json"]["view"] == "property_preview"
    assert call["json"]["download"] is False


def test_empty_response_is_zero_results():
    session = FakeSession(FakeResponse(200, {"num_found": 0}))
    result = make_client(session).search(PropertyFilters(location="Nowhere"))
    assert result.ok
    assert result.records == []


def test_http_error_is_typed_failure():
    session = FakeSession(FakeResponse(500, None, text="upstream exploded"))
    result = make_client(session).search(PropertyFilters(location="Austin"))

    assert not result.ok
    assert result.status == "error"
    assert result.http_status == 500
    assert result.error == "datafiniti_http_500"
    assert "upstream exploded" in result.details


def test_network_error_and_timeout_do_not_raise():
    result = make_client(FakeSession(requests.ConnectionError("refused"))).search(PropertyFilters(location="A"))
    assert not result.ok
    assert result.http_status == 0

    result = make_client(FakeSession(requests.Timeout())).search(PropertyFilters(location="A"))
    assert result.error == "datafiniti_timeout"


def test_invalid_json_is_failure():
    result = make_client(FakeSession(FakeResponse(200, None, text="<html>"))).search(PropertyFilters(location="A"))
    assert result.error == "datafiniti_invalid_json"


def test_identical_queries_hit_cache_until_cleared():
    session = FakeSession(FakeResponse(200, {"records": [datafiniti_record()]}))
    client = make_client(session)
    filters = PropertyFilters(location="Austin")

    first = client.search(filters)
    second = client.search(filters)
    assert len(session.calls) == 1
    assert not first.cached
    assert second.cached

    client.clear_cache()
    client.search(filters)
    assert len(session.calls) == 2


def test_failures_are_not_cached():
    session = FakeSession(FakeResponse(503, None), FakeResponse(200, {"records": []}))
    client = make_client(session)
    filters = PropertyFilters(location="Austin")

    assert not client.search(filters).ok
    assert client.search(filters).ok
    assert len(session.calls) == 2


def test_get_details_by_external_id():
    session = FakeSession(FakeResponse(200, {"records": [datafiniti_record()]}))
    result = make_client(session).get_details(external_id="DF-99")

    assert result.first.payload["id"] == "DF-99"
    assert session.calls[0]["json"]["query"] == "id:DF-99"
    assert session.calls[0]["json"]["num_records"] == 1


def test_get_details_by_address():
    session = FakeSession(FakeResponse(200, {"records": []}))
    make_client(session).get_details(address="123 Main St", city="Austin", state="TX", zip_code="78701")
    assert session.calls[0]["json"]["query"] == (
        'address:"123 Main St" AND address.city:"Austin" AND address.state:"TX" AND address.postalCode:"78701"'
    )


def test_fetch_listings_bypasses_cache():
    session = FakeSession(FakeResponse(200, {"records": [datafiniti_record()]}))
    client = make_client(session)
    client.fetch_listings(10)
    client.fetch_listings(10)
    assert len(session.calls) == 2
    assert session.calls[0]["json"]["query"] == "keys:*"
    assert session.calls[0]["json"]["num_records"] == 10
