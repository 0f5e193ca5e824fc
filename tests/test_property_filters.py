from datetime import date
from decimal import Decimal

from werkzeug.datastructures import MultiDict

from CompsMVP.services.property_filters import PropertyFilters


def test_from_dict_parses_numbers_and_ignores_garbage():
    f = PropertyFilters.from_dict({
        "location": " Austin ",
        "minPrice": "250000",
        "maxPrice": "abc",
        "minBeds": "3",
        "minBaths": "2.5",
        "unknown": "x",
    })
    assert f.location == "Austin"
    assert f.min_price == Decimal("250000")
    assert f.max_price is None
    assert f.min_beds == 3
    assert f.min_baths == Decimal("2.5")


def test_year_built_sentinel_is_no_filter():
    assert PropertyFilters.from_dict({"yearBuilt": "any_year"}).year_built is None
    assert PropertyFilters.from_dict({"yearBuilt": "2005"}).year_built == 2005
    assert PropertyFilters.from_dict({"yearBuilt": "any_year"}).is_empty()


def test_status_list_from_query_string():
    args = MultiDict([("statusList", "Active,Pending"), ("statusList", "Sold")])
    f = PropertyFilters.from_dict(args)
    assert f.status_list == ["Active", "Pending", "Sold"]


def test_is_empty():
    assert PropertyFilters.from_dict({}).is_empty()
    assert PropertyFilters.from_dict({"location": "   "}).is_empty()
    assert not PropertyFilters.from_dict({"minBeds": "2"}).is_empty()


def test_cache_key_is_order_independent():
    a = PropertyFilters.from_dict({"location": "Austin", "minBeds": "3"})
    b = PropertyFilters.from_dict({"minBeds": "3", "location": "Austin"})
    c = PropertyFilters.from_dict({"minBeds": "4", "location": "Austin"})
    assert a.cache_key() == b.cache_key()
    assert a.cache_key() != c.cache_key()


def test_location_parts():
    assert PropertyFilters(location="78701").location_parts() == {"city": None, "state": None, "zipCode": "78701"}
    assert PropertyFilters(location="Austin, TX").location_parts() == {"city": "Austin", "state": "TX", "zipCode": None}
    assert PropertyFilters(location="Austin, TX 78701").location_parts() == {
        "city": "Austin", "state": "TX", "zipCode": "78701"
    }
    assert PropertyFilters(location="Austin").location_parts() == {"city": "Austin", "state": None, "zipCode": None}


def test_exclude_id_and_sale_date_from_parse():
    f = PropertyFilters.from_dict({"excludePropertyId": "7", "saleDateFrom": "2026-04-19T00:00:00Z"})
    assert f.exclude_property_id == 7
    assert f.sale_date_from == date(2026, 4, 19)
    assert f.to_dict()["saleDateFrom"] == "2026-04-19"

    assert PropertyFilters.from_dict({"saleDateFrom": "last spring"}).is_empty()
