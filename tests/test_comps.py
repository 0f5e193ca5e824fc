from datetime import date, datetime

import pytest

from CompsMVP.extensions import db
from CompsMVP.services.comps_service import CompsFinder, SubjectNotFoundError, _months_ago

NOW = datetime(2026, 10, 19, 12, 0, 0)


def listing(**overrides):
    data = {
        "address": "123 Main St",
        "city": "Austin",
        "state": "TX",
        "zipCode": "78701",
        "price": "300000",
        "bedrooms": 3,
        "bathrooms": "2",
        "squareFeet": "1500",
        "propertyType": "Single Family",
        "status": "Active",
    }
    data.update(overrides)
    return data


@pytest.fixture
def finder(storage):
    return CompsFinder(storage, now_fn=lambda: NOW)


def addresses(result):
    return [c["address"] for c in result["comps"]]


def test_comps_use_price_band_type_and_city_and_skip_subject(storage, finder):
    subject = storage.create_property(listing())
    storage.create_property(listing(address="1 Oak St", price="320000"))
    storage.create_property(listing(address="2 Pine St", price="500000"))
    storage.create_property(listing(address="3 Elm St", price="310000", propertyType="Condo"))
    storage.create_property(listing(address="4 Ash St", city="Dallas", zipCode="75201"))

    result = finder.find_comps({"propertyId": subject.id})

    assert result["subjectPropertyId"] == subject.id
    assert result["relaxed"] is False
    assert addresses(result) == ["1 Oak St"]


def test_subject_by_full_address(storage, finder):
    storage.create_property(listing())
    storage.create_property(listing(address="1 Oak St", price="290000"))

    result = finder.find_comps({"address": "123 Main St", "city": "Austin", "state": "TX", "zipCode": "78701"})

    assert addresses(result) == ["1 Oak St"]


def test_max_results_caps_comps(storage, finder):
    subject = storage.create_property(listing())
    for i in range(3):
        storage.create_property(listing(address=f"{i + 1} Oak St", price=str(300000 + i * 1000)))

    result = finder.find_comps({"propertyId": subject.id, "maxResults": 2})

    assert addresses(result) == ["1 Oak St", "2 Oak St"]


def test_relaxes_criteria_when_nothing_matches(storage, finder):
    subject = storage.create_property(listing())
    storage.create_property(listing(address="1 Oak St", price="345000"))

    result = finder.find_comps({"propertyId": subject.id, "priceRange": 10})

    assert result["relaxed"] is True
    assert addresses(result) == ["1 Oak St"]


def test_relax_widens_bounds():
    finder = CompsFinder(storage=None)
    filters = finder.build_filters({"minBeds": 3, "maxBeds": 4, "minSqft": 1200})
    relaxed = CompsFinder.relax(filters, {"minBeds": 3, "maxBeds": 4, "minSqft": 1200})

    assert (relaxed.min_beds, relaxed.max_beds) == (2, 5)
    assert relaxed.min_sqft == 840
    assert relaxed.max_sqft == 3900
    assert str(relaxed.min_baths) == "1"
    assert str(relaxed.max_baths) == "3.5"


def test_sold_comps_limited_to_sale_timeframe(storage, finder):
    subject = storage.create_property(listing())
    storage.create_property(listing(address="1 Oak St", status="Sold", saleDate="2026-08-01"))
    storage.create_property(listing(address="2 Pine St", status="Sold", saleDate="2025-01-01"))
    storage.create_property(listing(address="3 Elm St", status="Active"))

    result = finder.find_comps({"propertyId": subject.id, "status": "sold", "saleTimeframe": 6})

    assert addresses(result) == ["1 Oak St"]


def test_missing_price_per_sqft_is_filled_in(storage, finder):
    subject = storage.create_property(listing())
    comp = storage.create_property(listing(address="1 Oak St"))
    comp.price_per_sqft = None
    db.session.commit()

    result = finder.find_comps({"propertyId": subject.id})

    assert result["comps"][0]["pricePerSqft"] == "200.00"


def test_subject_reference_required(finder):
    with pytest.raises(ValueError):
        finder.find_comps({})
    with pytest.raises(SubjectNotFoundError):
        finder.find_comps({"propertyId": 999})


def test_months_ago_clamps_day():
    assert _months_ago(date(2026, 3, 31), 1) == date(2026, 2, 28)
    assert _months_ago(date(2026, 1, 15), 13) == date(2024, 12, 15)
