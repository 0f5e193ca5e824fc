from decimal import Decimal
from datetime import date

import pytest

import CompsMVP.services.normalizer as normalizer_module
from CompsMVP.services.normalizer import (
    DEFAULT_INVENTORY_MONTHS,
    NormalizationError,
    determine_market_type,
    map_attom_type,
    map_datafiniti_type,
    normalize,
    normalize_many,
    normalize_market_snapshot,
    parse_string_list,
)
from CompsMVP.services.provider_types import ProviderProperty, DATAFINITI, ATTOM
from CompsMVP.utils.numbers import decimal_str, parse_numeric, price_per_sqft

from conftest import attom_record, datafiniti_record


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "not json at all",
        '{"broken',
        "[",
        '"[\\"Pool\\",\\"Garage\\"]"',
        '\\"[\\\\\\"Deck\\\\\\"]\\"',
        "[1, 2, null]",
        42,
        {"key": "value"},
        ["a", None, "b"],
    ],
)
def test_parse_string_list_never_raises(raw):
    out = parse_string_list(raw)
    assert isinstance(out, list)
    assert all(isinstance(x, str) for x in out)


def test_parse_string_list_shapes():
    assert parse_string_list(None) == []
    assert parse_string_list(["a.jpg", "b.jpg"]) == ["a.jpg", "b.jpg"]
    assert parse_string_list('["Hardwood Floors", "Central Air"]') == ["Hardwood Floors", "Central Air"]
    assert parse_string_list('"[\\"Pool\\",\\"Garage\\"]"') == ["Pool", "Garage"]
    assert parse_string_list("[]") == []
    assert parse_string_list("Pool, Garage") == ["Pool", "Garage"]


def test_parse_string_list_pulls_urls_out_of_escaped_json():
    raw = '"[\\"https://img.example.com/1.jpg\\",\\"https://img.example.com/2.jpg\\"]"'
    assert parse_string_list(raw) == ["https://img.example.com/1.jpg", "https://img.example.com/2.jpg"]


def test_parse_numeric_leading_number():
    assert parse_numeric("0.243618 acs") == Decimal("0.243618")
    assert parse_numeric("$1,234") == Decimal("1234")
    assert parse_numeric("n/a") == Decimal(0)
    assert parse_numeric(None) == Decimal(0)


def test_price_per_sqft():
    assert price_per_sqft("300000", "1500") == "200.00"
    assert price_per_sqft("300000", "0") == "0"
    assert price_per_sqft("300000", None) == "0"


def test_normalize_datafiniti_record():
    prop = normalize(ProviderProperty(DATAFINITI, datafiniti_record()))

    assert prop["source"] == "datafiniti"
    assert prop["externalId"] == "DF-99"
    assert (prop["address"], prop["city"], prop["state"], prop["zipCode"]) == ("123 Main St", "Austin", "TX", "78701")
    assert prop["neighborhood"] == "Downtown"
    assert prop["price"] == "300000"
    assert prop["bathrooms"] == "2.5"
    assert prop["lotSize"] == "0.243618"
    assert prop["pricePerSqft"] == "200.00"
    assert prop["propertyType"] == "Single Family"
    assert prop["status"] == "Active"
    assert prop["images"] == ["https://img.example.com/1.jpg", "https://img.example.com/2.jpg"]
    assert prop["description"] == "Single Family located in Austin"


def test_normalize_datafiniti_cleans_price_and_defaults():
    rec = datafiniti_record(mostRecentPriceAmount="$1,234", floorSizeValue=None, imageURLs='"[\\"x\\"]"',
                            propertyType="Houseboat", mostRecentStatus="Withdrawn", yearBuilt=None)
    prop = normalize(ProviderProperty(DATAFINITI, rec))

    assert prop["price"] == "1234"
    assert prop["squareFeet"] == "0"
    assert prop["pricePerSqft"] == "0"
    assert prop["propertyType"] == "Unknown"
    assert prop["status"] == "Unknown"
    assert prop["yearBuilt"] is None
    assert prop["images"] == ["x"]


def test_normalize_datafiniti_features_from_key_value_pairs():
    rec = datafiniti_record(features=[{"key": "Garage", "value": ["2"]}, {"key": "Pool"}, "Fireplace"])
    prop = normalize(ProviderProperty(DATAFINITI, rec))
    assert prop["features"] == ["Garage", "Pool", "Fireplace"]


def test_normalize_rejects_missing_address():
    with pytest.raises(NormalizationError):
        normalize(ProviderProperty(DATAFINITI, datafiniti_record(address="")))
    with pytest.raises(NormalizationError):
        normalize(ProviderProperty(ATTOM, attom_record(address={"locality": "Austin"})))


def test_normalize_unknown_tag():
    with pytest.raises(NormalizationError):
        normalize(ProviderProperty("zillow", {"address": "1 A St"}))


def test_normalize_many_skips_bad_records():
    records = [
        ProviderProperty(DATAFINITI, datafiniti_record()),
        ProviderProperty(DATAFINITI, datafiniti_record(address=None, id="DF-2")),
        ProviderProperty(DATAFINITI, datafiniti_record(address="9 Elm St", id="DF-3")),
    ]
    out = normalize_many(records)
    assert [p["address"] for p in out] == ["123 Main St", "9 Elm St"]


def test_normalize_attom_record():
    prop = normalize(ProviderProperty(ATTOM, attom_record()))

    assert prop["source"] == "attom"
    assert prop["externalId"] == "184713191"
    assert prop["address"] == "456 Oak Ave"
    assert prop["zipCode"] == "78702"
    assert prop["price"] == "500000"
    assert prop["bedrooms"] == 4
    assert prop["bathrooms"] == "3"
    assert prop["squareFeet"] == "2000"
    assert prop["pricePerSqft"] == "250.00"
    assert prop["propertyType"] == "Single Family"
    assert prop["status"] == "Active"
    assert prop["yearBuilt"] == 2001


def test_normalize_attom_sold_with_photos():
    rec = attom_record(
        sale={"amount": 410000, "saleTransDate": "2023-04-01"},
        utilities={"photos": [{"url": "https://img.example.com/a.jpg"}, {"caption": "no url"}]},
    )
    prop = normalize(ProviderProperty(ATTOM, rec))
    assert prop["status"] == "Sold"
    assert prop["saleDate"] == "2023-04-01"
    assert prop["price"] == "410000"
    assert prop["images"] == ["https://img.example.com/a.jpg"]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("CONDOMINIUM", "Condo"),
        ("TOWNHOUSE/ROWHOUSE", "Townhouse"),
        ("MFR", "Multi-Family"),
        ("DUPLEX", "Multi-Family"),
        ("VACANT LAND", "Land"),
        ("SFR", "Single Family"),
        ("HOUSEBOAT", "Unknown"),
        (None, "Unknown"),
    ],
)
def test_map_attom_type(raw, expected):
    assert map_attom_type(raw) == expected


def test_map_datafiniti_type_is_case_insensitive():
    assert map_datafiniti_type("CONDO") == "Condo"
    assert map_datafiniti_type("Multi-Family Dwelling") == "Multi-Family"
    assert map_datafiniti_type("") == "Unknown"


def test_determine_market_type():
    assert determine_market_type(2.5) == "Seller's Market"
    assert determine_market_type("4") == "Balanced Market"
    assert determine_market_type(7) == "Buyer's Market"
    assert determine_market_type(None) == "Balanced Market"


def test_normalize_market_snapshot():
    payload = {
        "property": [
            {"sale": {"amount": {"saleamt": 100000}, "marketingTime": 20, "saleTransDate": "2024-01-02"},
             "building": {"size": {"universalsize": 1000}}},
            {"sale": {"amount": {"saleamt": 300000}, "marketingTime": 40},
             "building": {"size": {"universalsize": 1000}}},
            {"sale": {"amount": {"saleamt": 200000}}},
        ]
    }
    point = normalize_market_snapshot(payload, "Austin", "TX", None, today=date(2026, 3, 15))

    assert point["medianPrice"] == "200000"
    assert point["daysOnMarket"] == 30
    assert point["averagePricePerSqft"] == "200"
    assert point["activeListings"] == 2
    assert point["zipCode"] == ""
    assert (point["year"], point["month"]) == (2026, 3)
    assert point["marketType"] == "Balanced Market"


def test_normalize_market_snapshot_defaults_and_empty():
    point = normalize_market_snapshot({"property": [{"sale": {}}]}, "Austin", "TX", "78701", today=date(2026, 1, 1))
    assert point["medianPrice"] == "0"
    assert point["daysOnMarket"] == 30
    assert point["averagePricePerSqft"] == "250"

    with pytest.raises(NormalizationError):
        normalize_market_snapshot({"property": []}, "Austin", "TX")


@pytest.mark.parametrize(
    "overrides",
    [
        {"address": "456 Oak Ave, Austin TX"},
        {"sale": ["bad"]},
        {"building": "2000 sqft"},
        {"summary": 7},
    ],
)
def test_normalize_attom_rejects_non_object_sections(overrides):
    with pytest.raises(NormalizationError):
        normalize(ProviderProperty(ATTOM, attom_record(**overrides)))


def test_normalize_wraps_unexpected_errors(monkeypatch):
    def broken(payload):
        raise TypeError("unsupported operand")

    monkeypatch.setitem(normalizer_module._NORMALIZERS, DATAFINITI, broken)
    with pytest.raises(NormalizationError):
        normalize(ProviderProperty(DATAFINITI, datafiniti_record()))


def test_normalize_many_survives_huge_numbers():
    records = [
        ProviderProperty(DATAFINITI, datafiniti_record(mostRecentPriceAmount=1e30)),
        ProviderProperty(DATAFINITI, datafiniti_record(address="9 Rainey St", id="DF-3")),
    ]
    out = normalize_many(records)

    assert [p["address"] for p in out] == ["123 Main St", "9 Rainey St"]
    assert out[0]["price"] == "1" + "0" * 30
    assert out[0]["pricePerSqft"] == "6" * 27 + ".70"


def test_decimal_str_handles_more_than_28_digits():
    digits = "123456789012345678901234567890"
    assert decimal_str(digits) == digits
    assert decimal_str(Decimal("1E+30"), places=2) == "1" + "0" * 30 + ".00"


def test_market_snapshot_uses_default_inventory_and_tolerates_bad_sale():
    payload = {"property": [{"sale": ["bad"]}, {"sale": {"amount": {"saleamt": 250000}}}]}
    point = normalize_market_snapshot(payload, "Austin", "TX", today=date(2026, 5, 1))

    assert point["inventoryMonths"] == decimal_str(DEFAULT_INVENTORY_MONTHS)
    assert point["marketType"] == determine_market_type(DEFAULT_INVENTORY_MONTHS)
    assert point["medianPrice"] == "250000"
    assert point["activeListings"] == 2
