# CompsMVP/services/normalizer.py
"""
Provider record -> canonical property dict.

Canonical dicts use the same camelCase keys as Property.to_dict(); decimals
are plain strings ("300000", "2.5", "200.00"), never "$1,234".
"""
import json
import logging
import re
from datetime import date
from statistics import median

from CompsMVP.services.provider_types import ProviderProperty, DATAFINITI, ATTOM
from CompsMVP.utils.numbers import parse_numeric, parse_int, to_decimal, decimal_str, price_per_sqft

logger = logging.getLogger(__name__)

PROPERTY_TYPES = ("Single Family", "Condo", "Townhouse", "Multi-Family", "Land", "Commercial")
STATUSES = ("Active", "Pending", "Sold", "Unknown")


class NormalizationError(ValueError):
    """Record cannot be turned into a property (e.g. no street address)."""


# =========================================================
# 🧹 FIELD HELPERS
# =========================================================
_URL_RE = re.compile(r"https?://[^\s\"'\\\[\],]+")
_QUOTED_RE = re.compile(r'"([^"]+)"')
_WORD_RE = re.compile(r"[A-Za-z0-9]")


def _strip_escapes(text: str) -> str:
    """Undo repeated JSON-in-JSON quoting: '"[\\"a\\"]"' -> '["a"]'."""
    for _ in range(5):
        before = text
        text = text.replace('\\\\', '\\').replace('\\"', '"').replace('""', '"').strip()
        if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
            text = text[1:-1].strip()
        if text == before:
            break
    return text


def _dedupe(items):
    seen = set()
    out = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out


def parse_string_list(value) -> list:
    """
    Coerce images/features into a list of strings. Never raises.

    Order: real sequence as-is; regex-extracted URL or quoted tokens;
    cleaned JSON parse for bracketed strings; comma split; else [].
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return _dedupe(str(v).strip() for v in value if v is not None and str(v).strip())
    if not isinstance(value, str):
        return []

    text = value.strip()
    if not text:
        return []

    urls = _URL_RE.findall(text)
    if urls:
        return _dedupe(urls)

    cleaned = _strip_escapes(text)
    quoted = [q.strip() for q in _QUOTED_RE.findall(cleaned)]
    quoted = [q for q in quoted if _WORD_RE.search(q)]
    if quoted:
        return _dedupe(quoted)

    if cleaned.startswith("[") and cleaned.endswith("]"):
        try:
            parsed = json.loads(cleaned)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return parse_string_list(parsed)
        cleaned = cleaned[1:-1]

    tokens = [t.strip().strip("'\"") for t in cleaned.split(",")]
    return _dedupe(t for t in tokens if _WORD_RE.search(t))


def _dig(data, *path, default=None):
    cur = data
    for key in path:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(key)
        if cur is None:
            return default
    return cur


def _text(value):
    if value is None:
        return ""
    return str(value).strip()


def _canonical(**fields):
    price = decimal_str(parse_numeric(fields.get("price")))
    sqft = decimal_str(parse_numeric(fields.get("squareFeet")))
    supplied_ppsf = to_decimal(fields.get("pricePerSqft"))
    return {
        "externalId": fields.get("externalId"),
        "source": fields.get("source"),
        "address": fields["address"],
        "city": fields.get("city") or "",
        "state": fields.get("state") or "",
        "zipCode": fields.get("zipCode") or "",
        "neighborhood": fields.get("neighborhood"),
        "latitude": decimal_str(fields.get("latitude")),
        "longitude": decimal_str(fields.get("longitude")),
        "price": price,
        "bedrooms": parse_int(fields.get("bedrooms"), 0),
        "bathrooms": decimal_str(parse_numeric(fields.get("bathrooms"))),
        "squareFeet": sqft,
        "lotSize": decimal_str(parse_numeric(fields.get("lotSize"))),
        "yearBuilt": parse_int(fields.get("yearBuilt")),
        "propertyType": fields.get("propertyType") or "Unknown",
        "status": fields.get("status") or "Unknown",
        "daysOnMarket": parse_int(fields.get("daysOnMarket"), 0),
        "saleDate": fields.get("saleDate"),
        "hasBasement": bool(fields.get("hasBasement")),
        "hasGarage": bool(fields.get("hasGarage")),
        "garageSpaces": parse_int(fields.get("garageSpaces"), 0),
        "images": parse_string_list(fields.get("images")),
        "pricePerSqft": (
            decimal_str(supplied_ppsf, places=2) if supplied_ppsf else price_per_sqft(price, sqft)
        ),
        "description": fields.get("description"),
        "features": parse_string_list(fields.get("features")),
    }


# =========================================================
# 🏠 DATAFINITI (MLS)
# =========================================================
DATAFINITI_PROPERTY_TYPES = {
    "single family dwelling": "Single Family",
    "single family residence": "Single Family",
    "single family": "Single Family",
    "single-family home": "Single Family",
    "house": "Single Family",
    "condo": "Condo",
    "condominium": "Condo",
    "condominiums": "Condo",
    "townhouse": "Townhouse",
    "townhome": "Townhouse",
    "townhouses": "Townhouse",
    "multi-family dwelling": "Multi-Family",
    "multi-family": "Multi-Family",
    "multi family": "Multi-Family",
    "duplex": "Multi-Family",
    "triplex": "Multi-Family",
    "apartment building": "Multi-Family",
    "land": "Land",
    "lot": "Land",
    "lots/land": "Land",
    "vacant land": "Land",
    "commercial": "Commercial",
    "office": "Commercial",
    "retail": "Commercial",
}

DATAFINITI_STATUSES = {
    "for sale": "Active",
    "active": "Active",
    "new listing": "Active",
    "price change": "Active",
    "pending": "Pending",
    "under contract": "Pending",
    "contingent": "Pending",
    "sold": "Sold",
    "closed": "Sold",
}


def map_datafiniti_type(value) -> str:
    return DATAFINITI_PROPERTY_TYPES.get(_text(value).lower(), "Unknown")


def map_datafiniti_status(value) -> str:
    return DATAFINITI_STATUSES.get(_text(value).lower(), "Unknown")


def _datafiniti_features(raw):
    # features arrive as [{"key": "Garage", "value": ["2"]}, ...] or as plain strings
    if isinstance(raw, list):
        out = []
        for item in raw:
            if isinstance(item, dict):
                key = _text(item.get("key"))
                if key:
                    out.append(key)
            elif item is not None:
                out.append(item)
        return out
    return raw


def _datafiniti_description(p, property_type, city):
    descriptions = p.get("descriptions")
    if isinstance(descriptions, list):
        for d in descriptions:
            value = _text(d.get("value")) if isinstance(d, dict) else _text(d)
            if value:
                return value
    text = _text(p.get("description"))
    if text:
        return text
    label = property_type if property_type != "Unknown" else "Property"
    return f"{label} located in {city or 'Unknown City'}"


def normalize_datafiniti(p: dict) -> dict:
    address = _text(p.get("address"))
    if not address:
        raise NormalizationError("datafiniti record has no address")

    neighborhoods = p.get("neighborhoods")
    neighborhood = neighborhoods[0] if isinstance(neighborhoods, list) and neighborhoods else None

    city = _text(p.get("city"))
    property_type = map_datafiniti_type(p.get("propertyType"))

    return _canonical(
        source=DATAFINITI,
        externalId=_text(p.get("id")) or None,
        address=address,
        city=city,
        state=_text(p.get("province") or p.get("state")),
        zipCode=_text(p.get("postalCode")),
        neighborhood=neighborhood,
        latitude=p.get("latitude"),
        longitude=p.get("longitude"),
        price=p.get("mostRecentPriceAmount", p.get("price")),
        bedrooms=p.get("numBedroom"),
        bathrooms=p.get("numBathroom"),
        squareFeet=p.get("floorSizeValue"),
        lotSize=p.get("lotSizeValue"),
        yearBuilt=p.get("yearBuilt"),
        propertyType=property_type,
        status=map_datafiniti_status(p.get("mostRecentStatus")),
        daysOnMarket=p.get("daysOnMarket"),
        images=p.get("imageURLs"),
        features=_datafiniti_features(p.get("features")),
        description=_datafiniti_description(p, property_type, city),
    )


# =========================================================
# 🏘 ATTOM
# =========================================================
# substring checks, first match wins
ATTOM_PROPERTY_TYPES = (
    (("CONDO",), "Condo"),
    (("TOWN",), "Townhouse"),
    (("MFR", "MULTI", "DUPLEX", "TRIPLEX", "APARTMENT"), "Multi-Family"),
    (("LAND", "VACANT", "LOT"), "Land"),
    (("COMMERCIAL", "OFFICE", "RETAIL", "INDUSTRIAL"), "Commercial"),
    (("SFR", "SINGLE"), "Single Family"),
)


def map_attom_type(value) -> str:
    upper = _text(value).upper()
    if not upper:
        return "Unknown"
    for needles, canonical in ATTOM_PROPERTY_TYPES:
        if any(n in upper for n in needles):
            return canonical
    return "Unknown"


def _attom_sale_amount(sale):
    amount = sale.get("amount") if isinstance(sale, dict) else None
    if isinstance(amount, dict):
        return amount.get("saleamt", amount.get("saleAmt"))
    return amount


def _section(p, key) -> dict:
    value = p.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise NormalizationError(f"attom {key} is {type(value).__name__}, expected an object")
    return value


def normalize_attom(p: dict) -> dict:
    addr = _section(p, "address")
    address = _text(addr.get("line1"))
    if not address:
        raise NormalizationError("attom record has no address.line1")

    sale = _section(p, "sale")
    building = _section(p, "building")
    summary = _section(p, "summary")
    sale_date = _text(sale.get("saleTransDate") or sale.get("saletransdate")) or None

    city = _text(addr.get("locality"))
    state = _text(addr.get("countrySubd"))
    property_type = map_attom_type(summary.get("proptype") or summary.get("propsubtype") or summary.get("propclass"))
    year_built = parse_int(summary.get("yearbuilt") or building.get("yearbuilt"))

    photos = _dig(p, "utilities", "photos", default=[])
    images = [ph.get("url") for ph in photos if isinstance(ph, dict) and ph.get("url")] if isinstance(photos, list) else []

    roomtype = _dig(building, "rooms", "roomtype")
    features = roomtype if isinstance(roomtype, list) else ([roomtype] if roomtype else [])

    garage_spaces = parse_int(_dig(building, "parking", "prkgSpaces"), 0)
    basement_size = parse_numeric(_dig(building, "interior", "bsmtsize"))

    label = property_type if property_type != "Unknown" else "Property"
    description = f"{label} located in {city}, {state}."
    if year_built:
        description += f" Built in {year_built}."

    return _canonical(
        source=ATTOM,
        externalId=_text(_dig(p, "identifier", "attomId")) or None,
        address=address,
        city=city,
        state=state,
        zipCode=_text(addr.get("postal1")),
        neighborhood=addr.get("neighborhood"),
        latitude=_dig(p, "location", "latitude"),
        longitude=_dig(p, "location", "longitude"),
        price=_attom_sale_amount(sale),
        bedrooms=_dig(building, "rooms", "beds"),
        bathrooms=_dig(building, "rooms", "bathstotal"),
        squareFeet=_dig(building, "size", "universalsize") or _dig(building, "size", "livingsize"),
        lotSize=_dig(p, "lot", "lotsize1"),
        yearBuilt=year_built,
        propertyType=property_type,
        status="Sold" if sale_date else "Active",
        daysOnMarket=0,
        saleDate=sale_date[:10] if sale_date else None,
        hasBasement=basement_size > 0,
        hasGarage=garage_spaces > 0,
        garageSpaces=garage_spaces,
        images=images,
        features=features,
        description=description,
    )


# =========================================================
# 🔀 DISPATCH
# =========================================================
_NORMALIZERS = {
    DATAFINITI: normalize_datafiniti,
    ATTOM: normalize_attom,
}


def normalize(record: ProviderProperty) -> dict:
    fn = _NORMALIZERS.get(record.provider)
    if fn is None:
        raise NormalizationError(f"unknown provider tag: {record.provider}")
    if not isinstance(record.payload, dict):
        raise NormalizationError(f"{record.provider} payload is not an object")
    try:
        return fn(record.payload)
    except (TypeError, AttributeError, ArithmeticError) as e:
        raise NormalizationError(f"malformed {record.provider} record: {e}") from e


def normalize_many(records) -> list:
    """Normalize a batch; malformed records are logged and skipped."""
    out = []
    for record in records:
        try:
            out.append(normalize(record))
        except NormalizationError as e:
            logger.warning("Skipping %s record: %s", record.provider, e)
    return out


# =========================================================
# 📈 MARKET SNAPSHOT (ATTOM sale/assessment snapshot)
# =========================================================
# snapshots carry no inventory figure, so every point gets this value and
# determine_market_type() always yields "Balanced Market" for refreshed data
DEFAULT_INVENTORY_MONTHS = 3

def determine_market_type(inventory_months) -> str:
    months = to_decimal(inventory_months)
    if months is None:
        return "Balanced Market"
    if months < 3:
        return "Seller's Market"
    if months > 6:
        return "Buyer's Market"
    return "Balanced Market"


def normalize_market_snapshot(payload: dict, city: str, state: str, zip_code=None, today=None) -> dict:
    """
    Aggregate an ATTOM snapshot response into one monthly market point for today's period.
    Raises NormalizationError when the response holds no property records.
    """
    records = payload.get("property") if isinstance(payload, dict) else None
    if not isinstance(records, list) or not records:
        raise NormalizationError("market snapshot has no property records")

    today = today or date.today()

    prices = []
    marketing_days = []
    per_sqft = []
    active = 0
    for rec in records:
        if not isinstance(rec, dict):
            continue
        sale = rec.get("sale")
        if not isinstance(sale, dict):
            sale = {}
        amount = to_decimal(_attom_sale_amount(sale))
        if amount:
            prices.append(amount)
            sqft = to_decimal(_dig(rec, "building", "size", "universalsize"))
            if sqft:
                per_sqft.append(amount / sqft)
        days = parse_int(sale.get("marketingTime"))
        if days:
            marketing_days.append(days)
        if not (sale.get("saleTransDate") or sale.get("saletransdate")):
            active += 1

    avg_days = round(sum(marketing_days) / len(marketing_days)) if marketing_days else 30
    avg_ppsf = round(sum(per_sqft) / len(per_sqft)) if per_sqft else 250
    inventory_months = DEFAULT_INVENTORY_MONTHS

    return {
        "city": city,
        "state": state,
        "zipCode": zip_code or "",
        "medianPrice": decimal_str(median(prices)) if prices else "0",
        "averagePricePerSqft": decimal_str(avg_ppsf),
        "daysOnMarket": avg_days,
        "activeListings": active,
        "inventoryMonths": decimal_str(inventory_months),
        "saleToListRatio": None,
        "priceReductions": None,
        "marketType": determine_market_type(inventory_months),
        "month": today.month,
        "year": today.year,
    }
