# CompsMVP/services/comps_service.py
"""
Comparable-property finder over the local store.

A subject property (by id, or by its full address) anchors the search:
its price gives a +/- priceRange% band, its type and city/state fill in
criteria the caller left out, and it is never returned as its own comp.
When nothing matches, the search runs once more with widened
beds/baths/sqft/price bounds.
"""
import calendar
import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from CompsMVP.services.normalizer import STATUSES
from CompsMVP.services.property_filters import PropertyFilters
from CompsMVP.utils.numbers import to_decimal, parse_int, price_per_sqft

logger = logging.getLogger(__name__)

DEFAULT_PRICE_RANGE = 20  # percent
DEFAULT_MAX_RESULTS = 10

# fallbacks used when widening a criterion the caller did not set
RELAX_DEFAULT_MIN_BEDS = 2
RELAX_DEFAULT_MAX_BEDS = 4
RELAX_DEFAULT_MIN_BATHS = Decimal(1)
RELAX_DEFAULT_MAX_BATHS = Decimal(3)
RELAX_DEFAULT_MIN_SQFT = Decimal(1000)
RELAX_DEFAULT_MAX_SQFT = Decimal(3000)


class SubjectNotFoundError(LookupError):
    """propertyId does not name a stored property."""


def _round(value) -> Decimal:
    return Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP)


def _canonical_status(value):
    text = (value or "").strip()
    for status in STATUSES:
        if status.lower() == text.lower():
            return status
    return text or None


def _months_ago(today, months):
    year, month = divmod(today.year * 12 + today.month - 1 - months, 12)
    month += 1
    return date(year, month, min(today.day, calendar.monthrange(year, month)[1]))


class CompsFinder:
    def __init__(self, storage, now_fn=datetime.utcnow):
        self.storage = storage
        self.now_fn = now_fn

    def find_comps(self, criteria: dict) -> dict:
        """
        criteria keys (camelCase): propertyId | address (+ city, state, zipCode),
        propertyType, status, min/maxBeds, min/maxBaths, min/maxSqft,
        priceRange (percent), saleTimeframe (months, Sold only), maxResults.

        Raises ValueError without a subject reference and SubjectNotFoundError
        for an unknown propertyId.
        """
        criteria = criteria or {}
        subject = self._subject(criteria)
        filters = self.build_filters(criteria, subject)

        comps = self.storage.get_properties_by_filters(filters)
        relaxed = False
        if not comps:
            logger.info("No comps for %s with initial criteria; relaxing constraints",
                        subject.id if subject else criteria.get("address"))
            comps = self.storage.get_properties_by_filters(self.relax(filters, criteria))
            relaxed = True

        return {
            "subjectPropertyId": subject.id if subject else None,
            "relaxed": relaxed,
            "comps": [_with_price_per_sqft(c.to_dict()) for c in comps],
        }

    def _subject(self, criteria):
        property_id = parse_int(criteria.get("propertyId"))
        address = (criteria.get("address") or "").strip()
        if property_id is None and not address:
            raise ValueError("propertyId or address is required")

        if property_id is not None:
            subject = self.storage.get_property(property_id)
            if subject is None:
                raise SubjectNotFoundError(f"property {property_id} not found")
            return subject

        # no stored match: the criteria alone drive the search
        return self.storage.get_property_by_identity(
            address,
            (criteria.get("city") or "").strip(),
            (criteria.get("state") or "").strip(),
            (criteria.get("zipCode") or "").strip(),
        )

    def build_filters(self, criteria: dict, subject=None) -> PropertyFilters:
        filters = PropertyFilters.from_dict({
            k: criteria.get(k)
            for k in ("propertyType", "minBeds", "maxBeds", "minBaths", "maxBaths",
                      "minSqft", "maxSqft", "zipCode")
        })

        city = (criteria.get("city") or "").strip() or (subject.city if subject else "")
        state = (criteria.get("state") or "").strip() or (subject.state if subject else "")
        if city and state:
            filters.location = f"{city}, {state}"
        elif city or state:
            filters.location = city or state

        if filters.property_type is None and subject is not None and subject.property_type:
            filters.property_type = subject.property_type

        filters.status = _canonical_status(criteria.get("status"))

        if subject is not None:
            filters.exclude_property_id = subject.id
            price = to_decimal(subject.price)
            if price:
                pct = to_decimal(criteria.get("priceRange")) or Decimal(DEFAULT_PRICE_RANGE)
                filters.min_price = _round(price * (1 - pct / 100))
                filters.max_price = _round(price * (1 + pct / 100))

        timeframe = parse_int(criteria.get("saleTimeframe"))
        if filters.status == "Sold" and timeframe:
            filters.sale_date_from = _months_ago(self.now_fn().date(), timeframe)

        filters.limit = parse_int(criteria.get("maxResults")) or DEFAULT_MAX_RESULTS
        return filters

    @staticmethod
    def relax(filters: PropertyFilters, criteria: dict) -> PropertyFilters:
        """Widen beds/baths/sqft around the caller's values (or defaults) and the price band by 10%."""
        min_beds = parse_int(criteria.get("minBeds")) or RELAX_DEFAULT_MIN_BEDS
        max_beds = parse_int(criteria.get("maxBeds")) or RELAX_DEFAULT_MAX_BEDS
        min_baths = to_decimal(criteria.get("minBaths")) or RELAX_DEFAULT_MIN_BATHS
        max_baths = to_decimal(criteria.get("maxBaths")) or RELAX_DEFAULT_MAX_BATHS
        min_sqft = to_decimal(criteria.get("minSqft")) or RELAX_DEFAULT_MIN_SQFT
        max_sqft = to_decimal(criteria.get("maxSqft")) or RELAX_DEFAULT_MAX_SQFT

        relaxed = replace(
            filters,
            min_beds=max(1, min_beds - 1),
            max_beds=max_beds + 1,
            min_baths=max(Decimal(1), min_baths - Decimal("0.5")),
            max_baths=max_baths + Decimal("0.5"),
            min_sqft=_round(min_sqft * Decimal("0.7")),
            max_sqft=_round(max_sqft * Decimal("1.3")),
        )
        if filters.min_price is not None and filters.max_price is not None:
            relaxed.min_price = _round(filters.min_price * Decimal("0.9"))
            relaxed.max_price = _round(filters.max_price * Decimal("1.1"))
        return relaxed


def _with_price_per_sqft(comp: dict) -> dict:
    if to_decimal(comp.get("pricePerSqft")):
        return comp
    return {**comp, "pricePerSqft": price_per_sqft(comp.get("price"), comp.get("squareFeet"))}
