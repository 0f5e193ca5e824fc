# CompsMVP/services/property_filters.py
import json
import re
from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Optional

from CompsMVP.utils.numbers import to_decimal, parse_int

# yearBuilt values that mean "no filter"
YEAR_SENTINELS = {"", "any", "any_year", "all"}

_ZIP_RE = re.compile(r"^\d{5}(-\d{4})?$")

# camelCase query key -> (attribute, kind)
FILTER_KEYS = {
    "location": ("location", "str"),
    "zipCode": ("zip_code", "str"),
    "propertyType": ("property_type", "str"),
    "minPrice": ("min_price", "decimal"),
    "maxPrice": ("max_price", "decimal"),
    "minBeds": ("min_beds", "int"),
    "maxBeds": ("max_beds", "int"),
    "minBaths": ("min_baths", "decimal"),
    "maxBaths": ("max_baths", "decimal"),
    "minSqft": ("min_sqft", "decimal"),
    "maxSqft": ("max_sqft", "decimal"),
    "status": ("status", "str"),
    "statusList": ("status_list", "list"),
    "yearBuilt": ("year_built", "year"),
    "lat": ("lat", "decimal"),
    "lng": ("lng", "decimal"),
    "radius": ("radius", "decimal"),
    "limit": ("limit", "int"),
    "excludePropertyId": ("exclude_property_id", "int"),
    "saleDateFrom": ("sale_date_from", "date"),
}


@dataclass
class PropertyFilters:
    location: Optional[str] = None
    zip_code: Optional[str] = None
    property_type: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    min_beds: Optional[int] = None
    max_beds: Optional[int] = None
    min_baths: Optional[Decimal] = None
    max_baths: Optional[Decimal] = None
    min_sqft: Optional[Decimal] = None
    max_sqft: Optional[Decimal] = None
    status: Optional[str] = None
    status_list: Optional[list] = None
    year_built: Optional[int] = None
    lat: Optional[Decimal] = None
    lng: Optional[Decimal] = None
    radius: Optional[Decimal] = None
    limit: Optional[int] = None
    exclude_property_id: Optional[int] = None
    sale_date_from: Optional[date] = None

    @classmethod
    def from_dict(cls, data):
        """
        Build from request args / JSON. Unknown keys are dropped and
        unparseable numbers are treated as "no filter".
        """
        data = data or {}
        kwargs = {}
        for key, (attr, kind) in FILTER_KEYS.items():
            raw = _get(data, key)
            if raw is None:
                continue
            value = _convert(raw, kind)
            if value is not None:
                kwargs[attr] = value
        return cls(**kwargs)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict:
        out = {}
        for key, (attr, _kind) in FILTER_KEYS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            out[key] = str(value) if isinstance(value, (Decimal, date)) else value
        return out

    def cache_key(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, default=str)

    def location_parts(self) -> dict:
        """
        Split free-text location into city/state/zip.
          "78701"           -> zipCode
          "Austin, TX"      -> city + state
          "Austin, TX 78701" -> city + state + zipCode
          "Austin"          -> city
        """
        parts = {"city": None, "state": None, "zipCode": self.zip_code}
        text = (self.location or "").strip()
        if not text:
            return parts

        if _ZIP_RE.match(text):
            parts["zipCode"] = parts["zipCode"] or text[:5]
            return parts

        if "," in text:
            city, rest = [p.strip() for p in text.split(",", 1)]
            parts["city"] = city or None
            tokens = rest.split()
            if tokens and _ZIP_RE.match(tokens[-1]):
                parts["zipCode"] = parts["zipCode"] or tokens.pop()[:5]
            parts["state"] = " ".join(tokens) or None
            return parts

        parts["city"] = text
        return parts


def _get(data, key):
    # werkzeug MultiDict keeps repeated keys for statusList
    if key == "statusList" and hasattr(data, "getlist"):
        values = data.getlist(key)
        return values or None
    return data.get(key)


def _convert(raw, kind):
    if kind == "str":
        text = str(raw).strip()
        return text or None
    if kind == "decimal":
        return to_decimal(raw)
    if kind == "int":
        return parse_int(raw)
    if kind == "year":
        if str(raw).strip().lower() in YEAR_SENTINELS:
            return None
        return parse_int(raw)
    if kind == "date":
        if isinstance(raw, date):
            return raw
        try:
            return date.fromisoformat(str(raw).strip()[:10])
        except ValueError:
            return None
    if kind == "list":
        if isinstance(raw, str):
            items = raw.split(",")
        elif isinstance(raw, (list, tuple)):
            items = []
            for item in raw:
                items.extend(str(item).split(","))
        else:
            return None
        items = [i.strip() for i in items if i and i.strip()]
        return items or None
    return None
