# CompsMVP/services/attom_client.py
import logging

from CompsMVP.services.provider_client import BaseProviderClient
from CompsMVP.services.provider_types import ProviderProperty, ProviderResult, ATTOM
from CompsMVP.utils.numbers import decimal_str

logger = logging.getLogger(__name__)

PROPERTY_API = "/propertyapi/v1.0.0"
NO_RESULT_MSG = "SuccessWithoutResult"

# canonical type -> ATTOM propertytype code
ATTOM_PROPERTY_TYPE_CODES = {
    "Single Family": "SFR",
    "Condo": "CONDO",
    "Townhouse": "TOWNHOUSE",
    "Multi-Family": "MFR",
    "Land": "LAND",
    "Commercial": "COMMERCIAL",
}

# tried in order when looking a property up by address
DETAIL_ENDPOINTS = (
    f"{PROPERTY_API}/property/detail",
    f"{PROPERTY_API}/property/expandedprofile",
    f"{PROPERTY_API}/property/basicprofile",
)

MARKET_ENDPOINTS = (
    f"{PROPERTY_API}/sale/snapshot",
    f"{PROPERTY_API}/assessment/snapshot",
)


def build_attom_search(filters, page_size=25):
    """
    PropertyFilters -> (path, params).
      lat/lng  -> /property/geo with radius (miles)
      zip      -> /property/address?postalcode=
      city, ST -> /property/address?address2=
    """
    loc = filters.location_parts()
    params = {}

    if filters.lat is not None and filters.lng is not None:
        path = f"{PROPERTY_API}/property/geo"
        params["latitude"] = decimal_str(filters.lat)
        params["longitude"] = decimal_str(filters.lng)
        params["radius"] = decimal_str(filters.radius) if filters.radius is not None else "1"
    else:
        path = f"{PROPERTY_API}/property/address"
        if loc.get("zipCode"):
            params["postalcode"] = loc["zipCode"]
        elif loc.get("city") and loc.get("state"):
            params["address2"] = f"{loc['city']}, {loc['state']}"
        elif filters.location:
            params["address2"] = filters.location

    if filters.min_price is not None:
        params["minSaleAmt"] = decimal_str(filters.min_price)
    if filters.max_price is not None:
        params["maxSaleAmt"] = decimal_str(filters.max_price)
    if filters.min_beds is not None:
        params["minBeds"] = filters.min_beds
    if filters.min_baths is not None:
        params["minBathsTotal"] = decimal_str(filters.min_baths)
    if filters.min_sqft is not None:
        params["minUniversalSize"] = decimal_str(filters.min_sqft)
    if filters.max_sqft is not None:
        params["maxUniversalSize"] = decimal_str(filters.max_sqft)
    if filters.year_built is not None:
        params["minYearBuilt"] = filters.year_built
    if filters.property_type in ATTOM_PROPERTY_TYPE_CODES:
        params["propertytype"] = ATTOM_PROPERTY_TYPE_CODES[filters.property_type]

    params["page"] = 1
    params["pagesize"] = filters.limit or page_size
    return path, params


def is_no_result(data) -> bool:
    if not isinstance(data, dict):
        return False
    status = data.get("status")
    return isinstance(status, dict) and status.get("msg") == NO_RESULT_MSG


def property_records(data) -> list:
    if not isinstance(data, dict) or is_no_result(data):
        return []
    records = data.get("property")
    return [r for r in records if isinstance(r, dict)] if isinstance(records, list) else []


class AttomClient(BaseProviderClient):
    """ATTOM property + market snapshot API (apikey header, GET)."""

    name = ATTOM

    def __init__(self, api_key=None, base_url="https://api.gateway.attomdata.com", timeout=12,
                 cache=None, session=None, page_size=25):
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, cache=cache, session=session)
        self.page_size = page_size

    @classmethod
    def from_config(cls, config, cache=None, session=None):
        return cls(
            api_key=config.get("ATTOM_API_KEY"),
            base_url=config.get("ATTOM_BASE_URL", "https://api.gateway.attomdata.com"),
            timeout=int(config.get("PROVIDER_TIMEOUT", 12)),
            cache=cache,
            session=session,
        )

    def _headers(self):
        return {"apikey": self.api_key, "Accept": "application/json"}

    # -----------------------------------------------------
    # Public API
    # -----------------------------------------------------
    def search(self, filters) -> ProviderResult:
        if not self.is_configured():
            return ProviderResult.not_configured(self.name)
        path, params = build_attom_search(filters, self.page_size)
        key = f"{path}|{sorted(params.items())}"
        return self._cached("search", key, lambda: self._fetch_properties(path, params))

    def get_details(self, external_id=None, address=None, city=None, state=None, zip_code=None) -> ProviderResult:
        if not self.is_configured():
            return ProviderResult.not_configured(self.name)

        if external_id:
            path = f"{PROPERTY_API}/property/detail"
            params = {"attomid": external_id}
            return self._cached("detail", str(external_id), lambda: self._fetch_properties(path, params))

        if not address:
            return ProviderResult.failure(self.name, "external_id_or_address_required", http_status=400)

        address2 = ", ".join(p for p in (city, f"{state or ''} {zip_code or ''}".strip()) if p)
        params = {"address1": address, "address2": address2}
        key = f"{address}|{address2}"
        return self._cached("detail", key, lambda: self._first_non_empty(DETAIL_ENDPOINTS, [params]))

    def fetch_market_statistics(self, city, state, zip_code=None) -> ProviderResult:
        """
        Raw snapshot payload for a location. records holds at most one dict
        (the first non-empty ATTOM response); normalization happens upstream.
        """
        if not self.is_configured():
            return ProviderResult.not_configured(self.name)

        methods = []
        if zip_code:
            methods.append({"postalcode": zip_code, "pagesize": 100})
        methods.append({"address2": f"{city}, {state}", "pagesize": 100})

        result = self._first_non_empty(MARKET_ENDPOINTS, methods, raw=True)
        logger.info("attom market statistics %s, %s %s -> %s", city, state, zip_code or "", result.status)
        return result

    # -----------------------------------------------------
    # Internals
    # -----------------------------------------------------
    def _fetch_properties(self, path, params, raw=False) -> ProviderResult:
        resp = self._get(path, params=params)
        data = resp.get("data")

        # ATTOM reports "no match" as a 200 (or 400) with status.msg=SuccessWithoutResult
        if is_no_result(data):
            return ProviderResult.success(self.name, [], http_status=resp.get("http_status", 200))
        if resp["status"] != "ok":
            return self._failure(resp)

        records = property_records(data)
        if raw:
            return ProviderResult.success(self.name, [data] if records else [], http_status=resp["http_status"])
        return ProviderResult.success(
            self.name,
            [ProviderProperty(self.name, r) for r in records],
            http_status=resp["http_status"],
        )

    def _first_non_empty(self, endpoints, param_sets, raw=False) -> ProviderResult:
        """Walk endpoint x params; first non-empty success wins, else empty success, else last failure."""
        last_failure = None
        saw_success = False
        for params in param_sets:
            for path in endpoints:
                result = self._fetch_properties(path, params, raw=raw)
                if result.ok and result.records:
                    return result
                if result.ok:
                    saw_success = True
                else:
                    last_failure = result
        if saw_success or last_failure is None:
            return ProviderResult.success(self.name, [])
        return last_failure
