# CompsMVP/services/mls_client.py
import logging

from CompsMVP.services.provider_client import BaseProviderClient
from CompsMVP.services.provider_types import ProviderProperty, ProviderResult, DATAFINITI
from CompsMVP.utils.numbers import decimal_str

logger = logging.getLogger(__name__)

SEARCH_PATH = "properties/search"
DEFAULT_QUERY = "keys:*"


def _quote(value) -> str:
    return '"' + str(value).replace('"', '\\"') + '"'


def build_datafiniti_query(filters) -> str:
    """
    PropertyFilters -> Datafiniti query string, e.g.
      address.city:"Austin" AND address.state:"TX" AND bedrooms:>=3
    Empty filters match everything (keys:*).
    """
    parts = []
    loc = filters.location_parts()

    if loc.get("city"):
        parts.append(f"address.city:{_quote(loc['city'])}")
    if loc.get("state"):
        parts.append(f"address.state:{_quote(loc['state'])}")
    if loc.get("zipCode"):
        parts.append(f"address.postalCode:{_quote(loc['zipCode'])}")
    if filters.property_type:
        parts.append(f"type:{_quote(filters.property_type)}")
    if filters.min_price is not None:
        parts.append(f"prices.amountMin:>={decimal_str(filters.min_price)}")
    if filters.max_price is not None:
        parts.append(f"prices.amountMax:<={decimal_str(filters.max_price)}")
    if filters.min_beds is not None:
        parts.append(f"bedrooms:>={filters.min_beds}")
    if filters.min_baths is not None:
        parts.append(f"bathrooms:>={decimal_str(filters.min_baths)}")
    if filters.min_sqft is not None:
        parts.append(f"building.squareFootage:>={decimal_str(filters.min_sqft)}")
    if filters.max_sqft is not None:
        parts.append(f"building.squareFootage:<={decimal_str(filters.max_sqft)}")
    if filters.year_built is not None:
        parts.append(f"yearBuilt:>={filters.year_built}")
    if filters.status:
        parts.append(f"status:{_quote(filters.status)}")

    return " AND ".join(parts) or DEFAULT_QUERY


def build_address_query(address, city=None, state=None, zip_code=None) -> str:
    parts = [f"address:{_quote(address)}"]
    if city:
        parts.append(f"address.city:{_quote(city)}")
    if state:
        parts.append(f"address.state:{_quote(state)}")
    if zip_code:
        parts.append(f"address.postalCode:{_quote(zip_code)}")
    return " AND ".join(parts)


class MLSClient(BaseProviderClient):
    """Datafiniti property search (bearer-token POST API)."""

    name = DATAFINITI

    def __init__(self, api_key=None, base_url="https://api.datafiniti.co/v4", timeout=12,
                 cache=None, session=None, page_size=25):
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, cache=cache, session=session)
        self.page_size = page_size

    @classmethod
    def from_config(cls, config, cache=None, session=None):
        return cls(
            api_key=config.get("MLS_API_KEY"),
            base_url=config.get("MLS_API_ENDPOINT", "https://api.datafiniti.co/v4"),
            timeout=int(config.get("PROVIDER_TIMEOUT", 12)),
            cache=cache,
            session=session,
        )

    def _headers(self):
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    # -----------------------------------------------------
    # Public API
    # -----------------------------------------------------
    def search(self, filters, num_records=None) -> ProviderResult:
        query = build_datafiniti_query(filters)
        return self.query(query, num_records or filters.limit or self.page_size)

    def get_details(self, external_id=None, address=None, city=None, state=None, zip_code=None) -> ProviderResult:
        if external_id:
            query = f"id:{external_id}"
        elif address:
            query = build_address_query(address, city, state, zip_code)
        else:
            return ProviderResult.failure(self.name, "external_id_or_address_required", http_status=400)
        return self.query(query, 1)

    def fetch_listings(self, limit=50) -> ProviderResult:
        """Bulk pull used by synchronization; bypasses the cache."""
        if not self.is_configured():
            return ProviderResult.not_configured(self.name)
        return self._search(DEFAULT_QUERY, limit)

    def query(self, query: str, num_records: int) -> ProviderResult:
        if not self.is_configured():
            return ProviderResult.not_configured(self.name)
        return self._cached("search", f"{query}|{num_records}", lambda: self._search(query, num_records))

    # -----------------------------------------------------
    # Internals
    # -----------------------------------------------------
    def _search(self, query: str, num_records: int) -> ProviderResult:
        body = {
            "query": query,
            "format": "JSON",
            "num_records": int(num_records),
            "download": False,
            "view": "property_preview",
        }
        resp = self._post(SEARCH_PATH, payload=body)
        if resp["status"] != "ok":
            return self._failure(resp)

        data = resp["data"]
        records = data.get("records") if isinstance(data, dict) else None
        if not isinstance(records, list):
            # {"num_found": 0} and similar shapes mean nothing matched
            records = []

        logger.debug("datafiniti query %r -> %d records", query, len(records))
        return ProviderResult.success(
            self.name,
            [ProviderProperty(self.name, r) for r in records if isinstance(r, dict)],
            http_status=resp["http_status"],
        )
