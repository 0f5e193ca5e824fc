# CompsMVP/services/integration_service.py
import logging
from datetime import datetime

from CompsMVP.models.property import identity_of
from CompsMVP.services.normalizer import NormalizationError, normalize, normalize_many
from CompsMVP.services.property_filters import PropertyFilters
from CompsMVP.services.storage import StorageError

logger = logging.getLogger(__name__)

SUFFICIENT_LOCAL_RESULTS = 20
MLS_NOT_CONFIGURED = "MLS API key not configured. Synchronization skipped."


class IntegrationService:
    """
    Local store + listing providers behind one search/detail/market API.

    Providers are tried one at a time in list order. Local rows always
    win a merge: a provider record whose (address, city, state, zipCode)
    or externalId is already present is dropped.
    """

    def __init__(self, storage, providers, market_data, mls_client=None,
                 sufficient=SUFFICIENT_LOCAL_RESULTS, persist_provider_results=False,
                 sync_limit=50, now_fn=datetime.utcnow):
        self.storage = storage
        self.providers = list(providers)
        self.market_data = market_data
        self.mls_client = mls_client
        self.sufficient = sufficient
        self.persist_provider_results = persist_provider_results
        self.sync_limit = sync_limit
        self.now_fn = now_fn
        self.last_sync = None

    def configured_providers(self):
        return [p for p in self.providers if p.is_configured()]

    # =====================================================
    # 🔍 SEARCH
    # =====================================================
    def search_properties(self, filters) -> list:
        if not isinstance(filters, PropertyFilters):
            filters = PropertyFilters.from_dict(filters)

        local = [p.to_dict() for p in self.storage.get_properties_by_filters(filters)]

        if len(local) >= self.sufficient and not self.configured_providers():
            return local

        provider_name, remote = self._search_providers(filters)
        if not remote:
            return local

        merged = self.merge(local, remote)
        added = len(merged) - len(local)
        logger.info("search %s: %d local + %d from %s (%d duplicates dropped)",
                    filters.cache_key(), len(local), added, provider_name, len(remote) - added)

        if self.persist_provider_results and added:
            merged = local + self._persist(merged[len(local):])
        return merged

    def _search_providers(self, filters):
        """First provider that answers wins, even with zero rows."""
        for provider in self.providers:
            if not provider.is_configured():
                logger.debug("%s not configured, skipping", provider.name)
                continue
            try:
                result = provider.search(filters)
            except Exception:
                logger.exception("%s search raised; trying next provider", provider.name)
                continue

            if result.ok:
                return provider.name, normalize_many(result.records)
            logger.warning("%s search failed (%s, http %s); trying next provider",
                           provider.name, result.error, result.http_status)
        return None, []

    @staticmethod
    def merge(local: list, remote: list) -> list:
        seen = {identity_of(p) for p in local}
        seen_external = {p["externalId"] for p in local if p.get("externalId")}

        merged = list(local)
        for rec in remote:
            key = identity_of(rec)
            external_id = rec.get("externalId")
            if key in seen or (external_id and external_id in seen_external):
                continue
            seen.add(key)
            if external_id:
                seen_external.add(external_id)
            merged.append({"id": None, **rec})
        return merged

    def _persist(self, records):
        out = []
        for rec in records:
            try:
                row, _created = self.storage.upsert_property(rec)
                out.append(row.to_dict())
            except (StorageError, ValueError) as e:
                logger.warning("Could not store %s record %s: %s", rec.get("source"), identity_of(rec), e)
                out.append(rec)
        return out

    # =====================================================
    # 🏠 DETAILS
    # =====================================================
    def get_property_details(self, property_id):
        row = self.storage.get_property(property_id)
        if row is None:
            return None
        if row.is_complete:
            return row.to_dict()

        enriched = self._fetch_details(row)
        if enriched is None:
            return row.to_dict()

        try:
            row = self.storage.fill_missing(row, enriched)
        except StorageError as e:
            logger.warning("Enrichment for property %s not saved: %s", property_id, e)
            row = self.storage.get_property(property_id)
        return row.to_dict() if row else None

    def _fetch_details(self, row):
        for provider in self.providers:
            if not provider.is_configured():
                continue

            # an externalId only means something to the provider that issued it
            external_id = row.external_id if row.source == provider.name else None
            try:
                result = provider.get_details(
                    external_id=external_id,
                    address=row.address,
                    city=row.city,
                    state=row.state,
                    zip_code=row.zip_code,
                )
            except Exception:
                logger.exception("%s details raised for property %s", provider.name, row.id)
                continue

            if not result.ok:
                logger.warning("%s details failed for property %s: %s", provider.name, row.id, result.error)
                continue
            if not result.records:
                continue

            try:
                return normalize(result.first)
            except NormalizationError as e:
                logger.warning("%s details for property %s unusable: %s", provider.name, row.id, e)
        return None

    # =====================================================
    # 📈 MARKET DATA
    # =====================================================
    def get_market_data(self, city, state, zip_code=None) -> list:
        return self.market_data.get_market_data(city, state, zip_code)

    # =====================================================
    # 🔄 MLS SYNC
    # =====================================================
    def synchronize_mls_data(self, limit=None) -> dict:
        mls = self.mls_client
        if mls is None or not mls.is_configured():
            logger.warning(MLS_NOT_CONFIGURED)
            return {"status": "warning", "message": MLS_NOT_CONFIGURED, "count": 0}

        limit = int(limit or self.sync_limit)
        mls.clear_cache()
        result = mls.fetch_listings(limit)
        if not result.ok:
            logger.error("MLS sync fetch failed: %s (http %s)", result.error, result.http_status)
            return {
                "status": "error",
                "message": f"Failed to fetch MLS listings: {result.error}",
                "count": 0,
                "totalProcessed": 0,
                "successful": 0,
                "failed": 0,
                "errors": [result.error],
            }

        successful = 0
        errors = []
        for record in result.records:
            try:
                self.storage.upsert_property(normalize(record))
                successful += 1
            except (NormalizationError, StorageError, ValueError) as e:
                errors.append({"externalId": record.payload.get("id"), "error": str(e)})

        total = len(result.records)
        failed = len(errors)
        self.last_sync = self.now_fn()

        if failed == 0:
            status = "success"
        elif successful:
            status = "partial_success"
        else:
            status = "error"

        logger.info("MLS sync: %d/%d stored, %d failed", successful, total, failed)
        return {
            "status": status,
            "message": f"Synchronized {successful} of {total} MLS listings",
            "count": successful,
            "totalProcessed": total,
            "successful": successful,
            "failed": failed,
            "errors": errors,
        }

    def mls_status(self) -> dict:
        if self.mls_client is None or not self.mls_client.is_configured():
            return {"status": "inactive", "message": "MLS API key not configured"}
        return {
            "status": "active",
            "lastSync": self.last_sync.isoformat() if self.last_sync else None,
            "propertyCount": self.storage.count_external_properties(),
        }
