# CompsMVP/services/market_data_service.py
import logging
from datetime import datetime, timedelta

from CompsMVP.services.normalizer import NormalizationError, normalize_market_snapshot
from CompsMVP.services.storage import StorageError

logger = logging.getLogger(__name__)

STALE_DAYS = 30
MAX_POINTS = 12  # a full year of monthly snapshots


class MarketDataCache:
    """
    Per-location monthly market snapshots with a freshness rule:
    local data wins when any point is newer than the staleness window
    or when a full year of points is already stored. Otherwise ATTOM is
    asked for a new snapshot; if that fails, whatever is stored is returned.
    """

    def __init__(self, storage, client, stale_days=STALE_DAYS, max_points=MAX_POINTS, now_fn=datetime.utcnow):
        self.storage = storage
        self.client = client
        self.stale_days = stale_days
        self.max_points = max_points
        self.now_fn = now_fn

    def get_market_data(self, city, state, zip_code=None) -> list:
        rows = self.storage.get_market_data_by_location(city, state, zip_code)
        if self.is_fresh(rows):
            return [r.to_dict() for r in rows]

        ok, error = self.refresh(city, state, zip_code)
        if not ok:
            logger.info("Market data refresh for %s, %s %s skipped: %s; serving %d local points",
                        city, state, zip_code or "", error, len(rows))
            return [r.to_dict() for r in rows]

        return [r.to_dict() for r in self.storage.get_market_data_by_location(city, state, zip_code)]

    def is_fresh(self, rows) -> bool:
        if len(rows) >= self.max_points:
            return True
        cutoff = self.now_fn() - timedelta(days=self.stale_days)
        return any(r.created_at and r.created_at >= cutoff for r in rows)

    def refresh(self, city, state, zip_code=None):
        """Fetch + store one snapshot for the current period. Returns (ok, error)."""
        if not self.client.is_configured():
            return False, "attom_not_configured"

        result = self.client.fetch_market_statistics(city, state, zip_code)
        if not result.ok:
            return False, result.error
        if not result.records:
            return False, "no_market_data"

        try:
            point = normalize_market_snapshot(
                result.records[0], city, state, zip_code, today=self.now_fn().date()
            )
            self.storage.upsert_market_data(point)
        except (NormalizationError, StorageError) as e:
            logger.warning("Market data for %s, %s %s not stored: %s", city, state, zip_code or "", e)
            return False, str(e)
        return True, None

    def sync_market_data(self, locations) -> dict:
        """Force a refresh for every location; report per-location outcome."""
        results = []
        errors = []
        for loc in locations or []:
            if not isinstance(loc, dict):
                errors.append({"location": loc, "error": "location_must_be_an_object"})
                continue
            city = loc.get("city")
            state = loc.get("state")
            zip_code = loc.get("zipCode")
            if not city or not state:
                errors.append({"location": loc, "error": "city_and_state_required"})
                continue

            ok, error = self.refresh(city, state, zip_code)
            entry = {"city": city, "state": state, "zipCode": zip_code or ""}
            if ok:
                results.append({**entry, "status": "success"})
            else:
                errors.append({"location": entry, "error": error})

        attempted = len(results) + len(errors)
        summary = {
            "results": results,
            "errors": errors,
            "totalAttempted": attempted,
            "totalSuccess": len(results),
            "totalErrors": len(errors),
            "completionRate": round(len(results) / attempted * 100, 1) if attempted else 0.0,
        }
        logger.info("Market data sync: %d/%d locations refreshed", len(results), attempted)
        return summary
