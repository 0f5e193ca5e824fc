# CompsMVP/services/wiring.py
from flask import current_app

from CompsMVP.services.attom_client import AttomClient
from CompsMVP.services.comps_service import CompsFinder
from CompsMVP.services.integration_service import IntegrationService
from CompsMVP.services.market_data_service import MarketDataCache
from CompsMVP.services.mls_client import MLSClient
from CompsMVP.services.response_cache import ResponseCache
from CompsMVP.services.scheduler_service import SchedulerService
from CompsMVP.services.storage import Storage

EXTENSION_KEY = "compsmvp"


def build_services(app, session=None) -> dict:
    """Create the per-app service graph and hang it on app.extensions."""
    config = app.config
    cache = ResponseCache(
        ttl=int(config.get("PROVIDER_CACHE_TTL", 3600)),
        max_entries=int(config.get("PROVIDER_CACHE_MAX_ENTRIES", 512)),
    )
    storage = Storage()
    mls = MLSClient.from_config(config, cache=cache, session=session)
    attom = AttomClient.from_config(config, cache=cache, session=session)

    market_data = MarketDataCache(
        storage,
        attom,
        stale_days=int(config.get("MARKET_DATA_STALE_DAYS", 30)),
        max_points=int(config.get("MARKET_DATA_MAX_POINTS", 12)),
    )
    integration = IntegrationService(
        storage,
        providers=[mls, attom],
        market_data=market_data,
        mls_client=mls,
        sufficient=int(config.get("SUFFICIENT_LOCAL_RESULTS", 20)),
        persist_provider_results=bool(config.get("PERSIST_PROVIDER_RESULTS", False)),
        sync_limit=int(config.get("MLS_SYNC_LIMIT", 50)),
    )
    scheduler = SchedulerService(
        app,
        integration,
        market_data,
        mls_interval=int(config.get("MLS_SYNC_INTERVAL", 3600)),
        market_interval=int(config.get("MARKET_DATA_SYNC_INTERVAL", 43200)),
        locations=config.get("MARKET_SYNC_LOCATIONS") or [],
        sync_limit=int(config.get("MLS_SYNC_LIMIT", 50)),
    )

    services = {
        "cache": cache,
        "storage": storage,
        "mls": mls,
        "attom": attom,
        "market_data": market_data,
        "integration": integration,
        "comps": CompsFinder(storage),
        "scheduler": scheduler,
    }
    app.extensions[EXTENSION_KEY] = services
    return services


def get_service(name):
    return current_app.extensions[EXTENSION_KEY][name]


def get_integration_service() -> IntegrationService:
    return get_service("integration")


def get_market_data_cache() -> MarketDataCache:
    return get_service("market_data")


def get_storage() -> Storage:
    return get_service("storage")


def get_scheduler() -> SchedulerService:
    return get_service("scheduler")


def get_comps_finder() -> CompsFinder:
    return get_service("comps")
