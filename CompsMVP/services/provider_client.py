# CompsMVP/services/provider_client.py
import logging
from dataclasses import replace

import requests

from CompsMVP.services.provider_types import ProviderResult

logger = logging.getLogger(__name__)


class BaseProviderClient:
    """
    Shared HTTP plumbing for listing providers.

    Subclasses set `name`, build headers, and turn raw JSON into
    ProviderResult. Nothing here raises past the client: HTTP errors,
    timeouts and bad JSON all come back as {"status": "error", ...}.
    """

    name = "provider"

    def __init__(self, api_key=None, base_url=None, timeout=12, cache=None, session=None):
        self.api_key = (api_key or "").strip()
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.cache = cache
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def clear_cache(self):
        if self.cache is not None:
            self.cache.clear()

    # -----------------------------------------------------
    # HTTP
    # -----------------------------------------------------
    def _headers(self) -> dict:
        return {"Accept": "application/json"}

    def _send(self, method: str, path: str, params=None, payload=None) -> dict:
        """
        Returns dict:
          {status: ok|error, data|error, http_status, details?}
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            r = self.session.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.warning("%s %s %s timed out after %ss", self.name, method, path, self.timeout)
            return {"status": "error", "error": f"{self.name}_timeout", "http_status": 0}
        except requests.RequestException as e:
            logger.warning("%s %s %s failed: %s", self.name, method, path, e)
            return {"status": "error", "error": str(e) or f"{self.name}_network_error", "http_status": 0}

        try:
            data = r.json()
        except ValueError:
            data = None

        if r.status_code >= 400:
            logger.warning("%s %s %s -> HTTP %s", self.name, method, path, r.status_code)
            return {
                "status": "error",
                "error": f"{self.name}_http_{r.status_code}",
                "http_status": r.status_code,
                "details": (r.text or "")[:500],
                "data": data,
            }

        if data is None:
            return {
                "status": "error",
                "error": f"{self.name}_invalid_json",
                "http_status": r.status_code,
                "details": (r.text or "")[:500],
            }

        return {"status": "ok", "data": data, "http_status": r.status_code}

    def _get(self, path, params=None) -> dict:
        return self._send("GET", path, params=params)

    def _post(self, path, payload=None) -> dict:
        return self._send("POST", path, payload=payload)

    # -----------------------------------------------------
    # Results
    # -----------------------------------------------------
    def _failure(self, resp: dict) -> ProviderResult:
        return ProviderResult.failure(
            self.name,
            resp.get("error") or f"{self.name}_error",
            http_status=resp.get("http_status", 0),
            details=resp.get("details"),
        )

    def _cache_key(self, operation: str, key: str) -> str:
        return f"{self.name}:{operation}:{key}"

    def _cached(self, operation: str, key: str, fetch) -> ProviderResult:
        """Serve identical queries from the shared cache; only successes are stored."""
        ck = self._cache_key(operation, key)
        if self.cache is not None:
            hit = self.cache.get(ck)
            if hit is not None:
                return replace(hit, cached=True)

        result = fetch()
        if result.ok and self.cache is not None:
            self.cache.set(ck, result)
        return result
