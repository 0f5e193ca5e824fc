# CompsMVP/services/provider_types.py
from dataclasses import dataclass, field
from typing import Any, List, Optional

# provider tags
DATAFINITI = "datafiniti"
ATTOM = "attom"

STATUS_OK = "ok"
STATUS_ERROR = "error"
STATUS_NOT_CONFIGURED = "not_configured"


@dataclass(frozen=True)
class ProviderProperty:
    """One raw upstream record, tagged with the provider that produced it."""
    provider: str
    payload: dict


@dataclass
class ProviderResult:
    """
    What a provider client hands back instead of raising:
      status: ok | error | not_configured
    A 200 with "no results" is status=ok with an empty records list.
    """
    provider: str
    status: str = STATUS_OK
    records: List[Any] = field(default_factory=list)
    error: Optional[str] = None
    http_status: int = 0
    details: Optional[str] = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @property
    def first(self):
        return self.records[0] if self.records else None

    @classmethod
    def success(cls, provider, records, http_status=200, cached=False):
        return cls(provider=provider, status=STATUS_OK, records=list(records),
                   http_status=http_status, cached=cached)

    @classmethod
    def failure(cls, provider, error, http_status=0, details=None):
        return cls(provider=provider, status=STATUS_ERROR, error=error,
                   http_status=http_status, details=details)

    @classmethod
    def not_configured(cls, provider):
        return cls(provider=provider, status=STATUS_NOT_CONFIGURED,
                   error=f"{provider}_api_key_missing", http_status=401)

    def to_dict(self):
        return {
            "provider": self.provider,
            "status": self.status,
            "count": len(self.records),
            "error": self.error,
            "http_status": self.http_status,
            "details": self.details,
        }
