import os
import socket
import sys
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]

# Prefer repo sources over any installed package.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from CompsMVP.app import create_app  # noqa: E402
from CompsMVP.config import TestConfig  # noqa: E402
from CompsMVP.extensions import db  # noqa: E402


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    if os.getenv("LIVE") == "1":
        return

    real_connect = socket.socket.connect

    def guarded_connect(sock, address):
        host = address[0] if isinstance(address, tuple) else address
        if host not in ("127.0.0.1", "localhost"):
            raise RuntimeError("Network access blocked in tests")
        return real_connect(sock, address)

    monkeypatch.setattr(socket.socket, "connect", guarded_connect)


# ---------------------------------------------------------
# Fake HTTP
# ---------------------------------------------------------
class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """
    Stand-in for requests.Session. Queue FakeResponse objects (or
    exceptions to raise) with add(); every call is recorded in .calls.
    When the queue runs dry the last item is reused.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def add(self, response):
        self.responses.append(response)
        return self

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.calls.append({
            "method": method,
            "url": url,
            "headers": headers or {},
            "params": params,
            "json": json,
            "timeout": timeout,
        })
        if not self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


# ---------------------------------------------------------
# Provider payloads
# ---------------------------------------------------------
def datafiniti_record(**overrides):
    rec = {
        "id": "DF-99",
        "dateAdded": "2024-01-05T00:00:00Z",
        "address": "123 Main St",
        "city": "Austin",
        "province": "TX",
        "postalCode": "78701",
        "neighborhoods": ["Downtown"],
        "mostRecentPriceAmount": 300000,
        "numBedroom": 3,
        "numBathroom": 2.5,
        "floorSizeValue": 1500,
        "lotSizeValue": "0.243618 acs",
        "yearBuilt": 1998,
        "propertyType": "Single Family Dwelling",
        "mostRecentStatus": "For Sale",
        "imageURLs": ["https://img.example.com/1.jpg", "https://img.example.com/2.jpg"],
        "latitude": 30.2672,
        "longitude": -97.7431,
    }
    rec.update(overrides)
    return rec


def attom_record(**overrides):
    rec = {
        "identifier": {"attomId": 184713191},
        "address": {
            "line1": "456 Oak Ave",
            "locality": "Austin",
            "countrySubd": "TX",
            "postal1": "78702",
        },
        "location": {"latitude": "30.2601", "longitude": "-97.7200"},
        "summary": {"proptype": "SFR", "yearbuilt": 2001},
        "building": {
            "rooms": {"beds": 4, "bathstotal": 3},
            "size": {"universalsize": 2000},
        },
        "lot": {"lotsize1": 0.2},
        "sale": {"amount": {"saleamt": 500000}},
    }
    rec.update(overrides)
    return rec


# ---------------------------------------------------------
# App fixtures
# ---------------------------------------------------------
@pytest.fixture
def make_app():
    contexts = []

    def _make(http_session=None, **overrides):
        config = type("OverrideConfig", (TestConfig,), overrides)
        app = create_app(config, http_session=http_session)
        ctx = app.app_context()
        ctx.push()
        db.create_all()
        contexts.append(ctx)
        return app

    yield _make

    while contexts:
        ctx = contexts.pop()
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    from CompsMVP.services.wiring import get_storage
    return get_storage()
