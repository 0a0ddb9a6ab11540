"""REST adapter: envelopes, rate limiting, report endpoints."""
import pytest
from fastapi.testclient import TestClient

from adapters.rest.app import create_app
from adapters.rest.dependencies import RATE_LIMIT_DETAIL


@pytest.fixture
def client(make_factory):
    with TestClient(create_app(make_factory())) as c:
        yield c


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "version": "0.1.0"}


def test_assistant_envelope(client):
    resp = client.post("/assistant", json={"text": "inventory summary", "clientId": "web-1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "direct"
    assert body["executed"] is False
    assert body["data"]["totalSkus"] == 8
    assert "action" not in body
    assert "awaiting" not in body


def test_mutation_returns_action(client):
    body = client.post("/assistant", json={"text": "add 5 to SKU DRK-MUG-11", "clientId": "web-1"}).json()

    assert body["executed"] is True
    assert body["action"] == {
        "type": "increment_inventory_stock",
        "payload": {"id": "inv-mug", "delta": 5, "sku": "DRK-MUG-11"},
        "endpoint": "/inventory/inv-mug/stock",
        "method": "PATCH",
    }


def test_choice_round_trip_and_session_delete(client):
    first = client.post("/assistant", json={"text": "add 10 black t-shirts", "clientId": "web-2"}).json()
    assert first["awaiting"] == "choice"
    assert first["options"][1] == {"label": "Black T-Shirt L (APP-BTS-L) — stock 3", "send": "2"}

    cleared = client.delete("/assistant/sessions/web-2")
    assert cleared.json() == {"clientId": "web-2", "cleared": True}

    after = client.post("/assistant", json={"text": "2", "clientId": "web-2"}).json()
    assert after["executed"] is False
    assert after["source"] == "offline"


def test_blank_text_is_rejected(client):
    assert client.post("/assistant", json={"text": ""}).status_code == 422


def test_rate_limit_returns_429_with_retry_after(make_factory):
    with TestClient(create_app(make_factory(rate_max_per_window=2))) as client:
        for _ in range(2):
            assert client.post("/assistant", json={"text": "order status"}).status_code == 200

        resp = client.post("/assistant", json={"text": "order status"})

        assert resp.status_code == 429
        assert resp.json()["detail"] == RATE_LIMIT_DETAIL
        assert resp.headers["Retry-After"] == "300"

        # A different caller has its own window
        other = client.post("/assistant", json={"text": "order status"},
                            headers={"X-Forwarded-For": "10.0.0.9, 10.0.0.1"})
        assert other.status_code == 200


def test_packing_alerts(client):
    body = client.get("/inventory/alerts/packing").json()

    assert body["counts"] == {"low": 1, "out": 1, "totalPacking": 3}
    assert body["low"][0]["sku"] == "PKG-MAILER-10X13"
    assert body["out"][0]["id"] == "inv-box"


def test_packing_alerts_rejects_negative_threshold(client):
    assert client.get("/inventory/alerts/packing", params={"threshold": -1}).status_code == 422


def test_usage_report(client):
    body = client.get("/inventory/usage", params={"start": "2023-11-14", "end": "2023-11-14"}).json()
    assert body["totals"]["orders"] == 2
    assert body["timeframe"] == {"start": "2023-11-14", "end": "2023-11-14"}


def test_usage_report_bad_dates(client):
    resp = client.get("/inventory/usage", params={"start": "yesterday", "end": "2023-11-14"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "start and end must be YYYY-MM-DD"
