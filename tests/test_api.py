from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from delivery_ledger.db.session import Database
from delivery_ledger.main import create_app

ORDER_PAYLOAD = {
    "client_name": "Jan Kowalski",
    "article_name": "Oak table",
    "phone": "+48 600 100 200",
    "city": "Krakow",
    "address": "Main Street 1",
    "delivery_company": "Acme",
    "delivery_date": "2026-11-02",
    "description": "Call before delivery",
}


@pytest.fixture
def client(database: Database) -> Iterator[TestClient]:
    with TestClient(create_app(database=database)) as test_client:
        yield test_client


def test_health_reports_journal_mode(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "journal_mode": "wal"}


def test_order_lifecycle(client: TestClient) -> None:
    created = client.post("/api/v1/orders", json=ORDER_PAYLOAD)
    assert created.status_code == 201
    order_id = created.json()["id"]

    fetched = client.get(f"/api/v1/orders/{order_id}")
    assert fetched.status_code == 200
    body = fetched.json()
    assert body["delivery_company"] == "Acme"
    assert body["delivery_date"] == "2026-11-02"
    assert body["done"] is False

    updated = client.put(f"/api/v1/orders/{order_id}", json={**ORDER_PAYLOAD, "city": "Gdansk"})
    assert updated.status_code == 204
    assert client.put(f"/api/v1/orders/{order_id}/done", json={"done": True}).status_code == 204

    listed = client.get("/api/v1/orders").json()
    assert listed == [{"id": order_id, "article_name": "Oak table", "done": True}]
    assert client.get(f"/api/v1/orders/{order_id}").json()["city"] == "Gdansk"

    assert client.delete(f"/api/v1/orders/{order_id}").status_code == 204
    assert client.get(f"/api/v1/orders/{order_id}").status_code == 404


def test_missing_order_is_404(client: TestClient) -> None:
    response = client.put("/api/v1/orders/999/done", json={"done": True})

    assert response.status_code == 404
    assert "999" in response.json()["detail"]


def test_blank_company_is_422(client: TestClient) -> None:
    response = client.post("/api/v1/orders", json={**ORDER_PAYLOAD, "delivery_company": "   "})

    assert response.status_code == 422
    assert client.get("/api/v1/orders").json() == []


def test_company_directory(client: TestClient) -> None:
    acme = client.post("/api/v1/companies", json={"name": "Acme"}).json()["id"]
    beta = client.post("/api/v1/companies", json={"name": "Beta"}).json()["id"]
    client.post("/api/v1/orders", json={**ORDER_PAYLOAD, "delivery_company": "ACME"})

    assert client.put(f"/api/v1/companies/{acme}/name", json={"name": "beta"}).status_code == 409
    assert client.put(f"/api/v1/companies/{acme}/name", json={"name": "Acme Logistics"}).status_code == 204
    assert client.put(f"/api/v1/companies/{beta}/active", json={"active": False}).status_code == 204
    assert client.put("/api/v1/companies/999/active", json={"active": False}).status_code == 404

    companies = client.get("/api/v1/companies").json()
    assert [(item["name"], item["active"]) for item in companies] == [("Acme Logistics", True), ("Beta", False)]
    assert client.get("/api/v1/orders/1").json()["delivery_company"] == "Acme Logistics"


def test_opened_orders_and_articles(client: TestClient) -> None:
    first = client.post("/api/v1/orders", json=ORDER_PAYLOAD).json()["id"]
    second = client.post("/api/v1/orders", json={**ORDER_PAYLOAD, "article_name": "Oak chair"}).json()["id"]

    client.post(f"/api/v1/opened-orders/{first}")
    client.post(f"/api/v1/opened-orders/{second}")
    client.delete(f"/api/v1/opened-orders/{first}")
    assert client.post("/api/v1/opened-orders/999").status_code == 404

    assert client.get("/api/v1/opened-orders").json() == [
        {"order_id": second, "article_name": "Oak chair", "position": 1}
    ]
    assert sorted(client.get("/api/v1/articles/search", params={"query": "oak"}).json()) == ["Oak chair", "Oak table"]
    description = client.get("/api/v1/articles/latest-description", params={"name": "Oak chair"}).json()
    assert description == {"description": "Call before delivery"}


def test_dashboard_endpoint(client: TestClient) -> None:
    client.post("/api/v1/orders", json=ORDER_PAYLOAD)

    response = client.get("/api/v1/dashboard")

    assert response.status_code == 200
    payload = response.json()
    assert payload["kpis"]["total_orders"] == 1
    assert [bucket["bucket"] for bucket in payload["backlog_age_buckets"]] == ["0-2", "3-6", "7-13", "14-29", "30+"]


def test_settings_and_theme(client: TestClient) -> None:
    assert client.get("/api/v1/settings/language").json() == {"key": "language", "value": None}
    assert client.put("/api/v1/settings/language", json={"value": "pl"}).status_code == 204
    assert client.get("/api/v1/settings/language").json() == {"key": "language", "value": "pl"}

    assert client.get("/api/v1/theme").json() is None
    assert client.put("/api/v1/theme", json={"base": "dark", "colors": {"accent": "#ff0000"}}).status_code == 204
    assert client.get("/api/v1/theme").json()["base"] == "dark"
    assert client.get("/api/v1/theme/confetti").json() == ["#ffffff"]
