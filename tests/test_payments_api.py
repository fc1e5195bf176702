import logging

import pytest
from fastapi.testclient import TestClient

from mollie_connector.main import app

HEADERS = {"X-API-KEY": "service-test-key"}


@pytest.fixture
def client():
    # MOLLIE_MOCK is set in conftest, so the app talks to its own MockEngine
    with TestClient(app) as client:
        yield client


def create(client, amount=10.0, description="Order 1", **extra):
    response = client.post("/payments/create", json={"amount": amount, "description": description, **extra},
                           headers=HEADERS)
    assert response.status_code == 200, response.text
    return response.json()


def test_requires_service_api_key(client):
    response = client.get("/payments/count")
    assert response.status_code == 401

    response = client.get("/payments/count", headers={"X-API-KEY": "wrong"})
    assert response.status_code == 401


def test_create_and_status(client):
    created = create(client, metadata={"id": "order-1"})

    assert created["mollie_id"].startswith("tr_")
    assert created["status"] == "open"
    assert created["checkout_url"].startswith("https://www.mollie.com/payscreen/pay/")

    response = client.get(f"/payments/status/{created['mollie_id']}", headers=HEADERS)
    body = response.json()

    assert response.status_code == 200
    assert body["mollie_id"] == created["mollie_id"]
    assert body["amount"] == 10.0
    assert body["expiry_minutes"] == 15
    assert body["raw"]["links"]["redirectUrl"] == "http://localhost/orders/order-1"


def test_unknown_payment_status_is_404(client):
    response = client.get("/payments/status/tr_missing", headers=HEADERS)
    assert response.status_code == 404


def test_list_and_count(client):
    for i in range(3):
        create(client, amount=i + 1.0, description=f"Order {i}")

    listed = client.get("/payments", params={"offset": 0, "limit": 1}, headers=HEADERS).json()
    counted = client.get("/payments/count", headers=HEADERS).json()

    # the mock engine ignores pagination
    assert listed["count"] == 3
    assert sorted(p["amount"] for p in listed["data"]) == [1.0, 2.0, 3.0]
    assert counted == {"count": 3}


def test_link_with_invalid_options(client):
    response = client.post("/payments/link", json={"amount": 10, "description": ""}, headers=HEADERS)
    assert response.status_code == 422


def test_webhook_requires_id(client):
    response = client.post("/payments/webhook", json={})
    assert response.status_code == 400


def test_webhook_refreshes_payment(client, caplog):
    created = create(client)
    caplog.set_level(logging.INFO, logger="mollie_connector.routers.payments")

    response = client.post("/payments/webhook", json={"id": created["mollie_id"]})

    assert response.status_code == 200
    assert response.json() == {"status": "accepted"}
    assert f"Payment {created['mollie_id']} is open" in caplog.text


@pytest.mark.parametrize("amount", ["NaN", "Infinity"])
def test_link_with_non_finite_amount(client, amount):
    response = client.post("/payments/link", content='{"amount": %s, "description": "x"}' % amount,
                           headers={**HEADERS, "Content-Type": "application/json"})
    assert response.status_code == 422
