import httpx
import pytest

from mollie_connector.services.mock import ID_LENGTH, MockEngine
from mollie_connector.services.connector import MollieConnector

ENDPOINT = "https://api.mollie.nl"


@pytest.fixture
def engine():
    return MockEngine(ENDPOINT, "v1")


@pytest.fixture
def client(engine):
    return httpx.AsyncClient(transport=engine.transport)


@pytest.mark.asyncio
async def test_create_then_get_returns_same_body(client):
    created = await client.post(f"{ENDPOINT}/v1/payments", json={"amount": 100, "description": "x"})

    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "open"
    assert body["expiryPeriod"] == "PT15M"
    assert body["amount"] == 100
    assert body["description"] == "x"
    assert body["mode"] == "test"
    assert body["id"].startswith("tr_")
    assert len(body["id"]) == 3 + ID_LENGTH
    assert body["id"][3:].isalnum()

    fetched = await client.get(f"{ENDPOINT}/v1/payments/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == body


@pytest.mark.asyncio
async def test_unknown_payment_is_404_with_empty_body(client):
    response = await client.get(f"{ENDPOINT}/v1/payments/tr_unknown")
    assert response.status_code == 404
    assert response.content == b""


@pytest.mark.asyncio
async def test_collection_reflects_whole_store(client):
    for i in range(3):
        await client.post(f"{ENDPOINT}/v1/payments", json={"amount": i + 1, "description": f"order {i}"})

    response = await client.get(f"{ENDPOINT}/v1/payments", params={"offset": 1, "count": 1})
    body = response.json()

    assert response.status_code == 200
    assert body["totalCount"] == 3
    assert body["count"] == 3
    assert body["offset"] == 0
    assert len(body["data"]) == 3


@pytest.mark.asyncio
async def test_unsupported_method_on_route(client):
    response = await client.delete(f"{ENDPOINT}/v1/payments/tr_abc")
    assert response.status_code == 405


@pytest.mark.asyncio
async def test_redirect_and_response_hooks():
    seen = []
    engine = MockEngine(
        ENDPOINT,
        redirect_url=lambda params: f"https://shop.example/orders/{params['metadata']['order']}",
        on_response=lambda id, status, params: seen.append((id, status)),
    )
    async with httpx.AsyncClient(transport=engine.transport) as client:
        response = await client.post(f"{ENDPOINT}/v1/payments",
                                     json={"amount": 5, "description": "y", "metadata": {"order": 7}})

    body = response.json()
    assert body["links"]["redirectUrl"] == "https://shop.example/orders/7"
    assert seen == [(body["id"][3:], "open")]


@pytest.mark.asyncio
async def test_default_redirect_url_uses_metadata_id(client):
    response = await client.post(f"{ENDPOINT}/v1/payments",
                                 json={"amount": 5, "description": "y", "metadata": {"id": "42"}})
    assert response.json()["links"]["redirectUrl"] == "http://localhost/orders/42"


@pytest.mark.asyncio
async def test_paid_status_has_no_expiry_period():
    engine = MockEngine(ENDPOINT, status="paid")
    async with httpx.AsyncClient(transport=engine.transport) as client:
        response = await client.post(f"{ENDPOINT}/v1/payments", json={"amount": 5, "description": "y"})

    body = response.json()
    assert body["status"] == "paid"
    assert "expiryPeriod" not in body


def test_set_status_paid_drops_expiry_period(engine):
    payment = engine.synthesize("abc", "open", {"amount": 1})
    engine.payments[payment["id"]] = payment

    engine.set_status(payment["id"], "paid")

    assert engine.payments["tr_abc"]["status"] == "paid"
    assert "expiryPeriod" not in engine.payments["tr_abc"]


@pytest.mark.asyncio
async def test_unmatched_urls_pass_through():
    passthrough = httpx.MockTransport(lambda request: httpx.Response(200, text="<URL>https://x</URL>"))
    engine = MockEngine(ENDPOINT, passthrough=passthrough)
    async with httpx.AsyncClient(transport=engine.transport) as client:
        response = await client.get("https://www.mollie.com/xml/ideal")

    assert response.text == "<URL>https://x</URL>"


@pytest.mark.asyncio
async def test_connector_mock_mode_status_hook():
    connector = MollieConnector({"apikey": "test_key", "mock": True},
                                mock_status=lambda params: "paid" if params["amount"] > 50 else "open")
    async with connector:
        cheap = await connector.find("Payment", await connector.create("Payment", {"amount": 10, "description": "a"}))
        pricey = await connector.find("Payment", await connector.create("Payment", {"amount": 60, "description": "b"}))

    assert cheap["status"] == "open"
    assert cheap["expiryPeriod"] == 15
    assert pricey["status"] == "paid"
    assert "expiryPeriod" not in pricey


@pytest.mark.asyncio
async def test_connector_against_mock_store(mock_connector):
    ids = [await mock_connector.create("Payment", {"amount": 100, "description": "x"}) for _ in range(3)]

    assert await mock_connector.count("Payment") == 3
    assert sorted(p["id"] for p in await mock_connector.all("Payment")) == sorted(ids)
    assert await mock_connector.exists("Payment", ids[0]) is True
    assert await mock_connector.exists("Payment", "tr_unknown") is False
    assert await mock_connector.all("Payment", {"where": {"id": "tr_unknown"}}) == []
