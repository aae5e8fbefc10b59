"""
Tests for the Offers service HTTP surface.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from service_offers.app.main import OfferService, create_app
from shared.config import get_config


SEGMENTS = {"1": "p1", "2": "p2"}


def segment_handler(request: httpx.Request) -> httpx.Response:
    segment = SEGMENTS.get(request.url.params.get("user_id"))
    if segment is None:
        return httpx.Response(404, json={"error": "user not found"})
    return httpx.Response(200, json={"segment": segment})


def make_client(**overrides) -> TestClient:
    config = get_config(**overrides)
    app = create_app(config=config, segment_transport=httpx.MockTransport(segment_handler))
    return TestClient(app)


ADMIN = {"user_role": "admin"}
CUSTOMER = {"user_role": "customer"}
FLAT_OFFER = {"restaurantId": 1, "offerType": "FLATX", "discount": 10, "segments": ["p1"]}


@pytest.fixture
def client():
    """Create test client."""
    return make_client()


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "offers"
    assert "rate_limiting" in data["capabilities"]


def test_health_check(client):
    client.post("/api/v1/offer", json=FLAT_OFFER, headers=ADMIN)

    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["dependencies"]["segment_service"] == "closed"
    assert data["dependencies"]["store"] == {"restaurants": 1, "offers": 1}


def test_metrics_endpoint(client):
    client.post("/api/v1/offer", json=FLAT_OFFER, headers=ADMIN)

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "offers_added_total" in response.text


def test_add_offer_camel_case(client):
    response = client.post("/api/v1/offer", json=FLAT_OFFER, headers=ADMIN)

    assert response.status_code == 200
    assert response.json() == {"response_msg": "success"}


def test_add_offer_snake_case(client):
    payload = {"restaurant_id": 1, "offer_type": "FLATX%", "discount": 10, "segments": ["p1"]}

    response = client.post("/api/v1/offer", json=payload, headers=ADMIN)

    assert response.status_code == 200


def test_add_offer_validation_error(client):
    payload = dict(FLAT_OFFER, segments=[])

    response = client.post("/api/v1/offer", json=payload, headers=ADMIN)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert "segments" in body["details"]
    assert body["request_id"] == response.headers["X-Request-ID"]


def test_add_offer_negative_discount(client):
    response = client.post("/api/v1/offer", json=dict(FLAT_OFFER, discount=-1), headers=ADMIN)

    assert response.status_code == 400


@pytest.mark.parametrize("headers, status", [
    ({"user_role": "guest"}, 403),
    ({"user_role": "customer"}, 403),
    ({"user_role": "unauthorized"}, 401),
    ({}, 401),
])
def test_add_offer_access_control(client, headers, status):
    response = client.post("/api/v1/offer", json=FLAT_OFFER, headers=headers)

    assert response.status_code == status
    service = client.app.state.offer_service
    assert service.store.get_offers(1) == ()


def test_apply_offer(client):
    client.post("/api/v1/offer", json=FLAT_OFFER, headers=ADMIN)

    response = client.post(
        "/api/v1/cart/apply_offer",
        json={"cart_value": 200, "user_id": 1, "restaurant_id": 1},
        headers=CUSTOMER
    )

    assert response.status_code == 200
    assert response.json() == {"cart_value": 190}
    assert response.headers["X-RateLimit-Limit"] == "10"


def test_apply_offer_guest_forbidden(client):
    response = client.post(
        "/api/v1/cart/apply_offer",
        json={"cart_value": 200, "user_id": 1, "restaurant_id": 1},
        headers={"user_role": "guest"}
    )

    assert response.status_code == 403
    assert response.json()["code"] == "AUTHORIZATION_DENIED"


def test_apply_offer_unknown_user(client):
    client.post("/api/v1/offer", json=FLAT_OFFER, headers=ADMIN)

    response = client.post(
        "/api/v1/cart/apply_offer",
        json={"cart_value": 200, "user_id": 42, "restaurant_id": 1},
        headers=CUSTOMER
    )

    assert response.json() == {"cart_value": 200}


def test_apply_offer_rate_limited():
    client = make_client(rate_limit_capacity=3, rate_limit_refill_per_second=0.01)
    payload = {"cart_value": 200, "user_id": 1, "restaurant_id": 1}

    codes = [
        client.post("/api/v1/cart/apply_offer", json=payload, headers=CUSTOMER).status_code
        for _ in range(5)
    ]

    assert codes == [200, 200, 200, 429, 429]
    response = client.post("/api/v1/cart/apply_offer", json=payload, headers=CUSTOMER)
    assert int(response.headers["Retry-After"]) >= 1
    assert response.json()["code"] == "RATE_LIMITED"


def test_rate_limit_is_per_client():
    client = make_client(rate_limit_capacity=1, rate_limit_refill_per_second=0.01)
    payload = {"cart_value": 200, "user_id": 1, "restaurant_id": 1}

    first = client.post("/api/v1/cart/apply_offer", json=payload, headers=dict(CUSTOMER, **{"X-Client-ID": "a"}))
    second = client.post("/api/v1/cart/apply_offer", json=payload, headers=dict(CUSTOMER, **{"X-Client-ID": "b"}))

    assert first.status_code == 200
    assert second.status_code == 200


def test_default_role_allows_headerless_callers():
    client = make_client(default_role="customer")
    client.post("/api/v1/offer", json=FLAT_OFFER, headers=ADMIN)

    response = client.post("/api/v1/cart/apply_offer", json={"cart_value": 200, "user_id": 1, "restaurant_id": 1})

    assert response.status_code == 200
    assert response.json() == {"cart_value": 190}


def test_get_user_offers(client):
    client.post("/api/v1/offer", json=FLAT_OFFER, headers=ADMIN)
    client.post("/api/v1/offer", json=dict(FLAT_OFFER, restaurantId=2, segments=["p2"]), headers=ADMIN)

    response = client.get("/api/v1/offer/1", headers={"user_id": "1"})

    assert response.status_code == 200
    data = response.json()
    assert data["segment"] == "p1"
    assert data["offers"] == [{"restaurant_id": 1, "offer_type": "FLATX", "discount": 10, "segments": ["p1"]}]


def test_get_other_user_offers_forbidden(client):
    response = client.get("/api/v1/offer/2", headers={"user_id": "1"})

    assert response.status_code == 403


def test_service_initialization():
    service = OfferService(config=get_config())

    assert service.service_name == "offers"
    assert service.port == 9001
    assert service.engine.store is service.store
    assert service.rate_limiter.capacity == 10
