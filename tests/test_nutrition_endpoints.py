"""Tests for nutrition endpoints."""

from fastapi.testclient import TestClient

from food_recognition.api.app import create_app
from food_recognition.containers import AppContainer
from food_recognition.services.rate_limit import RateLimiter, RateLimitPolicy
from tests.conftest import FakeModelClient, bearer

REQUEST = {
    "ingredients": ["rice", "tomato"],
    "foodName": "Jollof Rice",
    "regionalOrigin": "West",
    "portion": {"type": "standard", "value": 1},
}


def _client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def test_nutrition_is_cached(
    container: AppContainer, model_client: FakeModelClient
) -> None:
    client = _client(container)

    first = client.post("/api/v1/nutrition", json=REQUEST)
    second = client.post("/api/v1/nutrition", json=REQUEST)

    assert first.status_code == 200
    assert first.headers["X-Cache"] == "MISS"
    assert second.headers["X-Cache"] == "HIT"
    assert first.content == second.content
    data = first.json()["data"]
    assert data["calories"] == 450
    assert data["nutrients"]["protein"] == 9.5
    assert len(model_client.calls) == 1


def test_empty_ingredients_and_negative_portion_are_rejected(
    container: AppContainer, model_client: FakeModelClient
) -> None:
    client = _client(container)

    empty = client.post("/api/v1/nutrition", json={**REQUEST, "ingredients": []})
    negative = client.post(
        "/api/v1/nutrition",
        json={**REQUEST, "portion": {"type": "standard", "value": -1}},
    )

    assert empty.status_code == negative.status_code == 400
    assert empty.json()["message"] == "Ingredients must be a non-empty array"
    assert negative.json()["message"] == "Portion must have a positive numeric value"
    assert model_client.calls == []


def test_model_failure_maps_to_nutrition_error(
    container: AppContainer, model_client: FakeModelClient
) -> None:
    model_client.error = RuntimeError("timeout")

    response = _client(container).post("/api/v1/nutrition", json=REQUEST)

    assert response.status_code == 400
    assert response.json()["code"] == "NUTRITION_CALCULATION_FAILED"


def test_api_limiter_returns_429(container: AppContainer) -> None:
    strategy = container.rate_limiters["api"].strategy
    container.rate_limiters["api"] = RateLimiter(
        RateLimitPolicy("api", "rl_api", points=2, duration_seconds=60), strategy
    )
    client = _client(container)

    responses = [client.post("/api/v1/nutrition", json=REQUEST) for _ in range(3)]

    assert [r.status_code for r in responses] == [200, 200, 429]
    assert 1 <= int(responses[-1].headers["Retry-After"]) <= 60


def test_log_and_delete_meal(container: AppContainer) -> None:
    client = _client(container)
    headers = bearer(container.token_service, 1)
    food = client.post(
        "/api/v1/foods/confirm",
        json={"name": "Fufu", "regionalOrigin": "Central", "ingredients": ["cassava"]},
        headers=headers,
    ).json()["data"]

    logged = client.post(
        "/api/v1/nutrition/log",
        json={"foodId": food["id"], "consumedAt": "2026-03-01T12:00:00Z", "notes": "lunch"},
        headers=headers,
    )
    entry_id = logged.json()["data"]["id"]
    deleted = client.delete(f"/api/v1/nutrition/log/{entry_id}", headers=headers)
    again = client.delete(f"/api/v1/nutrition/log/{entry_id}", headers=headers)

    assert logged.status_code == 201
    assert logged.json()["data"]["consumedAt"] == "2026-03-01T12:00:00+00:00"
    assert deleted.status_code == 200
    assert again.status_code == 404


def test_log_meal_for_unknown_food(container: AppContainer) -> None:
    response = _client(container).post(
        "/api/v1/nutrition/log",
        json={"foodId": 999},
        headers=bearer(container.token_service, 1),
    )

    assert response.status_code == 404


def test_non_finite_portion_is_rejected_before_the_model(
    container: AppContainer, model_client: FakeModelClient
) -> None:
    client = _client(container)
    body = (
        '{"ingredients": ["rice"], "foodName": "Jollof Rice", '
        '"regionalOrigin": "West", "portion": {"type": "standard", "value": Infinity}}'
    )

    first = client.post(
        "/api/v1/nutrition", content=body, headers={"Content-Type": "application/json"}
    )
    second = client.post(
        "/api/v1/nutrition", content=body, headers={"Content-Type": "application/json"}
    )

    assert first.status_code == second.status_code == 400
    assert first.json()["message"] == "Portion must have a positive numeric value"
    assert model_client.calls == []
