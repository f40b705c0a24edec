"""Tests for the local Flask app."""

import pytest

import main


@pytest.fixture
def client():
    main.app.config["TESTING"] = True
    with main.app.test_client() as client:
        yield client


PAYLOAD = {
    "month": 2,
    "year": 2025,
    "plans": [{"id": "plan-std", "name": "Standard", "tiers": [{"min_threshold": 0, "commission_rate": 10}]}],
    "assignments": [{"producer_id": "p1", "comp_plan_id": "plan-std"}],
    "producers": [{"producer_id": "p1", "name": "Alex Morgan", "issued_premium": 25000}],
}


class TestFlaskApp:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "healthy"}

    def test_api_info(self, client):
        response = client.get("/api")

        assert response.status_code == 200
        assert response.get_json()["message"] == "Agency Commission Payout API"

    def test_calculate_payouts(self, client):
        response = client.post("/calculate_payouts", json=PAYLOAD)

        assert response.status_code == 200
        body = response.get_json()
        assert body["payouts"][0]["total_payout"] == 2500.0
        assert body["warnings"] == []

    def test_cors_header_present(self, client):
        response = client.get("/health", headers={"Origin": "http://dashboard.local"})

        assert response.headers.get("Access-Control-Allow-Origin") == "*"

    def test_missing_body(self, client):
        response = client.post("/calculate_payouts", data="", content_type="application/json")

        assert response.status_code == 400
        assert response.get_json()["status"] == "failed"

    def test_array_body(self, client):
        response = client.post("/calculate_payouts", json=[PAYLOAD])

        assert response.status_code == 400
        assert response.get_json()["status"] == "failed"

    def test_empty_producer_list_warns(self, client):
        response = client.post("/calculate_payouts", json=dict(PAYLOAD, producers=[]))

        assert response.status_code == 200
        assert response.get_json() == {
            "payouts": [],
            "warnings": ["No sub-producer data available for this statement"],
        }

    def test_validation_error(self, client):
        response = client.post("/calculate_payouts", json=dict(PAYLOAD, month=0))

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"

    def test_unexpected_error(self, client, monkeypatch):
        def explode(data):
            raise RuntimeError("boom")

        monkeypatch.setattr(main.calculator, "process_from_dict", explode)
        response = client.post("/calculate_payouts", json=PAYLOAD)

        assert response.status_code == 500
        assert "boom" not in response.get_data(as_text=True)
