"""Tests for AWS Lambda handler."""

import base64
import json

import lambda_handler as handler_module
from lambda_handler import lambda_handler

PAYLOAD = {
    "month": 1,
    "year": 2025,
    "plans": [
        {
            "id": "plan-std",
            "name": "Standard Producer",
            "chargeback_rule": "three_month",
            "tiers": [
                {"min_threshold": 0, "commission_rate": 8},
                {"min_threshold": 100000, "commission_rate": 12},
            ],
        }
    ],
    "assignments": [{"producer_id": "p1", "comp_plan_id": "plan-std"}],
    "producers": [
        {
            "producer_id": "p1",
            "name": "Alex Morgan",
            "issued_premium": 120000,
            "chargeback_insureds": [
                {"insured_name": "Early Cancel", "net_premium": -5000, "days_in_force": 60},
                {"insured_name": "Late Cancel", "net_premium": -3000, "days_in_force": 120},
            ],
        },
        {"producer_id": "p2", "name": "Unassigned", "issued_premium": 1000},
    ],
}


class TestLambdaHandler:
    """Test the Lambda handler routes and responses."""

    def test_health_check(self):
        """GET /health returns healthy status."""
        event = {"httpMethod": "GET", "path": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "healthy"

    def test_api_info(self):
        """GET /api returns API information."""
        event = {"httpMethod": "GET", "path": "/api"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "ok"
        assert body["endpoints"]["calculate_payouts"] == "/calculate_payouts [POST]"

    def test_cors_preflight(self):
        """OPTIONS requests return CORS headers."""
        event = {"httpMethod": "OPTIONS", "path": "/calculate_payouts"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"
        assert "POST" in response["headers"]["Access-Control-Allow-Methods"]

    def test_not_found(self):
        """Unknown paths return 404."""
        event = {"httpMethod": "GET", "path": "/unknown"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 404

    def test_wrong_method_is_not_found(self):
        event = {"httpMethod": "GET", "path": "/calculate_payouts"}

        assert lambda_handler(event, None)["statusCode"] == 404

    def test_calculate_payouts_success(self):
        """POST /calculate_payouts returns payouts and warnings."""
        event = {"httpMethod": "POST", "path": "/calculate_payouts", "body": json.dumps(PAYLOAD)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert len(body["payouts"]) == 1
        assert body["payouts"][0]["base_commission"] == 13800.0
        assert body["warnings"] == ["Unassigned has no active comp plan assignment"]

    def test_base64_encoded_body(self):
        """API Gateway may deliver the body base64 encoded."""
        event = {
            "httpMethod": "POST",
            "path": "/calculate_payouts",
            "isBase64Encoded": True,
            "body": base64.b64encode(json.dumps(PAYLOAD).encode("utf-8")).decode("ascii"),
        }
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["payouts"][0]["net_premium"] == 115000.0

    def test_dict_body(self):
        """Direct invocations may pass the payload as a dict."""
        event = {"httpMethod": "POST", "path": "/calculate_payouts", "body": PAYLOAD}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200

    def test_calculate_payouts_empty_body(self):
        """POST /calculate_payouts with empty body returns 400."""
        event = {"httpMethod": "POST", "path": "/calculate_payouts", "body": ""}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "failed"

    def test_calculate_payouts_invalid_json(self):
        """POST /calculate_payouts with invalid JSON returns 400."""
        event = {"httpMethod": "POST", "path": "/calculate_payouts", "body": "not valid json"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["error"].startswith("Invalid JSON")

    def test_json_array_body_returns_400(self):
        event = {"httpMethod": "POST", "path": "/calculate_payouts", "body": "[1, 2]"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["status"] == "failed"

    def test_lowercase_method_is_routed(self):
        event = {"requestContext": {"http": {"method": "get"}}, "rawPath": "/api"}

        assert lambda_handler(event, None)["statusCode"] == 200

    def test_calculate_payouts_validation_error(self):
        """POST /calculate_payouts with an invalid period returns 400."""
        payload = dict(PAYLOAD, month=13)

        event = {"httpMethod": "POST", "path": "/calculate_payouts", "body": json.dumps(payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "validation_failed"

    def test_missing_required_field(self):
        event = {"httpMethod": "POST", "path": "/calculate_payouts", "body": json.dumps({"year": 2025})}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["status"] == "validation_failed"

    def test_unexpected_error_returns_500(self, monkeypatch):
        """Internal errors are logged but not exposed."""

        def explode(data):
            raise RuntimeError("database password is hunter2")

        monkeypatch.setattr(handler_module.calculator, "process_from_dict", explode)
        event = {"httpMethod": "POST", "path": "/calculate_payouts", "body": json.dumps(PAYLOAD)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 500
        assert "hunter2" not in response["body"]

    def test_http_api_format(self):
        """Supports HTTP API v2 event format."""
        event = {"requestContext": {"http": {"method": "GET"}}, "rawPath": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
