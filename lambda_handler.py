"""
AWS Lambda entry point for the payout API.

Accepts API Gateway REST (v1) and HTTP API (v2) events. main.py serves the
same routes through Flask for local runs.
"""

import base64
import json
import logging
import os

from payouts import PayoutCalculator

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))

ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

# Built once per container and shared by warm invocations
calculator = PayoutCalculator()

CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}


class BadRequest(Exception):
    """The request body could not be read as a JSON object."""


def _response(status: int, payload=None) -> dict:
    body = "" if payload is None else json.dumps(payload)
    return {"statusCode": status, "headers": CORS_HEADERS, "body": body}


def _method_and_path(event: dict) -> tuple[str, str]:
    http = event.get("requestContext", {}).get("http", {})
    method = event.get("httpMethod") or http.get("method", "")
    path = event.get("path") or event.get("rawPath", "")
    return method.upper(), path


def _read_body(event: dict) -> dict:
    body = event.get("body")
    if isinstance(body, dict):
        return body
    if not body:
        raise BadRequest("No input data provided")
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise BadRequest(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return data


def health(event: dict) -> dict:
    return _response(200, {"status": "healthy", "environment": ENVIRONMENT})


def api_info(event: dict) -> dict:
    return _response(200, {
        "status": "ok",
        "message": "Agency Commission Payout API",
        "version": "1.0",
        "environment": ENVIRONMENT,
        "runtime": "AWS Lambda",
        "endpoints": {
            "calculate_payouts": "/calculate_payouts [POST]",
            "health": "/health [GET]",
        },
    })


def calculate_payouts(event: dict) -> dict:
    """Run one payout batch and return draft payouts plus warnings."""
    try:
        input_data = _read_body(event)
    except BadRequest as e:
        logger.warning("Rejected request body: %s", e)
        return _response(400, {"error": str(e), "status": "failed"})

    period = f"{input_data.get('month', '?')}/{input_data.get('year', '?')}"
    logger.info("Payout batch %s received with %d producers", period, len(input_data.get("producers", [])))

    try:
        result = calculator.process_from_dict(input_data)
    except (ValueError, KeyError, TypeError) as e:
        logger.error("Payout batch %s rejected: %s", period, e)
        return _response(400, {"error": f"Validation error: {e}", "status": "validation_failed"})
    except Exception:
        # Details stay in the log; the caller only sees a generic failure
        logger.exception("Payout batch %s failed", period)
        return _response(500, {"error": "An unexpected error occurred during processing", "status": "failed"})

    logger.info(
        "Payout batch %s done: %d payouts, %d warnings",
        period, len(result["payouts"]), len(result["warnings"]),
    )
    return _response(200, result)


ROUTES = {
    ("GET", "/health"): health,
    ("GET", "/api"): api_info,
    ("POST", "/calculate_payouts"): calculate_payouts,
}


def lambda_handler(event, context):
    method, path = _method_and_path(event)
    if method == "OPTIONS":
        return _response(200)

    route = ROUTES.get((method, path))
    if route is None:
        return _response(404, {"error": "Not found", "path": path})
    return route(event)
