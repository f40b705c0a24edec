from flask import Flask, request, jsonify
from flask_cors import CORS
from payouts import PayoutCalculator
import os
import logging

# Configure logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (the agency dashboard calls the API from the browser)
CORS(app)

# Initialize the payout calculator
calculator = PayoutCalculator()


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Agency Commission Payout API",
        "version": "1.0",
        "endpoints": {
            "calculate_payouts": "/calculate_payouts [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


@app.route("/calculate_payouts", methods=["POST"])
def calculate_payouts():
    """
    Calculate draft payouts for a statement period
    """
    try:
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        if not isinstance(input_data, dict):
            return jsonify({
                "error": "Request body must be a JSON object",
                "status": "failed"
            }), 400

        period = f"{input_data.get('month', '?')}/{input_data.get('year', '?')}"
        logger.info(f"Calculating payouts for {period}")

        result = calculator.process_from_dict(input_data)

        logger.info(f"Payouts calculated for {period}: {len(result['payouts'])} payouts")

        return jsonify(result), 200

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
