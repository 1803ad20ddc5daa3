# backend/stock_api/stocks/routes.py
import json
import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from stock_api.database import get_store
from stock_api.errors import StorageError, ValidationError
from .models import normalize_payload

logger = logging.getLogger(__name__)

stocks_bp = Blueprint('stocks', __name__)


# ============================================================
# Route to Save One Analysis Record (PUT)
# ============================================================
@stocks_bp.route('/', methods=['PUT'], strict_slashes=False)
def put_stocks():
    logger.info("[PUT /api/stocks] Received request at %s", datetime.now(timezone.utc).isoformat())
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    logger.debug("[PUT /api/stocks] Request body: %s", json.dumps(payload, indent=2, default=str))

    try:
        record = normalize_payload(payload)
    except ValidationError as e:
        logger.warning("[PUT /api/stocks] Validation Error: %s", e)
        return jsonify({"error": str(e)}), 400

    store = get_store()
    try:
        saved = store.insert(record)
    except StorageError as e:
        logger.error("[PUT /api/stocks] ERROR saving stock data to %s: %s", store.backend_name, e.details)
        return jsonify({"error": "Failed to save stock data.", "details": e.details}), 500

    logger.info("[PUT /api/stocks] Successfully inserted data: %s", json.dumps(saved, default=str))
    return jsonify({
        "message": f"Stock data saved successfully to {store.table_name}.",
        "data": saved,
    }), 201


# ============================================================
# Route to List the Most Recent Records (GET)
# ============================================================
@stocks_bp.route('/', methods=['GET'], strict_slashes=False)
def get_stocks():
    logger.info("[GET /api/stocks] Received request at %s", datetime.now(timezone.utc).isoformat())
    try:
        records = get_store().list_recent(current_app.config['LIST_LIMIT'])
    except StorageError as e:
        logger.error("[GET /api/stocks] ERROR fetching stocks: %s", e.details)
        return jsonify({"error": "Failed to retrieve stocks.", "details": e.details}), 500

    logger.info("[GET /api/stocks] Successfully fetched data. Item count: %d", len(records))
    return jsonify(records), 200


# ============================================================
# Error Handlers (anything the views above did not answer)
# ============================================================
@stocks_bp.errorhandler(ValidationError)
def handle_validation_error(e: ValidationError):
    logger.warning("[%s %s] Validation Error: %s", request.method, request.path, e)
    return jsonify({"error": str(e)}), 400


@stocks_bp.errorhandler(StorageError)
def handle_storage_error(e: StorageError):
    logger.error("[%s %s] Storage error: %s", request.method, request.path, e.details)
    return jsonify({"error": e.message, "details": e.details}), 500


@stocks_bp.errorhandler(Exception)
def handle_unexpected_error(e: Exception):
    if isinstance(e, HTTPException):
        return e
    logger.exception("[%s %s] Unexpected error", request.method, request.path)
    return jsonify({"error": "Internal server error.", "details": str(e)}), 500
