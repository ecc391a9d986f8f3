# dairypro/routes/health_routes.py

from flask import Blueprint, jsonify

from dairypro.errors import server_errors
from dairypro.mongo import get_gateway

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
@server_errors("Failed to connect to MongoDB")
def health():
    gateway = get_gateway()
    if gateway is None or gateway.db is None:
        return jsonify({"ok": False, "error": "Mongo is not initialized"}), 500

    gateway.ping()
    return jsonify({
        "ok": True,
        "message": "Successfully connected to MongoDB!",
        "collections": sorted(gateway.db.list_collection_names()),
        # indexes that failed at startup, e.g. uniq_batch over duplicate legacy labels
        "missingIndexes": gateway.missing_indexes,
    })
