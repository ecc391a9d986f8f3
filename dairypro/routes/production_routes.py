# dairypro/routes/production_routes.py

from flask import Blueprint, current_app, jsonify, request

from dairypro.errors import server_errors
from dairypro.mongo import get_db
from dairypro.services.export_service import production_csv
from dairypro.services.production_service import ProductionService
from dairypro.utils.http import csv_response, json_body
from dairypro.utils.serialize import serialize_doc, serialize_docs

production_bp = Blueprint("production", __name__, url_prefix="/production")


def _service() -> ProductionService:
    return ProductionService(get_db(), current_app.config["BATCH_RENAME_MAX_ATTEMPTS"])


def _history_dates():
    # history pages send fromDate/toDate, the list page startDate/endDate
    start = request.args.get("startDate") or request.args.get("fromDate")
    end = request.args.get("endDate") or request.args.get("toDate")
    return start, end


# ---------------------------------------------------------
# GET /production
# ---------------------------------------------------------
@production_bp.get("")
@server_errors("Failed to fetch production records")
def list_production():
    start, end = request.args.get("startDate"), request.args.get("endDate")
    product = request.args.get("product")
    current_app.logger.debug("listing production start=%s end=%s product=%s", start, end, product)

    entries = _service().list_entries(
        start, end, product, limit=current_app.config["PRODUCTION_LIST_LIMIT"]
    )
    return jsonify(serialize_docs(entries))


# ---------------------------------------------------------
# POST /production
# ---------------------------------------------------------
@production_bp.post("")
@server_errors("Failed to save production entry")
def create_production():
    out = _service().create_entry(json_body())
    batch = out["batch"]
    return jsonify({
        "success": True,
        "id": str(out["id"]),
        "batch": batch,
        "message": f"Batch {batch} saved successfully!",
    }), 201


# ---------------------------------------------------------
# PUT /production?id=
# ---------------------------------------------------------
@production_bp.put("")
@server_errors("Failed to update production entry")
def update_production():
    doc = _service().update_entry(request.args.get("id"), json_body())
    return jsonify({**serialize_doc(doc), "message": "Entry updated successfully"})


# ---------------------------------------------------------
# DELETE /production?id=
# ---------------------------------------------------------
@production_bp.delete("")
@server_errors("Failed to delete entry")
def delete_production():
    _service().delete_entry(request.args.get("id"))
    return jsonify({"success": True, "message": "Entry deleted successfully"})


# ---------------------------------------------------------
# GET /production/history
# ---------------------------------------------------------
@production_bp.get("/history")
@server_errors("Failed to fetch entries")
def production_history():
    start, end = _history_dates()
    entries = _service().list_entries(start, end, request.args.get("product"))
    return jsonify(serialize_docs(entries))


# ---------------------------------------------------------
# GET /production/export  (CSV)
# ---------------------------------------------------------
@production_bp.get("/export")
@server_errors("Failed to export entries")
def production_export():
    start, end = _history_dates()
    entries = _service().list_entries(start, end, request.args.get("product"))
    filename = f"production_history_{start or 'all'}_to_{end or 'all'}.csv"
    return csv_response(production_csv(entries), filename)
