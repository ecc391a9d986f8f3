# dairypro/routes/procurement_routes.py

from flask import Blueprint, current_app, jsonify, request

from dairypro.errors import server_errors
from dairypro.mongo import get_db
from dairypro.services.export_service import procurement_csv
from dairypro.services.procurement_service import ProcurementService
from dairypro.services.supplier_service import SupplierService
from dairypro.utils.http import csv_response, json_body
from dairypro.utils.serialize import serialize_doc, serialize_docs

procurement_bp = Blueprint("procurement", __name__, url_prefix="/supplier/procurement")

HISTORY_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=120"


def _service() -> ProcurementService:
    return ProcurementService(get_db())


# ---------------------------------------------------------
# GET /supplier/procurement?id=                        -> one record
# GET /supplier/procurement?supplierId=&startDate=&endDate= -> list
# ---------------------------------------------------------
@procurement_bp.get("")
@server_errors("Failed to fetch data")
def get_procurements():
    record_id = request.args.get("id")
    if record_id is not None:
        return jsonify(serialize_doc(_service().get_record(record_id)))

    records = _service().list_for_supplier(
        request.args.get("supplierId"),
        request.args.get("startDate"),
        request.args.get("endDate"),
    )
    return jsonify(serialize_docs(records))


@procurement_bp.post("")
@server_errors("Failed to create record")
def create_procurement():
    doc = _service().create_record(json_body())
    return jsonify({
        "success": True,
        "id": str(doc["_id"]),
        "totalAmount": doc["totalAmount"],
        "message": "Procurement record created successfully",
        "data": serialize_doc(doc),
    }), 201


@procurement_bp.put("")
@server_errors("Failed to update record")
def update_procurement():
    doc = _service().update_record(request.args.get("id"), json_body())
    return jsonify({
        "success": True,
        "message": "Procurement record updated successfully",
        "data": serialize_doc(doc),
    })


@procurement_bp.delete("")
@server_errors("Failed to delete record")
def delete_procurement():
    record_id = request.args.get("id")
    _service().delete_record(record_id)
    return jsonify({
        "success": True,
        "message": "Procurement record deleted successfully",
        "deletedId": record_id,
    })


# ---------------------------------------------------------
# GET /supplier/procurement/history
# ---------------------------------------------------------
@procurement_bp.get("/history")
@server_errors("Failed to fetch procurement data")
def procurement_history():
    records = _service().history(
        request.args.get("startDate"),
        request.args.get("endDate"),
        limit=current_app.config["PROCUREMENT_HISTORY_LIMIT"],
    )
    resp = jsonify(serialize_docs(records))
    resp.headers["Cache-Control"] = HISTORY_CACHE_CONTROL
    return resp


# ---------------------------------------------------------
# GET /supplier/procurement/export  (CSV bill)
# ---------------------------------------------------------
@procurement_bp.get("/export")
@server_errors("Failed to export procurement data")
def procurement_export():
    start, end = request.args.get("startDate"), request.args.get("endDate")
    supplier_id = request.args.get("supplierId")

    title = None
    if supplier_id:
        cfg = current_app.config
        supplier = SupplierService(
            get_db(), cfg["SUPPLIER_TS_RATE_MIN"], cfg["SUPPLIER_TS_RATE_MAX"]
        ).get_supplier(supplier_id)
        title = supplier.get("supplierName")

    records = _service().history(
        start, end, supplier_id=supplier_id,
        limit=current_app.config["PROCUREMENT_HISTORY_LIMIT"],
    )
    content = procurement_csv(records, title=title, start_date=start, end_date=end)
    return csv_response(content, f"procurement_{start or 'all'}_to_{end or 'all'}.csv")
