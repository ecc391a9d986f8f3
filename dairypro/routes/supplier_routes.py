# dairypro/routes/supplier_routes.py

from flask import Blueprint, current_app, jsonify, request

from dairypro.errors import server_errors
from dairypro.mongo import get_db
from dairypro.services.supplier_service import SupplierService
from dairypro.utils.http import json_body
from dairypro.utils.serialize import serialize_doc, serialize_docs

supplier_bp = Blueprint("supplier", __name__, url_prefix="/supplier")


def _service() -> SupplierService:
    cfg = current_app.config
    return SupplierService(get_db(), cfg["SUPPLIER_TS_RATE_MIN"], cfg["SUPPLIER_TS_RATE_MAX"])


# ---------------------------------------------------------
# GET /supplier            -> all (optional ?search=)
# GET /supplier?supplierId= -> one
# ---------------------------------------------------------
@supplier_bp.get("")
@server_errors("Failed to fetch supplier records")
def get_suppliers():
    supplier_id = request.args.get("supplierId")
    if supplier_id is not None:
        return jsonify(serialize_doc(_service().get_supplier(supplier_id)))

    return jsonify(serialize_docs(_service().list_suppliers(request.args.get("search"))))


@supplier_bp.post("")
@server_errors("Failed to create supplier")
def create_supplier():
    doc = _service().create_supplier(json_body())
    return jsonify({**serialize_doc(doc), "message": "Supplier created successfully"}), 201


@supplier_bp.put("")
@server_errors("Failed to update supplier")
def update_supplier():
    doc = _service().update_supplier(request.args.get("id"), json_body())
    return jsonify({**serialize_doc(doc), "message": "Supplier updated successfully"})


@supplier_bp.delete("")
@server_errors("Failed to delete supplier")
def delete_supplier():
    supplier_id = request.args.get("id")
    deleted = _service().delete_supplier(supplier_id)
    return jsonify({
        "message": "Supplier deleted successfully",
        "deletedId": supplier_id,
        "deletedName": deleted.get("supplierName"),
    })
