# dairypro/services/supplier_service.py
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from flask import current_app
from pydantic import ValidationError as PydanticValidationError
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from dairypro.errors import ConflictError, NotFoundError, ValidationError
from dairypro.models.supplier_models import SupplierCreateModel, SupplierUpdateModel
from dairypro.mongo import PROCUREMENTS, SUPPLIERS

SEARCH_FIELDS = ("supplierName", "supplierType", "supplierNumber", "supplierAddress")

DUPLICATE_PHONE = "Supplier with this phone number already exists"


def parse_supplier_id(supplier_id: Optional[str]) -> ObjectId:
    if not supplier_id:
        raise ValidationError("Supplier ID is required")
    if not ObjectId.is_valid(supplier_id):
        raise ValidationError(
            "Invalid supplier ID format",
            details="Supplier ID must be a valid 24-character hex string",
        )
    return ObjectId(supplier_id)


def with_defaults(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """An empty phone number is not stored; callers still see ''."""
    if doc is not None:
        doc.setdefault("supplierNumber", "")
    return doc


class SupplierService:

    def __init__(self, db, ts_rate_min: float = 1.0, ts_rate_max: float = 1000.0):
        self.suppliers = db[SUPPLIERS]
        self.procurements = db[PROCUREMENTS]
        self.ts_context = {"ts_rate_min": ts_rate_min, "ts_rate_max": ts_rate_max}

    # -----------------------------
    # Reads
    # -----------------------------
    def list_suppliers(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        term = (search or "").strip()
        if term:
            pattern = re.escape(term)
            query["$or"] = [{f: {"$regex": pattern, "$options": "i"}} for f in SEARCH_FIELDS]

        cur = self.suppliers.find(query).sort([("createdAt", DESCENDING)])
        return [with_defaults(d) for d in cur]

    def get_supplier(self, supplier_id: Optional[str]) -> Dict[str, Any]:
        oid = parse_supplier_id(supplier_id)
        doc = self.suppliers.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Supplier not found", details=f"No supplier found with ID: {supplier_id}")
        return with_defaults(doc)

    def phone_taken(self, phone: str, exclude_id: Optional[ObjectId] = None) -> bool:
        if not phone:
            return False
        query: Dict[str, Any] = {"supplierNumber": phone}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return self.suppliers.find_one(query, {"_id": 1}) is not None

    # -----------------------------
    # Writes
    # -----------------------------
    def create_supplier(self, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            payload = SupplierCreateModel.model_validate(data or {}, context=self.ts_context)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Validation failed")

        if self.phone_taken(payload.supplierNumber):
            raise ConflictError(DUPLICATE_PHONE)

        now = datetime.now(timezone.utc)
        doc = {
            "supplierName": payload.supplierName,
            "supplierType": payload.supplierType,
            "supplierAddress": payload.supplierAddress,
            "createdAt": now,
            "updatedAt": now,
        }
        if payload.supplierNumber:
            doc["supplierNumber"] = payload.supplierNumber
        if payload.supplierTSRate is not None:
            doc["supplierTSRate"] = payload.supplierTSRate

        try:
            result = self.suppliers.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError(DUPLICATE_PHONE)

        current_app.logger.info("supplier %s created (%s)", result.inserted_id, payload.supplierName)
        return with_defaults(doc)

    def update_supplier(self, supplier_id: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
        oid = parse_supplier_id(supplier_id)

        existing = self.suppliers.find_one({"_id": oid})
        if not existing:
            raise NotFoundError("Supplier not found")

        try:
            payload = SupplierUpdateModel.model_validate(data or {}, context=self.ts_context)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Validation failed")

        changes = payload.changes()
        to_set: Dict[str, Any] = {"updatedAt": datetime.now(timezone.utc)}
        to_unset: Dict[str, Any] = {}

        for key, value in changes.items():
            if key == "supplierNumber" and not value:
                to_unset["supplierNumber"] = ""
            else:
                to_set[key] = value

        phone = changes.get("supplierNumber")
        if phone and phone != existing.get("supplierNumber") and self.phone_taken(phone, exclude_id=oid):
            raise ConflictError("Another supplier with this phone number already exists")

        update: Dict[str, Any] = {"$set": to_set}
        if to_unset:
            update["$unset"] = to_unset

        try:
            result = self.suppliers.update_one({"_id": oid}, update)
        except DuplicateKeyError:
            raise ConflictError("Another supplier with this phone number already exists")

        if result.matched_count == 0:
            raise NotFoundError("Supplier not found")

        current_app.logger.info("supplier %s updated: %s", supplier_id, sorted(changes))
        return with_defaults(self.suppliers.find_one({"_id": oid}))

    def delete_supplier(self, supplier_id: Optional[str]) -> Dict[str, Any]:
        oid = parse_supplier_id(supplier_id)

        existing = self.suppliers.find_one({"_id": oid})
        if not existing:
            raise NotFoundError("Supplier not found")

        linked = self.procurements.count_documents({"supplierId": oid})
        if linked > 0:
            raise ConflictError(
                "Cannot delete supplier with existing procurements",
                details=f"Supplier has {linked} associated procurement(s)",
            )

        result = self.suppliers.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFoundError("Supplier not found")

        current_app.logger.info("supplier %s deleted", supplier_id)
        return existing
