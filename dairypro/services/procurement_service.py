# dairypro/services/procurement_service.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from flask import current_app
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from dairypro.errors import NotFoundError, ValidationError
from dairypro.models.procurement_models import (
    HISTORY_PROJECTION,
    REQUIRED_FIELDS,
    ProcurementCreateModel,
    ProcurementFieldsModel,
)
from dairypro.mongo import PROCUREMENTS, SUPPLIERS
from dairypro.services.query_filters import PROCUREMENT_SORT, build_date_range
from dairypro.utils.parsing import round_half_up


def parse_record_id(record_id: Optional[str], label: str = "record") -> ObjectId:
    if not record_id or not ObjectId.is_valid(record_id):
        raise ValidationError(f"Invalid {label} ID format")
    return ObjectId(record_id)


def compute_total(milk_quantity: float, rate: float) -> float:
    return round_half_up(milk_quantity * rate, 2)


def _missing(data: Dict[str, Any], fields) -> List[str]:
    out = []
    for f in fields:
        v = data.get(f)
        if v is None or (isinstance(v, str) and not v.strip()):
            out.append(f)
    return out


class ProcurementService:
    """
    Milk deliveries from suppliers.

    The supplier is the source of truth: its name/type/TS rate are copied onto
    each record at write time, and its lastProcurementDate is moved forward
    after every insert.
    """

    def __init__(self, db):
        self.procurements = db[PROCUREMENTS]
        self.suppliers = db[SUPPLIERS]

    # -----------------------------
    # Reads
    # -----------------------------
    def get_record(self, record_id: Optional[str]) -> Dict[str, Any]:
        oid = parse_record_id(record_id)
        doc = self.procurements.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Record not found")
        return doc

    def list_for_supplier(self, supplier_id: Optional[str], start_date=None, end_date=None) -> List[Dict[str, Any]]:
        if not supplier_id:
            raise ValidationError("Supplier ID is required")
        sid = parse_record_id(supplier_id, "supplier")

        query: Dict[str, Any] = {"supplierId": sid}
        query.update(build_date_range(start_date, end_date))
        return list(self.procurements.find(query).sort(PROCUREMENT_SORT))

    def history(self, start_date=None, end_date=None, supplier_id: Optional[str] = None,
                limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = build_date_range(start_date, end_date)
        if supplier_id:
            query["supplierId"] = parse_record_id(supplier_id, "supplier")

        cur = self.procurements.find(query, HISTORY_PROJECTION).sort(PROCUREMENT_SORT)
        if limit:
            cur = cur.limit(limit)
        return list(cur)

    # -----------------------------
    # Writes
    # -----------------------------
    @staticmethod
    def validate_create(data: Dict[str, Any]) -> ProcurementCreateModel:
        data = data or {}

        missing = _missing(data, REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        if not ObjectId.is_valid(str(data.get("supplierId"))):
            raise ValidationError("Invalid supplier ID format")

        try:
            return ProcurementCreateModel.model_validate({**data, "supplierId": str(data["supplierId"])})
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e)

    @staticmethod
    def validate_update(data: Dict[str, Any]) -> ProcurementFieldsModel:
        data = data or {}

        missing = _missing(data, [f for f in REQUIRED_FIELDS if f != "supplierId"])
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        try:
            return ProcurementFieldsModel.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e)

    def create_record(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = self.validate_create(data)
        sid = ObjectId(payload.supplierId)

        supplier = self.suppliers.find_one({"_id": sid})
        if not supplier:
            raise NotFoundError("Supplier not found")

        now = datetime.now(timezone.utc)
        doc = {
            "supplierId": sid,
            "supplierName": supplier.get("supplierName", ""),
            "supplierType": supplier.get("supplierType", ""),
            "supplierTSRate": supplier.get("supplierTSRate"),
            "date": payload.date,
            "time": payload.time,
            "milkQuantity": payload.milkQuantity,
            "fatPercentage": payload.fatPercentage,
            "snfPercentage": payload.snfPercentage,
            "rate": payload.rate,
            "totalAmount": compute_total(payload.milkQuantity, payload.rate),
            "createdAt": now,
            "updatedAt": now,
        }
        result = self.procurements.insert_one(doc)
        current_app.logger.info(
            "procurement %s inserted for supplier %s (total=%.2f)",
            result.inserted_id, sid, doc["totalAmount"],
        )

        self._touch_supplier(sid, payload.date, now)
        return doc

    def _touch_supplier(self, sid: ObjectId, date: str, now: datetime) -> None:
        # best effort: the procurement already exists and is not rolled back
        try:
            self.suppliers.update_one(
                {"_id": sid},
                {"$max": {"lastProcurementDate": date}, "$set": {"updatedAt": now}},
            )
        except PyMongoError as e:
            current_app.logger.warning("lastProcurementDate not updated for supplier %s: %s", sid, e)

    def update_record(self, record_id: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
        oid = parse_record_id(record_id)
        payload = self.validate_update(data)

        existing = self.procurements.find_one({"_id": oid})
        if not existing:
            raise NotFoundError("Record not found")

        patch = {
            "date": payload.date,
            "time": payload.time,
            "milkQuantity": payload.milkQuantity,
            "fatPercentage": payload.fatPercentage,
            "snfPercentage": payload.snfPercentage,
            "rate": payload.rate,
            "totalAmount": compute_total(payload.milkQuantity, payload.rate),
            "updatedAt": datetime.now(timezone.utc),
        }
        result = self.procurements.update_one({"_id": oid}, {"$set": patch})
        if result.matched_count == 0:
            raise NotFoundError("Record not found")

        self._touch_supplier(existing["supplierId"], payload.date, patch["updatedAt"])
        return {**existing, **patch}

    def delete_record(self, record_id: Optional[str]) -> None:
        oid = parse_record_id(record_id)
        result = self.procurements.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFoundError("Record not found")
        current_app.logger.info("procurement %s deleted", record_id)
