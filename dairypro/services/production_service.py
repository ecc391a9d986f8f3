# dairypro/services/production_service.py
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from flask import current_app
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import DuplicateKeyError

from dairypro.errors import ConflictError, NotFoundError, ValidationError
from dairypro.models.production_models import REQUIRED_FIELDS, ProductionEntryModel
from dairypro.mongo import ENTRIES
from dairypro.services.query_filters import PRODUCTION_SORT, build_entry_filter


def parse_entry_id(entry_id: Optional[str]) -> ObjectId:
    if not entry_id:
        raise ValidationError("Entry ID is required")
    if not ObjectId.is_valid(entry_id):
        raise ValidationError("Invalid entry ID format")
    return ObjectId(entry_id)


def suffixed_label(batch: str, n: int) -> str:
    return f"{batch} ({n})"


def suffix_pattern(batch: str) -> str:
    """Anchored regex for '<batch> (<digits>)' with `batch` taken literally."""
    return f"^{re.escape(batch)} \\(\\d+\\)$"


class ProductionService:

    def __init__(self, db, max_rename_attempts: int = 50):
        self.entries = db[ENTRIES]
        self.max_rename_attempts = max_rename_attempts

    # -----------------------------
    # Reads
    # -----------------------------
    def list_entries(self, start_date=None, end_date=None, product=None,
                     limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = build_entry_filter(start_date, end_date, product)
        cur = self.entries.find(query).sort(PRODUCTION_SORT)
        if limit:
            cur = cur.limit(limit)
        return list(cur)

    # -----------------------------
    # Validation
    # -----------------------------
    @staticmethod
    def validate(data: Dict[str, Any]) -> ProductionEntryModel:
        data = data or {}
        missing = [f for f in REQUIRED_FIELDS if not str(data.get(f) or "").strip()]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        try:
            return ProductionEntryModel.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e)

    # -----------------------------
    # Batch naming
    # -----------------------------
    def first_suffix(self, batch: str, date: str) -> int:
        """
        Suffix to try first for `batch` on `date`; 0 means keep the label as is.

        The clash check looks at every stored entry, while the suffix counts
        only the suffixed siblings already stored on the candidate's own date.
        Two dates can therefore both propose '<batch> (1)'; create_entry()
        skips labels already stored, and the unique index on `batch` catches
        a concurrent writer taking the same label in between.
        """
        if self.entries.find_one({"batch": batch}, {"_id": 1}) is None:
            return 0

        siblings = self.entries.count_documents({
            "date": date,
            "batch": {"$regex": suffix_pattern(batch)},
        })
        return siblings + 1

    # -----------------------------
    # Writes
    # -----------------------------
    def create_entry(self, data: Dict[str, Any]) -> Dict[str, Any]:
        entry = self.validate(data)
        base = entry.batch

        n = self.first_suffix(base, entry.date)

        now = datetime.now(timezone.utc)
        for _ in range(self.max_rename_attempts):
            label = suffixed_label(base, n) if n else base
            # the unique index may be absent on a database holding duplicate labels
            if self.entries.find_one({"batch": label}, {"_id": 1}) is not None:
                n += 1
                continue

            doc = {
                "date": entry.date,
                "batch": label,
                "createdAt": now,
                "updatedAt": now,
                **entry.product_values(),
            }
            try:
                result = self.entries.insert_one(doc)
            except DuplicateKeyError:
                current_app.logger.info("batch label %r already taken, retrying", label)
                n += 1
                continue

            if label != base:
                current_app.logger.info("Batch renamed to: %s", label)
            current_app.logger.info("production entry %s inserted (batch=%s)", result.inserted_id, label)
            return {"id": result.inserted_id, "batch": label}

        raise ConflictError(f"Could not find a free batch label for '{base}'")

    def update_entry(self, entry_id: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
        oid = parse_entry_id(entry_id)
        entry = self.validate(data)

        existing = self.entries.find_one({"_id": oid})
        if not existing:
            raise NotFoundError("Entry not found")

        if entry.batch != existing.get("batch"):
            clash = self.entries.find_one({"batch": entry.batch, "_id": {"$ne": oid}}, {"_id": 1})
            if clash:
                raise ConflictError(f"Batch '{entry.batch}' already exists")

        patch = {
            "date": entry.date,
            "batch": entry.batch,
            "updatedAt": datetime.now(timezone.utc),
            **entry.product_values(),
        }
        try:
            result = self.entries.update_one({"_id": oid}, {"$set": patch})
        except DuplicateKeyError:
            raise ConflictError(f"Batch '{entry.batch}' already exists")

        if result.matched_count == 0:
            raise NotFoundError("Entry not found")

        return self.entries.find_one({"_id": oid})

    def delete_entry(self, entry_id: Optional[str]) -> None:
        oid = parse_entry_id(entry_id)
        result = self.entries.delete_one({"_id": oid})
        if result.deleted_count == 0:
            current_app.logger.info("production entry %s not found for delete", entry_id)
            raise NotFoundError("Entry not found")
