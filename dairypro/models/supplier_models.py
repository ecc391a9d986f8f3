# dairypro/models/supplier_models.py
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from dairypro.utils.parsing import to_number

PHONE_RE = re.compile(r"^[0-9]{10}$")

SUPPLIER_FIELDS = ("supplierName", "supplierType", "supplierNumber", "supplierAddress", "supplierTSRate")


def _text(v) -> str:
    return str(v).strip() if v is not None else ""


class SupplierCreateModel(BaseModel):
    """
    POST /supplier body. Every field error is reported, not just the first.
    Pass context={"ts_rate_min": .., "ts_rate_max": ..} to bound supplierTSRate.
    """
    model_config = ConfigDict(extra="ignore")

    supplierName: str = Field(default="", validate_default=True)
    supplierType: str = ""
    supplierNumber: str = ""
    supplierAddress: str = ""
    supplierTSRate: Optional[float] = None

    @field_validator("supplierName", mode="before")
    @classmethod
    def _name(cls, v):
        v = _text(v)
        if not v:
            raise ValueError("Supplier name is required")
        if len(v) < 2:
            raise ValueError("Supplier name must be at least 2 characters")
        return v

    @field_validator("supplierType", mode="before")
    @classmethod
    def _type(cls, v):
        v = _text(v)
        if v and len(v) < 2:
            raise ValueError("Supplier type must be at least 2 characters")
        return v

    @field_validator("supplierNumber", mode="before")
    @classmethod
    def _number(cls, v):
        v = _text(v)
        if v and not PHONE_RE.match(v):
            raise ValueError("Phone number must be a valid 10-digit number")
        return v

    @field_validator("supplierAddress", mode="before")
    @classmethod
    def _address(cls, v):
        v = _text(v)
        if v and len(v) < 5:
            raise ValueError("Address must be at least 5 characters")
        return v

    @field_validator("supplierTSRate", mode="before")
    @classmethod
    def _ts_rate(cls, v, info: ValidationInfo):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        num = to_number(v)
        if num is None:
            raise ValueError("Supplier TS rate must be a number")

        ctx = info.context or {}
        lo = ctx.get("ts_rate_min", 0.0)
        hi = ctx.get("ts_rate_max", float("inf"))
        if num < lo or num > hi:
            raise ValueError(f"Supplier TS rate must be between {lo:g} and {hi:g}")
        return num


class SupplierUpdateModel(SupplierCreateModel):
    """PUT /supplier body: only the fields present in the request are applied."""

    supplierName: Optional[str] = None
    supplierType: Optional[str] = None
    supplierNumber: Optional[str] = None
    supplierAddress: Optional[str] = None
    supplierTSRate: Optional[float] = None

    def changes(self) -> Dict[str, Any]:
        return {k: getattr(self, k) for k in SUPPLIER_FIELDS if k in self.model_fields_set}
