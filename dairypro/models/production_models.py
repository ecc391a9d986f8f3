# dairypro/models/production_models.py
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from dairypro.utils.parsing import is_valid_date, parse_quantity

# product name -> stored field. Filter keys are only ever taken from here.
PRODUCT_FIELDS: Dict[str, str] = {
    "milk": "milk_quantity",
    "fat": "fat_percentage",
    "snf": "snf_percentage",
    "curd": "curd_quantity",
    "premium_paneer": "premium_paneer_quantity",
    "soft_paneer": "soft_paneer_quantity",
    "butter": "butter_quantity",
    "cream": "cream_quantity",
    "ghee": "ghee_quantity",
}

PERCENTAGE_FIELDS = ("fat_percentage", "snf_percentage")
QUANTITY_FIELDS = tuple(f for f in PRODUCT_FIELDS.values() if f not in PERCENTAGE_FIELDS)

REQUIRED_FIELDS = ("date", "batch")


class ProductionEntryModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: str
    batch: str

    milk_quantity: Optional[float] = None
    curd_quantity: Optional[float] = None
    premium_paneer_quantity: Optional[float] = None
    soft_paneer_quantity: Optional[float] = None
    butter_quantity: Optional[float] = None
    cream_quantity: Optional[float] = None
    ghee_quantity: Optional[float] = None

    fat_percentage: Optional[float] = None
    snf_percentage: Optional[float] = None

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        v = str(v).strip() if v is not None else ""
        if not is_valid_date(v):
            raise ValueError("Invalid date format. Use YYYY-MM-DD")
        return v

    @field_validator("batch", mode="before")
    @classmethod
    def _batch(cls, v):
        v = str(v).strip() if v is not None else ""
        if not v:
            raise ValueError("Batch name is required")
        return v

    @field_validator(*QUANTITY_FIELDS, mode="before")
    @classmethod
    def _quantity(cls, v):
        return parse_quantity(v)

    @field_validator(*PERCENTAGE_FIELDS, mode="before")
    @classmethod
    def _percentage(cls, v):
        return parse_quantity(v, is_percentage=True)

    def product_values(self) -> Dict[str, Optional[float]]:
        return {f: getattr(self, f) for f in PRODUCT_FIELDS.values()}
