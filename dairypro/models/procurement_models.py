# dairypro/models/procurement_models.py
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from dairypro.utils.parsing import is_valid_date, round_half_up, to_number

REQUIRED_FIELDS = ("supplierId", "date", "milkQuantity", "rate")

# Fields returned by GET /supplier/procurement/history
HISTORY_PROJECTION = {
    "_id": 1,
    "date": 1,
    "time": 1,
    "milkQuantity": 1,
    "fatPercentage": 1,
    "snfPercentage": 1,
    "rate": 1,
    "totalAmount": 1,
    "supplierId": 1,
    "supplierName": 1,
    "supplierType": 1,
    "supplierTSRate": 1,
    "createdAt": 1,
}


def _positive(name: str, v) -> float:
    num = to_number(v)
    if num is None or num <= 0:
        raise ValueError(f"Invalid {name}: must be a positive number")
    return num


def _percentage(name: str, v) -> Optional[float]:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    num = to_number(v)
    if num is None or num < 0 or num > 100:
        raise ValueError(f"Invalid {name}: must be between 0 and 100")
    return num


class ProcurementFieldsModel(BaseModel):
    """
    Delivery fields shared by create and update. Field order is the order
    errors are reported in. totalAmount is never read from the caller.
    """
    model_config = ConfigDict(extra="ignore")

    milkQuantity: float
    rate: float
    fatPercentage: Optional[float] = None
    snfPercentage: Optional[float] = None
    date: str
    time: Optional[Literal["AM", "PM"]] = None

    @field_validator("milkQuantity", mode="before")
    @classmethod
    def _milk(cls, v):
        return _positive("milkQuantity", v)

    @field_validator("rate", mode="before")
    @classmethod
    def _rate(cls, v):
        return _positive("rate", v)

    @field_validator("fatPercentage", mode="before")
    @classmethod
    def _fat(cls, v):
        return _percentage("fatPercentage", v)

    @field_validator("snfPercentage", mode="before")
    @classmethod
    def _snf(cls, v):
        return _percentage("snfPercentage", v)

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        v = str(v).strip() if v is not None else ""
        if not is_valid_date(v):
            raise ValueError("Invalid date format. Use YYYY-MM-DD")
        return v

    @field_validator("time", mode="before")
    @classmethod
    def _time(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        v = str(v).strip().upper()
        if v not in ("AM", "PM"):
            raise ValueError("Time must be either 'AM' or 'PM'")
        return v

    @model_validator(mode="after")
    def _total_fits(self):
        try:
            round_half_up(self.milkQuantity * self.rate, 2)
        except ValueError:
            raise ValueError("Invalid milkQuantity or rate: total amount is too large")
        return self


class ProcurementCreateModel(ProcurementFieldsModel):
    supplierId: str
