# dairypro/services/query_filters.py
"""
Builds Mongo filters from optional request parameters.

Filter keys come from fixed names or the PRODUCT_FIELDS allow-list, never
from caller input. A product value carrying an operator character is dropped
before the allow-list is consulted.
"""
from typing import Any, Dict, Optional

from flask import current_app, has_app_context
from pymongo import DESCENDING

from dairypro.errors import ValidationError
from dairypro.models.production_models import PRODUCT_FIELDS
from dairypro.utils.parsing import is_valid_date

RESERVED_FILTER_CHARS = ("$", ".")

PRODUCTION_SORT = [("date", DESCENDING), ("createdAt", DESCENDING)]
PROCUREMENT_SORT = [("date", DESCENDING), ("time", DESCENDING), ("createdAt", DESCENDING)]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def build_date_range(start_date: Optional[str] = None, end_date: Optional[str] = None,
                     field: str = "date") -> Dict[str, Any]:
    """
    Inclusive [start_date, end_date] on `field`; either bound may be missing.
    Dates are YYYY-MM-DD strings, which sort the same as the calendar.
    """
    start_date = _clean(start_date)
    end_date = _clean(end_date)

    if start_date is not None and not is_valid_date(start_date):
        raise ValidationError("Invalid start date format. Use YYYY-MM-DD")
    if end_date is not None and not is_valid_date(end_date):
        raise ValidationError("Invalid end date format. Use YYYY-MM-DD")
    if start_date and end_date and start_date > end_date:
        raise ValidationError("Start date cannot be after end date")

    bounds = {}
    if start_date:
        bounds["$gte"] = start_date
    if end_date:
        bounds["$lte"] = end_date
    return {field: bounds} if bounds else {}


def product_field(product: Optional[str]) -> Optional[str]:
    """Stored field for an allow-listed product name, else None."""
    product = _clean(product)
    if product is None:
        return None

    if any(ch in product for ch in RESERVED_FILTER_CHARS):
        if has_app_context():
            current_app.logger.warning("ignoring product filter with reserved characters: %r", product)
        return None

    return PRODUCT_FIELDS.get(product.lower())


def build_product_filter(product: Optional[str]) -> Dict[str, Any]:
    field = product_field(product)
    if field is None:
        return {}
    return {field: {"$exists": True, "$ne": None, "$gt": 0}}


def build_entry_filter(start_date: Optional[str] = None, end_date: Optional[str] = None,
                       product: Optional[str] = None) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    query.update(build_date_range(start_date, end_date))
    query.update(build_product_filter(product))
    return query
