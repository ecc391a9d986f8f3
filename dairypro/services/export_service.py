# dairypro/services/export_service.py
import csv
from io import StringIO
from typing import Any, Dict, Iterable, List, Optional

from dairypro.models.production_models import PERCENTAGE_FIELDS, QUANTITY_FIELDS

KG_PER_LITRE = 1.03

PRODUCTION_HEADERS = ["Date", "Batch"] + [
    f.replace("_quantity", "").replace("_", " ").title() + " Quantity" for f in QUANTITY_FIELDS
] + ["Fat %", "SNF %", "Created At"]

PROCUREMENT_HEADERS = [
    "Date",
    "AM/PM",
    "Quantity (Kg)",
    "Quantity (Ltr)",
    "FAT %",
    "SNF %",
    "Rate/L (Rs)",
    "Net Amount (Rs)",
]


def _num(v) -> float:
    try:
        return float(v or 0)
    except (TypeError, ValueError):
        return 0.0


def _fmt(v, places: int = 2) -> str:
    return f"{_num(v):.{places}f}"


def _blank_or_num(v):
    # percentages are not summed; an unknown reading stays empty
    return "" if v is None else _num(v)


def production_totals(entries: Iterable[Dict[str, Any]]) -> Dict[str, float]:
    totals = {f: 0.0 for f in QUANTITY_FIELDS}
    for e in entries:
        for f in QUANTITY_FIELDS:
            totals[f] += _num(e.get(f))
    return {f: round(v, 2) for f, v in totals.items()}


def production_csv(entries: List[Dict[str, Any]]) -> str:
    si = StringIO()
    writer = csv.writer(si, lineterminator="\n")
    writer.writerow(PRODUCTION_HEADERS)

    for e in entries:
        created = e.get("createdAt")
        writer.writerow(
            [e.get("date", ""), e.get("batch", "")]
            + [_num(e.get(f)) for f in QUANTITY_FIELDS]
            + [_blank_or_num(e.get(f)) for f in PERCENTAGE_FIELDS]
            + [created.isoformat() if hasattr(created, "isoformat") else (created or "")]
        )

    totals = production_totals(entries)
    writer.writerow(["TOTAL", ""] + [totals[f] for f in QUANTITY_FIELDS] + ["", "", ""])
    return si.getvalue()


def procurement_summary(records: List[Dict[str, Any]]) -> Dict[str, float]:
    """
    Totals and simple averages for a bill. Average rate is amount per litre,
    not the mean of the per-record rates.
    """
    if not records:
        return {"totalMilk": 0.0, "totalAmount": 0.0, "avgFat": 0.0, "avgSnf": 0.0, "avgRate": 0.0}

    total_milk = sum(_num(r.get("milkQuantity")) for r in records)
    total_amount = sum(_num(r.get("totalAmount")) for r in records)
    total_fat = sum(_num(r.get("fatPercentage")) for r in records)
    total_snf = sum(_num(r.get("snfPercentage")) for r in records)

    return {
        "totalMilk": total_milk,
        "totalAmount": total_amount,
        "avgFat": total_fat / len(records),
        "avgSnf": total_snf / len(records),
        "avgRate": total_amount / total_milk if total_milk > 0 else 0.0,
    }


def _session_order(time: Optional[str]) -> int:
    return 0 if (time or "AM") == "AM" else 1


def procurement_csv(records: List[Dict[str, Any]], title: Optional[str] = None,
                    start_date: Optional[str] = None, end_date: Optional[str] = None) -> str:
    rows = sorted(records, key=lambda r: (r.get("date") or "", _session_order(r.get("time"))))

    si = StringIO()
    writer = csv.writer(si, lineterminator="\n")
    if title:
        writer.writerow([title])
    if start_date or end_date:
        writer.writerow([f"MILK BILL Date: {start_date or '-'} to {end_date or '-'}"])
    if title or start_date or end_date:
        writer.writerow([])

    writer.writerow(PROCUREMENT_HEADERS)
    for r in rows:
        litres = _num(r.get("milkQuantity"))
        writer.writerow([
            r.get("date", ""),
            r.get("time") or "AM",
            _fmt(litres * KG_PER_LITRE),
            _fmt(litres),
            _fmt(r.get("fatPercentage")),
            _fmt(r.get("snfPercentage")),
            _fmt(r.get("rate")),
            _fmt(r.get("totalAmount")),
        ])

    s = procurement_summary(rows)
    writer.writerow([])
    writer.writerow(["SUMMARY"])
    writer.writerow(["Total Milk (Ltr)", _fmt(s["totalMilk"])])
    writer.writerow(["Total Amount", f"Rs {_fmt(s['totalAmount'])}"])
    writer.writerow(["Average FAT", f"{_fmt(s['avgFat'])}%"])
    writer.writerow(["Average SNF", f"{_fmt(s['avgSnf'])}%"])
    writer.writerow(["Average Rate/L", f"Rs {_fmt(s['avgRate'])}"])
    return si.getvalue()
