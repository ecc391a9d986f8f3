import pytest
from bson import ObjectId

from dairypro.services.procurement_service import compute_total


def post_procurement(client, supplier_id, **overrides):
    body = {
        "supplierId": supplier_id,
        "date": "2024-01-01",
        "time": "AM",
        "milkQuantity": 100,
        "fatPercentage": 4.5,
        "snfPercentage": 8.5,
        "rate": 50,
    }
    body.update(overrides)
    return client.post("/supplier/procurement", json=body)


# ── Create ───────────────────────────────────────────────────────

def test_total_amount_is_computed_server_side(client, supplier, db):
    resp = post_procurement(client, supplier["_id"], totalAmount=1)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["totalAmount"] == 5000.00
    assert body["data"]["totalAmount"] == 5000.00

    stored = db.procurements.find_one({"_id": ObjectId(body["id"])})
    assert stored["totalAmount"] == 5000.00
    assert stored["supplierId"] == ObjectId(supplier["_id"])
    assert stored["supplierName"] == "Ravi Farms"
    assert stored["supplierTSRate"] == 350.0


@pytest.mark.parametrize("qty,rate,expected", [
    (100, 50, 5000.0),
    (12.5, 41.37, 517.13),
    (1.005, 1, 1.01),
    ("33.3", "3", 99.9),
])
def test_compute_total_rounds_half_up(qty, rate, expected):
    assert compute_total(float(qty), float(rate)) == expected


def test_supplier_last_procurement_date_moves_forward(client, supplier, db):
    post_procurement(client, supplier["_id"], date="2024-01-05")
    post_procurement(client, supplier["_id"], date="2024-01-03")
    doc = db.suppliers.find_one({"_id": ObjectId(supplier["_id"])})
    assert doc["lastProcurementDate"] == "2024-01-05"


def test_missing_fields_reported_first(client, db):
    resp = client.post("/supplier/procurement", json={"supplierId": "bad", "rate": 0})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Missing required fields: date, milkQuantity"
    assert db.procurements.count_documents({}) == 0


def test_bad_supplier_id_before_numbers(client):
    resp = client.post("/supplier/procurement", json={
        "supplierId": "bad", "date": "2024-01-01", "milkQuantity": -1, "rate": 10,
    })
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid supplier ID format"


@pytest.mark.parametrize("field,value,message", [
    ("milkQuantity", 0, "Invalid milkQuantity: must be a positive number"),
    ("milkQuantity", "abc", "Invalid milkQuantity: must be a positive number"),
    ("rate", -2, "Invalid rate: must be a positive number"),
    ("fatPercentage", 101, "Invalid fatPercentage: must be between 0 and 100"),
    ("snfPercentage", -1, "Invalid snfPercentage: must be between 0 and 100"),
    ("date", "2024/01/01", "Invalid date format. Use YYYY-MM-DD"),
    ("time", "NOON", "Time must be either 'AM' or 'PM'"),
])
def test_field_checks(client, supplier, field, value, message):
    resp = post_procurement(client, supplier["_id"], **{field: value})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == message


def test_quantity_checked_before_percentages(client, supplier):
    resp = post_procurement(client, supplier["_id"], milkQuantity=0, fatPercentage=500)
    assert resp.get_json()["error"] == "Invalid milkQuantity: must be a positive number"


def test_percentages_are_optional(client, supplier):
    resp = post_procurement(client, supplier["_id"], fatPercentage=None, snfPercentage="", time=None)
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["fatPercentage"] is None
    assert data["snfPercentage"] is None


def test_oversized_total_rejected(client, supplier, db):
    resp = post_procurement(client, supplier["_id"], milkQuantity=1e14, rate=1e13)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid milkQuantity or rate: total amount is too large"
    assert db.procurements.count_documents({}) == 0

    rec_id = post_procurement(client, supplier["_id"]).get_json()["id"]
    resp = client.put(f"/supplier/procurement?id={rec_id}", json={
        "date": "2024-01-02", "milkQuantity": 1e200, "rate": 1e200,
    })
    assert resp.status_code == 400
    assert db.procurements.find_one()["totalAmount"] == 5000.0


def test_unknown_supplier_is_not_found(client, db):
    resp = post_procurement(client, str(ObjectId()))
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Supplier not found"
    assert db.procurements.count_documents({}) == 0


def test_failed_supplier_touch_keeps_procurement(client, supplier, db, monkeypatch):
    from pymongo.errors import PyMongoError

    def boom(*args, **kwargs):
        raise PyMongoError("write failed")

    monkeypatch.setattr(type(db.suppliers), "update_one", boom)

    resp = post_procurement(client, supplier["_id"])
    assert resp.status_code == 201
    assert db.procurements.count_documents({}) == 1


# ── Reads ────────────────────────────────────────────────────────

def test_list_for_supplier(client, supplier, make_supplier):
    other = make_supplier(supplierName="Kumar")
    post_procurement(client, supplier["_id"], date="2024-01-01", time="AM")
    post_procurement(client, supplier["_id"], date="2024-01-01", time="PM")
    post_procurement(client, supplier["_id"], date="2024-01-03")
    post_procurement(client, other["_id"], date="2024-01-02")

    items = client.get(f"/supplier/procurement?supplierId={supplier['_id']}").get_json()
    assert [(i["date"], i["time"]) for i in items] == [
        ("2024-01-03", "AM"), ("2024-01-01", "PM"), ("2024-01-01", "AM"),
    ]

    ranged = client.get(
        f"/supplier/procurement?supplierId={supplier['_id']}&startDate=2024-01-02&endDate=2024-01-31"
    ).get_json()
    assert [i["date"] for i in ranged] == ["2024-01-03"]


def test_list_requires_supplier(client):
    assert client.get("/supplier/procurement").status_code == 400
    assert client.get("/supplier/procurement?supplierId=nope").status_code == 400


def test_get_single_record(client, supplier):
    rec_id = post_procurement(client, supplier["_id"]).get_json()["id"]
    resp = client.get(f"/supplier/procurement?id={rec_id}")
    assert resp.status_code == 200
    assert resp.get_json()["supplierId"] == supplier["_id"]
    assert client.get(f"/supplier/procurement?id={ObjectId()}").status_code == 404


def test_history_projection_and_cache_header(client, supplier):
    post_procurement(client, supplier["_id"], date="2024-01-01")
    post_procurement(client, supplier["_id"], date="2024-02-01")

    resp = client.get("/supplier/procurement/history?startDate=2024-01-15")
    assert resp.status_code == 200
    assert resp.headers["Cache-Control"] == "public, s-maxage=60, stale-while-revalidate=120"

    items = resp.get_json()
    assert len(items) == 1
    assert "updatedAt" not in items[0]
    assert items[0]["supplierId"] == supplier["_id"]
    assert items[0]["totalAmount"] == 5000.0


def test_history_limit(app, client, supplier):
    app.config["PROCUREMENT_HISTORY_LIMIT"] = 2
    for d in ("2024-01-01", "2024-01-02", "2024-01-03"):
        post_procurement(client, supplier["_id"], date=d)
    items = client.get("/supplier/procurement/history").get_json()
    assert [i["date"] for i in items] == ["2024-01-03", "2024-01-02"]


# ── Update & delete ──────────────────────────────────────────────

def test_update_recomputes_total(client, supplier):
    rec_id = post_procurement(client, supplier["_id"]).get_json()["id"]
    resp = client.put(f"/supplier/procurement?id={rec_id}", json={
        "date": "2024-01-02", "milkQuantity": 10, "rate": 45.5, "totalAmount": 0,
    })
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["totalAmount"] == 455.0
    assert data["date"] == "2024-01-02"


def test_update_errors(client, supplier):
    rec_id = post_procurement(client, supplier["_id"]).get_json()["id"]
    assert client.put("/supplier/procurement?id=bad", json={}).status_code == 400
    resp = client.put(f"/supplier/procurement?id={rec_id}", json={"date": "2024-01-02"})
    assert resp.status_code == 400
    resp = client.put(f"/supplier/procurement?id={ObjectId()}",
                      json={"date": "2024-01-02", "milkQuantity": 1, "rate": 1})
    assert resp.status_code == 404


def test_delete_record(client, supplier, db):
    rec_id = post_procurement(client, supplier["_id"]).get_json()["id"]
    resp = client.delete(f"/supplier/procurement?id={rec_id}")
    assert resp.status_code == 200
    assert resp.get_json()["deletedId"] == rec_id
    assert db.procurements.count_documents({}) == 0
    assert client.delete(f"/supplier/procurement?id={rec_id}").status_code == 404


# ── Export ───────────────────────────────────────────────────────

def test_export_bill(client, supplier):
    post_procurement(client, supplier["_id"], date="2024-01-02", time="PM", milkQuantity=10, rate=40)
    post_procurement(client, supplier["_id"], date="2024-01-02", time="AM", milkQuantity=20, rate=40)

    resp = client.get(
        f"/supplier/procurement/export?supplierId={supplier['_id']}&startDate=2024-01-01&endDate=2024-01-31"
    )
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"

    text = resp.get_data(as_text=True)
    lines = text.split("\n")
    assert lines[0] == "Ravi Farms"
    assert "Date,AM/PM,Quantity (Kg)" in text

    header = lines.index("Date,AM/PM,Quantity (Kg),Quantity (Ltr),FAT %,SNF %,Rate/L (Rs),Net Amount (Rs)")
    first, second = lines[header + 1], lines[header + 2]
    assert first.startswith("2024-01-02,AM,20.60,20.00")
    assert second.startswith("2024-01-02,PM,10.30,10.00")

    assert "Total Milk (Ltr),30.00" in text
    assert "Total Amount,Rs 1200.00" in text
    assert "Average Rate/L,Rs 40.00" in text
