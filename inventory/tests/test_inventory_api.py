import pytest
from catalog.tests.factories import variant_with_balances
from django.core.files.uploadedfile import SimpleUploadedFile
from inventory.models import StockBalance
from inventory.services import create_movement
from inventory.tests.factories import LocationFactory
from rest_framework.test import APIClient


@pytest.fixture
def client():
    return APIClient()


@pytest.fixture
def stocked(db):
    display = LocationFactory(code="DISPLAY", name="Display Area", is_default=True)
    cabinet = LocationFactory(code="LEMARI", name="Storage Cabinet")
    variant = variant_with_balances()
    create_movement(
        variant_id=variant.id, location_id=display.id, direction="IN", reason_code="OVERPROD_IN", quantity=10
    )
    return variant, display, cabinet


def test_health_endpoints(client, db):
    assert client.get("/api/v1/inventory/health/").json() == {"status": "ok", "app": "inventory"}
    resp = client.get("/health/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_post_movement_and_list_filters(client, stocked):
    variant, display, _ = stocked
    resp = client.post(
        "/api/v1/stock/movements/",
        {
            "variant_id": variant.id,
            "location_id": display.id,
            "movement_type": "OUT",
            "reason_code": "SALES_OUT",
            "qty": 3,
            "ref_code": "SL-9",
        },
        format="json",
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["movement_type"] == "OUT"
    assert body["qty"] == 3
    assert body["location_code"] == "DISPLAY"
    assert StockBalance.objects.get(variant=variant, location=display).quantity_on_hand == 7

    listing = client.get("/api/v1/stock/movements/?movement_type=OUT").json()
    assert listing["count"] == 1
    assert listing["results"][0]["ref_code"] == "SL-9"

    by_ref = client.get("/api/v1/stock/movements/?ref_code=SL-9&variant_id=%d" % variant.id).json()
    assert [row["id"] for row in by_ref["results"]] == [body["id"]]


def test_post_movement_by_triple(client, stocked):
    variant, display, _ = stocked
    pc = variant.product_color
    resp = client.post(
        "/api/v1/stock/movements/",
        {
            "product_id": pc.product_id,
            "color_id": pc.color_id,
            "size_id": variant.size_id,
            "location_id": display.id,
            "movement_type": "IN",
            "reason_code": "RETURN_IN",
            "qty": 1,
        },
        format="json",
    )
    assert resp.status_code == 201
    assert resp.json()["variant_id"] == variant.id


def test_post_movement_errors(client, stocked):
    variant, display, _ = stocked
    base = {"variant_id": variant.id, "location_id": display.id, "movement_type": "OUT", "qty": 50}

    short = client.post("/api/v1/stock/movements/", {**base, "reason_code": "SALES_OUT"}, format="json")
    assert short.status_code == 400
    assert short.json()["code"] == "insufficient_stock"
    assert short.json()["available"] == 10
    assert short.json()["required"] == 50

    mismatch = client.post("/api/v1/stock/movements/", {**base, "reason_code": "RETURN_IN"}, format="json")
    assert mismatch.status_code == 400
    assert mismatch.json()["code"] == "invalid_reason_code"

    missing = client.post(
        "/api/v1/stock/movements/",
        {**base, "reason_code": "SALES_OUT", "variant_id": 999999, "qty": 1},
        format="json",
    )
    assert missing.status_code == 404

    no_identity = client.post(
        "/api/v1/stock/movements/",
        {"location_id": display.id, "movement_type": "IN", "reason_code": "RETURN_IN", "qty": 1},
        format="json",
    )
    assert no_identity.status_code == 400


def test_transfer_endpoint(client, stocked):
    variant, display, cabinet = stocked
    resp = client.post(
        "/api/v1/stock/transfer/",
        {"variant_id": variant.id, "from_location_id": display.id, "to_location_id": cabinet.id, "qty": 4},
        format="json",
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["out_movement"]["reason_code"] == "TRANSFER_OUT"
    assert body["in_movement"]["reason_code"] == "TRANSFER_IN"
    assert body["ref_code"] == body["out_movement"]["ref_code"]
    assert StockBalance.objects.get(variant=variant, location=cabinet).quantity_on_hand == 4

    same = client.post(
        "/api/v1/stock/transfer/",
        {"variant_id": variant.id, "from_location_id": display.id, "to_location_id": display.id, "qty": 1},
        format="json",
    )
    assert same.status_code == 400


def test_stock_card_endpoint(client, stocked):
    variant, display, _ = stocked
    resp = client.get(f"/api/v1/stock/card/?variant_id={variant.id}&location_id={display.id}")
    assert resp.status_code == 200
    card = resp.json()
    assert card["current_qty"] == 10
    assert card["movements"][0]["running_balance"] == 10

    StockBalance.objects.filter(variant=variant, location=display).update(quantity_on_hand=3)
    fault = client.get(f"/api/v1/stock/card/?variant_id={variant.id}&location_id={display.id}")
    assert fault.status_code == 500
    assert fault.json()["code"] == "integrity_fault"

    missing = client.get(f"/api/v1/stock/card/?variant_id={variant.id}")
    assert missing.status_code == 400


def test_tree_stats_and_locations(client, stocked):
    variant, display, cabinet = stocked

    tree = client.get("/api/v1/inventory/tree/").json()
    assert tree["count"] == 1
    group = tree["results"][0]
    assert group["total_qty"] == 10
    assert [loc["location_code"] for loc in group["locations"]] == ["DISPLAY", "LEMARI"]

    only = client.get("/api/v1/inventory/tree/?only_available=true").json()
    assert [loc["location_code"] for loc in only["results"][0]["locations"]] == ["DISPLAY"]

    stats = client.get("/api/v1/inventory/stats/").json()
    assert stats["total_variants"] == 1
    assert stats["total_qty"] == 10
    assert stats["variants_with_stock"] == 1
    assert stats["variants_out_of_stock"] == 1

    locations = client.get("/api/v1/inventory/locations/").json()
    assert locations[0]["code"] == "DISPLAY"
    assert locations[0]["total_qty"] == 10
    assert locations[1]["total_qty"] == 0


def test_create_location_endpoint(client, stocked):
    variant, _, _ = stocked
    resp = client.post("/api/v1/inventory/locations/", {"code": "gudang", "name": "Warehouse"}, format="json")
    assert resp.status_code == 201
    assert resp.json()["code"] == "GUDANG"
    assert StockBalance.objects.filter(variant=variant, location_id=resp.json()["id"]).exists()

    dup = client.post("/api/v1/inventory/locations/", {"code": "GUDANG", "name": "Again"}, format="json")
    assert dup.status_code == 400


def test_variant_resolve_search_and_delete(client, stocked):
    created = client.post(
        "/api/v1/inventory/variants/resolve/",
        {"product_name": "Henley", "color_name": "Black", "size_name": "L"},
        format="json",
    )
    assert created.status_code == 201
    variant_id = created.json()["variant_id"]

    again = client.post(
        "/api/v1/inventory/variants/resolve/",
        {"product_name": "henley", "color_name": "Black", "size_name": "L"},
        format="json",
    )
    assert again.status_code == 200
    assert again.json() == {"variant_id": variant_id, "created": False}

    search = client.get("/api/v1/inventory/variants/search/?q=henley").json()
    assert [row["variant_id"] for row in search["results"]] == [variant_id]

    deleted = client.delete(f"/api/v1/inventory/variants/{variant_id}/")
    assert deleted.status_code == 200
    assert client.delete(f"/api/v1/inventory/variants/{variant_id}/").status_code == 404


def test_csv_import_endpoint(client, stocked):
    _, display, _ = stocked
    upload = SimpleUploadedFile(
        "stock.csv",
        b"product_name,color_name,size_name,location_name,quantity\n"
        b"Henley,White,M,Display,6\n"
        b"Henley,White,S,Nowhere,1\n",
        content_type="text/csv",
    )
    resp = client.post("/api/v1/stock/import-csv/", {"file": upload, "mode": "add"}, format="multipart")
    assert resp.status_code == 200
    body = resp.json()
    assert body["imported"] == 1
    assert body["total"] == 2
    assert body["errors"] == ['Row 3: Unknown location "Nowhere"']


def test_tree_rejects_non_numeric_filters(client, stocked):
    _, display, _ = stocked

    assert client.get("/api/v1/inventory/tree/?product_id=abc").status_code == 400
    assert client.get("/api/v1/inventory/tree/?location_id=x1").status_code == 400
    assert client.get("/api/v1/inventory/tree/?only_available=maybe").status_code == 400

    ok = client.get(f"/api/v1/inventory/tree/?location_id={display.id}&only_available=1&color_id=")
    assert ok.status_code == 200
    assert ok.json()["count"] == 1
