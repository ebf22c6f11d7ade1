import pytest
from catalog.tests.factories import ColorFactory, ProductColorFactory, ProductFactory, SizeFactory, VariantFactory
from inventory.models import StockBalance
from inventory.tests.factories import LocationFactory
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_products_in_stock_filter():
    display = LocationFactory(code="DISPLAY", name="Display Area", is_default=True)
    stocked = VariantFactory(product_color=ProductColorFactory(product=ProductFactory(name="Henley")))
    VariantFactory(product_color=ProductColorFactory(product=ProductFactory(name="Sweater")))
    StockBalance.objects.create(variant=stocked, location=display, quantity_on_hand=4)

    client = APIClient()
    all_names = [p["name"] for p in client.get("/api/v1/catalog/products/").json()]
    assert all_names == ["Henley", "Sweater"]

    resp = client.get("/api/v1/catalog/products/?in_stock=true")
    assert resp.status_code == 200
    assert [p["name"] for p in resp.json()] == ["Henley"]


@pytest.mark.django_db
def test_product_colors_only_lists_colors_with_stock():
    display = LocationFactory(code="DISPLAY", name="Display Area", is_default=True)
    product = ProductFactory(name="Poloshirt")
    black = ColorFactory(name="Black")
    white = ColorFactory(name="White")
    v_black = VariantFactory(product_color=ProductColorFactory(product=product, color=black))
    v_white = VariantFactory(product_color=ProductColorFactory(product=product, color=white))
    StockBalance.objects.create(variant=v_black, location=display, quantity_on_hand=2)
    StockBalance.objects.create(variant=v_white, location=display, quantity_on_hand=0)

    resp = APIClient().get(f"/api/v1/catalog/products/{product.id}/colors/")
    assert resp.status_code == 200
    assert [c["name"] for c in resp.json()] == ["Black"]


@pytest.mark.django_db
def test_sizes_for_product_color_include_location_breakdown():
    display = LocationFactory(code="DISPLAY", name="Display Area", is_default=True)
    cabinet = LocationFactory(code="LEMARI", name="Storage Cabinet")
    pc = ProductColorFactory()
    medium = VariantFactory(product_color=pc, size=SizeFactory(name="M"))
    large = VariantFactory(product_color=pc, size=SizeFactory(name="L"))
    StockBalance.objects.create(variant=medium, location=display, quantity_on_hand=3)
    StockBalance.objects.create(variant=medium, location=cabinet, quantity_on_hand=4)
    StockBalance.objects.create(variant=large, location=display, quantity_on_hand=0)

    url = f"/api/v1/catalog/products/{pc.product_id}/colors/{pc.color_id}/sizes/"
    resp = APIClient().get(url)
    assert resp.status_code == 200
    rows = resp.json()
    assert len(rows) == 1
    assert rows[0]["size_name"] == "M"
    assert rows[0]["variant_id"] == medium.id
    assert rows[0]["total_qty"] == 7
    assert {loc["location_name"]: loc["qty"] for loc in rows[0]["locations"]} == {
        "Display Area": 3,
        "Storage Cabinet": 4,
    }


@pytest.mark.django_db
def test_sizes_listed_in_sort_order():
    SizeFactory(name="XL")
    SizeFactory(name="S")
    SizeFactory(name="M")
    resp = APIClient().get("/api/v1/catalog/sizes/")
    assert resp.status_code == 200
    assert [s["name"] for s in resp.json()] == ["S", "M", "XL"]


@pytest.mark.django_db
def test_non_numeric_product_id_is_not_found():
    client = APIClient()
    assert client.get("/api/v1/catalog/products/abc/colors/").status_code == 404
    assert client.get("/api/v1/catalog/products/abc/").status_code == 404
