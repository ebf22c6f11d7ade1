import pytest
from catalog.models import Color, Product, ProductColor, Size, Variant
from catalog.services import (
    DEFAULT_PRODUCT_PRICE,
    canonical_product_name,
    resolve_variant,
    resolve_variant_by_names,
    resolve_variant_id,
    size_sort_order,
)
from catalog.tests.factories import ColorFactory, ProductFactory, SizeFactory, VariantFactory
from common.exceptions import InvalidArgument, NotFound
from inventory.models import StockBalance
from inventory.tests.factories import LocationFactory


def test_canonical_product_name_applies_aliases():
    assert canonical_product_name("  poloshirt ") == "Poloshirt"
    assert canonical_product_name("Kaos Carded") == "T-shirt Katun PDK"
    assert canonical_product_name("Custom Tee") == "Custom Tee"


def test_size_sort_order_defaults():
    assert size_sort_order("xl") == 5
    assert size_sort_order("6XL") == 10


@pytest.mark.django_db
def test_resolve_by_ids_creates_variant_and_seeds_balances():
    loc_a = LocationFactory(code="A")
    loc_b = LocationFactory(code="B")
    product = ProductFactory()
    color = ColorFactory()
    size = SizeFactory(name="M")

    variant_id = resolve_variant_id(product.id, color.id, size.id)

    variant = Variant.objects.get(id=variant_id)
    assert variant.product_color.product == product
    assert variant.product_color.color == color
    balances = StockBalance.objects.filter(variant_id=variant_id)
    assert {b.location_id for b in balances} == {loc_a.id, loc_b.id}
    assert all(b.quantity_on_hand == 0 for b in balances)

    # Second call finds the same row
    assert resolve_variant_id(product.id, color.id, size.id) == variant_id
    assert Variant.objects.count() == 1


@pytest.mark.django_db
def test_resolve_by_ids_missing_reference_is_not_found():
    product = ProductFactory()
    color = ColorFactory()
    with pytest.raises(NotFound):
        resolve_variant_id(product.id, color.id, 999999)
    assert not ProductColor.objects.exists()


@pytest.mark.django_db
@pytest.mark.parametrize("bad", [0, -1, None, "abc"])
def test_resolve_by_ids_rejects_invalid_ids(bad):
    with pytest.raises(InvalidArgument):
        resolve_variant_id(bad, 1, 1)


@pytest.mark.django_db
def test_resolve_by_names_creates_missing_catalog_rows():
    LocationFactory(code="DISPLAY", name="Display Area", is_default=True)

    resolved = resolve_variant_by_names("poloshirt", "Navy", "XL")

    assert resolved.created is True
    product = Product.objects.get(name="Poloshirt")
    assert product.price == DEFAULT_PRODUCT_PRICE
    assert Color.objects.get(name="Navy").hex_code == "#808080"
    assert Size.objects.get(name="XL").sort_order == 5
    assert StockBalance.objects.filter(variant_id=resolved.id).count() == 1


@pytest.mark.django_db
def test_resolve_by_names_reuses_existing_variant():
    first = resolve_variant_by_names("Poloshirt", "Navy", "XL")
    again = resolve_variant_by_names("POLOSHIRT", "Navy", "XL")
    assert again.id == first.id
    assert again.created is False


@pytest.mark.django_db
def test_resolve_by_names_requires_all_names():
    with pytest.raises(InvalidArgument):
        resolve_variant_by_names("Poloshirt", "", "M")


@pytest.mark.django_db
def test_resolve_variant_dispatches_on_reference_type():
    variant = VariantFactory()
    product_id = variant.product_color.product_id
    color_id = variant.product_color.color_id

    by_ids = resolve_variant(product_id, color_id, variant.size_id)
    assert by_ids.id == variant.id
    assert by_ids.created is False

    by_names = resolve_variant("Henley", "Black", "S")
    assert by_names.created is True
    assert Variant.objects.count() == 2
