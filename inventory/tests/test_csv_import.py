from decimal import Decimal

import pytest
from catalog.models import Product, Variant
from common.exceptions import InvalidArgument
from django.core.management import call_command
from django.db import DatabaseError
from inventory import imports
from inventory.imports import detect_delimiter, import_stock_csv, parse_rows
from inventory.models import StockBalance, StockMovement
from inventory.tests.factories import LocationFactory

HEADER = "product_name,color_name,size_name,location_name,quantity,unit_cost\n"


@pytest.fixture
def locations(db):
    return (
        LocationFactory(code="DISPLAY", name="Display Area", is_default=True),
        LocationFactory(code="LEMARI", name="Storage Cabinet"),
    )


def _qty(location, product="Poloshirt", color="Navy", size="M") -> int:
    return StockBalance.objects.get(
        location=location,
        variant__product_color__product__name=product,
        variant__product_color__color__name=color,
        variant__size__name=size,
    ).quantity_on_hand


def test_parse_rows_handles_semicolons_and_bom():
    text = "\ufeffproduct_name;color_name;size_name;location_name;quantity\nHenley;Black;L;Display;3\n;;;;\n"
    assert detect_delimiter(text.lstrip("\ufeff")) == ";"
    rows = parse_rows(text)
    assert rows == [
        {"product_name": "Henley", "color_name": "Black", "size_name": "L", "location_name": "Display", "quantity": "3"}
    ]


@pytest.mark.django_db
def test_add_mode_books_adjustments_and_creates_variants(locations):
    display, cabinet = locations
    text = HEADER + "poloshirt,Navy,M,Display,5,25000\nPoloshirt,Navy,M,lemari,2,\n"

    result = import_stock_csv(text, created_by="tester")

    assert result == {"imported": 2, "created": 1, "updated": 2, "errors": [], "total": 2}
    assert Product.objects.filter(name="Poloshirt").count() == 1
    assert _qty(display) == 5
    assert _qty(cabinet) == 2
    movement = StockMovement.objects.get(location=display)
    assert movement.reason_code == "ADJUSTMENT_IN"
    assert movement.ref_code == "CSV_IMPORT"
    assert movement.unit_cost == Decimal("25000.00")
    assert movement.created_by == "tester"


@pytest.mark.django_db
def test_set_mode_books_difference(locations):
    display, _ = locations
    import_stock_csv(HEADER + "Poloshirt,Navy,M,Display Area,10,\n")

    result = import_stock_csv(HEADER + "Poloshirt,Navy,M,Display Area,4,\n", mode="set")

    assert result["updated"] == 1
    assert _qty(display) == 4
    adjustment = StockMovement.objects.get(ref_code="CSV_SET")
    assert adjustment.direction == "OUT"
    assert adjustment.reason_code == "ADJUSTMENT_OUT"
    assert adjustment.quantity == 6

    # Same level again: nothing to book
    again = import_stock_csv(HEADER + "Poloshirt,Navy,M,Display Area,4,\n", mode="set")
    assert again["imported"] == 1
    assert again["updated"] == 0
    assert StockMovement.objects.filter(ref_code="CSV_SET").count() == 1


@pytest.mark.django_db
def test_bad_rows_are_reported_and_skipped(locations):
    display, _ = locations
    text = (
        HEADER
        + "Poloshirt,Navy,M,Display,3,\n"
        + "Poloshirt,Navy,M,Warehouse 9,1,\n"
        + "Poloshirt,Navy,L,Display,x,\n"
        + ",Navy,L,Display,1,\n"
    )

    result = import_stock_csv(text)

    assert result["imported"] == 1
    assert result["total"] == 4
    assert result["errors"] == [
        'Row 3: Unknown location "Warehouse 9"',
        'Row 4: Invalid quantity "x"',
        "Row 5: Missing required fields: product_name",
    ]
    assert _qty(display) == 3
    assert Variant.objects.count() == 1


@pytest.mark.django_db
def test_empty_csv_and_bad_mode_are_rejected(locations):
    with pytest.raises(InvalidArgument):
        import_stock_csv(HEADER)
    with pytest.raises(InvalidArgument):
        import_stock_csv(HEADER + "Poloshirt,Navy,M,Display,1,\n", mode="replace")


@pytest.mark.django_db
def test_import_command_reads_file(locations, tmp_path):
    display, _ = locations
    path = tmp_path / "stock.csv"
    path.write_text(HEADER + "Henley,Black,L,Display,7,\n", encoding="utf-8")

    call_command("import_stock_csv", str(path))

    assert _qty(display, product="Henley", color="Black", size="L") == 7


@pytest.mark.django_db
def test_out_of_range_values_are_row_errors(locations):
    display, _ = locations
    text = (
        HEADER
        + "Henley,Black,M,display,99999999999999999999,\n"
        + "Henley,Black,M,display,1,99999999999999999\n"
        + "Henley,Black,M,display,2,1500.555\n"
    )

    result = import_stock_csv(text)

    assert result["imported"] == 1
    assert result["errors"] == [
        'Row 2: Invalid quantity "99999999999999999999"',
        "Row 3: unit_cost must not exceed 9999999999999.99",
    ]
    assert _qty(display, product="Henley", color="Black") == 2
    assert StockMovement.objects.get(location=display).unit_cost == Decimal("1500.56")


@pytest.mark.django_db
def test_database_error_on_one_row_does_not_stop_the_import(locations, monkeypatch):
    display, _ = locations
    real_resolve = imports.resolve_variant_by_names

    def resolve(product, color, size):
        if product == "Broken":
            raise DatabaseError("value out of range")
        return real_resolve(product, color, size)

    monkeypatch.setattr(imports, "resolve_variant_by_names", resolve)

    result = import_stock_csv(HEADER + "Broken,Black,M,Display,1,\nPoloshirt,Navy,M,Display,4,\n")

    assert result["imported"] == 1
    assert result["errors"] == ["Row 2: value out of range"]
    assert _qty(display) == 4
