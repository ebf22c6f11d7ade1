"""CSV stock import.

Rows are applied one by one, each inside its own transaction, so a bad row
is reported and skipped without undoing the rows before it.
"""

import csv
import io
import logging
from dataclasses import dataclass, field

from catalog.services import resolve_variant_by_names
from common.choices import ImportMode, MovementDirection, ReasonCode
from common.exceptions import InvalidArgument, StockError
from django.db import DatabaseError, transaction

from .models import Location, StockBalance
from .services import MAX_QUANTITY, clean_unit_cost, create_movement

logger = logging.getLogger("stockledger.inventory")

REQUIRED_COLUMNS = ("product_name", "color_name", "size_name", "location_name", "quantity")
LOCATION_ALIASES = {
    "display": "display area",
    "lemari": "storage cabinet",
}
IMPORT_PIC = "CSV_IMPORT"


@dataclass
class ImportResult:
    imported: int = 0
    created: int = 0
    updated: int = 0
    total: int = 0
    errors: list = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "imported": self.imported,
            "created": self.created,
            "updated": self.updated,
            "errors": list(self.errors),
            "total": self.total,
        }


def detect_delimiter(text: str) -> str:
    first_line = text.split("\n", 1)[0]
    return ";" if ";" in first_line else ","


def parse_rows(text: str) -> list[dict]:
    text = text.lstrip("\ufeff")
    reader = csv.DictReader(io.StringIO(text), delimiter=detect_delimiter(text))
    rows = []
    for raw in reader:
        row = {(k or "").strip(): (v or "").strip() for k, v in raw.items() if k is not None}
        if any(row.values()):
            rows.append(row)
    return rows


def match_location(name: str, locations) -> Location | None:
    wanted = name.strip().lower()
    wanted = LOCATION_ALIASES.get(wanted, wanted)
    for loc in locations:
        if loc.name.lower() == wanted:
            return loc
    return None


def _parse_quantity(raw: str) -> int:
    try:
        qty = int(raw)
    except (TypeError, ValueError):
        raise InvalidArgument(f'Invalid quantity "{raw}"')
    if qty < 0 or qty > MAX_QUANTITY:
        raise InvalidArgument(f'Invalid quantity "{raw}"')
    return qty


def _apply_row(row: dict, *, mode: str, locations, result: ImportResult, created_by: str) -> None:
    missing = [col for col in REQUIRED_COLUMNS if not row.get(col)]
    if missing:
        raise InvalidArgument(f"Missing required fields: {', '.join(missing)}")
    qty = _parse_quantity(row["quantity"])
    unit_cost = clean_unit_cost(row.get("unit_cost") or None)

    location = match_location(row["location_name"], locations)
    if location is None:
        raise InvalidArgument(f'Unknown location "{row["location_name"]}"')

    label = f"{row['product_name']} {row['color_name']} {row['size_name']}"
    with transaction.atomic():
        resolved = resolve_variant_by_names(row["product_name"], row["color_name"], row["size_name"])
        booked = False
        if mode == ImportMode.ADD:
            if qty > 0:
                create_movement(
                    variant_id=resolved.id,
                    location_id=location.id,
                    direction=MovementDirection.IN,
                    reason_code=ReasonCode.ADJUSTMENT_IN,
                    quantity=qty,
                    unit_cost=unit_cost,
                    ref_code="CSV_IMPORT",
                    pic=IMPORT_PIC,
                    created_by=created_by,
                    note=f"CSV Import: {label}",
                )
                booked = True
        else:
            balance, _ = StockBalance.objects.select_for_update().get_or_create(
                variant_id=resolved.id, location_id=location.id, defaults={"quantity_on_hand": 0}
            )
            difference = qty - int(balance.quantity_on_hand)
            if difference != 0:
                create_movement(
                    variant_id=resolved.id,
                    location_id=location.id,
                    direction=MovementDirection.IN if difference > 0 else MovementDirection.OUT,
                    reason_code=ReasonCode.ADJUSTMENT_IN if difference > 0 else ReasonCode.ADJUSTMENT_OUT,
                    quantity=abs(difference),
                    unit_cost=unit_cost if difference > 0 else None,
                    ref_code="CSV_SET",
                    pic=IMPORT_PIC,
                    created_by=created_by,
                    note=f"CSV Set Stock: {label} -> {qty}",
                )
                booked = True

    result.imported += 1
    if resolved.created:
        result.created += 1
    if booked:
        result.updated += 1


def import_stock_csv(text: str, *, mode: str = ImportMode.ADD, created_by: str = "") -> dict:
    """Import stock levels from CSV text.

    Columns: product_name, color_name, size_name, location_name, quantity and
    optional unit_cost. ``add`` books the quantity as an adjustment in;
    ``set`` books the difference to the current balance. Errors are reported
    as ``Row <n>: <message>`` with the header counted as row 1.
    """

    if mode not in ImportMode.values:
        raise InvalidArgument(f"Invalid import mode {mode}")
    rows = parse_rows(text or "")
    if not rows:
        raise InvalidArgument("Invalid CSV data - no records found")

    locations = list(Location.objects.all())
    result = ImportResult(total=len(rows))
    for index, row in enumerate(rows):
        try:
            _apply_row(row, mode=mode, locations=locations, result=result, created_by=created_by)
        except StockError as exc:
            result.errors.append(f"Row {index + 2}: {exc.message or exc}")
        except DatabaseError as exc:
            # The row's atomic block has already rolled back
            logger.warning(
                "stock.csv_row_failed",
                extra={"event": "stock.csv_row_failed", "row": index + 2, "error": str(exc)},
            )
            result.errors.append(f"Row {index + 2}: {exc}")

    logger.info(
        "stock.csv_import_finished",
        extra={
            "event": "stock.csv_import_finished",
            "mode": str(mode),
            "total": result.total,
            "imported": result.imported,
            "variants_created": result.created,
            "errors": len(result.errors),
        },
    )
    return result.as_dict()


# EOF
