"""Inventory services (multi-location): transactional ledger movements.

Every quantity change goes through ``create_movement`` which appends a
``StockMovement`` row and updates the matching ``StockBalance`` under a row
lock inside the same transaction.
"""

import logging
import secrets
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from catalog.models import Variant
from common.choices import REASONS_BY_DIRECTION, MovementDirection, ReasonCode
from common.exceptions import InsufficientStock, InvalidArgument, InvalidReasonCode, NotFound
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Location, StockBalance, StockMovement

logger = logging.getLogger("stockledger.inventory")

AVG_COST_QUANT = Decimal("0.0001")
UNIT_COST_QUANT = Decimal("0.01")
# Column limits: IntegerField quantity, DecimalField(max_digits=15, decimal_places=2) unit_cost
MAX_QUANTITY = 2147483647
MAX_UNIT_COST = Decimal("9999999999999.99")
SALE_REF_TABLE = "sales"


def negative_stock_allowed() -> bool:
    return bool(getattr(settings, "STOCK_ALLOW_NEGATIVE", False))


def moving_average(on_hand: int, avg_cost: Decimal, quantity: int, unit_cost: Decimal) -> Decimal:
    """Weighted average of the stock on hand and an incoming lot.

    With nothing on hand the incoming cost becomes the average. The same
    holds for a negative on-hand quantity: the weighted formula
    ``(Q*C + q*c) / (Q + q)`` is not applied there, since it divides by zero
    when the lot exactly covers the shortfall and weights the old cost
    negatively otherwise.
    """

    if on_hand <= 0:
        return Decimal(unit_cost).quantize(AVG_COST_QUANT, rounding=ROUND_HALF_UP)
    total = Decimal(on_hand) * Decimal(avg_cost) + Decimal(quantity) * Decimal(unit_cost)
    return (total / Decimal(on_hand + quantity)).quantize(AVG_COST_QUANT, rounding=ROUND_HALF_UP)


def _positive_int(value, label: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise InvalidArgument(f"{label} must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{label} must be a positive integer")
    if number <= 0:
        raise InvalidArgument(f"{label} must be a positive integer")
    if number > MAX_QUANTITY:
        raise InvalidArgument(f"{label} must not exceed {MAX_QUANTITY}")
    return number


def clean_unit_cost(unit_cost):
    if unit_cost in (None, ""):
        return None
    try:
        cost = Decimal(str(unit_cost))
    except (InvalidOperation, ValueError):
        raise InvalidArgument("unit_cost must be a number")
    if not cost.is_finite() or cost < 0:
        raise InvalidArgument("unit_cost must be zero or positive")
    # Stored with 2 decimals; the average must be fed the stored value
    cost = cost.quantize(UNIT_COST_QUANT, rounding=ROUND_HALF_UP)
    if cost > MAX_UNIT_COST:
        raise InvalidArgument(f"unit_cost must not exceed {MAX_UNIT_COST}")
    return cost


def validate_reason(direction: str, reason_code: str) -> None:
    if direction not in REASONS_BY_DIRECTION:
        raise InvalidArgument(f"Invalid movement type {direction}")
    if reason_code not in REASONS_BY_DIRECTION[direction]:
        raise InvalidReasonCode(reason_code, direction)


def _lock_balance(*, variant_id: int, location_id: int) -> StockBalance:
    balance, _ = StockBalance.objects.select_for_update().get_or_create(
        variant_id=variant_id, location_id=location_id, defaults={"quantity_on_hand": 0}
    )
    return balance


def _book(
    balance: StockBalance,
    *,
    direction: str,
    reason_code: str,
    quantity: int,
    unit_cost,
    allow_negative: bool,
    **fields,
) -> StockMovement:
    """Insert the movement and apply it to an already locked balance row."""

    on_hand = int(balance.quantity_on_hand)
    if direction == MovementDirection.OUT and not allow_negative and on_hand < quantity:
        logger.info(
            "stock.insufficient",
            extra={
                "event": "stock.insufficient",
                "variant_id": balance.variant_id,
                "location_id": balance.location_id,
                "available": on_hand,
                "required": quantity,
            },
        )
        raise InsufficientStock(available=on_hand, required=quantity)

    movement = StockMovement.objects.create(
        variant_id=balance.variant_id,
        location_id=balance.location_id,
        direction=direction,
        reason_code=reason_code,
        quantity=quantity,
        unit_cost=unit_cost,
        **fields,
    )

    if direction == MovementDirection.IN:
        if unit_cost is not None and unit_cost > 0:
            balance.avg_cost = moving_average(on_hand, balance.avg_cost, quantity, unit_cost)
        balance.quantity_on_hand = on_hand + quantity
    else:
        balance.quantity_on_hand = on_hand - quantity
    balance.save(update_fields=["quantity_on_hand", "avg_cost", "updated_at"])

    logger.info(
        "stock.movement_created",
        extra={
            "event": "stock.movement_created",
            "movement_id": movement.id,
            "variant_id": movement.variant_id,
            "location_id": movement.location_id,
            "direction": direction,
            "reason_code": reason_code,
            "quantity": quantity,
            "balance": balance.quantity_on_hand,
        },
    )
    return movement


def _movement_fields(*, unit, currency, ref_table, ref_id, ref_code, note, pic, created_by) -> dict:
    return {
        "unit": unit or getattr(settings, "STOCK_DEFAULT_UNIT", "pcs"),
        "currency": currency or getattr(settings, "STOCK_DEFAULT_CURRENCY", "IDR"),
        "ref_table": ref_table or "",
        "ref_id": ref_id,
        "ref_code": ref_code or "",
        "note": note or "",
        "pic": pic or "",
        "created_by": created_by or "",
    }


@transaction.atomic
def create_movement(
    *,
    variant_id: int,
    location_id: int,
    direction: str,
    reason_code: str,
    quantity: int,
    unit_cost=None,
    unit: str = "pcs",
    currency: str | None = None,
    ref_table: str = "",
    ref_id: int | None = None,
    ref_code: str = "",
    note: str = "",
    pic: str = "",
    created_by: str = "",
    allow_negative: bool | None = None,
) -> StockMovement:
    """Append one ledger movement and update the cached balance.

    Raises InvalidArgument, InvalidReasonCode, NotFound or InsufficientStock;
    any raise rolls back the movement and the balance update together. When
    ``allow_negative`` is None the ``STOCK_ALLOW_NEGATIVE`` setting applies.
    """

    if not variant_id or not location_id or not direction or not reason_code:
        raise InvalidArgument("Missing required fields: variant_id, location_id, movement_type, reason_code, qty")
    quantity = _positive_int(quantity, "qty")
    unit_cost = clean_unit_cost(unit_cost)
    validate_reason(direction, reason_code)
    if allow_negative is None:
        allow_negative = negative_stock_allowed()

    if not Variant.objects.filter(id=variant_id).exists():
        raise NotFound(f"Variant {variant_id} not found")
    if not Location.objects.filter(id=location_id).exists():
        raise NotFound(f"Location {location_id} not found")

    balance = _lock_balance(variant_id=variant_id, location_id=location_id)
    return _book(
        balance,
        direction=direction,
        reason_code=reason_code,
        quantity=quantity,
        unit_cost=unit_cost,
        allow_negative=allow_negative,
        **_movement_fields(
            unit=unit,
            currency=currency,
            ref_table=ref_table,
            ref_id=ref_id,
            ref_code=ref_code,
            note=note,
            pic=pic,
            created_by=created_by,
        ),
    )


def generate_transfer_ref() -> str:
    stamp = timezone.now().strftime("%Y%m%d%H%M%S%f")
    return f"TRF-{stamp}-{secrets.token_hex(4)}"


@transaction.atomic
def transfer_stock(
    *,
    variant_id: int,
    from_location_id: int,
    to_location_id: int,
    quantity: int,
    ref_code: str | None = None,
    note: str | None = None,
    pic: str = "",
    created_by: str = "",
    allow_negative: bool | None = None,
) -> tuple[StockMovement, StockMovement]:
    """Move stock between two locations as a TRANSFER_OUT/TRANSFER_IN pair.

    Both balance rows are locked in ascending location id order so two
    opposite transfers cannot deadlock. Either both legs are booked or
    neither is.
    """

    if not variant_id or not from_location_id or not to_location_id:
        raise InvalidArgument("Missing required fields: variant_id, from_location_id, to_location_id, qty")
    quantity = _positive_int(quantity, "qty")
    if int(from_location_id) == int(to_location_id):
        raise InvalidArgument("Source and destination locations must be different")
    if allow_negative is None:
        allow_negative = negative_stock_allowed()

    if not Variant.objects.filter(id=variant_id).exists():
        raise NotFound(f"Variant {variant_id} not found")
    found = set(Location.objects.filter(id__in=[from_location_id, to_location_id]).values_list("id", flat=True))
    for loc_id in (from_location_id, to_location_id):
        if int(loc_id) not in found:
            raise NotFound(f"Location {loc_id} not found")

    locked = {}
    for loc_id in sorted((int(from_location_id), int(to_location_id))):
        locked[loc_id] = _lock_balance(variant_id=variant_id, location_id=loc_id)

    ref_code = ref_code or generate_transfer_ref()
    common = _movement_fields(
        unit=None, currency=None, ref_table="", ref_id=None, ref_code=ref_code, note="", pic=pic, created_by=created_by
    )

    common["note"] = note or f"Transfer to location {to_location_id}"
    out_movement = _book(
        locked[int(from_location_id)],
        direction=MovementDirection.OUT,
        reason_code=ReasonCode.TRANSFER_OUT,
        quantity=quantity,
        unit_cost=None,
        allow_negative=allow_negative,
        **common,
    )
    common["note"] = note or f"Transfer from location {from_location_id}"
    in_movement = _book(
        locked[int(to_location_id)],
        direction=MovementDirection.IN,
        reason_code=ReasonCode.TRANSFER_IN,
        quantity=quantity,
        unit_cost=None,
        allow_negative=allow_negative,
        **common,
    )

    logger.info(
        "stock.transfer_completed",
        extra={
            "event": "stock.transfer_completed",
            "variant_id": variant_id,
            "from_location_id": from_location_id,
            "to_location_id": to_location_id,
            "quantity": quantity,
            "ref_code": ref_code,
        },
    )
    return out_movement, in_movement


def _item_variant_id(item: dict) -> int:
    from catalog.services import resolve_variant_id

    if item.get("variant_id"):
        return int(item["variant_id"])
    return resolve_variant_id(item.get("product_id"), item.get("color_id"), item.get("size_id"))


@transaction.atomic
def bulk_create_movements(items, **common) -> list[StockMovement]:
    """Book several movements that share location, direction, reason and references.

    Each item carries ``product_id``/``color_id``/``size_id`` (or a
    ``variant_id``), a ``quantity`` and optionally a ``unit_cost``.
    """

    movements = []
    for item in items:
        fields = dict(common)
        if item.get("unit_cost") is not None:
            fields["unit_cost"] = item["unit_cost"]
        movements.append(create_movement(variant_id=_item_variant_id(item), quantity=item.get("quantity"), **fields))
    return movements


def default_location() -> Location:
    location = Location.objects.filter(is_default=True).order_by("id").first()
    if location is None:
        raise NotFound("No default location configured")
    return location


@transaction.atomic
def book_sale_stock(
    *,
    sale_id: int,
    sale_code: str,
    items,
    free_items=(),
    location_id: int | None = None,
    pic: str = "",
    created_by: str = "",
) -> list[StockMovement]:
    """Deplete stock for a completed sale.

    Sold items and promotional free items are both booked as
    ``OUT/SALES_OUT`` against the sale; free items carry a
    ``Free item: <name>`` note. The whole sale books or nothing does.
    """

    if location_id is None:
        location_id = default_location().id

    common = {
        "location_id": location_id,
        "direction": MovementDirection.OUT,
        "reason_code": ReasonCode.SALES_OUT,
        "ref_table": SALE_REF_TABLE,
        "ref_id": sale_id,
        "ref_code": sale_code,
        "pic": pic,
        "created_by": created_by,
    }
    movements = []
    for item in items:
        movements.append(
            create_movement(
                variant_id=_item_variant_id(item),
                quantity=item.get("quantity"),
                note=item.get("note") or f"Sale {sale_code}",
                **common,
            )
        )
    for item in free_items:
        movements.append(
            create_movement(
                variant_id=_item_variant_id(item),
                quantity=item.get("quantity"),
                note=f"Free item: {item.get('name') or ''}".strip(),
                **common,
            )
        )
    return movements


def initialize_balances_for_variant(*, variant_id: int) -> int:
    """Create zero balance rows for a variant at every location that lacks one."""

    existing = set(StockBalance.objects.filter(variant_id=variant_id).values_list("location_id", flat=True))
    rows = [
        StockBalance(variant_id=variant_id, location_id=loc_id, quantity_on_hand=0)
        for loc_id in Location.objects.values_list("id", flat=True)
        if loc_id not in existing
    ]
    StockBalance.objects.bulk_create(rows, ignore_conflicts=True)
    return len(rows)


def initialize_balances_for_location(*, location_id: int) -> int:
    existing = set(StockBalance.objects.filter(location_id=location_id).values_list("variant_id", flat=True))
    rows = [
        StockBalance(variant_id=var_id, location_id=location_id, quantity_on_hand=0)
        for var_id in Variant.objects.values_list("id", flat=True)
        if var_id not in existing
    ]
    StockBalance.objects.bulk_create(rows, ignore_conflicts=True)
    return len(rows)


@transaction.atomic
def create_location(code: str, name: str, is_default: bool = False) -> Location:
    """Create a location and seed zero balances for every existing variant.

    A new default location takes the flag away from all others.
    """

    code = (code or "").strip().upper()
    name = (name or "").strip()
    if not code or not name:
        raise InvalidArgument("Location code and name are required")
    if Location.objects.filter(code=code).exists():
        raise InvalidArgument(f"Location code {code} already exists")

    if is_default:
        Location.objects.filter(is_default=True).update(is_default=False)
    location = Location.objects.create(code=code, name=name, is_default=bool(is_default))
    seeded = initialize_balances_for_location(location_id=location.id)
    logger.info(
        "inventory.location_created",
        extra={
            "event": "inventory.location_created",
            "location_id": location.id,
            "code": code,
            "is_default": location.is_default,
            "balances_seeded": seeded,
        },
    )
    return location


@transaction.atomic
def delete_variant(variant_id: int) -> dict:
    """Delete a variant with its opname items, movements and balances.

    This erases ledger history for the variant and is meant for cleaning up
    variants created by mistake.
    """

    from opname.models import StockOpnameItem

    try:
        variant = Variant.objects.select_for_update().get(id=variant_id)
    except Variant.DoesNotExist:
        raise NotFound(f"Variant {variant_id} not found")

    opname_items, _ = StockOpnameItem.objects.filter(variant_id=variant.id).delete()
    movements, _ = StockMovement.objects.filter(variant_id=variant.id).delete()
    balances, _ = StockBalance.objects.filter(variant_id=variant.id).delete()
    variant.delete()
    logger.warning(
        "inventory.variant_deleted",
        extra={
            "event": "inventory.variant_deleted",
            "variant_id": variant_id,
            "opname_items": opname_items,
            "movements": movements,
            "balances": balances,
        },
    )
    return {"variant_id": variant_id, "opname_items": opname_items, "movements": movements, "balances": balances}


# EOF
