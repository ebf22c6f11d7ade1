"""Selectors for the inventory ledger: stock cards, balance trees and integrity checks."""

import logging

from catalog.models import Color, Product, Size, Variant
from common.choices import MovementDirection
from common.exceptions import IntegrityFault, InvalidArgument, NotFound
from django.db.models import Avg, Case, Count, F, IntegerField, Q, Sum, Value, When
from django.db.models.functions import Coalesce
from django.utils import timezone

from .filters import StockMovementFilterSet
from .models import Location, StockBalance, StockMovement

logger = logging.getLogger("stockledger.inventory")

MAX_LIMIT = 1000

SIGNED_QUANTITY = Case(
    When(direction=MovementDirection.IN, then=F("quantity")),
    default=-F("quantity"),
    output_field=IntegerField(),
)


def _clamp_limit(limit, default: int = 100) -> int:
    try:
        value = int(limit) if limit not in (None, "") else default
    except (TypeError, ValueError):
        raise InvalidArgument("limit must be an integer")
    return max(1, min(value, MAX_LIMIT))


def ledger_quantity(variant_id: int, location_id: int, before=None, until=None) -> int:
    """Signed sum of the ledger for a (variant, location) pair.

    ``before`` excludes movements at or after that instant; ``until``
    includes movements up to and including it.
    """

    qs = StockMovement.objects.filter(variant_id=variant_id, location_id=location_id)
    if before is not None:
        qs = qs.filter(created_at__lt=before)
    if until is not None:
        qs = qs.filter(created_at__lte=until)
    return int(qs.aggregate(total=Coalesce(Sum(SIGNED_QUANTITY), Value(0)))["total"])


def find_balance_drift(variant_id: int | None = None, location_id: int | None = None) -> list[dict]:
    """Every (variant, location) whose ledger replay disagrees with the cached balance."""

    movements = StockMovement.objects.all()
    balances = StockBalance.objects.all()
    if variant_id:
        movements = movements.filter(variant_id=variant_id)
        balances = balances.filter(variant_id=variant_id)
    if location_id:
        movements = movements.filter(location_id=location_id)
        balances = balances.filter(location_id=location_id)

    ledger = {
        (row["variant_id"], row["location_id"]): int(row["total"])
        for row in movements.values("variant_id", "location_id").annotate(total=Sum(SIGNED_QUANTITY))
    }
    drift = []
    seen = set()
    for variant, location, cached in balances.values_list("variant_id", "location_id", "quantity_on_hand"):
        key = (variant, location)
        seen.add(key)
        expected = ledger.get(key, 0)
        if expected != int(cached):
            drift.append({"variant_id": variant, "location_id": location, "ledger_qty": expected, "cached_qty": cached})
    for key, expected in ledger.items():
        if key not in seen and expected != 0:
            drift.append({"variant_id": key[0], "location_id": key[1], "ledger_qty": expected, "cached_qty": None})
    return drift


def _raise_integrity_fault(*, variant_id: int, location_id: int, ledger_qty: int, cached_qty: int):
    logger.error(
        "stock.integrity_fault",
        extra={
            "event": "stock.integrity_fault",
            "variant_id": variant_id,
            "location_id": location_id,
            "ledger_qty": ledger_qty,
            "cached_qty": cached_qty,
        },
    )
    raise IntegrityFault(variant_id=variant_id, location_id=location_id, ledger_qty=ledger_qty, cached_qty=cached_qty)


def assert_balance_consistent(variant_id: int, location_id: int) -> int:
    """Return the balance quantity, raising IntegrityFault when the ledger disagrees."""

    cached = (
        StockBalance.objects.filter(variant_id=variant_id, location_id=location_id)
        .values_list("quantity_on_hand", flat=True)
        .first()
    )
    cached = int(cached or 0)
    ledger = ledger_quantity(variant_id, location_id)
    if ledger != cached:
        _raise_integrity_fault(variant_id=variant_id, location_id=location_id, ledger_qty=ledger, cached_qty=cached)
    return cached


def find_variant_id(*, product_id, color_id, size_id) -> int:
    variant_id = (
        Variant.objects.filter(
            product_color__product_id=product_id, product_color__color_id=color_id, size_id=size_id
        )
        .values_list("id", flat=True)
        .first()
    )
    if variant_id is None:
        raise NotFound("Variant not found")
    return variant_id


def get_stock_card(*, variant_id: int, location_id: int, from_date=None, to_date=None, limit=100) -> dict:
    """Movement history for one variant at one location with running balances.

    The opening quantity is the signed ledger sum strictly before
    ``from_date``. Rows are replayed in ``(created_at, id)`` order. When the
    window reaches the present, the full ledger must match the cached
    balance; a mismatch raises IntegrityFault and is never corrected here.
    """

    limit = _clamp_limit(limit)
    if from_date and to_date and from_date > to_date:
        raise InvalidArgument("from date must not be after to date")
    try:
        variant = Variant.objects.select_related("product_color__product", "product_color__color", "size").get(
            id=variant_id
        )
    except Variant.DoesNotExist:
        raise NotFound(f"Variant {variant_id} not found")
    try:
        location = Location.objects.get(id=location_id)
    except Location.DoesNotExist:
        raise NotFound(f"Location {location_id} not found")

    opening = ledger_quantity(variant.id, location.id, before=from_date) if from_date else 0

    qs = StockMovement.objects.filter(variant_id=variant.id, location_id=location.id)
    if from_date:
        qs = qs.filter(created_at__gte=from_date)
    if to_date:
        qs = qs.filter(created_at__lte=to_date)
    qs = qs.order_by("created_at", "id")[:limit]

    running = opening
    rows = []
    for movement in qs:
        change = movement.signed_quantity
        running += change
        rows.append(
            {
                "id": movement.id,
                "created_at": movement.created_at,
                "movement_type": movement.direction,
                "reason_code": movement.reason_code,
                "qty": movement.quantity,
                "qty_change": change,
                "running_balance": running,
                "unit": movement.unit,
                "unit_cost": movement.unit_cost,
                "currency": movement.currency,
                "ref_table": movement.ref_table,
                "ref_id": movement.ref_id,
                "ref_code": movement.ref_code,
                "note": movement.note,
                "pic": movement.pic,
                "created_by": movement.created_by,
            }
        )

    balance = StockBalance.objects.filter(variant_id=variant.id, location_id=location.id).first()
    current_qty = int(balance.quantity_on_hand) if balance else 0
    avg_cost = balance.avg_cost if balance else 0

    if to_date is None or to_date >= timezone.now():
        ledger_total = ledger_quantity(variant.id, location.id)
        if ledger_total != current_qty:
            _raise_integrity_fault(
                variant_id=variant.id, location_id=location.id, ledger_qty=ledger_total, cached_qty=current_qty
            )

    return {
        "variant_id": variant.id,
        "product_name": variant.product_color.product.name,
        "color_name": variant.product_color.color.name,
        "size_name": variant.size.name,
        "location_id": location.id,
        "location_name": location.name,
        "location_code": location.code,
        "opening_qty": opening,
        "closing_qty": running,
        "current_qty": current_qty,
        "avg_cost": avg_cost,
        "movements": rows,
        "period": {"from": from_date, "to": to_date},
    }


def filter_movements(params=None, *, limit=100):
    """Ledger rows matching the movement filters, newest first."""

    limit = _clamp_limit(limit)
    base = StockMovement.objects.select_related(
        "variant__product_color__product", "variant__product_color__color", "variant__size", "location"
    )
    filterset = StockMovementFilterSet(data=params or {}, queryset=base)
    if not filterset.is_valid():
        raise InvalidArgument("; ".join(f"{k}: {' '.join(map(str, v))}" for k, v in filterset.errors.items()))
    return filterset.qs.order_by("-created_at", "-id")[:limit]


def get_inventory_tree(*, product_id=None, color_id=None, location_id=None, q=None, only_available=False) -> list:
    """Balances grouped as product+color, then location, then size."""

    qs = StockBalance.objects.select_related(
        "variant__product_color__product", "variant__product_color__color", "variant__size", "location"
    )
    if product_id:
        qs = qs.filter(variant__product_color__product_id=product_id)
    if color_id:
        qs = qs.filter(variant__product_color__color_id=color_id)
    if location_id:
        qs = qs.filter(location_id=location_id)
    if q:
        qs = qs.filter(
            Q(variant__product_color__product__name__icontains=q)
            | Q(variant__product_color__color__name__icontains=q)
            | Q(variant__size__name__icontains=q)
        )
    if only_available:
        qs = qs.filter(quantity_on_hand__gt=0)
    qs = qs.order_by(
        "variant__product_color__product__name",
        "variant__product_color__color__name",
        "-location__is_default",
        "location__name",
        "variant__size__sort_order",
        "variant__size__name",
    )

    groups = {}
    for bal in qs:
        pc = bal.variant.product_color
        group = groups.get(pc.id)
        if group is None:
            group = groups[pc.id] = {
                "product_id": pc.product_id,
                "product_name": pc.product.name,
                "color_id": pc.color_id,
                "color_name": pc.color.name,
                "color_hex": pc.color.hex_code,
                "total_qty": 0,
                "locations": {},
            }
        loc = group["locations"].get(bal.location_id)
        if loc is None:
            loc = group["locations"][bal.location_id] = {
                "location_id": bal.location_id,
                "location_code": bal.location.code,
                "location_name": bal.location.name,
                "location_is_default": bal.location.is_default,
                "total_qty": 0,
                "sizes": [],
            }
        loc["sizes"].append(
            {
                "size_id": bal.variant.size_id,
                "size_name": bal.variant.size.name,
                "size_sort": bal.variant.size.sort_order,
                "variant_id": bal.variant_id,
                "qty_on_hand": bal.quantity_on_hand,
                "avg_cost": bal.avg_cost,
                "balance_updated_at": bal.updated_at,
            }
        )
        loc["total_qty"] += bal.quantity_on_hand
        group["total_qty"] += bal.quantity_on_hand

    tree = []
    for group in groups.values():
        group["locations"] = list(group["locations"].values())
        tree.append(group)
    return tree


def get_inventory_stats() -> dict:
    agg = StockBalance.objects.aggregate(
        total_qty=Coalesce(Sum("quantity_on_hand"), Value(0)),
        variants_with_stock=Count("id", filter=Q(quantity_on_hand__gt=0)),
        variants_out_of_stock=Count("id", filter=Q(quantity_on_hand=0)),
        variants_negative=Count("id", filter=Q(quantity_on_hand__lt=0)),
        avg_unit_cost=Avg("avg_cost"),
    )
    return {
        "total_products": Product.objects.count(),
        "total_colors": Color.objects.count(),
        "total_sizes": Size.objects.count(),
        "total_variants": Variant.objects.count(),
        "total_locations": Location.objects.count(),
        **agg,
    }


def search_variants(*, q=None, limit=20) -> list:
    limit = _clamp_limit(limit, default=20)
    qs = Variant.objects.select_related("product_color__product", "product_color__color", "size").annotate(
        total_qty=Coalesce(Sum("balances__quantity_on_hand"), Value(0)),
        locations_with_stock=Count("balances", filter=Q(balances__quantity_on_hand__gt=0)),
    )
    if q:
        qs = qs.filter(
            Q(product_color__product__name__icontains=q)
            | Q(product_color__color__name__icontains=q)
            | Q(size__name__icontains=q)
        )
    qs = qs.order_by("product_color__product__name", "product_color__color__name", "size__sort_order")[:limit]
    return [
        {
            "variant_id": v.id,
            "product_id": v.product_color.product_id,
            "product_name": v.product_color.product.name,
            "color_id": v.product_color.color_id,
            "color_name": v.product_color.color.name,
            "hex_code": v.product_color.color.hex_code,
            "size_id": v.size_id,
            "size_name": v.size.name,
            "sort_order": v.size.sort_order,
            "total_qty": v.total_qty,
            "locations_with_stock": v.locations_with_stock,
        }
        for v in qs
    ]


def list_locations_with_totals():
    return Location.objects.annotate(
        variant_count=Count("balances", filter=Q(balances__quantity_on_hand__gt=0)),
        total_qty=Coalesce(Sum("balances__quantity_on_hand", filter=Q(balances__quantity_on_hand__gt=0)), Value(0)),
    ).order_by("-is_default", "name")


# EOF
