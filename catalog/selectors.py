"""Selectors for the catalog domain.

Read-only pickers used by stock entry screens: which products, colors and
sizes currently have stock, and how it is spread over locations.
"""

from typing import Optional

from django.db.models import Exists, OuterRef, QuerySet
from inventory.models import StockBalance

from .models import Color, Product, Size


def _in_stock(**lookups) -> Exists:
    return Exists(StockBalance.objects.filter(quantity_on_hand__gt=0, **lookups))


def list_products(*, in_stock: bool = False, search: Optional[str] = None) -> QuerySet[Product]:
    """Return products ordered by name, optionally only those with stock on hand."""

    qs = Product.objects.all().order_by("name")
    if in_stock:
        qs = qs.filter(_in_stock(variant__product_color__product=OuterRef("pk")))
    if search:
        qs = qs.filter(name__icontains=search)
    return qs


def list_colors_for_product(*, product_id: int, in_stock: bool = True) -> QuerySet[Color]:
    qs = Color.objects.filter(product_colors__product_id=product_id)
    if in_stock:
        qs = qs.filter(
            _in_stock(variant__product_color__product_id=product_id, variant__product_color__color=OuterRef("pk"))
        )
    return qs.distinct().order_by("name")


def list_sizes_for_product_color(*, product_id: int, color_id: int) -> list[dict]:
    """Sizes with stock for a product+color, each with its per-location quantities."""

    balances = (
        StockBalance.objects.filter(
            variant__product_color__product_id=product_id,
            variant__product_color__color_id=color_id,
            quantity_on_hand__gt=0,
        )
        .select_related("variant__size", "location")
        .order_by("variant__size__sort_order", "variant__size__name", "location__name")
    )
    sizes = {}
    for bal in balances:
        size = bal.variant.size
        entry = sizes.setdefault(
            size.id,
            {"size_id": size.id, "size_name": size.name, "variant_id": bal.variant_id, "total_qty": 0, "locations": []},
        )
        entry["total_qty"] += bal.quantity_on_hand
        entry["locations"].append(
            {"location_id": bal.location_id, "location_name": bal.location.name, "qty": bal.quantity_on_hand}
        )
    return list(sizes.values())


def list_sizes(*, search: Optional[str] = None) -> QuerySet[Size]:
    qs = Size.objects.all().order_by("sort_order", "name")
    if search:
        qs = qs.filter(name__icontains=search)
    return qs
