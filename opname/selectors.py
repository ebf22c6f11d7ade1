"""Read-side queries for opname sessions."""

from common.exceptions import NotFound
from django.db.models import Count, F, Q

from .models import StockOpname, StockOpnameItem


def get_opname_details(opname_id: int) -> dict:
    try:
        opname = StockOpname.objects.select_related("location").get(id=opname_id)
    except StockOpname.DoesNotExist:
        raise NotFound(f"Opname {opname_id} not found")

    items = (
        StockOpnameItem.objects.with_variance()
        .filter(opname_id=opname.id)
        .select_related("variant__product_color__product", "variant__product_color__color", "variant__size", "location")
        .order_by(
            "variant__product_color__product__name",
            "variant__product_color__color__name",
            "location__name",
            "variant__size__sort_order",
        )
    )
    return {"opname": opname, "items": list(items)}


def list_opnames(*, status=None, location_id=None, limit=50):
    qs = StockOpname.objects.select_related("location").annotate(
        total_items=Count("items"),
        counted_items=Count("items", filter=Q(items__counted_qty__isnull=False)),
        variance_items=Count(
            "items",
            filter=Q(items__counted_qty__isnull=False) & ~Q(items__counted_qty=F("items__system_qty")),
        ),
    )
    if status:
        qs = qs.filter(status=status)
    if location_id:
        qs = qs.filter(location_id=location_id)
    try:
        limit = max(1, min(int(limit), 500))
    except (TypeError, ValueError):
        limit = 50
    return qs.order_by("-created_at", "-id")[:limit]
