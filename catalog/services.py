"""Catalog services: variant resolution (find-or-create by ids or by names)."""

import logging
from dataclasses import dataclass
from decimal import Decimal

from common.exceptions import InvalidArgument, NotFound
from django.db import IntegrityError, transaction

from .models import Color, Product, ProductColor, Size, Variant

logger = logging.getLogger("stockledger.catalog")

# Spreadsheet product labels mapped to canonical catalog names.
PRODUCT_ALIASES = {
    "T-SHIRT KATUN 26 / JULI / 2025": "T-shirt Katun PDK",
    "T-SHIRT KATUN": "T-shirt Katun PDK",
    "LONG SLEEVE": "Long Sleeve",
    "HENLEY": "Henley",
    "POLOSHIRT": "Poloshirt",
    "POLO LONG SLEEVE": "Poloshirt Long Sleeve",
    "KEMEJA PIQUE PANJANG": "Kemeja Pique PJG",
    "KEMEJA PIQUE PENDEK": "Kemeja Pique PDK",
    "KIDS T-SHIRT": "Kids T-shirt",
    "KIDS HENLEY": "Kids T-shirt",
    "POLOSHIRT KRAH VARIASI": "Poloshirt Krah Variasi",
    "JAKET VARSITY": "Jaket Varsity",
    "SWEATER": "Sweater",
    "KAOS RAGLAN + PRODUK GET 1": "Kaos Premium 24s",
    "KAOS RINGER": "Kaos Ringer",
    "KAOS KRAH": "Kaos Krah",
    "KAOS PREMIUM": "Kaos Premium 24s",
    "KEMEJA DRILL": "Kemeja Drill",
    "KAOS CARDED": "T-shirt Katun PDK",
    "KAOS BASEBALL": "Kaos Baseball",
}

SIZE_SORT_ORDER = {"XS": 1, "S": 2, "M": 3, "L": 4, "XL": 5, "XXL": 6, "3XL": 7, "4XL": 8, "5XL": 9}
DEFAULT_SIZE_SORT = 10
DEFAULT_PRODUCT_PRICE = Decimal("50000")
DEFAULT_COLOR_HEX = "#808080"


@dataclass(frozen=True)
class ResolvedVariant:
    id: int
    created: bool


def canonical_product_name(name: str) -> str:
    cleaned = (name or "").strip()
    return PRODUCT_ALIASES.get(cleaned.upper(), cleaned)


def size_sort_order(name: str) -> int:
    return SIZE_SORT_ORDER.get((name or "").strip().upper(), DEFAULT_SIZE_SORT)


def _require_positive_id(value, label: str) -> int:
    try:
        ident = int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{label} must be a positive integer")
    if ident <= 0:
        raise InvalidArgument(f"{label} must be a positive integer")
    return ident


def _require_name(value, label: str) -> str:
    cleaned = (value or "").strip() if isinstance(value, str) else ""
    if not cleaned:
        raise InvalidArgument(f"{label} is required")
    return cleaned


def _get_or_create_variant(product_color: ProductColor, size: Size) -> tuple[Variant, bool]:
    """Get or create the variant, seeding zero balances when it is new.

    Must run inside an atomic block; a concurrent insert of the same triple
    surfaces as IntegrityError and is retried as a lookup in a savepoint.
    """

    existing = Variant.objects.filter(product_color=product_color, size=size).first()
    if existing is not None:
        return existing, False
    try:
        with transaction.atomic():
            variant = Variant.objects.create(product_color=product_color, size=size)
    except IntegrityError:
        return Variant.objects.get(product_color=product_color, size=size), False

    from inventory.services import initialize_balances_for_variant

    initialize_balances_for_variant(variant_id=variant.id)
    logger.info(
        "catalog.variant_created",
        extra={
            "event": "catalog.variant_created",
            "variant_id": variant.id,
            "product_id": product_color.product_id,
            "color_id": product_color.color_id,
            "size_id": size.id,
        },
    )
    return variant, True


@transaction.atomic
def resolve_variant_id(product_id, color_id, size_id) -> int:
    """Return the variant id for (product, color, size), creating it if missing.

    Product, color and size rows must already exist; the product-color link
    is created on demand.
    """

    product_id = _require_positive_id(product_id, "product_id")
    color_id = _require_positive_id(color_id, "color_id")
    size_id = _require_positive_id(size_id, "size_id")

    existing = (
        Variant.objects.filter(
            product_color__product_id=product_id,
            product_color__color_id=color_id,
            size_id=size_id,
        )
        .values_list("id", flat=True)
        .first()
    )
    if existing is not None:
        return existing

    try:
        product = Product.objects.get(id=product_id)
    except Product.DoesNotExist:
        raise NotFound(f"Product {product_id} not found")
    try:
        color = Color.objects.get(id=color_id)
    except Color.DoesNotExist:
        raise NotFound(f"Color {color_id} not found")
    try:
        size = Size.objects.get(id=size_id)
    except Size.DoesNotExist:
        raise NotFound(f"Size {size_id} not found")

    product_color, _ = ProductColor.objects.get_or_create(product=product, color=color)
    variant, _ = _get_or_create_variant(product_color, size)
    return variant.id


@transaction.atomic
def resolve_variant_by_names(product_name, color_name, size_name) -> ResolvedVariant:
    """Resolve a variant from free-text names, creating any missing catalog rows.

    The product name passes through ``PRODUCT_ALIASES`` first. New products
    get the default price, new colors a neutral grey, new sizes a sort order
    from ``SIZE_SORT_ORDER``. ``created`` is true only when the variant row
    itself is new.
    """

    product_name = canonical_product_name(_require_name(product_name, "product_name"))
    color_name = _require_name(color_name, "color_name")
    size_name = _require_name(size_name, "size_name")

    product, _ = Product.objects.get_or_create(name=product_name, defaults={"price": DEFAULT_PRODUCT_PRICE})
    color, _ = Color.objects.get_or_create(name=color_name, defaults={"hex_code": DEFAULT_COLOR_HEX})
    size, _ = Size.objects.get_or_create(name=size_name, defaults={"sort_order": size_sort_order(size_name)})
    product_color, _ = ProductColor.objects.get_or_create(product=product, color=color)
    variant, created = _get_or_create_variant(product_color, size)
    return ResolvedVariant(id=variant.id, created=created)


def resolve_variant(product, color, size) -> ResolvedVariant:
    """Resolve by ids when all three references are integers, else by names."""

    refs = (product, color, size)
    if all(isinstance(ref, int) and not isinstance(ref, bool) for ref in refs):
        with transaction.atomic():
            before = Variant.objects.filter(
                product_color__product_id=product, product_color__color_id=color, size_id=size
            ).exists()
            variant_id = resolve_variant_id(product, color, size)
        return ResolvedVariant(id=variant_id, created=not before)
    return resolve_variant_by_names(str(product), str(color), str(size))
