"""Inventory models (multi-location ledger).

``StockMovement`` is the append-only ledger and the single source of truth
for quantity history. ``StockBalance`` caches the current quantity and
moving-average cost per variant per location and must always equal a replay
of the ledger from zero.
"""

from decimal import Decimal

from common.choices import MovementDirection, ReasonCode
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


def default_currency() -> str:
    return getattr(settings, "STOCK_DEFAULT_CURRENCY", "IDR")


def default_unit() -> str:
    return getattr(settings, "STOCK_DEFAULT_UNIT", "pcs")


class Location(TimeStampedModel):
    """A named storage place (display area, storage cabinet, ...)."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100)
    # At most one default location; enforced by inventory.services.create_location
    is_default = models.BooleanField(default=False, db_index=True)

    class Meta:
        ordering = ["-is_default", "name"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code} ({self.name})"


class StockMovement(models.Model):
    DIRECTION_IN = MovementDirection.IN
    DIRECTION_OUT = MovementDirection.OUT
    DIRECTION_CHOICES = MovementDirection.choices

    variant = models.ForeignKey("catalog.Variant", related_name="movements", on_delete=models.PROTECT)
    location = models.ForeignKey(Location, related_name="movements", on_delete=models.PROTECT)
    direction = models.CharField(max_length=3, choices=DIRECTION_CHOICES)
    reason_code = models.CharField(max_length=20, choices=ReasonCode.choices)
    quantity = models.IntegerField()  # magnitude; direction carries the sign
    unit = models.CharField(max_length=10, default=default_unit)
    unit_cost = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default=default_currency)
    ref_table = models.CharField(max_length=50, blank=True)
    ref_id = models.BigIntegerField(null=True, blank=True)
    ref_code = models.CharField(max_length=100, blank=True)
    note = models.TextField(blank=True)
    pic = models.CharField(max_length=100, blank=True)
    created_by = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(name="movement_quantity_positive", condition=models.Q(quantity__gt=0)),
            models.CheckConstraint(
                name="movement_direction_valid",
                condition=models.Q(direction__in=[MovementDirection.IN, MovementDirection.OUT]),
            ),
        ]
        indexes = [
            models.Index(fields=["variant", "location", "created_at"], name="inv_mv_var_loc_created_idx"),
            models.Index(fields=["ref_table", "ref_id"], name="inv_mv_ref_idx"),
            models.Index(fields=["direction", "reason_code"], name="inv_mv_dir_reason_idx"),
        ]

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.direction == MovementDirection.IN else -self.quantity

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.direction} {self.quantity} {self.reason_code} v={self.variant_id} l={self.location_id}"


class StockBalance(models.Model):
    variant = models.ForeignKey("catalog.Variant", related_name="balances", on_delete=models.CASCADE)
    location = models.ForeignKey(Location, related_name="balances", on_delete=models.CASCADE)
    quantity_on_hand = models.IntegerField(default=0)
    avg_cost = models.DecimalField(max_digits=15, decimal_places=4, default=Decimal("0"))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["variant_id", "location_id"]
        constraints = [
            models.UniqueConstraint(fields=["variant", "location"], name="unique_balance_per_variant_location"),
        ]
        indexes = [
            models.Index(fields=["location", "quantity_on_hand"], name="inv_bal_loc_qty_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Balance<{self.variant_id}@{self.location_id}> q={self.quantity_on_hand} avg={self.avg_cost}"


# EOF
