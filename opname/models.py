"""Stock opname (physical count) models."""

from common.choices import OpnameStatus
from django.db import models
from django.db.models import ExpressionWrapper, F


class StockOpname(models.Model):
    code = models.CharField(max_length=50, unique=True)
    # Null location means the session covers every location
    location = models.ForeignKey(
        "inventory.Location", related_name="opnames", null=True, blank=True, on_delete=models.PROTECT
    )
    status = models.CharField(max_length=10, choices=OpnameStatus.choices, default=OpnameStatus.DRAFT, db_index=True)
    snapshot_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_by = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code} [{self.status}]"


class StockOpnameItemQuerySet(models.QuerySet):
    def with_variance(self):
        return self.annotate(
            variance=ExpressionWrapper(F("counted_qty") - F("system_qty"), output_field=models.IntegerField())
        )


class StockOpnameItem(models.Model):
    """One counted (variant, location) line within a session.

    Variance is derived from ``counted_qty - system_qty`` and never stored.
    """

    opname = models.ForeignKey(StockOpname, related_name="items", on_delete=models.CASCADE)
    variant = models.ForeignKey("catalog.Variant", related_name="opname_items", on_delete=models.PROTECT)
    location = models.ForeignKey("inventory.Location", related_name="opname_items", on_delete=models.PROTECT)
    system_qty = models.IntegerField()
    counted_qty = models.IntegerField(null=True, blank=True)
    note = models.TextField(blank=True)
    counted_by = models.CharField(max_length=100, blank=True)
    counted_at = models.DateTimeField(null=True, blank=True)

    objects = StockOpnameItemQuerySet.as_manager()

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["opname", "variant", "location"], name="unique_opname_variant_location"),
            models.CheckConstraint(
                name="opname_counted_qty_non_negative",
                condition=models.Q(counted_qty__gte=0) | models.Q(counted_qty__isnull=True),
            ),
        ]

    @property
    def variance_qty(self):
        if self.counted_qty is None:
            return None
        return int(self.counted_qty) - int(self.system_qty)

    def __str__(self) -> str:  # pragma: no cover
        return f"Opname {self.opname_id}: v={self.variant_id} l={self.location_id}"
