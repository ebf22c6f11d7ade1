"""Composable filters for ledger listings."""

from django_filters import rest_framework as filters

from .models import StockMovement


class StockMovementFilterSet(filters.FilterSet):
    variant_id = filters.NumberFilter(field_name="variant_id")
    location_id = filters.NumberFilter(field_name="location_id")
    from_date = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    to_date = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")
    movement_type = filters.ChoiceFilter(field_name="direction", choices=StockMovement.DIRECTION_CHOICES)
    reason_code = filters.CharFilter(field_name="reason_code")
    ref_code = filters.CharFilter(field_name="ref_code")

    class Meta:
        model = StockMovement
        fields = ["variant_id", "location_id", "from_date", "to_date", "movement_type", "reason_code", "ref_code"]
