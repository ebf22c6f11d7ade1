"""Serializers for the inventory API.

Read serializers describe ledger rows, balances and locations; write
serializers validate request payloads before they reach the services.
"""

from common.choices import ImportMode, MovementDirection, ReasonCode
from rest_framework import serializers

from .models import Location, StockMovement


class LocationSerializer(serializers.ModelSerializer):
    variant_count = serializers.IntegerField(read_only=True, required=False)
    total_qty = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Location
        fields = ["id", "code", "name", "is_default", "variant_count", "total_qty", "created_at"]
        read_only_fields = ["id", "variant_count", "total_qty", "created_at"]


class LocationCreateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=100)
    is_default = serializers.BooleanField(required=False, default=False)


class StockMovementSerializer(serializers.ModelSerializer):
    """Read-only representation of a ledger row with descriptive names."""

    movement_type = serializers.CharField(source="direction", read_only=True)
    qty = serializers.IntegerField(source="quantity", read_only=True)
    product_name = serializers.CharField(source="variant.product_color.product.name", read_only=True)
    color_name = serializers.CharField(source="variant.product_color.color.name", read_only=True)
    size_name = serializers.CharField(source="variant.size.name", read_only=True)
    location_code = serializers.CharField(source="location.code", read_only=True)
    location_name = serializers.CharField(source="location.name", read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "variant_id",
            "location_id",
            "movement_type",
            "reason_code",
            "qty",
            "unit",
            "unit_cost",
            "currency",
            "ref_table",
            "ref_id",
            "ref_code",
            "note",
            "pic",
            "created_by",
            "created_at",
            "product_name",
            "color_name",
            "size_name",
            "location_code",
            "location_name",
        ]
        read_only_fields = fields


class VariantIdentityMixin(serializers.Serializer):
    """Accept either ``variant_id`` or the product/color/size id triple."""

    variant_id = serializers.IntegerField(required=False, min_value=1)
    product_id = serializers.IntegerField(required=False, min_value=1)
    color_id = serializers.IntegerField(required=False, min_value=1)
    size_id = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        triple = [attrs.get("product_id"), attrs.get("color_id"), attrs.get("size_id")]
        if not attrs.get("variant_id") and not all(triple):
            raise serializers.ValidationError("Either variant_id or product_id+color_id+size_id must be provided")
        return attrs


class MovementCreateSerializer(VariantIdentityMixin):
    location_id = serializers.IntegerField(min_value=1)
    movement_type = serializers.ChoiceField(choices=MovementDirection.choices)
    reason_code = serializers.ChoiceField(choices=ReasonCode.choices)
    qty = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True, min_value=0)
    unit = serializers.CharField(max_length=10, required=False, allow_blank=True)
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True)
    ref_code = serializers.CharField(max_length=100, required=False, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True)
    pic = serializers.CharField(max_length=100, required=False, allow_blank=True)
    created_by = serializers.CharField(max_length=100, required=False, allow_blank=True)


class TransferSerializer(VariantIdentityMixin):
    from_location_id = serializers.IntegerField(min_value=1)
    to_location_id = serializers.IntegerField(min_value=1)
    qty = serializers.IntegerField(min_value=1)
    ref_code = serializers.CharField(max_length=100, required=False, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True)
    pic = serializers.CharField(max_length=100, required=False, allow_blank=True)
    created_by = serializers.CharField(max_length=100, required=False, allow_blank=True)


class VariantResolveSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(required=False, min_value=1)
    color_id = serializers.IntegerField(required=False, min_value=1)
    size_id = serializers.IntegerField(required=False, min_value=1)
    product_name = serializers.CharField(required=False, max_length=200)
    color_name = serializers.CharField(required=False, max_length=100)
    size_name = serializers.CharField(required=False, max_length=20)

    def validate(self, attrs):
        ids = [attrs.get("product_id"), attrs.get("color_id"), attrs.get("size_id")]
        names = [attrs.get("product_name"), attrs.get("color_name"), attrs.get("size_name")]
        if not all(ids) and not all(names):
            raise serializers.ValidationError(
                "Provide product_id+color_id+size_id or product_name+color_name+size_name"
            )
        return attrs


class InventoryTreeQuerySerializer(serializers.Serializer):
    product_id = serializers.IntegerField(required=False, min_value=1)
    color_id = serializers.IntegerField(required=False, min_value=1)
    location_id = serializers.IntegerField(required=False, min_value=1)
    q = serializers.CharField(required=False, allow_blank=True)
    only_available = serializers.BooleanField(required=False, default=False)


class CsvImportSerializer(serializers.Serializer):
    file = serializers.FileField()
    mode = serializers.ChoiceField(choices=ImportMode.choices, required=False, default=ImportMode.ADD)
    created_by = serializers.CharField(max_length=100, required=False, allow_blank=True)


class StockCardQuerySerializer(VariantIdentityMixin):
    location_id = serializers.IntegerField(min_value=1)
    # Query-string aliases: "from" and "to" are Python keywords
    from_date = serializers.DateTimeField(required=False)
    to_date = serializers.DateTimeField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=1000, default=100)

    def to_internal_value(self, data):
        data = data.copy() if hasattr(data, "copy") else dict(data)
        for alias, name in (("from", "from_date"), ("to", "to_date")):
            if alias in data and name not in data:
                data[name] = data[alias]
        return super().to_internal_value(data)


class StockCardMovementSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    created_at = serializers.DateTimeField()
    movement_type = serializers.CharField()
    reason_code = serializers.CharField()
    qty = serializers.IntegerField()
    qty_change = serializers.IntegerField()
    running_balance = serializers.IntegerField()
    unit = serializers.CharField()
    unit_cost = serializers.DecimalField(max_digits=15, decimal_places=2, allow_null=True)
    currency = serializers.CharField()
    ref_table = serializers.CharField(allow_blank=True)
    ref_id = serializers.IntegerField(allow_null=True)
    ref_code = serializers.CharField(allow_blank=True)
    note = serializers.CharField(allow_blank=True)
    pic = serializers.CharField(allow_blank=True)
    created_by = serializers.CharField(allow_blank=True)


class StockCardSerializer(serializers.Serializer):
    variant_id = serializers.IntegerField()
    product_name = serializers.CharField()
    color_name = serializers.CharField()
    size_name = serializers.CharField()
    location_id = serializers.IntegerField()
    location_name = serializers.CharField()
    location_code = serializers.CharField()
    opening_qty = serializers.IntegerField()
    closing_qty = serializers.IntegerField()
    current_qty = serializers.IntegerField()
    avg_cost = serializers.DecimalField(max_digits=15, decimal_places=4)
    movements = StockCardMovementSerializer(many=True)
    period = serializers.DictField()


# EOF
