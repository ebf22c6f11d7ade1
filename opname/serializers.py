"""Serializers for opname sessions and count updates."""

from common.choices import OpnameStatus
from rest_framework import serializers

from .models import StockOpname, StockOpnameItem


class StockOpnameSerializer(serializers.ModelSerializer):
    location_code = serializers.CharField(source="location.code", read_only=True, default=None)
    location_name = serializers.CharField(source="location.name", read_only=True, default=None)
    total_items = serializers.IntegerField(read_only=True, required=False)
    counted_items = serializers.IntegerField(read_only=True, required=False)
    variance_items = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = StockOpname
        fields = [
            "id",
            "code",
            "location",
            "location_code",
            "location_name",
            "status",
            "snapshot_at",
            "completed_at",
            "created_by",
            "created_at",
            "total_items",
            "counted_items",
            "variance_items",
        ]
        read_only_fields = fields


class StockOpnameItemSerializer(serializers.ModelSerializer):
    variance_qty = serializers.IntegerField(read_only=True, allow_null=True)
    product_name = serializers.CharField(source="variant.product_color.product.name", read_only=True)
    color_name = serializers.CharField(source="variant.product_color.color.name", read_only=True)
    size_name = serializers.CharField(source="variant.size.name", read_only=True)
    location_code = serializers.CharField(source="location.code", read_only=True)
    location_name = serializers.CharField(source="location.name", read_only=True)

    class Meta:
        model = StockOpnameItem
        fields = [
            "id",
            "variant_id",
            "location_id",
            "system_qty",
            "counted_qty",
            "variance_qty",
            "note",
            "counted_by",
            "counted_at",
            "product_name",
            "color_name",
            "size_name",
            "location_code",
            "location_name",
        ]
        read_only_fields = fields


class OpnameListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OpnameStatus.choices, required=False)
    location_id = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=500, default=50)


class StartOpnameSerializer(serializers.Serializer):
    opname_code = serializers.CharField(max_length=50)
    location_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    created_by = serializers.CharField(max_length=100, required=False, allow_blank=True)
    include_zero = serializers.BooleanField(required=False, default=False)


class UpdateCountSerializer(serializers.Serializer):
    variant_id = serializers.IntegerField(min_value=1)
    location_id = serializers.IntegerField(min_value=1)
    counted_qty = serializers.IntegerField(min_value=0, max_value=2147483647)
    counted_by = serializers.CharField(max_length=100, required=False, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CommitOpnameSerializer(serializers.Serializer):
    created_by = serializers.CharField(max_length=100, required=False, allow_blank=True)
