"""Serializers for the catalog app (read-only)."""

from rest_framework import serializers

from .models import Color, Product, Size


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "price"]


class ColorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Color
        fields = ["id", "name", "hex_code"]


class SizeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Size
        fields = ["id", "name", "sort_order"]


class SizeLocationSerializer(serializers.Serializer):
    location_id = serializers.IntegerField()
    location_name = serializers.CharField()
    qty = serializers.IntegerField()


class SizeAvailabilitySerializer(serializers.Serializer):
    """A size with stock for one product+color, spread over locations."""

    size_id = serializers.IntegerField()
    size_name = serializers.CharField()
    variant_id = serializers.IntegerField()
    total_qty = serializers.IntegerField()
    locations = SizeLocationSerializer(many=True)
