"""Read-only viewsets for catalog pickers."""

from common.throttling import SettingsScopedRateThrottle
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from . import selectors
from .models import Color
from .serializers import ColorSerializer, ProductSerializer, SizeAvailabilitySerializer, SizeSerializer


def _query_bool(value) -> bool:
    return str(value).lower() in ("1", "true", "yes", "on")


@extend_schema_view(
    list=extend_schema(
        summary="List products",
        description="Returns products ordered by name. `in_stock=true` keeps only products with stock on hand.",
        tags=["Catalog Endpoints"],
        parameters=[
            OpenApiParameter("in_stock", OpenApiTypes.BOOL, location="query"),
            OpenApiParameter("q", OpenApiTypes.STR, location="query", description="Search by name"),
        ],
    ),
    retrieve=extend_schema(summary="Get product", tags=["Catalog Endpoints"]),
)
class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductSerializer
    lookup_value_regex = r"\d+"
    pagination_class = None
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    def get_queryset(self):
        params = self.request.query_params
        return selectors.list_products(in_stock=_query_bool(params.get("in_stock")), search=params.get("q") or None)

    @extend_schema(
        summary="Colors in stock for a product",
        tags=["Catalog Endpoints"],
        responses=ColorSerializer(many=True),
    )
    @action(detail=True, methods=["get"], url_path="colors")
    def colors(self, request, pk=None):
        qs = selectors.list_colors_for_product(product_id=pk)
        return Response(ColorSerializer(qs, many=True).data)

    @extend_schema(
        summary="Sizes in stock for a product and color",
        description="Each size lists the quantity held at every location.",
        tags=["Catalog Endpoints"],
        responses=SizeAvailabilitySerializer(many=True),
        examples=[
            OpenApiExample(
                "Sizes",
                value=[
                    {
                        "size_id": 3,
                        "size_name": "M",
                        "variant_id": 41,
                        "total_qty": 7,
                        "locations": [{"location_id": 1, "location_name": "Display Area", "qty": 7}],
                    }
                ],
                response_only=True,
            )
        ],
    )
    @action(detail=True, methods=["get"], url_path=r"colors/(?P<color_id>\d+)/sizes")
    def sizes(self, request, pk=None, color_id=None):
        rows = selectors.list_sizes_for_product_color(product_id=pk, color_id=color_id)
        return Response(SizeAvailabilitySerializer(rows, many=True).data)


@extend_schema_view(
    list=extend_schema(summary="List colors", tags=["Catalog Endpoints"]),
    retrieve=extend_schema(summary="Get color", tags=["Catalog Endpoints"]),
)
class ColorViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ColorSerializer
    pagination_class = None
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    def get_queryset(self):
        return Color.objects.order_by("name")


@extend_schema_view(
    list=extend_schema(summary="List sizes", tags=["Catalog Endpoints"]),
    retrieve=extend_schema(summary="Get size", tags=["Catalog Endpoints"]),
)
class SizeViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = SizeSerializer
    pagination_class = None
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    def get_queryset(self):
        return selectors.list_sizes(search=self.request.query_params.get("q") or None)
