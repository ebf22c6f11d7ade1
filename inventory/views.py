"""Inventory and stock ledger API views."""

from catalog.services import resolve_variant, resolve_variant_id
from common.api import stock_error_response
from common.exceptions import StockError
from common.throttling import SettingsScopedRateThrottle
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from . import selectors
from .imports import import_stock_csv
from .serializers import (
    CsvImportSerializer,
    InventoryTreeQuerySerializer,
    LocationCreateSerializer,
    LocationSerializer,
    MovementCreateSerializer,
    StockCardQuerySerializer,
    StockCardSerializer,
    StockMovementSerializer,
    TransferSerializer,
    VariantResolveSerializer,
)
from .services import create_location, create_movement, delete_variant, transfer_stock

ErrorResponse = inline_serializer(
    name="StockErrorResponse",
    fields={"detail": rf_serializers.CharField(), "code": rf_serializers.CharField()},
)


def _variant_id_from(data: dict) -> int:
    if data.get("variant_id"):
        return data["variant_id"]
    return resolve_variant_id(data["product_id"], data["color_id"], data["size_id"])


class InventoryHealthView(APIView):
    throttle_classes = []

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Inventory health",
        description="Simple healthcheck endpoint for the inventory app",
        examples=[OpenApiExample("Health OK", value={"status": "ok", "app": "inventory"})],
    )
    def get(self, request):
        return Response({"status": "ok", "app": "inventory"})


class InventoryTreeView(APIView):
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Inventory balance tree",
        description="Current balances grouped by product+color, then location (default first), then size.",
        parameters=[
            OpenApiParameter("product_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("color_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("location_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("q", OpenApiTypes.STR, location="query", description="Search product, color or size"),
            OpenApiParameter("only_available", OpenApiTypes.BOOL, location="query"),
        ],
    )
    def get(self, request):
        query = InventoryTreeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data
        tree = selectors.get_inventory_tree(
            product_id=params.get("product_id"),
            color_id=params.get("color_id"),
            location_id=params.get("location_id"),
            q=params.get("q") or None,
            only_available=params["only_available"],
        )
        return Response({"results": tree, "count": len(tree)})


class InventoryStatsView(APIView):
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(tags=["Inventory Endpoints"], summary="Inventory statistics")
    def get(self, request):
        return Response(selectors.get_inventory_stats())


class LocationListCreateView(APIView):
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List locations",
        description="Locations with the number of stocked variants and total quantity on hand.",
        responses=LocationSerializer(many=True),
    )
    def get(self, request):
        qs = selectors.list_locations_with_totals()
        return Response(LocationSerializer(qs, many=True).data)

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Create location",
        description="Creates a location and seeds zero balances for every existing variant.",
        request=LocationCreateSerializer,
        responses={201: LocationSerializer, 400: ErrorResponse},
    )
    def post(self, request):
        serializer = LocationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            location = create_location(**serializer.validated_data)
        except StockError as exc:
            return stock_error_response(exc)
        return Response(LocationSerializer(location).data, status=status.HTTP_201_CREATED)


class VariantSearchView(APIView):
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Search variants",
        parameters=[
            OpenApiParameter("q", OpenApiTypes.STR, location="query"),
            OpenApiParameter("limit", OpenApiTypes.INT, location="query"),
        ],
    )
    def get(self, request):
        q = request.query_params.get("q") or None
        try:
            results = selectors.search_variants(q=q, limit=request.query_params.get("limit"))
        except StockError as exc:
            return stock_error_response(exc)
        return Response({"results": results, "meta": {"query": q, "count": len(results)}})


class VariantResolveView(APIView):
    throttle_scope = "stock_write"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Resolve variant",
        description="Find or create a variant by product/color/size ids or names.",
        request=VariantResolveSerializer,
        responses={
            200: inline_serializer(
                name="VariantResolved",
                fields={"variant_id": rf_serializers.IntegerField(), "created": rf_serializers.BooleanField()},
            ),
            400: ErrorResponse,
            404: ErrorResponse,
        },
        examples=[OpenApiExample("Resolved", value={"variant_id": 12, "created": False})],
    )
    def post(self, request):
        serializer = VariantResolveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        if data.get("product_id") and data.get("color_id") and data.get("size_id"):
            refs = (data["product_id"], data["color_id"], data["size_id"])
        else:
            refs = (data["product_name"], data["color_name"], data["size_name"])
        try:
            resolved = resolve_variant(*refs)
        except StockError as exc:
            return stock_error_response(exc)
        code = status.HTTP_201_CREATED if resolved.created else status.HTTP_200_OK
        return Response({"variant_id": resolved.id, "created": resolved.created}, status=code)


class VariantDeleteView(APIView):
    throttle_scope = "stock_write"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Delete variant",
        description="Deletes a variant together with its balances, movements and opname items.",
        responses={200: OpenApiTypes.OBJECT, 404: ErrorResponse},
    )
    def delete(self, request, variant_id: int):
        try:
            deleted = delete_variant(variant_id)
        except StockError as exc:
            return stock_error_response(exc)
        return Response(deleted, status=status.HTTP_200_OK)


class StockCardView(APIView):
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Stock Endpoints"],
        summary="Stock card",
        description=(
            "Movement history for a variant at a location with opening balance and running balance. "
            "Identify the variant by variant_id or product_id+color_id+size_id."
        ),
        parameters=[
            OpenApiParameter("variant_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("product_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("color_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("size_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("location_id", OpenApiTypes.INT, location="query", required=True),
            OpenApiParameter("from", OpenApiTypes.DATETIME, location="query"),
            OpenApiParameter("to", OpenApiTypes.DATETIME, location="query"),
            OpenApiParameter("limit", OpenApiTypes.INT, location="query"),
        ],
        responses={200: StockCardSerializer, 400: ErrorResponse, 404: ErrorResponse, 500: ErrorResponse},
    )
    def get(self, request):
        query = StockCardQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        try:
            if data.get("variant_id"):
                variant_id = data["variant_id"]
            else:
                variant_id = selectors.find_variant_id(
                    product_id=data["product_id"], color_id=data["color_id"], size_id=data["size_id"]
                )
            card = selectors.get_stock_card(
                variant_id=variant_id,
                location_id=data["location_id"],
                from_date=data.get("from_date"),
                to_date=data.get("to_date"),
                limit=data.get("limit"),
            )
        except StockError as exc:
            return stock_error_response(exc)
        return Response(StockCardSerializer(card).data)


class MovementListCreateView(APIView):
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    def get_throttles(self):
        self.throttle_scope = "stock_write" if self.request.method == "POST" else "stock"
        return super().get_throttles()

    @extend_schema(
        tags=["Stock Endpoints"],
        summary="List stock movements",
        description=(
            "Ledger rows newest first. Filters: variant_id, location_id, from_date, to_date (ISO), "
            "movement_type (IN/OUT), reason_code, ref_code, limit."
        ),
        parameters=[
            OpenApiParameter("variant_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("location_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("from_date", OpenApiTypes.DATETIME, location="query"),
            OpenApiParameter("to_date", OpenApiTypes.DATETIME, location="query"),
            OpenApiParameter("movement_type", OpenApiTypes.STR, location="query"),
            OpenApiParameter("reason_code", OpenApiTypes.STR, location="query"),
            OpenApiParameter("ref_code", OpenApiTypes.STR, location="query"),
            OpenApiParameter("limit", OpenApiTypes.INT, location="query"),
        ],
        responses={200: StockMovementSerializer(many=True), 400: ErrorResponse},
    )
    def get(self, request):
        try:
            qs = selectors.filter_movements(request.query_params, limit=request.query_params.get("limit"))
        except StockError as exc:
            return stock_error_response(exc)
        rows = StockMovementSerializer(qs, many=True).data
        return Response({"results": rows, "count": len(rows)})

    @extend_schema(
        tags=["Stock Endpoints"],
        summary="Create stock movement",
        description="Books one ledger movement and updates the cached balance atomically.",
        request=MovementCreateSerializer,
        responses={201: StockMovementSerializer, 400: ErrorResponse, 404: ErrorResponse},
        examples=[
            OpenApiExample(
                "Insufficient stock",
                value={
                    "detail": "Insufficient stock. Available: 2, Required: 5",
                    "code": "insufficient_stock",
                    "available": 2,
                    "required": 5,
                },
                response_only=True,
                status_codes=["400"],
            )
        ],
    )
    def post(self, request):
        serializer = MovementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            movement = create_movement(
                variant_id=_variant_id_from(data),
                location_id=data["location_id"],
                direction=data["movement_type"],
                reason_code=data["reason_code"],
                quantity=data["qty"],
                unit_cost=data.get("unit_cost"),
                unit=data.get("unit") or "pcs",
                currency=data.get("currency") or None,
                ref_code=data.get("ref_code", ""),
                note=data.get("note", ""),
                pic=data.get("pic", ""),
                created_by=data.get("created_by", ""),
            )
        except StockError as exc:
            return stock_error_response(exc)
        return Response(StockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)


class TransferView(APIView):
    throttle_scope = "stock_write"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Stock Endpoints"],
        summary="Transfer stock between locations",
        request=TransferSerializer,
        responses={
            201: inline_serializer(
                name="TransferResult",
                fields={
                    "ref_code": rf_serializers.CharField(),
                    "out_movement": StockMovementSerializer(),
                    "in_movement": StockMovementSerializer(),
                },
            ),
            400: ErrorResponse,
            404: ErrorResponse,
        },
    )
    def post(self, request):
        serializer = TransferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            out_mv, in_mv = transfer_stock(
                variant_id=_variant_id_from(data),
                from_location_id=data["from_location_id"],
                to_location_id=data["to_location_id"],
                quantity=data["qty"],
                ref_code=data.get("ref_code") or None,
                note=data.get("note") or None,
                pic=data.get("pic", ""),
                created_by=data.get("created_by", ""),
            )
        except StockError as exc:
            return stock_error_response(exc)
        return Response(
            {
                "ref_code": out_mv.ref_code,
                "out_movement": StockMovementSerializer(out_mv).data,
                "in_movement": StockMovementSerializer(in_mv).data,
            },
            status=status.HTTP_201_CREATED,
        )


class CsvImportView(APIView):
    throttle_scope = "stock_write"
    throttle_classes = [SettingsScopedRateThrottle]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        tags=["Stock Endpoints"],
        summary="Import stock from CSV",
        description=(
            "Columns: product_name, color_name, size_name, location_name, quantity, unit_cost. "
            "mode=add books the quantity in; mode=set books the difference to the current balance. "
            "Bad rows are reported and skipped."
        ),
        request=CsvImportSerializer,
        responses={200: OpenApiTypes.OBJECT, 400: ErrorResponse},
        examples=[
            OpenApiExample(
                "Import result",
                value={
                    "imported": 2,
                    "created": 1,
                    "updated": 2,
                    "errors": ['Row 4: Invalid quantity "x"'],
                    "total": 3,
                },
                response_only=True,
            )
        ],
    )
    def post(self, request):
        serializer = CsvImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        raw = data["file"].read()
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            return Response(
                {"detail": "CSV file must be UTF-8 encoded", "code": "invalid_argument"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            result = import_stock_csv(text, mode=data["mode"], created_by=data.get("created_by", ""))
        except StockError as exc:
            return stock_error_response(exc)
        return Response(result, status=status.HTTP_200_OK)


# EOF
