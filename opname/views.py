"""DRF views for the stock opname workflow."""

from common.api import stock_error_response
from common.exceptions import StockError
from common.throttling import SettingsScopedRateThrottle
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from inventory.serializers import StockMovementSerializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import selectors
from .serializers import (
    CommitOpnameSerializer,
    OpnameListQuerySerializer,
    StartOpnameSerializer,
    StockOpnameItemSerializer,
    StockOpnameSerializer,
    UpdateCountSerializer,
)
from .services import cancel_opname, commit_opname, start_opname, update_count

OpnameError = inline_serializer(
    name="OpnameErrorResponse",
    fields={"detail": rf_serializers.CharField(), "code": rf_serializers.CharField()},
)


class OpnameListStartView(APIView):
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    def get_throttles(self):
        self.throttle_scope = "stock_write" if self.request.method == "POST" else "stock"
        return super().get_throttles()

    @extend_schema(
        tags=["Opname Endpoints"],
        summary="List opname sessions",
        parameters=[
            OpenApiParameter("status", OpenApiTypes.STR, location="query"),
            OpenApiParameter("location_id", OpenApiTypes.INT, location="query"),
            OpenApiParameter("limit", OpenApiTypes.INT, location="query"),
        ],
        responses=StockOpnameSerializer(many=True),
    )
    def get(self, request):
        query = OpnameListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data
        qs = selectors.list_opnames(
            status=params.get("status"),
            location_id=params.get("location_id"),
            limit=params["limit"],
        )
        rows = StockOpnameSerializer(qs, many=True).data
        return Response({"results": rows, "count": len(rows)})

    @extend_schema(
        tags=["Opname Endpoints"],
        summary="Start opname",
        description="Opens an ACTIVE count session snapshotting current balances.",
        request=StartOpnameSerializer,
        responses={201: StockOpnameSerializer, 400: OpnameError, 404: OpnameError},
    )
    def post(self, request):
        serializer = StartOpnameSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            opname = start_opname(
                code=data["opname_code"],
                location_id=data.get("location_id"),
                created_by=data.get("created_by", ""),
                include_zero=data.get("include_zero", False),
            )
        except StockError as exc:
            return stock_error_response(exc)
        return Response(StockOpnameSerializer(opname).data, status=status.HTTP_201_CREATED)


class OpnameDetailView(APIView):
    throttle_scope = "stock"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(tags=["Opname Endpoints"], summary="Opname details", responses={404: OpnameError})
    def get(self, request, opname_id: int):
        try:
            details = selectors.get_opname_details(opname_id)
        except StockError as exc:
            return stock_error_response(exc)
        data = StockOpnameSerializer(details["opname"]).data
        data["items"] = StockOpnameItemSerializer(details["items"], many=True).data
        return Response(data)


class OpnameCountView(APIView):
    throttle_scope = "stock_write"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Opname Endpoints"],
        summary="Update counted quantity",
        request=UpdateCountSerializer,
        responses={200: StockOpnameItemSerializer, 400: OpnameError, 404: OpnameError, 409: OpnameError},
    )
    def put(self, request, opname_id: int):
        serializer = UpdateCountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            item = update_count(opname_id=opname_id, **serializer.validated_data)
        except StockError as exc:
            return stock_error_response(exc)
        return Response(StockOpnameItemSerializer(item).data)


class OpnameCommitView(APIView):
    throttle_scope = "stock_write"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Opname Endpoints"],
        summary="Commit opname",
        description="Books one adjustment per counted variance and completes the session.",
        request=CommitOpnameSerializer,
        responses={200: OpenApiTypes.OBJECT, 400: OpnameError, 404: OpnameError, 409: OpnameError},
        examples=[
            OpenApiExample(
                "Committed",
                value={
                    "summary": {
                        "total_items": 3,
                        "counted_items": 3,
                        "positive_variances": 1,
                        "negative_variances": 1,
                        "total_adjustments": 2,
                    }
                },
                response_only=True,
            )
        ],
    )
    def post(self, request, opname_id: int):
        serializer = CommitOpnameSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = commit_opname(opname_id=opname_id, created_by=serializer.validated_data.get("created_by", ""))
        except StockError as exc:
            return stock_error_response(exc)
        adjustments = [
            {
                **StockMovementSerializer(adj["movement"]).data,
                "variance_qty": adj["variance_qty"],
                "system_qty": adj["system_qty"],
                "counted_qty": adj["counted_qty"],
            }
            for adj in result["adjustments"]
        ]
        return Response(
            {
                "opname": StockOpnameSerializer(result["opname"]).data,
                "adjustments": adjustments,
                "summary": result["summary"],
            }
        )


class OpnameCancelView(APIView):
    throttle_scope = "stock_write"
    throttle_classes = [SettingsScopedRateThrottle]

    @extend_schema(
        tags=["Opname Endpoints"],
        summary="Cancel opname",
        request=None,
        responses={200: StockOpnameSerializer, 404: OpnameError, 409: OpnameError},
    )
    def post(self, request, opname_id: int):
        try:
            opname = cancel_opname(opname_id=opname_id)
        except StockError as exc:
            return stock_error_response(exc)
        return Response(StockOpnameSerializer(opname).data)
