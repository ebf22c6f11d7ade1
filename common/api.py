"""Helpers shared by the DRF views."""

from rest_framework import status
from rest_framework.response import Response

from .exceptions import (
    InsufficientStock,
    IntegrityFault,
    InvalidArgument,
    InvalidReasonCode,
    InvalidState,
    NotFound,
    StockError,
)

_STATUS_BY_ERROR = {
    InvalidArgument: status.HTTP_400_BAD_REQUEST,
    InvalidReasonCode: status.HTTP_400_BAD_REQUEST,
    InsufficientStock: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidState: status.HTTP_409_CONFLICT,
    IntegrityFault: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def stock_error_response(exc: StockError) -> Response:
    """Translate a service error into the ``{"detail", "code"}`` body."""

    code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    body = {"detail": exc.message or str(exc), "code": exc.code}
    if isinstance(exc, InsufficientStock):
        body["available"] = exc.available
        body["required"] = exc.required
    return Response(body, status=code)
