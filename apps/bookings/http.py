"""HTTP mapping for booking core error codes."""

from __future__ import annotations

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore

from .domain import errors

_NOT_FOUND_CODES = {
    cls.code
    for cls in (
        errors.NotFound,
        errors.ItemNotFound,
        errors.BookingNotFound,
        errors.PromoCodeNotFound,
        errors.GiftCardNotFound,
        errors.PackageNotFound,
    )
}


def status_for(code: str | None) -> int:
    if code in _NOT_FOUND_CODES:
        return status.HTTP_404_NOT_FOUND
    if code == errors.Unauthorized.code:
        return status.HTTP_403_FORBIDDEN
    if code == errors.UnknownAutoAction.code:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def error_response(code: str | None, message: str) -> Response:
    return Response({"detail": message, "code": code}, status=status_for(code))
