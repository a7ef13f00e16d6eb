"""Endpoints that let a customer check a promo code or gift card before booking."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.domain.errors import BookingError
from apps.bookings.http import error_response
from apps.catalog.models import AppliesTo
from apps.catalog.services import VESSEL

from .serializers import GiftCardCheckSerializer, PromoCodeCheckSerializer
from .services import GiftCardService, PromoCodeService


class PromoCodeCheckView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):  # type: ignore
        serializer = PromoCodeCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            quote = PromoCodeService().validate(
                data["code"],
                user_id=request.user.pk,
                bookable_type=data["bookable_type"],
                item_id=data["item_id"],
                order_amount=data["order_amount"],
            )
        except BookingError as exc:
            return error_response(exc.code, exc.message)

        return Response(
            {
                "code": quote.promo_code.code,
                "description": quote.promo_code.description,
                "discount_type": quote.terms.discount_type,
                "value": str(quote.terms.value),
                "discount": str(quote.discount),
            }
        )


class GiftCardCheckView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):  # type: ignore
        serializer = GiftCardCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        applies_to = AppliesTo.VESSELS if data["bookable_type"] == VESSEL else AppliesTo.TOURS

        try:
            quote = GiftCardService().validate(
                data["code"],
                order_amount=data["order_amount"],
                applies_to=applies_to,
            )
        except BookingError as exc:
            return error_response(exc.code, exc.message)

        return Response(
            {
                "code": quote.gift_card.code,
                "balance": str(quote.gift_card.balance),
                "applicable_amount": str(quote.applicable_amount),
                "valid_until": quote.gift_card.valid_until,
            }
        )
