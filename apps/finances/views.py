"""API views for payments.

Guests can list the payments recorded for their own bookings. Provider
adapters report successful payments to the confirmation endpoint, which
is authenticated by a shared secret header instead of a user token.
"""

from __future__ import annotations

import hmac

from django.conf import settings  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.http import error_response

from .models import Payment
from .serializers import PaymentConfirmSerializer, PaymentSerializer
from .services import confirm_payment

WEBHOOK_SECRET_HEADER = "HTTP_X_WEBHOOK_SECRET"


class HasWebhookSecret(permissions.BasePermission):
    """Accept requests carrying the configured X-Webhook-Secret header."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        expected = getattr(settings, "PAYMENT_WEBHOOK_SECRET", "")
        provided = request.META.get(WEBHOOK_SECRET_HEADER, "")
        return bool(expected) and hmac.compare_digest(provided.encode(), expected.encode())


class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    """Payments for the current user's bookings; staff see all."""

    queryset = Payment.objects.select_related("booking").prefetch_related("transactions")
    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if user.is_platform_admin():
            return qs
        return qs.filter(booking__guest=user)


class PaymentConfirmView(APIView):
    """Provider callback: the booking was paid."""

    authentication_classes: list = []
    permission_classes = [HasWebhookSecret]

    def post(self, request):  # type: ignore
        serializer = PaymentConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        confirmation = confirm_payment(
            data["booking_reference"],
            provider=data["provider"],
            transaction_id=data["transaction_id"],
            amount=data.get("amount"),
            method=data["method"],
            payload=data["payload"],
        )
        result = confirmation.result
        if not result.success:
            return error_response(result.code, result.message)

        return Response(
            {
                "status": result.new_status,
                "replayed": confirmation.replayed,
                "payment_id": confirmation.payment.pk if confirmation.payment else None,
            },
            status=status.HTTP_200_OK,
        )
