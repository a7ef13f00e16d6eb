"""API views for the booking domain."""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .application.command_handlers import TransitionBookingCommand
from .bootstrap import build_create_booking_handler, build_state_machine, build_transition_handler
from .domain.state_machine import ActorType, BookingStatus
from .http import error_response
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusHistorySerializer,
    CancelBookingSerializer,
    TransitionRequestSerializer,
    TransitionResultSerializer,
)


def _vendor_id(user) -> int | None:
    vendor = getattr(user, "vendor_profile", None)
    return vendor.pk if vendor is not None else None


def actor_for(user) -> tuple[str, int | None]:
    """Map an authenticated user onto a state machine actor."""
    if user.is_platform_admin():
        return ActorType.ADMIN.value, user.pk
    if user.is_vendor():
        return ActorType.VENDOR.value, _vendor_id(user)
    return ActorType.USER.value, user.pk


class IsBookingStakeholder(permissions.BasePermission):
    """Guests, the vendor fulfilling the booking and platform admins can access a booking."""

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if user.is_platform_admin():
            return True
        if user.is_vendor():
            return obj.vendor_id is not None and obj.vendor_id == _vendor_id(user)
        return obj.guest_id == user.id


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Create bookings and drive them through their lifecycle."""

    queryset = Booking.objects.select_related("guest", "promo_code", "gift_card", "loyalty_tier").prefetch_related(
        "addons"
    )
    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]
    filterset_fields = ["status", "bookable_type", "booking_date"]

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "cancel":
            return CancelBookingSerializer
        if self.action == "transition":
            return TransitionRequestSerializer
        return BookingSerializer

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if not user.is_authenticated:
            return qs.none()
        if user.is_platform_admin():
            return qs
        if user.is_vendor():
            return qs.filter(vendor_id=_vendor_id(user))
        return qs.filter(guest=user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = build_create_booking_handler().handle(serializer.to_command(request.user.pk))
        if not result.success:
            return error_response(result.code, result.message)

        data = BookingSerializer(result.booking, context=self.get_serializer_context()).data
        return Response(data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        """Cancel the booking as its owner."""
        booking: Booking = self.get_object()  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = build_transition_handler().handle(
            TransitionBookingCommand(
                booking_id=booking.pk,
                new_status=BookingStatus.CANCELLED.value,
                actor_type=ActorType.USER.value,
                actor_id=request.user.pk,
                reason=serializer.validated_data["reason"],
            )
        )
        if not result.success:
            return error_response(result.code, result.message)
        return Response(TransitionResultSerializer(result).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def transition(self, request, pk=None):  # type: ignore
        """Move the booking to another status as staff or the fulfilling vendor."""
        booking: Booking = self.get_object()  # type: ignore
        actor_type, actor_id = actor_for(request.user)
        if actor_type == ActorType.USER.value:
            return Response(
                {"detail": "Only staff and vendors can change booking status.", "code": "unauthorized"},
                status=status.HTTP_403_FORBIDDEN,
            )

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = build_transition_handler().handle(
            TransitionBookingCommand(
                booking_id=booking.pk,
                new_status=serializer.validated_data["status"],
                actor_type=actor_type,
                actor_id=actor_id,
                reason=serializer.validated_data["reason"],
                metadata={"via": "api", "user_id": request.user.pk},
            )
        )
        if not result.success:
            return error_response(result.code, result.message)
        return Response(TransitionResultSerializer(result).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"])
    def transitions(self, request, pk=None):  # type: ignore
        """List the statuses the current user may move this booking to."""
        booking: Booking = self.get_object()  # type: ignore
        actor_type, _ = actor_for(request.user)
        return Response(
            {
                "status": booking.status,
                "actor_type": actor_type,
                "transitions": build_state_machine().allowed_transitions(booking.status, actor_type),
            }
        )

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        entries = booking.status_history.order_by("created_at", "id")
        return Response(BookingStatusHistorySerializer(entries, many=True).data)
