"""User API views."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .serializers import (
    CashbackTransactionSerializer,
    LoyaltyProgressSerializer,
    RegisterSerializer,
    UserSerializer,
)
from .services import LoyaltyService

User = get_user_model()


class UserViewSet(viewsets.ModelViewSet):
    """User management.

    - `register` is open to anonymous visitors
    - `me`, `cashback` and `loyalty` describe the current user
    - list and edit operations are limited to platform staff
    """

    serializer_class = UserSerializer
    queryset = User.objects.select_related("loyalty_tier").all()
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_permissions(self):  # type: ignore
        if self.action in {"register"}:
            return [permissions.AllowAny()]
        if self.action in {"me", "cashback", "loyalty"}:
            return [permissions.IsAuthenticated()]
        return [permissions.IsAdminUser()]

    @action(detail=False, methods=["post"], permission_classes=[permissions.AllowAny])
    def register(self, request):
        """Sign up a new guest."""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def me(self, request):
        """Return the current user's profile."""
        return Response(UserSerializer(request.user).data)

    @action(detail=False, methods=["get"])
    def cashback(self, request):
        """Return the current user's cashback ledger, newest first."""
        entries = request.user.cashback_transactions.select_related("booking")
        page = self.paginate_queryset(entries)
        if page is not None:
            return self.get_paginated_response(CashbackTransactionSerializer(page, many=True).data)
        return Response(CashbackTransactionSerializer(entries, many=True).data)

    @action(detail=False, methods=["get"])
    def loyalty(self, request):
        """Return the current tier and progress to the next one."""
        progress = LoyaltyService().progress(request.user)
        return Response(LoyaltyProgressSerializer(progress).data)
