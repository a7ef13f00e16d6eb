"""Public pricing endpoints: price quotes and the monthly price calendar."""

from __future__ import annotations

from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.catalog.services import CatalogService

from .serializers import (
    PriceCalendarDaySerializer,
    PriceCalendarRequestSerializer,
    PriceQuoteRequestSerializer,
    PriceQuoteSerializer,
)
from .services import PricingEngine


class PriceQuoteView(APIView):
    """Run the pricing engine for an arbitrary base price and date."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = PriceQuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = PricingEngine().calculate_price(
            data["base_price"],
            data["booking_date"],
            data["applies_to"],
            data["item_type"],
            data["item_id"],
            data["guests"],
            data["duration_hours"],
        )
        payload = {
            "base_price": result.base_price,
            "final_price": result.final_price,
            "total_adjustment": result.total_adjustment,
            "applied_rule_ids": list(result.applied_rule_ids),
            "breakdown": result.breakdown,
            "discount_percent": result.discount_percent,
            "premium_percent": result.premium_percent,
        }
        return Response(PriceQuoteSerializer(payload).data)


class PriceCalendarView(APIView):
    """Per-day prices for one item over a month."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        serializer = PriceCalendarRequestSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        catalog = CatalogService()
        item = catalog.get_bookable_item(data["item_type"], data["item_id"])
        if item is None:
            return Response({"detail": "Item not found.", "code": "item_not_found"}, status=status.HTTP_404_NOT_FOUND)

        base_price = data.get("base_price")
        if base_price is None:
            base_price = catalog.base_price(item, hours=None, adults=1, children=0).base_price

        year, month = (int(part) for part in data["month"].split("-"))
        days = PricingEngine().price_calendar(
            base_price,
            year,
            month,
            item.applies_to,
            item.item_type,
            item.id,
        )
        return Response(
            {
                "item_type": item.type,
                "item_id": item.id,
                "month": data["month"],
                "days": PriceCalendarDaySerializer(days, many=True).data,
            }
        )
