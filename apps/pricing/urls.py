"""URL routing for the pricing API."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import PriceCalendarView, PriceQuoteView

urlpatterns = [
    path("quote/", PriceQuoteView.as_view(), name="pricing-quote"),
    path("calendar/", PriceCalendarView.as_view(), name="pricing-calendar"),
]
