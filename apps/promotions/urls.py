"""URL routing for promotions."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import GiftCardCheckView, PromoCodeCheckView

urlpatterns = [
    path("promo-codes/check/", PromoCodeCheckView.as_view(), name="promo-code-check"),
    path("gift-cards/check/", GiftCardCheckView.as_view(), name="gift-card-check"),
]
