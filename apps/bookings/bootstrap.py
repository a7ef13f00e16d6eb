"""Wires the booking core together with its collaborators."""

from __future__ import annotations

from django.conf import settings  # type: ignore

from apps.catalog.services import CatalogService
from apps.pricing.services import PricingEngine
from apps.promotions.services import GiftCardService, PromoCodeService
from apps.users.services import CashbackService, LoyaltyService, ReferralService

from .application.command_handlers import CreateBookingHandler, TransitionBookingHandler
from .domain.discounts import DiscountComposer
from .services import AutoActionExecutor, BookingStateMachine


def build_state_machine() -> BookingStateMachine:
    cashback = CashbackService()
    executor = AutoActionExecutor(
        cashback=cashback,
        loyalty=LoyaltyService(),
        referrals=ReferralService(cashback),
        gift_cards=GiftCardService(),
        catalog=CatalogService(),
    )
    return BookingStateMachine(executor=executor)


def build_create_booking_handler() -> CreateBookingHandler:
    """Create the booking orchestrator with its default collaborators."""
    catalog = CatalogService()
    cashback = CashbackService()
    return CreateBookingHandler(
        catalog=catalog,
        pricing=PricingEngine(),
        composer=DiscountComposer(max_cashback_share=settings.CASHBACK_MAX_ORDER_SHARE),
        promo_codes=PromoCodeService(),
        gift_cards=GiftCardService(),
        cashback=cashback,
        loyalty=LoyaltyService(),
        state_machine=build_state_machine(),
    )


def build_transition_handler() -> TransitionBookingHandler:
    return TransitionBookingHandler(build_state_machine())
