"""Tests for promo code validation and the gift card ledger."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.domain.errors import GiftCardInvalid, GiftCardNotFound, PromoCodeInvalid, PromoCodeNotFound
from apps.bookings.models import Booking
from apps.promotions.models import GiftCard, GiftCardTransaction, PromoCode
from apps.promotions.services import GiftCardService, PromoCodeService
from apps.promotions.tasks import expire_gift_cards
from apps.users.models import User

pytestmark = pytest.mark.django_db


@pytest.fixture
def guest():
    return User.objects.create_user(email="guest@example.com", password="GuestPass123")


@pytest.fixture
def booking(guest):
    return Booking.objects.create(
        reference=Booking.generate_reference(),
        guest=guest,
        bookable_type=Booking.BookableType.VESSEL,
        bookable_id=1,
        booking_date=timezone.localdate() + timedelta(days=3),
    )


def make_promo(**overrides) -> PromoCode:
    now = timezone.now()
    values = {
        "code": "summer",
        "discount_type": PromoCode.DiscountType.PERCENTAGE,
        "value": Decimal("20"),
        "valid_from": now - timedelta(days=1),
        "valid_until": now + timedelta(days=30),
    }
    values.update(overrides)
    return PromoCode.objects.create(**values)


def make_card(**overrides) -> GiftCard:
    today = timezone.localdate()
    values = {
        "code": "gift-abc",
        "initial_amount": Decimal("3000.00"),
        "valid_from": today - timedelta(days=1),
        "valid_until": today + timedelta(days=90),
    }
    values.update(overrides)
    return GiftCard.objects.create(**values)


def validate_promo(guest, code="SUMMER", **overrides):
    params = {
        "user_id": guest.pk,
        "bookable_type": "vessel",
        "item_id": 7,
        "order_amount": Decimal("10000"),
    }
    params.update(overrides)
    return PromoCodeService().validate(code, **params)


def test_promo_discount_is_capped(guest) -> None:
    make_promo(max_discount_amount=Decimal("1500"))

    quote = validate_promo(guest, code=" summer ")

    assert quote.promo_code.code == "SUMMER"
    assert quote.discount == Decimal("1500.00")


def test_promo_rejections(guest, booking) -> None:
    promo = make_promo(min_order_amount=Decimal("5000"), applies_to="tours")

    with pytest.raises(PromoCodeNotFound):
        validate_promo(guest, code="WINTER")
    with pytest.raises(PromoCodeInvalid, match="tours"):
        validate_promo(guest, bookable_type="vessel")
    with pytest.raises(PromoCodeInvalid, match="Minimum order"):
        validate_promo(guest, bookable_type="tour", order_amount=Decimal("4000"))

    PromoCodeService().record_usage(promo, user_id=guest.pk, booking=booking, discount=Decimal("100"))
    with pytest.raises(PromoCodeInvalid, match="already used"):
        validate_promo(guest, bookable_type="tour")

    promo.refresh_from_db()
    assert promo.used_count == 1


def test_promo_item_scope_and_window(guest) -> None:
    make_promo(vessel_ids=[7, 8], tour_ids=[1])
    make_promo(code="later", valid_from=timezone.now() + timedelta(days=2))

    assert validate_promo(guest, item_id=8).discount == Decimal("2000.00")
    with pytest.raises(PromoCodeInvalid):
        validate_promo(guest, item_id=9)
    with pytest.raises(PromoCodeInvalid, match="expired"):
        validate_promo(guest, code="LATER")


def test_promo_usage_limit(guest) -> None:
    make_promo(max_uses=10, used_count=10)

    with pytest.raises(PromoCodeInvalid, match="limit"):
        validate_promo(guest)


def test_gift_card_validation() -> None:
    make_card(applies_to="tours")
    service = GiftCardService()

    quote = service.validate("GIFT-ABC", order_amount=Decimal("1200"), applies_to="tours")
    assert quote.applicable_amount == Decimal("1200.00")

    with pytest.raises(GiftCardInvalid):
        service.validate("GIFT-ABC", order_amount=Decimal("1200"), applies_to="vessels")
    with pytest.raises(GiftCardNotFound):
        service.validate("NOPE", order_amount=Decimal("1200"), applies_to="tours")
    with pytest.raises(GiftCardInvalid, match="expired"):
        service.validate(
            "GIFT-ABC",
            order_amount=Decimal("1200"),
            applies_to="tours",
            today=timezone.localdate() + timedelta(days=91),
        )


def test_partial_redeem_then_refund(booking) -> None:
    card = make_card()
    service = GiftCardService()

    service.redeem(card.pk, Decimal("1000"), booking=booking)
    card.refresh_from_db()
    assert card.balance == Decimal("2000.00")
    assert card.status == GiftCard.Status.ACTIVE

    service.redeem(card.pk, Decimal("2000"), booking=booking)
    card.refresh_from_db()
    assert card.balance == Decimal("0.00")
    assert card.status == GiftCard.Status.USED

    with pytest.raises(GiftCardInvalid):
        service.redeem(card.pk, Decimal("1"), booking=booking)

    refund = service.refund(card.pk, Decimal("2000"), booking=booking)
    card.refresh_from_db()
    assert refund.balance_after == Decimal("2000.00")
    assert card.status == GiftCard.Status.ACTIVE
    assert list(card.transactions.order_by("id").values_list("type", "amount")) == [
        ("redeem", Decimal("-1000.00")),
        ("redeem", Decimal("-2000.00")),
        ("refund", Decimal("2000.00")),
    ]


def test_redeem_more_than_balance_is_rejected(booking) -> None:
    card = make_card(initial_amount=Decimal("500.00"))

    with pytest.raises(GiftCardInvalid):
        GiftCardService().redeem(card.pk, Decimal("800"), booking=booking)

    card.refresh_from_db()
    assert card.balance == Decimal("500.00")


def test_expire_gift_cards_task() -> None:
    yesterday = timezone.localdate() - timedelta(days=1)
    stale = make_card(code="old", valid_from=yesterday - timedelta(days=30), valid_until=yesterday)
    current = make_card(code="new")

    assert expire_gift_cards() == {"expired": 1}

    stale.refresh_from_db()
    current.refresh_from_db()
    assert stale.status == GiftCard.Status.EXPIRED
    assert stale.balance == Decimal("0.00")
    assert current.status == GiftCard.Status.ACTIVE
    expire = GiftCardTransaction.objects.get(gift_card=stale)
    assert expire.type == GiftCardTransaction.Type.EXPIRE
    assert expire.amount == Decimal("-3000.00")


class PromotionsAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="guest@example.com", password="GuestPass123")
        self.client.force_authenticate(self.user)

    def test_promo_check(self) -> None:
        make_promo()

        ok = self.client.post(
            reverse("promo-code-check"),
            {"code": "summer", "bookable_type": "tour", "item_id": 1, "order_amount": "5000"},
            format="json",
        )
        missing = self.client.post(
            reverse("promo-code-check"),
            {"code": "nope", "bookable_type": "tour", "item_id": 1, "order_amount": "5000"},
            format="json",
        )

        self.assertEqual(ok.status_code, status.HTTP_200_OK, ok.data)
        self.assertEqual(ok.data["discount"], "1000.00")
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(missing.data["code"], "promo_code_not_found")

    def test_gift_card_check(self) -> None:
        make_card()

        response = self.client.post(
            reverse("gift-card-check"),
            {"code": "GIFT-ABC", "bookable_type": "vessel", "order_amount": "5000"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["applicable_amount"], "3000.00")
