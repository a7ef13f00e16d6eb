"""Integration tests for the booking orchestrator."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.bookings.application.command_handlers import CreateBookingCommand
from apps.bookings.bootstrap import build_create_booking_handler
from apps.bookings.models import Booking
from apps.bookings.services import TransitionResult
from apps.catalog.models import Addon, Package, PackageAddon, Tour, Vendor, Vessel
from apps.catalog.services import AddonSelection
from apps.pricing.models import PricingRule
from apps.promotions.models import GiftCard, PromoCode, PromoCodeUsage
from apps.users.models import CashbackTransaction, LoyaltyTier, User

ALL_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class _RejectingStateMachine:
    def transition(self, *args, **kwargs) -> TransitionResult:
        return TransitionResult(success=False, code="invalid_transition", message="rejected")


class CreateBookingTests(TestCase):
    def setUp(self) -> None:
        self.today = timezone.localdate()
        self.booking_date = self.today + timedelta(days=30)
        self.tier = LoyaltyTier.objects.create(
            name="Bronze",
            slug="bronze",
            cashback_percent=Decimal("5.00"),
            extra_discount_percent=Decimal("5.00"),
        )
        self.guest = User.objects.create_user(
            email="guest@example.com",
            password="GuestPass123",
            first_name="Nok",
            last_name="Sai",
            cashback_balance=Decimal("5000.00"),
        )
        self.vendor = Vendor.objects.create(name="Andaman Charters", commission_rate=Decimal("15.00"))
        self.vessel = Vessel.objects.create(
            vendor=self.vendor,
            name="Sea Breeze",
            slug="sea-breeze",
            price_per_hour=Decimal("5000.00"),
            price_per_day=Decimal("30000.00"),
        )
        self.snorkel = Addon.objects.create(
            name="Snorkel set",
            price=Decimal("500.00"),
            price_type=Addon.PriceType.PER_PERSON,
        )
        self.promo = PromoCode.objects.create(
            code="sea10",
            discount_type=PromoCode.DiscountType.PERCENTAGE,
            value=Decimal("10"),
            valid_from=timezone.now() - timedelta(days=1),
            valid_until=timezone.now() + timedelta(days=60),
        )
        self.gift_card = GiftCard.objects.create(
            code="GIFT-2000",
            initial_amount=Decimal("2000.00"),
            valid_from=self.today - timedelta(days=1),
            valid_until=self.today + timedelta(days=365),
        )
        self.handler = build_create_booking_handler()

    def _command(self, **overrides) -> CreateBookingCommand:
        values = {
            "guest_id": self.guest.pk,
            "bookable_type": "vessel",
            "bookable_id": self.vessel.pk,
            "booking_date": self.booking_date,
            "duration_hours": 4,
            "adults": 2,
            "children": 1,
        }
        values.update(overrides)
        return CreateBookingCommand(**values)

    def test_full_discount_stack(self) -> None:
        result = self.handler.handle(
            self._command(
                addons=[AddonSelection(addon_id=self.snorkel.pk)],
                promo_code="SEA10",
                cashback_to_use=Decimal("3000"),
                gift_card_code="gift-2000",
            )
        )

        self.assertTrue(result.success, result.message)
        booking = Booking.objects.get(pk=result.booking.pk)
        self.assertRegex(booking.reference, r"^PYT-\d{4}-\d{6}$")
        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(booking.base_price, Decimal("20000.00"))
        self.assertEqual(booking.dynamic_adjustment, Decimal("0.00"))
        self.assertEqual(booking.extras_price, Decimal("1500.00"))
        self.assertEqual(booking.subtotal, Decimal("21500.00"))
        self.assertEqual(booking.promo_discount, Decimal("2150.00"))
        self.assertEqual(booking.loyalty_discount, Decimal("1075.00"))
        self.assertEqual(booking.cashback_used, Decimal("3000.00"))
        self.assertEqual(booking.gift_card_amount, Decimal("2000.00"))
        self.assertEqual(booking.total_discount, Decimal("8225.00"))
        self.assertEqual(booking.total_price, Decimal("13275.00"))
        self.assertEqual(booking.cashback_earned, Decimal("663.75"))
        self.assertEqual(booking.vendor_commission, Decimal("1991.25"))
        self.assertEqual(booking.vendor_id, self.vendor.pk)
        self.assertEqual(booking.loyalty_tier, self.tier)
        self.assertEqual(booking.contact_name, "Nok Sai")
        self.assertEqual(booking.addons.count(), 1)

        self.guest.refresh_from_db()
        self.gift_card.refresh_from_db()
        self.promo.refresh_from_db()
        self.assertEqual(self.guest.cashback_balance, Decimal("2000.00"))
        self.assertEqual(self.gift_card.balance, Decimal("0.00"))
        self.assertEqual(self.gift_card.status, GiftCard.Status.USED)
        self.assertEqual(self.promo.used_count, 1)
        self.assertTrue(PromoCodeUsage.objects.filter(booking=booking, user=self.guest).exists())

        history = list(booking.status_history.all())
        self.assertEqual(len(history), 1)
        self.assertIsNone(history[0].old_status)
        self.assertEqual(history[0].new_status, "pending")

    def test_dynamic_pricing_is_recorded(self) -> None:
        rule = PricingRule.objects.create(
            name="Peak",
            type=PricingRule.Type.DAY_OF_WEEK,
            applies_to="vessels",
            days_of_week=ALL_DAYS,
            adjustment_type=PricingRule.AdjustmentType.PERCENTAGE,
            adjustment_value=Decimal("20"),
        )

        result = self.handler.handle(self._command())

        self.assertTrue(result.success, result.message)
        booking = result.booking
        self.assertEqual(booking.base_price, Decimal("20000.00"))
        self.assertEqual(booking.dynamic_adjustment, Decimal("4000.00"))
        self.assertEqual(booking.pricing_rules_applied, [rule.pk])
        self.assertEqual(booking.subtotal, Decimal("24000.00"))

    def test_vessel_without_duration_is_priced_as_full_day(self) -> None:
        rule = PricingRule.objects.create(
            name="Full day charter",
            type=PricingRule.Type.DURATION,
            applies_to="vessels",
            min_duration_hours=8,
            adjustment_type=PricingRule.AdjustmentType.PERCENTAGE,
            adjustment_value=Decimal("-10"),
        )

        result = self.handler.handle(self._command(duration_hours=None))

        self.assertTrue(result.success, result.message)
        booking = result.booking
        self.assertEqual(booking.base_price, Decimal("30000.00"))
        self.assertEqual(booking.dynamic_adjustment, Decimal("-3000.00"))
        self.assertEqual(booking.pricing_rules_applied, [rule.pk])

    def test_invalid_promo_creates_nothing(self) -> None:
        result = self.handler.handle(self._command(promo_code="NOPE", cashback_to_use=Decimal("1000")))

        self.assertFalse(result.success)
        self.assertEqual(result.code, "promo_code_not_found")
        self.assertEqual(Booking.objects.count(), 0)
        self.guest.refresh_from_db()
        self.assertEqual(self.guest.cashback_balance, Decimal("5000.00"))

    def test_failed_history_seed_rolls_back_side_effects(self) -> None:
        self.handler.state_machine = _RejectingStateMachine()

        result = self.handler.handle(
            self._command(cashback_to_use=Decimal("1000"), gift_card_code="GIFT-2000", promo_code="SEA10")
        )

        self.assertFalse(result.success)
        self.assertEqual(result.code, "invalid_transition")
        self.assertEqual(Booking.objects.count(), 0)
        self.guest.refresh_from_db()
        self.gift_card.refresh_from_db()
        self.promo.refresh_from_db()
        self.assertEqual(self.guest.cashback_balance, Decimal("5000.00"))
        self.assertFalse(CashbackTransaction.objects.exists())
        self.assertEqual(self.gift_card.balance, Decimal("2000.00"))
        self.assertEqual(self.promo.used_count, 0)

    def test_package_booking(self) -> None:
        catering = Addon.objects.create(name="Catering", price=Decimal("1000.00"))
        towels = Addon.objects.create(name="Towels", price=Decimal("300.00"), price_type=Addon.PriceType.PER_ITEM)
        package = Package.objects.create(
            name="Sunset Party",
            slug="sunset-party",
            base_type=Package.BaseType.VESSEL,
            discount_percent=Decimal("10"),
            min_duration_hours=4,
        )
        PackageAddon.objects.create(package=package, addon=catering)

        result = self.handler.handle(
            self._command(
                duration_hours=None,
                package_id=package.pk,
                addons=[AddonSelection(addon_id=towels.pk, quantity=2)],
            )
        )

        self.assertTrue(result.success, result.message)
        booking = result.booking
        self.assertEqual(booking.duration_hours, 4)
        self.assertEqual(booking.base_price, Decimal("20000.00"))
        self.assertEqual(booking.extras_price, Decimal("1600.00"))
        self.assertEqual(booking.package_discount, Decimal("2100.00"))
        self.assertEqual(booking.subtotal, Decimal("19500.00"))
        self.assertEqual(
            sorted(booking.addons.values_list("name", "included_in_package")),
            [("Catering", True), ("Towels", False)],
        )
        package.refresh_from_db()
        self.assertEqual(package.bookings_count, 1)

    def test_package_must_match_item_type(self) -> None:
        package = Package.objects.create(name="Island Day", slug="island-day", base_type=Package.BaseType.TOUR)

        result = self.handler.handle(self._command(package_id=package.pk))

        self.assertFalse(result.success)
        self.assertEqual(result.code, "invalid_booking_request")

    def test_tour_booking_with_pickup(self) -> None:
        tour = Tour.objects.create(
            name="Phi Phi Day Trip",
            slug="phi-phi",
            duration_hours=6,
            price_adult=Decimal("1500.00"),
            price_child=Decimal("750.00"),
            pickup_fee=Decimal("300.00"),
        )

        result = self.handler.handle(
            self._command(bookable_type="tour", bookable_id=tour.pk, duration_hours=None, pickup=True)
        )

        self.assertTrue(result.success, result.message)
        booking = result.booking
        self.assertEqual(booking.base_price, Decimal("3750.00"))
        self.assertEqual(booking.pickup_fee, Decimal("300.00"))
        self.assertEqual(booking.duration_hours, 6)
        self.assertEqual(booking.subtotal, Decimal("4050.00"))
        self.assertIsNone(booking.vendor_id)
        self.assertEqual(booking.vendor_commission, Decimal("0.00"))

    def test_request_validation(self) -> None:
        past = self.handler.handle(self._command(booking_date=self.today - timedelta(days=1)))
        no_adults = self.handler.handle(self._command(adults=0))
        missing = self.handler.handle(self._command(bookable_id=999999))
        bad_type = self.handler.handle(self._command(bookable_type="submarine"))

        self.assertEqual(past.code, "invalid_booking_request")
        self.assertEqual(no_adults.code, "invalid_booking_request")
        self.assertEqual(missing.code, "item_not_found")
        self.assertEqual(bad_type.code, "invalid_booking_type")
        self.assertEqual(Booking.objects.count(), 0)

    def test_inactive_addon_is_skipped(self) -> None:
        self.snorkel.is_active = False
        self.snorkel.save()

        result = self.handler.handle(self._command(addons=[AddonSelection(addon_id=self.snorkel.pk)]))

        self.assertTrue(result.success, result.message)
        self.assertEqual(result.booking.extras_price, Decimal("0.00"))
        self.assertFalse(result.booking.addons.exists())
