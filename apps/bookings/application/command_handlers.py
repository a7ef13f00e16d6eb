"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Price, discount and persist a new booking
- TransitionBookingCommand: Move a booking to another status
"""

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import List, Optional
import logging

from django.conf import settings
from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import Money, quantize
from apps.bookings.domain.discounts import DiscountComposer
from apps.bookings.domain.errors import (
    BookingError,
    InvalidBookingRequest,
    InvalidTransition,
    ItemNotFound,
    PackageNotFound,
)
from apps.bookings.domain.events import BookingCreated
from apps.bookings.domain.state_machine import ActorType, BookingStatus
from apps.bookings.models import Booking, BookingAddonSelection
from apps.bookings.services import BookingStateMachine, TransitionResult
from apps.catalog.services import AddonSelection, CatalogService
from apps.pricing.services import PricingEngine
from apps.promotions.services import GiftCardService, PromoCodeService
from apps.users.models import CashbackTransaction, CustomUser
from apps.users.services import CashbackService, LoyaltyService

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    """
    guest_id: int
    bookable_type: str
    bookable_id: int
    booking_date: date
    start_time: Optional[time] = None
    duration_hours: Optional[int] = None
    adults: int = 1
    children: int = 0
    infants: int = 0
    pickup: bool = False
    pickup_address: str = ''
    addons: List[AddonSelection] = field(default_factory=list)
    package_id: Optional[int] = None
    promo_code: str = ''
    cashback_to_use: Decimal = ZERO
    gift_card_code: str = ''
    contact_name: str = ''
    contact_phone: str = ''
    contact_email: str = ''
    special_requests: str = ''
    source: str = 'web'


@dataclass
class TransitionBookingCommand:
    """Command to move a booking to another status"""
    booking_id: int
    new_status: str
    actor_type: str
    actor_id: Optional[int] = None
    reason: str = ''
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class BookingResult:
    success: bool
    booking: Optional[Booking] = None
    code: Optional[str] = None
    message: str = ''


@dataclass
class _PricedRequest:
    base_price: Decimal
    dynamic_adjustment: Decimal
    rules_applied: list
    extras_price: Decimal
    pickup_fee: Decimal
    package_discount: Decimal
    hours: Optional[int]
    addon_lines: list
    included_lines: list

    @property
    def subtotal(self) -> Decimal:
        return quantize(
            self.base_price + self.dynamic_adjustment + self.extras_price
            + self.pickup_fee - self.package_discount
        )


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command (the booking orchestrator)

    Strategy:
    1. Start database transaction (atomic)
    2. Resolve guest, loyalty tier and the bookable item
    3. Price the item with the pricing engine, or with the package bundle
    4. Validate promo code / gift card and compose discounts
    5. Persist booking and add-on rows under a fresh reference
    6. Debit cashback, redeem gift card, record promo usage
    7. Seed the status history through the state machine
    8. Commit transaction; publish events after commit

    Any error rolls back every write made in steps 5-7.
    """

    def __init__(
        self,
        catalog: CatalogService,
        pricing: PricingEngine,
        composer: DiscountComposer,
        promo_codes: PromoCodeService,
        gift_cards: GiftCardService,
        cashback: CashbackService,
        loyalty: LoyaltyService,
        state_machine: BookingStateMachine,
        uow_factory=DjangoUnitOfWork,
    ):
        self.catalog = catalog
        self.pricing = pricing
        self.composer = composer
        self.promo_codes = promo_codes
        self.gift_cards = gift_cards
        self.cashback = cashback
        self.loyalty = loyalty
        self.state_machine = state_machine
        self.uow_factory = uow_factory

    def handle(self, command: CreateBookingCommand) -> BookingResult:
        logger.info(
            f"Creating booking for {command.bookable_type} {command.bookable_id}, "
            f"guest {command.guest_id}, date {command.booking_date}"
        )
        try:
            with self.uow_factory() as uow:
                booking = self._create(uow, command)
        except BookingError as exc:
            logger.warning(f"Booking for guest {command.guest_id} rejected: {exc.code} {exc.message}")
            return BookingResult(success=False, code=exc.code, message=exc.message)

        logger.info(
            f"Booking {booking.reference} created: subtotal {booking.subtotal}, "
            f"discount {booking.total_discount}, total {booking.total_price} {booking.currency}"
        )
        return BookingResult(success=True, booking=booking)

    def _create(self, uow, command: CreateBookingCommand) -> Booking:
        self._validate(command)

        guest = CustomUser.objects.filter(pk=command.guest_id, is_active=True).first()
        if guest is None:
            raise InvalidBookingRequest(f'Unknown guest {command.guest_id}')
        tier = self.loyalty.tier_for(guest)

        item = self.catalog.get_bookable_item(command.bookable_type, command.bookable_id)
        if item is None:
            raise ItemNotFound(f'{command.bookable_type.capitalize()} {command.bookable_id} not found')

        package = None
        if command.package_id:
            package = self.catalog.get_package(command.package_id)
            if package is None:
                raise PackageNotFound(f'Package {command.package_id} not found')

        priced = self._price(command, item, package)
        subtotal = priced.subtotal

        # Discounts
        promo = None
        if command.promo_code:
            promo = self.promo_codes.validate(
                command.promo_code,
                user_id=guest.pk,
                bookable_type=item.type,
                item_id=item.id,
                order_amount=subtotal,
            )

        gift_card = None
        if command.gift_card_code:
            gift_card = self.gift_cards.validate(
                command.gift_card_code,
                order_amount=subtotal,
                applies_to=item.applies_to,
            ).gift_card

        discounts = self.composer.compose(
            subtotal,
            promo=promo.terms if promo else None,
            loyalty_percent=self.loyalty.extra_discount_percent(tier),
            cashback_requested=command.cashback_to_use or ZERO,
            cashback_balance=guest.cashback_balance,
            gift_card_balance=gift_card.balance if gift_card else None,
        )

        total = Money(discounts.total, settings.BOOKING_CURRENCY)
        cashback_percent = self.loyalty.cashback_percent(tier)
        vendor_commission = total.percent(item.commission_rate).amount if item.vendor_id else ZERO

        booking = Booking.objects.create(
            reference=self._generate_reference(),
            guest=guest,
            bookable_type=item.type,
            bookable_id=item.id,
            package=package,
            vendor_id=item.vendor_id,
            booking_date=command.booking_date,
            start_time=command.start_time,
            duration_hours=priced.hours,
            adults_count=command.adults,
            children_count=command.children,
            infants_count=command.infants,
            pickup=command.pickup,
            pickup_address=command.pickup_address,
            base_price=priced.base_price,
            dynamic_adjustment=priced.dynamic_adjustment,
            pricing_rules_applied=priced.rules_applied,
            extras_price=priced.extras_price,
            pickup_fee=priced.pickup_fee,
            package_discount=priced.package_discount,
            subtotal=subtotal,
            promo_code=promo.promo_code if promo else None,
            promo_discount=discounts.promo_discount,
            loyalty_tier=tier,
            loyalty_discount=discounts.loyalty_discount,
            cashback_used=discounts.cashback_used,
            gift_card=gift_card if discounts.gift_card_amount > 0 else None,
            gift_card_amount=discounts.gift_card_amount,
            total_discount=discounts.total_discount,
            total_price=total.amount,
            currency=total.currency,
            cashback_percent=cashback_percent,
            cashback_earned=total.percent(cashback_percent).amount,
            vendor_commission=vendor_commission,
            status=Booking.Status.PENDING,
            contact_name=command.contact_name or guest.get_full_name(),
            contact_phone=command.contact_phone or (guest.phone or ''),
            contact_email=command.contact_email or guest.email,
            special_requests=command.special_requests,
            source=command.source,
        )

        BookingAddonSelection.objects.bulk_create(
            [_addon_row(booking, line, included=True) for line in priced.included_lines]
            + [_addon_row(booking, line, included=False) for line in priced.addon_lines]
        )

        # Side effects of the applied discounts
        if discounts.cashback_used > 0:
            self.cashback.debit(
                guest.pk,
                discounts.cashback_used,
                kind=CashbackTransaction.Type.USED,
                booking=booking,
                description=f'Cashback used on booking {booking.reference}',
            )
        if discounts.gift_card_amount > 0:
            self.gift_cards.redeem(gift_card.pk, discounts.gift_card_amount, booking=booking)
        if promo is not None:
            self.promo_codes.record_usage(
                promo.promo_code,
                user_id=guest.pk,
                booking=booking,
                discount=discounts.promo_discount,
            )
        if package is not None:
            self.catalog.increment_package_bookings(package.pk)

        result = self.state_machine.transition(
            booking.pk,
            BookingStatus.PENDING.value,
            ActorType.SYSTEM.value,
            reason='Booking created',
        )
        if not result.success:
            raise InvalidTransition(result.message)

        uow.add_event(
            BookingCreated(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                reference=booking.reference,
                guest_id=guest.pk,
                vendor_id=booking.vendor_id,
                total_price=booking.total_price,
                currency=booking.currency,
            )
        )
        return booking

    def _validate(self, command: CreateBookingCommand) -> None:
        if command.adults < 1:
            raise InvalidBookingRequest('At least one adult is required')
        if command.children < 0 or command.infants < 0:
            raise InvalidBookingRequest('Guest counts cannot be negative')
        if command.duration_hours is not None and command.duration_hours < 1:
            raise InvalidBookingRequest('Duration must be at least one hour')
        if command.booking_date < timezone.localdate():
            raise InvalidBookingRequest('Booking date cannot be in the past')

    def _price(self, command: CreateBookingCommand, item, package) -> _PricedRequest:
        guests = command.adults + command.children
        base = self.catalog.base_price(
            item,
            hours=command.duration_hours,
            adults=command.adults,
            children=command.children,
            pickup=command.pickup,
        )

        if package is not None:
            quote = self.catalog.price_package(
                package,
                item,
                guests=guests,
                hours=command.duration_hours,
                extras=command.addons,
            )
            return _PricedRequest(
                base_price=quote.base_price,
                dynamic_adjustment=ZERO,
                rules_applied=[],
                extras_price=quote.included_total + quote.extras_total,
                pickup_fee=base.pickup_fee,
                package_discount=quote.discount,
                hours=quote.hours,
                addon_lines=list(quote.extra_lines),
                included_lines=list(quote.included_lines),
            )

        pricing = self.pricing.calculate_price(
            base.base_price,
            command.booking_date,
            item.applies_to,
            item.item_type,
            item.id,
            guests,
            base.hours,  # already defaulted to a full day for vessels sent without a duration
        )
        lines = self.catalog.price_addons(command.addons, guests=guests, hours=base.hours)
        return _PricedRequest(
            base_price=pricing.base_price,
            dynamic_adjustment=pricing.final_price - pricing.base_price,
            rules_applied=list(pricing.applied_rule_ids),
            extras_price=sum((line.total_price for line in lines), ZERO),
            pickup_fee=base.pickup_fee,
            package_discount=ZERO,
            hours=base.hours,
            addon_lines=lines,
            included_lines=[],
        )

    @staticmethod
    def _generate_reference() -> str:
        for _ in range(settings.BOOKING_REFERENCE_MAX_ATTEMPTS):
            reference = Booking.generate_reference()
            if not Booking.objects.filter(reference=reference).exists():
                return reference
        raise BookingError('Could not allocate a unique booking reference')


class TransitionBookingHandler:
    """Handler for TransitionBooking command"""

    def __init__(self, state_machine: BookingStateMachine):
        self.state_machine = state_machine

    def handle(self, command: TransitionBookingCommand) -> TransitionResult:
        return self.state_machine.transition(
            command.booking_id,
            command.new_status,
            command.actor_type,
            actor_id=command.actor_id,
            reason=command.reason,
            metadata=command.metadata,
        )


def _addon_row(booking: Booking, line, *, included: bool) -> BookingAddonSelection:
    return BookingAddonSelection(
        booking=booking,
        addon_id=line.addon_id,
        name=line.name,
        price_type=line.price_type,
        quantity=line.quantity,
        unit_price=line.unit_price,
        total_price=line.total_price,
        included_in_package=included,
    )
