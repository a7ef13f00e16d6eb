"""Catalog lookup and item pricing used by the booking core.

These services answer three questions for a booking request: which item
is being booked (``get_bookable_item``), what the item costs before any
dynamic adjustment (``base_price``) and what the selected add-ons or a
package bundle cost (``price_addons`` / ``price_package``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from django.conf import settings  # type: ignore
from django.db.models import F  # type: ignore

from apps.bookings.domain.errors import InvalidBookingRequest, InvalidBookingType
from shared.domain.value_objects import quantize

from .models import Addon, AppliesTo, Package, Tour, Vendor, Vessel

logger = logging.getLogger(__name__)

VESSEL = "vessel"
TOUR = "tour"
BOOKABLE_TYPES = (VESSEL, TOUR)


@dataclass(frozen=True)
class BookableItem:
    """Read-only view of a vessel or tour as seen by the booking core."""

    type: str
    id: int
    name: str
    item_type: str
    vendor_id: int | None
    commission_rate: Decimal
    instance: Vessel | Tour = field(compare=False, repr=False)

    @property
    def applies_to(self) -> str:
        return AppliesTo.VESSELS if self.type == VESSEL else AppliesTo.TOURS


@dataclass(frozen=True)
class BasePrice:
    base_price: Decimal
    pickup_fee: Decimal
    hours: int | None
    guests: int


@dataclass(frozen=True)
class AddonSelection:
    addon_id: int
    quantity: int = 1


@dataclass(frozen=True)
class AddonLine:
    addon_id: int
    name: str
    price_type: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class PackageQuote:
    package_id: int
    base_price: Decimal
    included_total: Decimal
    subtotal: Decimal
    discount_percent: Decimal
    discount: Decimal
    package_total: Decimal
    extras_total: Decimal
    total: Decimal
    hours: int
    included_lines: tuple[AddonLine, ...] = ()
    extra_lines: tuple[AddonLine, ...] = ()


def addon_line_total(price: Decimal, price_type: str, *, quantity: int, guests: int, hours: int | None) -> Decimal:
    """Price one add-on selection according to its price type."""
    if price_type == Addon.PriceType.PER_PERSON:
        return quantize(price * guests)
    if price_type == Addon.PriceType.PER_HOUR:
        return quantize(price * (hours or 0) * quantity)
    if price_type == Addon.PriceType.PER_ITEM:
        return quantize(price * quantity)
    return quantize(price)


class CatalogService:
    """Catalog collaborator of the booking core."""

    def get_bookable_item(self, item_type: str, item_id: int) -> BookableItem | None:
        if item_type == VESSEL:
            instance = Vessel.objects.select_related("vendor").filter(pk=item_id, is_active=True).first()
            kind = instance.type if instance else ""
        elif item_type == TOUR:
            instance = Tour.objects.select_related("vendor").filter(pk=item_id, is_active=True).first()
            kind = instance.category if instance else ""
        else:
            raise InvalidBookingType(f"Unknown booking type '{item_type}'")

        if instance is None:
            return None

        vendor = instance.vendor if instance.vendor_id and instance.vendor.is_active else None
        return BookableItem(
            type=item_type,
            id=instance.pk,
            name=instance.name,
            item_type=kind,
            vendor_id=vendor.pk if vendor else None,
            commission_rate=vendor.commission_rate if vendor else Decimal("0"),
            instance=instance,
        )

    def base_price(
        self,
        item: BookableItem,
        *,
        hours: int | None,
        adults: int,
        children: int,
        pickup: bool = False,
    ) -> BasePrice:
        guests = adults + children

        if item.type == VESSEL:
            vessel: Vessel = item.instance
            # No duration means a full-day charter; duration pricing rules see that too
            hours = hours or settings.VESSEL_FULL_DAY_HOURS
            return BasePrice(
                base_price=self._vessel_price(vessel, hours),
                pickup_fee=Decimal("0.00"),
                hours=hours,
                guests=guests,
            )

        tour: Tour = item.instance
        base = quantize(tour.price_adult * adults + tour.price_child * children)
        return BasePrice(
            base_price=base,
            pickup_fee=quantize(tour.pickup_fee) if pickup else Decimal("0.00"),
            hours=hours or tour.duration_hours,
            guests=guests,
        )

    def price_addons(
        self,
        selections: Iterable[AddonSelection],
        *,
        guests: int,
        hours: int | None,
    ) -> list[AddonLine]:
        selections = list(selections)
        if not selections:
            return []

        addons = Addon.objects.in_bulk([s.addon_id for s in selections])
        lines = []
        for selection in selections:
            addon = addons.get(selection.addon_id)
            if addon is None or not addon.is_active:
                logger.warning(f"Skipping unavailable add-on {selection.addon_id}")
                continue
            if selection.quantity < 1:
                raise InvalidBookingRequest(f"Quantity for add-on {addon.pk} must be positive")

            lines.append(
                AddonLine(
                    addon_id=addon.pk,
                    name=addon.name,
                    price_type=addon.price_type,
                    quantity=selection.quantity,
                    unit_price=quantize(addon.price),
                    total_price=addon_line_total(
                        addon.price,
                        addon.price_type,
                        quantity=selection.quantity,
                        guests=guests,
                        hours=hours,
                    ),
                )
            )
        return lines

    def get_package(self, package_id: int) -> Package | None:
        return Package.objects.filter(pk=package_id, is_active=True).first()

    def price_package(
        self,
        package: Package,
        item: BookableItem,
        *,
        guests: int,
        hours: int | None,
        extras: Iterable[AddonSelection] = (),
    ) -> PackageQuote:
        """Price a package bundle for the given item.

        The base item price plus the included add-ons is discounted by the
        package percentage; extra add-ons are charged on top at full price.
        """
        if package.base_type != item.type:
            raise InvalidBookingRequest(f"Package {package.pk} cannot be booked with a {item.type}")

        guests = guests or package.min_guests
        hours = hours or package.min_duration_hours

        if item.type == VESSEL:
            base = self._vessel_price(item.instance, hours)
        else:
            base = quantize(item.instance.price_adult * guests)
        if not base:
            base = quantize(package.base_price)

        included = [
            AddonSelection(addon_id=row.addon_id, quantity=row.quantity)
            for row in package.package_addons.all()
        ]
        included_lines = self.price_addons(included, guests=guests, hours=hours)
        extra_lines = self.price_addons(extras, guests=guests, hours=hours)

        included_total = sum((line.total_price for line in included_lines), Decimal("0.00"))
        extras_total = sum((line.total_price for line in extra_lines), Decimal("0.00"))
        subtotal = quantize(base + included_total)
        discount = quantize(subtotal * Decimal(package.discount_percent) / 100)
        package_total = subtotal - discount

        return PackageQuote(
            package_id=package.pk,
            base_price=base,
            included_total=included_total,
            subtotal=subtotal,
            discount_percent=Decimal(package.discount_percent),
            discount=discount,
            package_total=package_total,
            extras_total=extras_total,
            total=package_total + extras_total,
            hours=hours,
            included_lines=tuple(included_lines),
            extra_lines=tuple(extra_lines),
        )

    def increment_package_bookings(self, package_id: int) -> None:
        Package.objects.filter(pk=package_id).update(bookings_count=F("bookings_count") + 1)

    def record_vendor_booking(self, vendor_id: int, amount: Decimal) -> None:
        """Add a fulfilled booking to the vendor's running totals."""
        Vendor.objects.filter(pk=vendor_id).update(
            total_bookings=F("total_bookings") + 1,
            total_revenue=F("total_revenue") + quantize(amount),
        )

    @staticmethod
    def _vessel_price(vessel: Vessel, hours: int) -> Decimal:
        if hours >= settings.VESSEL_FULL_DAY_HOURS:
            return quantize(vessel.price_per_day)
        return quantize(vessel.price_per_hour * hours)
