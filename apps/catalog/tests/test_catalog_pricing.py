"""Tests for item base prices, add-on lines and package bundles."""

from __future__ import annotations

from decimal import Decimal

import pytest

from apps.bookings.domain.errors import InvalidBookingRequest, InvalidBookingType
from apps.catalog.models import Addon, Package, PackageAddon, Tour, Vendor, Vessel
from apps.catalog.services import AddonSelection, CatalogService, addon_line_total

pytestmark = pytest.mark.django_db


@pytest.fixture
def vessel():
    vendor = Vendor.objects.create(name="Andaman Charters", commission_rate=Decimal("12.50"))
    return Vessel.objects.create(
        vendor=vendor,
        name="Sea Breeze",
        slug="sea-breeze",
        type=Vessel.Type.CATAMARAN,
        price_per_hour=Decimal("5000.00"),
        price_per_day=Decimal("30000.00"),
    )


@pytest.fixture
def tour():
    return Tour.objects.create(
        name="James Bond Island",
        slug="james-bond",
        category=Tour.Category.ISLANDS,
        duration_hours=8,
        price_adult=Decimal("2000.00"),
        price_child=Decimal("1000.00"),
        pickup_fee=Decimal("250.00"),
    )


def test_bookable_item_carries_vendor_terms(vessel) -> None:
    item = CatalogService().get_bookable_item("vessel", vessel.pk)

    assert item.item_type == "catamaran"
    assert item.vendor_id == vessel.vendor_id
    assert item.commission_rate == Decimal("12.50")
    assert item.applies_to == "vessels"


def test_inactive_vendor_is_not_attached(vessel) -> None:
    Vendor.objects.filter(pk=vessel.vendor_id).update(is_active=False)

    item = CatalogService().get_bookable_item("vessel", vessel.pk)

    assert item.vendor_id is None
    assert item.commission_rate == Decimal("0")


def test_unknown_or_inactive_items(vessel) -> None:
    service = CatalogService()
    Vessel.objects.filter(pk=vessel.pk).update(is_active=False)

    assert service.get_bookable_item("vessel", vessel.pk) is None
    assert service.get_bookable_item("tour", 12345) is None
    with pytest.raises(InvalidBookingType):
        service.get_bookable_item("villa", 1)


def test_vessel_hourly_and_day_rates(vessel) -> None:
    service = CatalogService()
    item = service.get_bookable_item("vessel", vessel.pk)

    assert service.base_price(item, hours=3, adults=2, children=0).base_price == Decimal("15000.00")
    full_day = service.base_price(item, hours=None, adults=2, children=0)
    assert full_day.hours == 8
    assert full_day.base_price == Decimal("30000.00")
    assert service.base_price(item, hours=10, adults=1, children=0, pickup=True).pickup_fee == Decimal("0.00")


def test_tour_prices_per_guest(tour) -> None:
    service = CatalogService()
    item = service.get_bookable_item("tour", tour.pk)

    price = service.base_price(item, hours=None, adults=2, children=2, pickup=True)

    assert price.base_price == Decimal("6000.00")
    assert price.pickup_fee == Decimal("250.00")
    assert price.hours == 8
    assert price.guests == 4


@pytest.mark.parametrize(
    ("price_type", "expected"),
    [
        (Addon.PriceType.PER_PERSON, Decimal("1500.00")),
        (Addon.PriceType.PER_HOUR, Decimal("4000.00")),
        (Addon.PriceType.PER_ITEM, Decimal("1000.00")),
        (Addon.PriceType.FIXED, Decimal("500.00")),
    ],
)
def test_addon_line_total(price_type, expected) -> None:
    assert addon_line_total(Decimal("500"), price_type, quantity=2, guests=3, hours=4) == expected


def test_price_addons_skips_unavailable() -> None:
    active = Addon.objects.create(name="Drone video", price=Decimal("2500.00"))
    retired = Addon.objects.create(name="Jet ski", price=Decimal("3000.00"), is_active=False)

    lines = CatalogService().price_addons(
        [AddonSelection(active.pk), AddonSelection(retired.pk), AddonSelection(999999)],
        guests=2,
        hours=4,
    )

    assert [line.addon_id for line in lines] == [active.pk]
    assert lines[0].total_price == Decimal("2500.00")


def test_price_addons_rejects_zero_quantity() -> None:
    addon = Addon.objects.create(name="Kayak", price=Decimal("800.00"), price_type=Addon.PriceType.PER_ITEM)

    with pytest.raises(InvalidBookingRequest):
        CatalogService().price_addons([AddonSelection(addon.pk, quantity=0)], guests=1, hours=None)


def test_package_quote(tour) -> None:
    lunch = Addon.objects.create(name="Lunch", price=Decimal("400.00"), price_type=Addon.PriceType.PER_PERSON)
    photos = Addon.objects.create(name="Photos", price=Decimal("1500.00"))
    package = Package.objects.create(
        name="Island Explorer",
        slug="island-explorer",
        base_type=Package.BaseType.TOUR,
        discount_percent=Decimal("15"),
    )
    PackageAddon.objects.create(package=package, addon=lunch)
    service = CatalogService()
    item = service.get_bookable_item("tour", tour.pk)

    quote = service.price_package(package, item, guests=3, hours=None, extras=[AddonSelection(photos.pk)])

    assert quote.base_price == Decimal("6000.00")
    assert quote.included_total == Decimal("1200.00")
    assert quote.subtotal == Decimal("7200.00")
    assert quote.discount == Decimal("1080.00")
    assert quote.package_total == Decimal("6120.00")
    assert quote.extras_total == Decimal("1500.00")
    assert quote.total == Decimal("7620.00")
    assert quote.hours == 4


def test_package_for_other_item_type_is_rejected(vessel) -> None:
    package = Package.objects.create(name="Tour pack", slug="tour-pack", base_type=Package.BaseType.TOUR)
    service = CatalogService()

    with pytest.raises(InvalidBookingRequest):
        service.price_package(package, service.get_bookable_item("vessel", vessel.pk), guests=2, hours=4)
