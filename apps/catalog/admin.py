"""Admin registrations for the catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Addon, Package, PackageAddon, Tour, Vendor, Vessel


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "phone", "commission_rate", "total_bookings", "total_revenue", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "email", "phone")
    readonly_fields = ("total_bookings", "total_revenue", "created_at", "updated_at")
    raw_id_fields = ("user",)


@admin.register(Vessel)
class VesselAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "vendor", "capacity", "price_per_hour", "price_per_day", "is_active")
    list_filter = ("type", "is_active")
    search_fields = ("name", "slug", "vendor__name")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Tour)
class TourAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "vendor", "price_adult", "price_child", "pickup_fee", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("name", "slug", "vendor__name")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Addon)
class AddonAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "price_type", "applies_to", "is_active")
    list_filter = ("price_type", "applies_to", "is_active")
    search_fields = ("name",)


class PackageAddonInline(admin.TabularInline):
    model = PackageAddon
    extra = 1


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = ("name", "base_type", "base_price", "discount_percent", "bookings_count", "is_active")
    list_filter = ("base_type", "is_active")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ("bookings_count", "created_at", "updated_at")
    inlines = [PackageAddonInline]
