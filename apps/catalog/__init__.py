"""Catalog app package.

Holds the bookable items (vessels and tours), the vendors that operate
them, optional add-ons and bundled packages. The booking core only reads
from this app through ``apps.catalog.services``.
"""
