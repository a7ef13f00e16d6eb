"""Finances app package.

Payment records and the confirmation entry point used by payment
provider callbacks. Provider protocols themselves live with the
provider adapters; this app only records what they report and moves
the booking to PAID.
"""
