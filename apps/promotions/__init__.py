"""Promo codes and gift cards."""
