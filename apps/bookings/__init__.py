"""Bookings app package.

Holds the booking record and its lifecycle: the orchestrator that prices
and persists a new booking, the table-driven status state machine with
its auto-actions, and the periodic sweeps that expire unpaid bookings
and complete past ones.
"""
