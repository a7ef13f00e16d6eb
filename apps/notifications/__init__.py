"""Notifications app package.

Turns booking events into in-app notifications and emails for guests,
vendors and platform admins. Delivery is best-effort and runs after the
booking transaction has committed.
"""
