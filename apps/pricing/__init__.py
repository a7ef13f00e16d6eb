"""Pricing app package.

Dynamic pricing rules (seasons, special dates, weekdays, early bird,
last minute, group size and duration) and the engine that layers them
on top of an item's base price.
"""
