"""
Shared kernel for the booking contexts.

Domain event and value object bases, the Money type, the unit of work
that publishes events after commit, and row-locking helpers.
"""
