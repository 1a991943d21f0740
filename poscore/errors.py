"""
POS Core — Base Error
=====================
Every typed failure raised by the core derives from InventoryError,
so callers can catch the whole family at a transport boundary.
Concrete errors live next to the component that raises them.
"""


class InventoryError(Exception):
    """Base error for all inventory core operations."""
    pass
