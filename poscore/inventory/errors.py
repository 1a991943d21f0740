"""
POS Inventory — Errors
======================
Command rejections raised by InventoryService.

A rejected command leaves the ledger and the projection untouched.
"""

from typing import Optional

from poscore.errors import InventoryError


class UnknownProduct(InventoryError):
    """product_id is not in the current catalog snapshot."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Unknown product '{product_id}'.")


class InvalidAdjustment(InventoryError):
    """A stock adjustment failed validation."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid adjustment: {detail}")


class InsufficientStock(InvalidAdjustment):
    """Outbound change would take stock below zero."""

    def __init__(
        self,
        product_id: str,
        batch_id: Optional[str],
        available: int,
        requested: int,
    ):
        self.product_id = product_id
        self.batch_id = batch_id
        self.available = available
        self.requested = requested
        scope = product_id if batch_id is None else f"{product_id}/{batch_id}"
        super().__init__(
            f"insufficient stock for '{scope}': "
            f"available {available}, requested {requested}"
        )
