"""
POS Ledger — Stock Transaction Records
======================================
The atomic unit of inventory change.

RULES (NON-NEGOTIABLE):
- Every stock change is a StockTransaction (no hidden mutations)
- quantity_change is a signed int: positive = inbound, negative = outbound
- Once appended, a transaction is never updated or removed
- Corrections are NEW transactions with the inverse change
- Stock levels are derived from transactions, never stored as fact
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


# ══════════════════════════════════════════════════════════════
# TRANSACTION TYPE
# ══════════════════════════════════════════════════════════════

class TransactionType(Enum):
    """Why stock moved."""
    STOCK_IN = "stock_in"       # Received from supplier / purchase order
    SALE = "sale"               # Sold at the till
    ADJUSTMENT = "adjustment"   # Count correction, damage, expiry, theft
    RETURN = "return"           # Customer return back into stock
    ASSEMBLY = "assembly"       # Consumed or produced by bundle assembly

    @classmethod
    def parse(cls, value: Union[str, TransactionType]) -> TransactionType:
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValueError(
            f"Unknown transaction type '{value}'. Expected one of: {allowed}."
        )

    @property
    def required_sign(self) -> int:
        """+1 inbound only, -1 outbound only, 0 either direction."""
        return _REQUIRED_SIGN.get(self, 0)


_REQUIRED_SIGN = {
    TransactionType.STOCK_IN: 1,
    TransactionType.RETURN: 1,
    TransactionType.SALE: -1,
}


# ══════════════════════════════════════════════════════════════
# APPEND INPUT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockTransactionInput:
    """
    What a caller hands to LedgerStore.append().

    transaction_id and created_at are assigned by the store when omitted.
    Structural checks only. Business rules belong to the service.
    """
    product_id: str
    quantity_change: int
    transaction_type: TransactionType
    user_id: str
    batch_id: Optional[str] = None
    reason: Optional[str] = None
    related_order_id: Optional[str] = None
    related_return_id: Optional[str] = None
    related_po_item_id: Optional[str] = None
    transaction_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValueError("product_id must be a non-empty string.")
        if isinstance(self.quantity_change, bool) or not isinstance(
            self.quantity_change, int
        ):
            raise ValueError(
                f"quantity_change must be int, "
                f"got {type(self.quantity_change).__name__}."
            )
        if not isinstance(self.transaction_type, TransactionType):
            raise ValueError("transaction_type must be a TransactionType.")
        if not self.user_id or not isinstance(self.user_id, str):
            raise ValueError("user_id must be a non-empty string.")
        if self.transaction_id is not None and not isinstance(
            self.transaction_id, uuid.UUID
        ):
            raise ValueError("transaction_id must be UUID.")
        if self.created_at is not None and self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware.")


# ══════════════════════════════════════════════════════════════
# STOCK TRANSACTION (stored, immutable)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockTransaction:
    """
    Stored ledger entry.

    Fields:
        transaction_id:   Unique id (generated at append time if absent)
        sequence:         Store-assigned insertion counter, strictly increasing
        product_id:       Product the change applies to
        batch_id:         Batch the change applies to (optional)
        quantity_change:  Signed change in units
        transaction_type: stock_in | sale | adjustment | return | assembly
        created_at:       When the movement happened (tz-aware)
        user_id:          Actor who recorded it

    Order for a product is (created_at, sequence).
    """
    transaction_id: uuid.UUID
    sequence: int
    product_id: str
    quantity_change: int
    transaction_type: TransactionType
    created_at: datetime
    user_id: str
    batch_id: Optional[str] = None
    reason: Optional[str] = None
    related_order_id: Optional[str] = None
    related_return_id: Optional[str] = None
    related_po_item_id: Optional[str] = None

    @classmethod
    def from_input(
        cls,
        entry: StockTransactionInput,
        transaction_id: uuid.UUID,
        sequence: int,
        created_at: datetime,
    ) -> StockTransaction:
        return cls(
            transaction_id=transaction_id,
            sequence=sequence,
            product_id=entry.product_id,
            quantity_change=entry.quantity_change,
            transaction_type=entry.transaction_type,
            created_at=created_at,
            user_id=entry.user_id,
            batch_id=entry.batch_id,
            reason=entry.reason,
            related_order_id=entry.related_order_id,
            related_return_id=entry.related_return_id,
            related_po_item_id=entry.related_po_item_id,
        )

    @property
    def order_key(self):
        return (self.created_at, self.sequence)

    @property
    def is_inbound(self) -> bool:
        return self.quantity_change > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.transaction_id),
            "sequence": self.sequence,
            "product_id": self.product_id,
            "batch_id": self.batch_id,
            "qty_change": self.quantity_change,
            "transaction_type": self.transaction_type.value,
            "reason": self.reason,
            "related_order_id": self.related_order_id,
            "related_return_id": self.related_return_id,
            "related_po_item_id": self.related_po_item_id,
            "created_at": self.created_at.isoformat(),
            "user_id": self.user_id,
        }
