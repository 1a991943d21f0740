"""
POS Catalog — Product Records
=============================
Typed, immutable catalog records produced by the parser.

RULES:
- Products and batches are frozen. Corrections arrive by re-import,
  never by in-place edits.
- Money values are Decimal, quantities are int.
- RowError is a value, not an exception: a bad row is reported and
  skipped, the rest of the file still loads.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class BaseUnit(Enum):
    """Unit a product is counted in."""
    PIECE = "piece"
    GRAM = "gram"
    KG = "kg"
    ML = "ml"
    LITRE = "L"
    PACK = "pack"
    CAN = "can"
    BOTTLE = "bottle"


class StorageRequirement(Enum):
    ROOM_TEMPERATURE = "room_temperature"
    REFRIGERATED = "refrigerated"
    FROZEN = "frozen"


# ══════════════════════════════════════════════════════════════
# PRODUCT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Product:
    """
    Catalog product.

    Fields:
        product_id:      Unique id from the catalog file
        sku:             Stock keeping unit / slug
        name:            Display name
        price:           Selling price (> 0)
        category_id:     Category reference
        average_cost:    Average unit cost (>= 0)
        reorder_point:   Low-stock threshold; None = use configured default
    """
    product_id: str
    sku: str
    name: str
    price: Decimal
    category_id: str
    average_cost: Decimal = Decimal("0")
    reorder_point: Optional[int] = None
    description: Optional[str] = None
    supplier_id: Optional[str] = None
    base_unit: BaseUnit = BaseUnit.PIECE
    storage_requirement: StorageRequirement = StorageRequirement.ROOM_TEMPERATURE
    requires_batch_tracking: bool = False
    is_archived: bool = False

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValueError("product_id must be a non-empty string.")
        if not isinstance(self.price, Decimal):
            raise ValueError("price must be Decimal.")
        if not isinstance(self.average_cost, Decimal):
            raise ValueError("average_cost must be Decimal.")
        if self.reorder_point is not None and self.reorder_point < 0:
            raise ValueError(
                f"reorder_point cannot be negative, got {self.reorder_point}."
            )

    def effective_reorder_point(self, default: int) -> int:
        if self.reorder_point is None:
            return default
        return self.reorder_point

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "price": str(self.price),
            "category_id": self.category_id,
            "average_cost": str(self.average_cost),
            "reorder_point": self.reorder_point,
            "description": self.description,
            "supplier_id": self.supplier_id,
            "base_unit": self.base_unit.value,
            "storage_requirement": self.storage_requirement.value,
            "requires_batch_tracking": self.requires_batch_tracking,
            "is_archived": self.is_archived,
        }


# ══════════════════════════════════════════════════════════════
# PRODUCT BATCH
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProductBatch:
    """
    A distinguishable lot of a product, tracked separately for stock.

    Two batches of the same product differ by lot number, receipt date
    or expiry. Stock is projected per batch as well as per product.
    """
    batch_id: str
    product_id: str
    batch_number: str
    received_at: Optional[date] = None
    expiration_date: Optional[date] = None
    purchase_cost: Decimal = Decimal("0")

    def __post_init__(self):
        if not self.batch_id or not isinstance(self.batch_id, str):
            raise ValueError("batch_id must be a non-empty string.")
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValueError("product_id must be a non-empty string.")

    def is_expired(self, today: date) -> bool:
        return self.expiration_date is not None and self.expiration_date < today

    def days_to_expiry(self, today: date) -> Optional[int]:
        if self.expiration_date is None:
            return None
        return (self.expiration_date - today).days

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.batch_id,
            "product_id": self.product_id,
            "batch_number": self.batch_number,
            "received_at": self.received_at.isoformat() if self.received_at else None,
            "expiration_date": (
                self.expiration_date.isoformat() if self.expiration_date else None
            ),
            "purchase_cost": str(self.purchase_cost),
        }


# ══════════════════════════════════════════════════════════════
# ROW ERROR
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RowError:
    """
    Validation failure for one catalog row.

    row_number is the 1-based line in the source file (header = 1).
    issues lists every field problem found, "field: problem".
    """
    row_number: int
    issues: Tuple[str, ...]

    @property
    def message(self) -> str:
        return "; ".join(self.issues)

    def to_dict(self) -> Dict[str, Any]:
        return {"row": self.row_number, "issues": list(self.issues)}

    def __str__(self) -> str:
        return f"row {self.row_number}: {self.message}"
