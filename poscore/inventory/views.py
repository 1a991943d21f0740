"""
POS Inventory — Read Views
==========================
Value objects returned by the query surface of InventoryService.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

from poscore.catalog.models import Product
from poscore.ledger.transactions import StockTransaction, TransactionType
from poscore.pagination import Page


class StockStatus(Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"

    @classmethod
    def classify(cls, quantity: int, reorder_point: int) -> StockStatus:
        if quantity <= 0:
            return cls.OUT_OF_STOCK
        if quantity <= reorder_point:
            return cls.LOW_STOCK
        return cls.IN_STOCK


@dataclass(frozen=True)
class ProductFilters:
    """
    Catalog listing filters. All optional; combined with AND.

    search matches name, sku and description case-insensitively.
    Archived products are hidden unless include_archived is set.
    """
    search: Optional[str] = None
    category_id: Optional[str] = None
    supplier_id: Optional[str] = None
    low_stock: bool = False
    out_of_stock: bool = False
    include_archived: bool = False

    def matches_product(self, product: Product) -> bool:
        if product.is_archived and not self.include_archived:
            return False
        if self.category_id is not None and product.category_id != self.category_id:
            return False
        if self.supplier_id is not None and product.supplier_id != self.supplier_id:
            return False
        if self.search:
            needle = self.search.lower()
            haystack = (product.name, product.sku, product.description or "")
            if not any(needle in value.lower() for value in haystack):
                return False
        return True

    def matches_status(self, status: StockStatus) -> bool:
        if self.low_stock and status is not StockStatus.LOW_STOCK:
            return False
        if self.out_of_stock and status is not StockStatus.OUT_OF_STOCK:
            return False
        return True

    @property
    def needs_stock(self) -> bool:
        return self.low_stock or self.out_of_stock


@dataclass(frozen=True)
class ProductView:
    """A catalog product joined with its live quantity."""
    product: Product
    quantity: int
    reorder_point: int
    stock_status: StockStatus

    @property
    def product_id(self) -> str:
        return self.product.product_id

    def to_dict(self) -> Dict[str, Any]:
        data = self.product.to_dict()
        data.update({
            "quantity": self.quantity,
            "reorder_point": self.reorder_point,
            "stock_status": self.stock_status.value,
        })
        return data


ProductPage = Page[ProductView]


@dataclass(frozen=True)
class AdjustmentLine:
    """One line of a bulk adjustment."""
    product_id: str
    delta: int
    transaction_type: Union[TransactionType, str]
    batch_id: Optional[str] = None
    reason: Optional[str] = None
    related_order_id: Optional[str] = None
    related_return_id: Optional[str] = None
    related_po_item_id: Optional[str] = None


@dataclass(frozen=True)
class InventorySummary:
    total_products: int
    total_inventory_value: Decimal
    potential_revenue: Decimal
    low_stock_count: int
    out_of_stock_count: int

    @property
    def potential_profit(self) -> Decimal:
        return self.potential_revenue - self.total_inventory_value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_products": self.total_products,
            "total_inventory_value": str(self.total_inventory_value),
            "potential_revenue": str(self.potential_revenue),
            "potential_profit": str(self.potential_profit),
            "low_stock_count": self.low_stock_count,
            "out_of_stock_count": self.out_of_stock_count,
        }


# ══════════════════════════════════════════════════════════════
# STOCK COUNT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CountLine:
    """
    One physically counted shelf position.

    batch_id None counts the product as a whole.
    """
    product_id: str
    batch_id: Optional[str]
    counted_quantity: int
    notes: Optional[str] = None


@dataclass(frozen=True)
class CountedItem:
    product_id: str
    batch_id: Optional[str]
    expected_quantity: int
    counted_quantity: int
    notes: Optional[str] = None
    transaction: Optional[StockTransaction] = None

    @property
    def variance(self) -> int:
        return self.counted_quantity - self.expected_quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "batch_id": self.batch_id,
            "expected_quantity": self.expected_quantity,
            "counted_quantity": self.counted_quantity,
            "variance": self.variance,
            "notes": self.notes,
            "transaction_id": (
                str(self.transaction.transaction_id) if self.transaction else None
            ),
        }


@dataclass(frozen=True)
class StockCount:
    """A completed physical count and the adjustments it recorded."""
    count_id: str
    counted_by: str
    counted_at: datetime
    notes: Optional[str]
    items: Tuple[CountedItem, ...]

    @property
    def transactions(self) -> Tuple[StockTransaction, ...]:
        return tuple(i.transaction for i in self.items if i.transaction is not None)

    @property
    def net_variance(self) -> int:
        return sum(i.variance for i in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.count_id,
            "status": "completed",
            "counted_by": self.counted_by,
            "count_date": self.counted_at.isoformat(),
            "notes": self.notes,
            "items": [i.to_dict() for i in self.items],
        }
