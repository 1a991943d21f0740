"""
POS Inventory — Public API
==========================
Service, read views and reports over catalog + ledger + projection.
"""

from poscore.inventory.errors import InsufficientStock, InvalidAdjustment, UnknownProduct
from poscore.inventory.reports import (
    BATCH_EXPIRY_HEADERS,
    REORDER_HEADERS,
    VALUATION_HEADERS,
    BatchExpiryLine,
    ExpiryStatus,
    ReorderLine,
    ValuationLine,
    batch_expiry_report,
    reorder_report,
    suggested_reorder_qty,
    to_csv,
    valuation_report,
)
from poscore.inventory.service import InventoryService
from poscore.inventory.views import (
    AdjustmentLine,
    CountedItem,
    CountLine,
    InventorySummary,
    ProductFilters,
    ProductPage,
    ProductView,
    StockCount,
    StockStatus,
)

__all__ = [
    "AdjustmentLine",
    "BATCH_EXPIRY_HEADERS",
    "BatchExpiryLine",
    "CountLine",
    "CountedItem",
    "ExpiryStatus",
    "InsufficientStock",
    "InvalidAdjustment",
    "InventoryService",
    "InventorySummary",
    "ProductFilters",
    "ProductPage",
    "ProductView",
    "REORDER_HEADERS",
    "ReorderLine",
    "StockCount",
    "StockStatus",
    "UnknownProduct",
    "VALUATION_HEADERS",
    "ValuationLine",
    "batch_expiry_report",
    "reorder_report",
    "suggested_reorder_qty",
    "to_csv",
    "valuation_report",
]
