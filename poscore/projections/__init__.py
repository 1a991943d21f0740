"""
POS Projections — Derived stock state, rebuildable from the ledger.
"""

from poscore.projections.errors import ProjectionError, ReplayMismatch, StockMismatch
from poscore.projections.stock import QuantityProjector, RebuildResult, StockLevel

__all__ = [
    "ProjectionError",
    "QuantityProjector",
    "RebuildResult",
    "ReplayMismatch",
    "StockLevel",
    "StockMismatch",
]
