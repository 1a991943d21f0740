"""
POS Projections — Errors
========================
Error types for the derived stock state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from poscore.errors import InventoryError


@dataclass(frozen=True)
class StockMismatch:
    """One key where the replayed ledger and the live projection differ."""
    product_id: str
    batch_id: Optional[str]
    expected: int   # folded from the ledger
    actual: int     # held by the projection

    def __str__(self) -> str:
        scope = self.product_id if self.batch_id is None else (
            f"{self.product_id}/{self.batch_id}"
        )
        return f"{scope}: ledger={self.expected} projection={self.actual}"


class ProjectionError(InventoryError):
    """Base error for projection operations."""
    pass


class ReplayMismatch(ProjectionError):
    """
    Replaying the ledger disagrees with the live projection.

    Integrity alarm. Never corrected automatically.
    """

    def __init__(self, mismatches: Tuple[StockMismatch, ...]):
        self.mismatches = tuple(mismatches)
        shown = "; ".join(str(m) for m in self.mismatches[:5])
        more = len(self.mismatches) - 5
        suffix = f" (+{more} more)" if more > 0 else ""
        super().__init__(
            f"Projection diverged from ledger at "
            f"{len(self.mismatches)} key(s): {shown}{suffix}"
        )
