"""
POS Projections — Quantity Projector
====================================
Live stock levels derived from the ledger.

Built from StockTransaction entries:
    quantity(product, batch) = Σ quantity_change for that key
    quantity(product)        = Σ over all of its batches

Rules:
- Projections are disposable. They can be rebuilt from the ledger.
- apply() is O(1) and idempotent per entry (by sequence).
- verify() never mutates state. A mismatch is raised, not repaired.
- rebuild() folds into fresh maps and swaps them in under the lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from poscore.ledger.transactions import StockTransaction
from poscore.projections.errors import ReplayMismatch, StockMismatch

logger = logging.getLogger("pos.projections")

_BatchKey = Tuple[str, Optional[str]]  # (product_id, batch_id)


@dataclass(frozen=True)
class StockLevel:
    product_id: str
    batch_id: Optional[str]
    quantity: int


@dataclass
class RebuildResult:
    """Structured result of a projector rebuild."""

    projection_name: str
    entries_replayed: int = 0
    product_count: int = 0
    verified: bool = False
    swapped: bool = False

    @property
    def success(self) -> bool:
        return self.swapped


@dataclass
class _State:
    totals: Dict[str, int] = field(default_factory=dict)
    by_batch: Dict[_BatchKey, int] = field(default_factory=dict)
    last_sequence: Dict[str, int] = field(default_factory=dict)
    applied: int = 0

    def add(self, txn: StockTransaction) -> bool:
        last = self.last_sequence.get(txn.product_id, 0)
        if txn.sequence <= last:
            return False
        self.last_sequence[txn.product_id] = txn.sequence
        self.totals[txn.product_id] = (
            self.totals.get(txn.product_id, 0) + txn.quantity_change
        )
        key = (txn.product_id, txn.batch_id)
        self.by_batch[key] = self.by_batch.get(key, 0) + txn.quantity_change
        self.applied += 1
        return True


def _fold(entries: Iterable[StockTransaction]) -> _State:
    state = _State()
    # Idempotency compares sequences, so fold in sequence order.
    for txn in sorted(entries, key=lambda t: t.sequence):
        state.add(txn)
    return state


class QuantityProjector:
    """
    In-memory current-stock read model.

    Implements the projection interface (projection_name, apply,
    truncate, snapshot) used for rebuilds.
    """

    projection_name = "quantity_projection"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = _State()

    # ── Incremental ───────────────────────────────────────────

    def apply(self, txn: StockTransaction) -> bool:
        """Fold one entry in. Returns False if it was already applied."""
        with self._lock:
            applied = self._state.add(txn)
        if not applied:
            logger.warning(
                f"Skipped duplicate apply of transaction {txn.transaction_id} "
                f"(#{txn.sequence}) for '{txn.product_id}'"
            )
        return applied

    # ── Reads ─────────────────────────────────────────────────

    def current_stock(self, product_id: str, batch_id: Optional[str] = None) -> int:
        with self._lock:
            if batch_id is None:
                return self._state.totals.get(product_id, 0)
            return self._state.by_batch.get((product_id, batch_id), 0)

    def stock_levels(self, product_id: str) -> Tuple[StockLevel, ...]:
        """Per-batch breakdown. Unbatched stock has batch_id=None."""
        with self._lock:
            return tuple(
                StockLevel(product_id=pid, batch_id=bid, quantity=qty)
                for (pid, bid), qty in self._state.by_batch.items()
                if pid == product_id
            )

    @property
    def applied_count(self) -> int:
        with self._lock:
            return self._state.applied

    # ── Replay ────────────────────────────────────────────────

    def verify(self, entries: Iterable[StockTransaction]) -> None:
        """Raise ReplayMismatch if the ledger fold differs from live state."""
        expected = _fold(entries)
        with self._lock:
            mismatches = _diff(expected, self._state)
        if mismatches:
            raise ReplayMismatch(mismatches)

    def rebuild(
        self, entries: Iterable[StockTransaction], verify: bool = False
    ) -> RebuildResult:
        """
        Fold the full ledger and swap the result in.

        With verify=True the fold is compared first and a mismatch is
        raised instead of swapping.
        """
        result = RebuildResult(projection_name=self.projection_name)
        fresh = _fold(entries)
        result.entries_replayed = fresh.applied
        result.product_count = len(fresh.totals)

        with self._lock:
            if verify:
                mismatches = _diff(fresh, self._state)
                if mismatches:
                    raise ReplayMismatch(mismatches)
                result.verified = True
            self._state = fresh
            result.swapped = True

        logger.info(
            f"Projection rebuild complete: {self.projection_name} "
            f"({result.entries_replayed} entries, "
            f"{result.product_count} products)"
        )
        return result

    def truncate(self) -> None:
        with self._lock:
            self._state = _State()

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "product_count": len(self._state.totals),
                "total_quantity": sum(self._state.totals.values()),
                "applied_count": self._state.applied,
            }


def _diff(expected: _State, actual: _State) -> Tuple[StockMismatch, ...]:
    found: List[StockMismatch] = []

    for pid in sorted(set(expected.totals) | set(actual.totals)):
        want = expected.totals.get(pid, 0)
        have = actual.totals.get(pid, 0)
        if want != have:
            found.append(StockMismatch(pid, None, want, have))

    batch_keys = {k for k in set(expected.by_batch) | set(actual.by_batch) if k[1] is not None}
    for pid, bid in sorted(batch_keys):
        want = expected.by_batch.get((pid, bid), 0)
        have = actual.by_batch.get((pid, bid), 0)
        if want != have:
            found.append(StockMismatch(pid, bid, want, have))

    return tuple(found)
