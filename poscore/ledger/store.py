"""
POS Ledger — Store
==================
Protocol + InMemory implementation of the append-only stock ledger.

Doctrine:
- append() is the ONLY write. There is no update and no delete.
- Each append is assigned a strictly increasing sequence number.
- for_product() yields a product's entries ordered by
  (created_at, sequence): the order they are replayed in.
- Concurrent appends never lose or duplicate an entry.
- The store does not judge business rules. It records facts.
"""

from __future__ import annotations

import bisect
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Tuple

from poscore.ledger.errors import DuplicateTransactionError
from poscore.ledger.transactions import (
    StockTransaction,
    StockTransactionInput,
    TransactionType,
)
from poscore.pagination import Page, paginate
from poscore.time.clock import Clock, get_default_clock

logger = logging.getLogger("pos.ledger")


# ══════════════════════════════════════════════════════════════
# QUERY FILTERS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransactionFilters:
    """Optional constraints for LedgerStore.query(). None means any."""
    product_id: Optional[str] = None
    batch_id: Optional[str] = None
    transaction_type: Optional[TransactionType] = None
    user_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    newest_first: bool = True

    def matches(self, txn: StockTransaction) -> bool:
        if self.product_id is not None and txn.product_id != self.product_id:
            return False
        if self.batch_id is not None and txn.batch_id != self.batch_id:
            return False
        if (
            self.transaction_type is not None
            and txn.transaction_type != self.transaction_type
        ):
            return False
        if self.user_id is not None and txn.user_id != self.user_id:
            return False
        if self.date_from is not None and txn.created_at < self.date_from:
            return False
        if self.date_to is not None and txn.created_at > self.date_to:
            return False
        return True


# ══════════════════════════════════════════════════════════════
# STATS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TypeTotals:
    count: int = 0
    quantity_in: int = 0
    quantity_out: int = 0

    @property
    def net(self) -> int:
        return self.quantity_in - self.quantity_out


@dataclass(frozen=True)
class LedgerStats:
    """Totals across the ledger, broken down by transaction type."""
    transaction_count: int
    by_type: Dict[TransactionType, TypeTotals]

    @property
    def quantity_in(self) -> int:
        return sum(t.quantity_in for t in self.by_type.values())

    @property
    def quantity_out(self) -> int:
        return sum(t.quantity_out for t in self.by_type.values())

    @property
    def net(self) -> int:
        return self.quantity_in - self.quantity_out

    def to_dict(self) -> dict:
        return {
            "total_transactions": self.transaction_count,
            "total_stock_in": self.quantity_in,
            "total_stock_out": self.quantity_out,
            "net_change": self.net,
            "by_type": {
                kind.value: {
                    "count": totals.count,
                    "quantity_in": totals.quantity_in,
                    "quantity_out": totals.quantity_out,
                }
                for kind, totals in self.by_type.items()
            },
        }


def summarize(transactions: Iterable[StockTransaction]) -> LedgerStats:
    counts: Dict[TransactionType, List[int]] = {}
    total = 0
    for txn in transactions:
        total += 1
        bucket = counts.setdefault(txn.transaction_type, [0, 0, 0])
        bucket[0] += 1
        if txn.quantity_change > 0:
            bucket[1] += txn.quantity_change
        else:
            bucket[2] += -txn.quantity_change
    return LedgerStats(
        transaction_count=total,
        by_type={
            kind: TypeTotals(count=c, quantity_in=i, quantity_out=o)
            for kind, (c, i, o) in counts.items()
        },
    )


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════

class LedgerStore(Protocol):
    def append(self, entry: StockTransactionInput) -> StockTransaction:
        """Durably record one entry and return it as stored."""
        ...  # pragma: no cover

    def for_product(
        self, product_id: str, batch_id: Optional[str] = None
    ) -> Iterator[StockTransaction]:
        """Entries for a product in (created_at, sequence) order."""
        ...  # pragma: no cover

    def all(self) -> Iterator[StockTransaction]:
        """Every entry in append order."""
        ...  # pragma: no cover

    def get(self, transaction_id: uuid.UUID) -> Optional[StockTransaction]:
        ...  # pragma: no cover

    def query(
        self,
        filters: Optional[TransactionFilters] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Page[StockTransaction]:
        ...  # pragma: no cover

    def stats(self) -> LedgerStats:
        ...  # pragma: no cover

    def __len__(self) -> int:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY STORE
# ══════════════════════════════════════════════════════════════

class InMemoryLedgerStore:
    """
    Thread-safe in-memory ledger.

    Entries are kept in append order and, per product, in replay order.
    Readers get a point-in-time copy, so iterating while another
    thread appends is safe.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or get_default_clock()
        self._lock = threading.Lock()
        self._sequence = 0
        self._entries: List[StockTransaction] = []
        self._by_id: Dict[uuid.UUID, StockTransaction] = {}
        # product_id → entries sorted by (created_at, sequence)
        self._by_product: Dict[str, List[StockTransaction]] = {}
        self._keys: Dict[str, List[Tuple[datetime, int]]] = {}

    def append(self, entry: StockTransactionInput) -> StockTransaction:
        transaction_id = entry.transaction_id or uuid.uuid4()
        with self._lock:
            if transaction_id in self._by_id:
                raise DuplicateTransactionError(transaction_id)
            self._sequence += 1
            txn = StockTransaction.from_input(
                entry,
                transaction_id=transaction_id,
                sequence=self._sequence,
                created_at=entry.created_at or self._clock.now_utc(),
            )
            self._entries.append(txn)
            self._by_id[transaction_id] = txn

            keys = self._keys.setdefault(txn.product_id, [])
            rows = self._by_product.setdefault(txn.product_id, [])
            position = bisect.bisect_right(keys, txn.order_key)
            keys.insert(position, txn.order_key)
            rows.insert(position, txn)

        logger.debug(
            f"Ledger #{txn.sequence}: {txn.transaction_type.value} "
            f"{txn.quantity_change:+d} for '{txn.product_id}'"
        )
        return txn

    def for_product(
        self, product_id: str, batch_id: Optional[str] = None
    ) -> Iterator[StockTransaction]:
        with self._lock:
            rows = tuple(self._by_product.get(product_id, ()))
        return (
            txn for txn in rows
            if batch_id is None or txn.batch_id == batch_id
        )

    def all(self) -> Iterator[StockTransaction]:
        with self._lock:
            rows = tuple(self._entries)
        return iter(rows)

    def get(self, transaction_id: uuid.UUID) -> Optional[StockTransaction]:
        with self._lock:
            return self._by_id.get(transaction_id)

    def query(
        self,
        filters: Optional[TransactionFilters] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Page[StockTransaction]:
        filters = filters or TransactionFilters()
        matched = sorted(
            (txn for txn in self.all() if filters.matches(txn)),
            key=lambda txn: txn.order_key,
            reverse=filters.newest_first,
        )
        return paginate(matched, page, page_size)

    def stats(self) -> LedgerStats:
        return summarize(self.all())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
