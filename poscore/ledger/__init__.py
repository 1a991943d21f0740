"""
POS Ledger — Append-only stock transaction log.

The Django-backed store lives in poscore.ledger.persistence and is
not imported here, so the in-memory ledger works without Django.
"""

from poscore.ledger.errors import (
    DuplicateTransactionError,
    ImmutableTransactionError,
    LedgerError,
)
from poscore.ledger.store import (
    InMemoryLedgerStore,
    LedgerStats,
    LedgerStore,
    TransactionFilters,
    TypeTotals,
    summarize,
)
from poscore.ledger.transactions import (
    StockTransaction,
    StockTransactionInput,
    TransactionType,
)

__all__ = [
    "DuplicateTransactionError",
    "ImmutableTransactionError",
    "InMemoryLedgerStore",
    "LedgerError",
    "LedgerStats",
    "LedgerStore",
    "StockTransaction",
    "StockTransactionInput",
    "TransactionFilters",
    "TransactionType",
    "TypeTotals",
    "summarize",
]
