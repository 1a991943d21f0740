"""
POS Ledger — Django Store
=========================
LedgerStore backed by the pos_stock_transactions table.

Same contract as InMemoryLedgerStore:
    append()       → one INSERT inside an atomic block
    for_product()  → ORDER BY created_at, sequence
    all()          → ORDER BY sequence

A repeated transaction_id surfaces as DuplicateTransactionError
(translated from the unique-constraint IntegrityError).

Import this module only after Django is configured.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterator, Optional

from django.db import IntegrityError, transaction

from poscore.ledger.errors import DuplicateTransactionError
from poscore.ledger.models import StockTransactionRecord
from poscore.ledger.store import LedgerStats, TransactionFilters, summarize
from poscore.ledger.transactions import StockTransaction, StockTransactionInput
from poscore.pagination import Page, normalize
from poscore.time.clock import Clock, get_default_clock

logger = logging.getLogger("pos.ledger")


class DjangoLedgerStore:
    """Durable ledger. Safe for concurrent appends across threads."""

    def __init__(self, clock: Optional[Clock] = None, using: str = "default"):
        self._clock = clock or get_default_clock()
        self._using = using

    def _rows(self):
        return StockTransactionRecord.objects.using(self._using)

    def append(self, entry: StockTransactionInput) -> StockTransaction:
        transaction_id = entry.transaction_id or uuid.uuid4()
        try:
            with transaction.atomic(using=self._using):
                record = StockTransactionRecord(
                    transaction_id=transaction_id,
                    product_id=entry.product_id,
                    batch_id=entry.batch_id,
                    quantity_change=entry.quantity_change,
                    transaction_type=entry.transaction_type.value,
                    reason=entry.reason,
                    related_order_id=entry.related_order_id,
                    related_return_id=entry.related_return_id,
                    related_po_item_id=entry.related_po_item_id,
                    created_at=entry.created_at or self._clock.now_utc(),
                    user_id=entry.user_id,
                )
                record.save(using=self._using)
        except IntegrityError as exc:
            if self._rows().filter(transaction_id=transaction_id).exists():
                raise DuplicateTransactionError(transaction_id) from exc
            raise

        logger.debug(
            f"Ledger #{record.sequence}: {record.transaction_type} "
            f"{record.quantity_change:+d} for '{record.product_id}'"
        )
        return record.to_transaction()

    def for_product(
        self, product_id: str, batch_id: Optional[str] = None
    ) -> Iterator[StockTransaction]:
        rows = self._rows().filter(product_id=product_id)
        if batch_id is not None:
            rows = rows.filter(batch_id=batch_id)
        rows = rows.order_by("created_at", "sequence")
        return (record.to_transaction() for record in rows.iterator())

    def all(self) -> Iterator[StockTransaction]:
        rows = self._rows().order_by("sequence")
        return (record.to_transaction() for record in rows.iterator())

    def get(self, transaction_id: uuid.UUID) -> Optional[StockTransaction]:
        record = self._rows().filter(transaction_id=transaction_id).first()
        return record.to_transaction() if record else None

    def query(
        self,
        filters: Optional[TransactionFilters] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Page[StockTransaction]:
        filters = filters or TransactionFilters()
        rows = self._rows()
        if filters.product_id is not None:
            rows = rows.filter(product_id=filters.product_id)
        if filters.batch_id is not None:
            rows = rows.filter(batch_id=filters.batch_id)
        if filters.transaction_type is not None:
            rows = rows.filter(transaction_type=filters.transaction_type.value)
        if filters.user_id is not None:
            rows = rows.filter(user_id=filters.user_id)
        if filters.date_from is not None:
            rows = rows.filter(created_at__gte=filters.date_from)
        if filters.date_to is not None:
            rows = rows.filter(created_at__lte=filters.date_to)

        if filters.newest_first:
            rows = rows.order_by("-created_at", "-sequence")
        else:
            rows = rows.order_by("created_at", "sequence")

        page, page_size = normalize(page, page_size)
        total = rows.count()
        start = (page - 1) * page_size
        items = tuple(
            record.to_transaction() for record in rows[start:start + page_size]
        )
        return Page(items=items, total=total, page=page, page_size=page_size)

    def stats(self) -> LedgerStats:
        return summarize(self.all())

    def __len__(self) -> int:
        return self._rows().count()
