from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from poscore.ledger import (
    DuplicateTransactionError,
    ImmutableTransactionError,
    StockTransactionInput,
    TransactionFilters,
    TransactionType,
)
from poscore.ledger.models import StockTransactionRecord
from poscore.ledger.persistence import DjangoLedgerStore
from poscore.projections import QuantityProjector
from poscore.time.clock import FixedClock

pytestmark = pytest.mark.django_db(transaction=True)

T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _entry(change: int, kind: TransactionType = TransactionType.ADJUSTMENT, **kwargs) -> StockTransactionInput:
    return StockTransactionInput(
        product_id=kwargs.pop("product_id", "P1"),
        quantity_change=change,
        transaction_type=kind,
        user_id="u-1",
        **kwargs,
    )


def test_append_persists_and_round_trips_fields() -> None:
    store = DjangoLedgerStore(clock=FixedClock(T0))
    txn = store.append(_entry(100, TransactionType.STOCK_IN, batch_id="B1", reason="PO-7"))

    assert txn.sequence >= 1
    assert txn.created_at == T0
    loaded = store.get(txn.transaction_id)
    assert loaded == txn
    assert len(store) == 1


def test_sequence_increases_with_each_append() -> None:
    store = DjangoLedgerStore(clock=FixedClock(T0))
    first = store.append(_entry(1))
    second = store.append(_entry(1))
    assert second.sequence > first.sequence


def test_for_product_orders_by_created_at_then_sequence() -> None:
    clock = FixedClock(T0)
    store = DjangoLedgerStore(clock=clock)
    late = store.append(_entry(5, created_at=T0 + timedelta(hours=2)))
    early = store.append(_entry(7))
    store.append(_entry(9, product_id="P2"))

    ids = [t.transaction_id for t in store.for_product("P1")]
    assert ids == [early.transaction_id, late.transaction_id]


def test_duplicate_transaction_id_rejected() -> None:
    store = DjangoLedgerStore(clock=FixedClock(T0))
    tid = uuid.uuid4()
    store.append(_entry(1, transaction_id=tid))
    with pytest.raises(DuplicateTransactionError):
        store.append(_entry(2, transaction_id=tid))
    assert len(store) == 1


def test_stored_rows_refuse_update_and_delete() -> None:
    store = DjangoLedgerStore(clock=FixedClock(T0))
    txn = store.append(_entry(3))
    record = StockTransactionRecord.objects.get(transaction_id=txn.transaction_id)

    record.quantity_change = 300
    with pytest.raises(ImmutableTransactionError, match="update"):
        record.save()
    with pytest.raises(ImmutableTransactionError, match="delete"):
        record.delete()

    assert store.get(txn.transaction_id).quantity_change == 3


def test_query_filters_and_pages() -> None:
    clock = FixedClock(T0)
    store = DjangoLedgerStore(clock=clock)
    for _ in range(3):
        store.append(_entry(10, TransactionType.STOCK_IN))
        store.append(_entry(-1, TransactionType.SALE))
        clock.advance(60)

    page = store.query(TransactionFilters(transaction_type=TransactionType.SALE), page=1, page_size=2)
    assert page.total == 3
    assert len(page.items) == 2
    assert page.items[0].created_at > page.items[1].created_at
    assert store.stats().net == 27


def test_projector_rebuilds_from_durable_ledger() -> None:
    store = DjangoLedgerStore(clock=FixedClock(T0))
    store.append(_entry(100, TransactionType.STOCK_IN))
    store.append(_entry(-2, TransactionType.SALE))
    store.append(_entry(-3, TransactionType.SALE))

    projector = QuantityProjector()
    projector.rebuild(store.all())
    assert projector.current_stock("P1") == 95
