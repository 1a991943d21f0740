"""
Tests for poscore.ledger — append-only in-memory store.
"""

import threading
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from poscore.ledger import (
    DuplicateTransactionError,
    InMemoryLedgerStore,
    StockTransactionInput,
    TransactionFilters,
    TransactionType,
)
from poscore.time.clock import FixedClock


T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _entry(product_id="P1", change=1, kind=TransactionType.ADJUSTMENT, **kwargs):
    return StockTransactionInput(
        product_id=product_id,
        quantity_change=change,
        transaction_type=kind,
        user_id=kwargs.pop("user_id", "u-1"),
        **kwargs,
    )


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def store(clock):
    return InMemoryLedgerStore(clock=clock)


# ══════════════════════════════════════════════════════════════
# INPUT VALIDATION
# ══════════════════════════════════════════════════════════════

class TestStockTransactionInput:
    def test_rejects_float_change(self):
        with pytest.raises(ValueError, match="int"):
            _entry(change=1.5)

    def test_rejects_bool_change(self):
        with pytest.raises(ValueError, match="int"):
            _entry(change=True)

    def test_rejects_empty_user(self):
        with pytest.raises(ValueError, match="user_id"):
            _entry(user_id="")

    def test_rejects_naive_created_at(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            _entry(created_at=datetime(2025, 1, 1))

    def test_zero_change_is_structurally_valid(self):
        assert _entry(change=0).quantity_change == 0


class TestTransactionType:
    def test_parse_string(self):
        assert TransactionType.parse("sale") is TransactionType.SALE

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown transaction type"):
            TransactionType.parse("theft")

    def test_required_sign(self):
        assert TransactionType.STOCK_IN.required_sign == 1
        assert TransactionType.RETURN.required_sign == 1
        assert TransactionType.SALE.required_sign == -1
        assert TransactionType.ADJUSTMENT.required_sign == 0
        assert TransactionType.ASSEMBLY.required_sign == 0


# ══════════════════════════════════════════════════════════════
# APPEND
# ══════════════════════════════════════════════════════════════

class TestAppend:
    def test_assigns_id_sequence_and_time(self, store):
        txn = store.append(_entry())
        assert isinstance(txn.transaction_id, uuid.UUID)
        assert txn.sequence == 1
        assert txn.created_at == T0
        assert len(store) == 1

    def test_sequences_strictly_increase(self, store):
        seqs = [store.append(_entry()).sequence for _ in range(5)]
        assert seqs == [1, 2, 3, 4, 5]

    def test_supplied_id_is_kept(self, store):
        tid = uuid.uuid4()
        assert store.append(_entry(transaction_id=tid)).transaction_id == tid
        assert store.get(tid).transaction_id == tid

    def test_duplicate_id_rejected(self, store):
        tid = uuid.uuid4()
        store.append(_entry(transaction_id=tid))
        with pytest.raises(DuplicateTransactionError) as exc_info:
            store.append(_entry(transaction_id=tid, change=5))
        assert exc_info.value.transaction_id == tid
        assert len(store) == 1

    def test_negative_outcome_is_recorded(self, store):
        txn = store.append(_entry(change=-50, kind=TransactionType.SALE))
        assert txn.quantity_change == -50

    def test_stored_transaction_is_frozen(self, store):
        txn = store.append(_entry())
        with pytest.raises(AttributeError):
            txn.quantity_change = 99

    def test_to_dict(self, store):
        txn = store.append(_entry(change=-2, kind=TransactionType.SALE, related_order_id="O-1"))
        data = txn.to_dict()
        assert data["qty_change"] == -2
        assert data["transaction_type"] == "sale"
        assert data["related_order_id"] == "O-1"
        assert data["created_at"] == T0.isoformat()


# ══════════════════════════════════════════════════════════════
# READS
# ══════════════════════════════════════════════════════════════

class TestForProduct:
    def test_ordered_by_created_at_then_sequence(self, store, clock):
        late = store.append(_entry(created_at=T0 + timedelta(hours=1)))
        first = store.append(_entry(created_at=T0))
        second = store.append(_entry(created_at=T0))
        ids = [t.transaction_id for t in store.for_product("P1")]
        assert ids == [first.transaction_id, second.transaction_id, late.transaction_id]

    def test_only_that_product(self, store):
        store.append(_entry("P1"))
        store.append(_entry("P2"))
        assert [t.product_id for t in store.for_product("P2")] == ["P2"]

    def test_batch_filter(self, store):
        store.append(_entry(batch_id="B1", change=3))
        store.append(_entry(batch_id="B2", change=4))
        assert [t.quantity_change for t in store.for_product("P1", batch_id="B2")] == [4]

    def test_unknown_product_is_empty(self, store):
        assert list(store.for_product("ghost")) == []

    def test_iteration_is_point_in_time(self, store):
        store.append(_entry())
        rows = store.for_product("P1")
        store.append(_entry())
        assert len(list(rows)) == 1

    def test_all_in_append_order(self, store):
        store.append(_entry("P2", created_at=T0 + timedelta(days=1)))
        store.append(_entry("P1"))
        assert [t.sequence for t in store.all()] == [1, 2]


class TestQuery:
    def test_newest_first_by_default(self, store, clock):
        for _ in range(3):
            store.append(_entry())
            clock.advance(60)
        page = store.query()
        assert [t.sequence for t in page.items] == [3, 2, 1]

    def test_filters_and_pagination(self, store, clock):
        for i in range(5):
            store.append(_entry(change=i + 1, kind=TransactionType.STOCK_IN))
            store.append(_entry(change=-1, kind=TransactionType.SALE, user_id="cashier"))
            clock.advance(60)

        sales = store.query(
            TransactionFilters(transaction_type=TransactionType.SALE, newest_first=False),
            page=2,
            page_size=2,
        )
        assert sales.total == 5
        assert all(t.transaction_type is TransactionType.SALE for t in sales.items)
        assert [t.sequence for t in sales.items] == [6, 8]

        by_user = store.query(TransactionFilters(user_id="cashier"), page_size=100)
        assert by_user.total == 5

    def test_date_range(self, store, clock):
        store.append(_entry())
        clock.advance(3600)
        store.append(_entry())
        page = store.query(TransactionFilters(date_from=T0 + timedelta(minutes=30)))
        assert page.total == 1


class TestStats:
    def test_totals_per_type(self, store):
        store.append(_entry(change=100, kind=TransactionType.STOCK_IN))
        store.append(_entry(change=-2, kind=TransactionType.SALE))
        store.append(_entry(change=-3, kind=TransactionType.SALE))
        store.append(_entry(change=4, kind=TransactionType.ADJUSTMENT))
        stats = store.stats()
        assert stats.transaction_count == 4
        assert stats.by_type[TransactionType.SALE].count == 2
        assert stats.by_type[TransactionType.SALE].quantity_out == 5
        assert stats.quantity_in == 104
        assert stats.quantity_out == 5
        assert stats.net == 99
        assert stats.to_dict()["by_type"]["stock_in"]["quantity_in"] == 100

    def test_empty(self, store):
        stats = store.stats()
        assert stats.transaction_count == 0
        assert stats.net == 0


# ══════════════════════════════════════════════════════════════
# CONCURRENCY
# ══════════════════════════════════════════════════════════════

class TestConcurrentAppend:
    def test_no_lost_or_duplicated_entries(self):
        store = InMemoryLedgerStore()
        workers, per_worker = 8, 250

        def work():
            for _ in range(per_worker):
                store.append(_entry(change=1))

        threads = [threading.Thread(target=work) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        entries = list(store.all())
        assert len(entries) == workers * per_worker
        assert len({t.transaction_id for t in entries}) == len(entries)
        assert sorted(t.sequence for t in entries) == list(range(1, len(entries) + 1))
        assert sum(t.quantity_change for t in store.for_product("P1")) == workers * per_worker
