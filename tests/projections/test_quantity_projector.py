"""
Tests for poscore.projections — quantity projector.
"""

import random
import uuid
from datetime import datetime, timezone

import pytest

from poscore.ledger import InMemoryLedgerStore, StockTransactionInput, TransactionType
from poscore.ledger.transactions import StockTransaction
from poscore.projections import QuantityProjector, ReplayMismatch
from poscore.time.clock import FixedClock


T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _append(store, product_id, change, batch_id=None, kind=TransactionType.ADJUSTMENT):
    return store.append(StockTransactionInput(
        product_id=product_id,
        quantity_change=change,
        transaction_type=kind,
        user_id="u-1",
        batch_id=batch_id,
    ))


def _txn(sequence, product_id="P1", change=1, batch_id=None):
    return StockTransaction(
        transaction_id=uuid.uuid4(),
        sequence=sequence,
        product_id=product_id,
        quantity_change=change,
        transaction_type=TransactionType.ADJUSTMENT,
        created_at=T0,
        user_id="u-1",
        batch_id=batch_id,
    )


@pytest.fixture
def store():
    return InMemoryLedgerStore(clock=FixedClock(T0))


# ══════════════════════════════════════════════════════════════
# INCREMENTAL APPLY
# ══════════════════════════════════════════════════════════════

class TestApply:
    def test_scenario_stock_in_then_two_sales(self, store):
        projector = QuantityProjector()
        for change, kind in ((100, TransactionType.STOCK_IN),
                             (-2, TransactionType.SALE),
                             (-3, TransactionType.SALE)):
            projector.apply(_append(store, "P1", change, kind=kind))
        assert projector.current_stock("P1") == 95
        assert projector.applied_count == 3

    def test_unknown_product_is_zero(self):
        assert QuantityProjector().current_stock("ghost") == 0

    def test_batch_and_product_totals(self, store):
        projector = QuantityProjector()
        projector.apply(_append(store, "P1", 10, batch_id="B1"))
        projector.apply(_append(store, "P1", 5, batch_id="B2"))
        projector.apply(_append(store, "P1", 2))
        projector.apply(_append(store, "P1", -4, batch_id="B1"))

        assert projector.current_stock("P1") == 13
        assert projector.current_stock("P1", "B1") == 6
        assert projector.current_stock("P1", "B2") == 5
        levels = {lvl.batch_id: lvl.quantity for lvl in projector.stock_levels("P1")}
        assert levels == {"B1": 6, "B2": 5, None: 2}

    def test_duplicate_apply_is_skipped(self, store, caplog):
        projector = QuantityProjector()
        txn = _append(store, "P1", 7)
        assert projector.apply(txn) is True
        with caplog.at_level("WARNING", logger="pos.projections"):
            assert projector.apply(txn) is False
        assert projector.current_stock("P1") == 7
        assert "duplicate" in caplog.text

    def test_stale_sequence_is_skipped(self):
        projector = QuantityProjector()
        projector.apply(_txn(5, change=3))
        assert projector.apply(_txn(4, change=100)) is False
        assert projector.current_stock("P1") == 3

    def test_sequences_tracked_per_product(self):
        projector = QuantityProjector()
        projector.apply(_txn(5, product_id="P1"))
        assert projector.apply(_txn(2, product_id="P2")) is True


# ══════════════════════════════════════════════════════════════
# REBUILD & VERIFY
# ══════════════════════════════════════════════════════════════

class TestRebuild:
    def test_rebuild_equals_incremental(self, store):
        rng = random.Random(42)
        incremental = QuantityProjector()
        for _ in range(500):
            pid = rng.choice(["P1", "P2", "P3"])
            batch = rng.choice([None, "B1", "B2"])
            incremental.apply(_append(store, pid, rng.randint(-20, 20) or 1, batch_id=batch))

        rebuilt = QuantityProjector()
        result = rebuilt.rebuild(store.all())
        assert result.success
        assert result.entries_replayed == 500
        for pid in ("P1", "P2", "P3"):
            assert rebuilt.current_stock(pid) == incremental.current_stock(pid)
            for batch in ("B1", "B2"):
                assert rebuilt.current_stock(pid, batch) == incremental.current_stock(pid, batch)

        incremental.verify(store.all())

    def test_rebuild_replaces_state(self, store):
        projector = QuantityProjector()
        projector.apply(_txn(1, product_id="STALE", change=9))
        _append(store, "P1", 4)
        projector.rebuild(store.all())
        assert projector.current_stock("STALE") == 0
        assert projector.current_stock("P1") == 4

    def test_rebuild_of_empty_ledger(self):
        projector = QuantityProjector()
        result = projector.rebuild([])
        assert result.entries_replayed == 0
        assert projector.snapshot()["product_count"] == 0

    def test_truncate(self, store):
        projector = QuantityProjector()
        projector.apply(_append(store, "P1", 4))
        projector.truncate()
        assert projector.current_stock("P1") == 0
        assert projector.applied_count == 0


class TestVerify:
    def test_mismatch_raised_and_state_untouched(self, store):
        projector = QuantityProjector()
        projector.apply(_append(store, "P1", 10, batch_id="B1"))
        # Entry recorded without being projected.
        _append(store, "P1", 5, batch_id="B1")

        with pytest.raises(ReplayMismatch) as exc_info:
            projector.verify(store.all())

        keys = {(m.product_id, m.batch_id): (m.expected, m.actual)
                for m in exc_info.value.mismatches}
        assert keys == {("P1", None): (15, 10), ("P1", "B1"): (15, 10)}
        assert projector.current_stock("P1") == 10

    def test_verified_rebuild_refuses_to_swap_on_mismatch(self, store):
        projector = QuantityProjector()
        _append(store, "P1", 5)
        with pytest.raises(ReplayMismatch):
            projector.rebuild(store.all(), verify=True)
        assert projector.current_stock("P1") == 0

    def test_verified_rebuild_when_consistent(self, store):
        projector = QuantityProjector()
        projector.apply(_append(store, "P1", 5))
        result = projector.rebuild(store.all(), verify=True)
        assert result.verified
        assert result.swapped

    def test_mismatch_message_lists_keys(self):
        projector = QuantityProjector()
        with pytest.raises(ReplayMismatch, match="P9: ledger=3 projection=0"):
            projector.verify([_txn(1, product_id="P9", change=3)])


class TestSnapshot:
    def test_snapshot_counts(self, store):
        projector = QuantityProjector()
        projector.apply(_append(store, "P1", 4))
        projector.apply(_append(store, "P2", 6))
        assert projector.snapshot() == {
            "product_count": 2,
            "total_quantity": 10,
            "applied_count": 2,
        }

    def test_projection_name(self):
        assert QuantityProjector.projection_name == "quantity_projection"
