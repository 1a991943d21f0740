"""
Tests for poscore.inventory.reports — reorder, valuation, expiry, CSV.
"""

import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from poscore.catalog import CatalogCache, StaticCatalogSource
from poscore.config import InventorySettings
from poscore.inventory import (
    BATCH_EXPIRY_HEADERS,
    REORDER_HEADERS,
    ExpiryStatus,
    InventoryService,
    StockStatus,
    batch_expiry_report,
    reorder_report,
    suggested_reorder_qty,
    to_csv,
    valuation_report,
)
from poscore.ledger import InMemoryLedgerStore
from poscore.projections import QuantityProjector
from poscore.time.clock import FixedClock


T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
TODAY = date(2025, 6, 1)

CATALOG = "\n".join([
    "id,name,sku,category_id,price,average_cost,reorder_point",
    "P1,Milk,MLK-001,dairy,2.50,1.50,10",
    "P2,Bread,BRD-001,bakery,1.20,0.60,",
    "P3,Eggs,EGG-012,dairy,4.00,2.00,5",
])

BATCHES = "\n".join([
    "id,product_id,batch_number,received_at,expiration_date,purchase_cost",
    "B1,P1,LOT-1,2025-05-01,2025-05-30,1.40",
    "B2,P1,LOT-2,2025-05-20,2025-06-15,1.45",
    "B3,P3,LOT-3,2025-05-20,2025-09-01,1.90",
    "B4,P3,LOT-4,2025-05-20,,1.90",
])


@pytest.fixture
def service():
    clock = FixedClock(T0)
    catalog = CatalogCache(
        source=StaticCatalogSource(CATALOG),
        batch_source=StaticCatalogSource(BATCHES),
        clock=clock,
    )
    svc = InventoryService(
        catalog,
        InMemoryLedgerStore(clock=clock),
        QuantityProjector(),
        settings=InventorySettings(),
    )
    svc.adjust_stock("P1", 4, "stock_in", "u-1", batch_id="B1")
    svc.adjust_stock("P1", 3, "stock_in", "u-1", batch_id="B2")
    svc.adjust_stock("P2", 40, "stock_in", "u-1")
    svc.adjust_stock("P3", 12, "stock_in", "u-1", batch_id="B3")
    return svc


class TestReorderReport:
    def test_suggested_quantity(self):
        assert suggested_reorder_qty(quantity=7, reorder_point=10) == 13
        assert suggested_reorder_qty(quantity=10, reorder_point=10) == 10
        assert suggested_reorder_qty(quantity=0, reorder_point=20) == 40

    def test_only_products_at_or_below_reorder_point(self, service):
        lines = reorder_report(service)
        assert [line.product_id for line in lines] == ["P1"]
        milk = lines[0]
        assert milk.quantity == 7
        assert milk.suggested_reorder_qty == 13
        assert milk.stock_status is StockStatus.LOW_STOCK

    def test_default_reorder_point_applies(self, service):
        service.adjust_stock("P2", -25, "sale", "u-1")
        ids = [line.product_id for line in reorder_report(service)]
        assert ids == ["P1", "P2"]


class TestValuationReport:
    def test_values(self, service):
        lines = {line.product_id: line for line in valuation_report(service)}
        eggs = lines["P3"]
        assert eggs.stock_value == Decimal("24.00")
        assert eggs.retail_value == Decimal("48.00")
        assert eggs.potential_profit == Decimal("24.00")
        assert lines["P2"].stock_value == Decimal("24.00")


class TestBatchExpiryReport:
    def test_statuses_and_order(self, service):
        lines = batch_expiry_report(service, today=TODAY)
        assert [line.batch_id for line in lines] == ["B1", "B2", "B3", "B4"]
        status = {line.batch_id: line.status for line in lines}
        assert status == {
            "B1": ExpiryStatus.EXPIRED,
            "B2": ExpiryStatus.EXPIRING_SOON,
            "B3": ExpiryStatus.OK,
            "B4": ExpiryStatus.OK,
        }

    def test_quantities_from_projection(self, service):
        lines = {line.batch_id: line for line in batch_expiry_report(service, today=TODAY)}
        assert lines["B1"].quantity == 4
        assert lines["B2"].quantity == 3
        assert lines["B4"].quantity == 0
        assert lines["B1"].days_to_expiry == -2

    def test_custom_window(self, service):
        lines = {line.batch_id: line for line in batch_expiry_report(service, TODAY, window_days=7)}
        assert lines["B2"].status is ExpiryStatus.OK


class TestToCsv:
    def test_quotes_special_cells(self):
        text = to_csv(
            [("P1", "Milk, whole", 'say "hi"', None), ("P2", "line\nbreak", 3, Decimal("1.50"))],
            headers=("id", "name", "note", "value"),
        )
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == ["id", "name", "note", "value"]
        assert rows[1] == ["P1", "Milk, whole", 'say "hi"', ""]
        assert rows[2] == ["P2", "line\nbreak", "3", "1.50"]
        assert '"Milk, whole"' in text
        assert '"say ""hi"""' in text

    def test_report_rows_export(self, service):
        text = to_csv((line.as_row() for line in reorder_report(service)), REORDER_HEADERS)
        assert text.splitlines() == [
            ",".join(REORDER_HEADERS),
            "P1,MLK-001,Milk,7,10,13,low_stock",
        ]

    def test_expiry_export_blank_dates(self, service):
        text = to_csv(
            (line.as_row() for line in batch_expiry_report(service, TODAY)),
            BATCH_EXPIRY_HEADERS,
        )
        assert text.splitlines()[-1] == "B4,P3,LOT-4,,0,,ok"


def test_expiry_report_defaults_to_clock_date(service):
    lines = batch_expiry_report(service, clock=FixedClock(T0))
    assert lines[0].days_to_expiry == -2
