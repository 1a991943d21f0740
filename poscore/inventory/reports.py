"""
POS Inventory — Reports
=======================
Read-only reports computed from the service's current state.

    reorder_report        products at or below their reorder point
    valuation_report      stock value at average cost vs retail price
    batch_expiry_report   remaining batch stock by expiry status
    to_csv                export rows with standard CSV quoting

Reports never write to the ledger.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from poscore.inventory.service import InventoryService
from poscore.inventory.views import StockStatus
from poscore.time.clock import Clock, today_utc


# ══════════════════════════════════════════════════════════════
# REORDER
# ══════════════════════════════════════════════════════════════

REORDER_HEADERS = (
    "product_id", "sku", "name", "quantity", "reorder_point",
    "suggested_reorder_qty", "stock_status",
)


@dataclass(frozen=True)
class ReorderLine:
    product_id: str
    sku: str
    name: str
    quantity: int
    reorder_point: int
    suggested_reorder_qty: int
    stock_status: StockStatus

    def as_row(self) -> Tuple[Any, ...]:
        return (
            self.product_id, self.sku, self.name, self.quantity,
            self.reorder_point, self.suggested_reorder_qty,
            self.stock_status.value,
        )


def suggested_reorder_qty(quantity: int, reorder_point: int) -> int:
    """Top up to twice the reorder point, never less than one reorder point."""
    return max(2 * reorder_point - quantity, reorder_point)


def reorder_report(service: InventoryService) -> Tuple[ReorderLine, ...]:
    lines = [
        ReorderLine(
            product_id=view.product_id,
            sku=view.product.sku,
            name=view.product.name,
            quantity=view.quantity,
            reorder_point=view.reorder_point,
            suggested_reorder_qty=suggested_reorder_qty(
                view.quantity, view.reorder_point
            ),
            stock_status=view.stock_status,
        )
        for view in service.product_views()
        if view.quantity <= view.reorder_point
    ]
    lines.sort(key=lambda line: (line.quantity, line.product_id))
    return tuple(lines)


# ══════════════════════════════════════════════════════════════
# VALUATION
# ══════════════════════════════════════════════════════════════

VALUATION_HEADERS = (
    "product_id", "sku", "name", "quantity", "average_cost", "price",
    "stock_value", "retail_value", "potential_profit",
)


@dataclass(frozen=True)
class ValuationLine:
    product_id: str
    sku: str
    name: str
    quantity: int
    average_cost: Decimal
    price: Decimal

    @property
    def stock_value(self) -> Decimal:
        return self.average_cost * self.quantity

    @property
    def retail_value(self) -> Decimal:
        return self.price * self.quantity

    @property
    def potential_profit(self) -> Decimal:
        return self.retail_value - self.stock_value

    def as_row(self) -> Tuple[Any, ...]:
        return (
            self.product_id, self.sku, self.name, self.quantity,
            self.average_cost, self.price, self.stock_value,
            self.retail_value, self.potential_profit,
        )


def valuation_report(service: InventoryService) -> Tuple[ValuationLine, ...]:
    return tuple(
        ValuationLine(
            product_id=view.product_id,
            sku=view.product.sku,
            name=view.product.name,
            quantity=view.quantity,
            average_cost=view.product.average_cost,
            price=view.product.price,
        )
        for view in service.product_views()
    )


# ══════════════════════════════════════════════════════════════
# BATCH EXPIRY
# ══════════════════════════════════════════════════════════════

BATCH_EXPIRY_HEADERS = (
    "batch_id", "product_id", "batch_number", "expiration_date",
    "quantity", "days_to_expiry", "status",
)


class ExpiryStatus(Enum):
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    OK = "ok"


@dataclass(frozen=True)
class BatchExpiryLine:
    batch_id: str
    product_id: str
    batch_number: str
    expiration_date: Optional[date]
    quantity: int
    days_to_expiry: Optional[int]
    status: ExpiryStatus

    def as_row(self) -> Tuple[Any, ...]:
        return (
            self.batch_id, self.product_id, self.batch_number,
            self.expiration_date.isoformat() if self.expiration_date else "",
            self.quantity,
            "" if self.days_to_expiry is None else self.days_to_expiry,
            self.status.value,
        )


def _expiry_status(days: Optional[int], window_days: int) -> ExpiryStatus:
    if days is None:
        return ExpiryStatus.OK
    if days < 0:
        return ExpiryStatus.EXPIRED
    if days <= window_days:
        return ExpiryStatus.EXPIRING_SOON
    return ExpiryStatus.OK


def batch_expiry_report(
    service: InventoryService,
    today: Optional[date] = None,
    window_days: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> Tuple[BatchExpiryLine, ...]:
    """
    Remaining quantity per batch with its expiry status.

    today defaults to the clock's UTC date. Batches without an
    expiration date are always OK. Soonest expiry first; undated
    batches last.
    """
    if today is None:
        today = today_utc(clock)
    if window_days is None:
        window_days = service.settings.expiry_warning_days

    lines: List[BatchExpiryLine] = []
    for batch in service.catalog.all_batches():
        days = batch.days_to_expiry(today)
        lines.append(BatchExpiryLine(
            batch_id=batch.batch_id,
            product_id=batch.product_id,
            batch_number=batch.batch_number,
            expiration_date=batch.expiration_date,
            quantity=service.current_stock(batch.product_id, batch.batch_id),
            days_to_expiry=days,
            status=_expiry_status(days, window_days),
        ))
    lines.sort(key=lambda line: (
        line.days_to_expiry is None,
        line.days_to_expiry or 0,
        line.batch_id,
    ))
    return tuple(lines)


# ══════════════════════════════════════════════════════════════
# CSV EXPORT
# ══════════════════════════════════════════════════════════════

def to_csv(rows: Iterable[Sequence[Any]], headers: Sequence[str]) -> str:
    """
    Render rows as CSV text.

    Cells containing commas, quotes or newlines are quoted; embedded
    quotes are doubled. None renders as an empty cell.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buffer.getvalue()
