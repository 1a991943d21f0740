"""
POS Inventory — Service
=======================
Query and command surface over catalog, ledger and projection.

Command flow (adjust_stock / bulk_adjust / record_stock_count):
    1. Validate type, delta, product, batch, actor
    2. Check direction rules and the over-sale policy
    3. Append to the ledger
    4. Apply to the projection

Steps 1-4 run under one write lock, so the projection sees entries in
append order and two concurrent sales cannot both pass the stock check.
If ANY validation fails nothing is appended.

Queries never take the write lock. Catalog refresh is I/O and never
runs under it either: commands load a cold catalog before locking.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple, Union

from poscore.catalog.cache import CatalogCache, RefreshResult
from poscore.catalog.models import Product
from poscore.config.settings import InventorySettings
from poscore.inventory.errors import InsufficientStock, InvalidAdjustment, UnknownProduct
from poscore.inventory.views import (
    AdjustmentLine,
    CountedItem,
    CountLine,
    InventorySummary,
    ProductFilters,
    ProductPage,
    ProductView,
    StockCount,
    StockStatus,
)
from poscore.ledger.store import LedgerStore, TransactionFilters
from poscore.ledger.transactions import (
    StockTransaction,
    StockTransactionInput,
    TransactionType,
)
from poscore.pagination import Page, normalize, paginate
from poscore.projections.errors import ReplayMismatch
from poscore.projections.stock import QuantityProjector, RebuildResult
from poscore.time.clock import Clock, get_default_clock

logger = logging.getLogger("pos.inventory")

_StockKey = Tuple[str, Optional[str]]


class InventoryService:
    """
    Single entry point for POS inventory reads and stock commands.

    The catalog is read-only here. The ledger is only ever appended to.
    """

    def __init__(
        self,
        catalog: CatalogCache,
        ledger: LedgerStore,
        projector: QuantityProjector,
        settings: Optional[InventorySettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._catalog = catalog
        self._ledger = ledger
        self._projector = projector
        self._settings = settings or InventorySettings()
        self._clock = clock or get_default_clock()
        self._write_lock = threading.Lock()

    @property
    def catalog(self) -> CatalogCache:
        return self._catalog

    @property
    def ledger(self) -> LedgerStore:
        return self._ledger

    @property
    def projector(self) -> QuantityProjector:
        return self._projector

    @property
    def settings(self) -> InventorySettings:
        return self._settings

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    def list_products(
        self,
        page: int = 1,
        page_size: Optional[int] = None,
        filters: Optional[ProductFilters] = None,
    ) -> ProductPage:
        filters = filters or ProductFilters()
        if page_size is None:
            page_size = self._settings.default_page_size
        max_size = self._settings.max_page_size

        products = [
            p for p in self._catalog.all_products() if filters.matches_product(p)
        ]

        if not filters.needs_stock:
            window = paginate(products, page, page_size, max_size)
            return Page(
                items=tuple(self._view(p) for p in window.items),
                total=window.total,
                page=window.page,
                page_size=window.page_size,
            )

        views = [
            view for view in (self._view(p) for p in products)
            if filters.matches_status(view.stock_status)
        ]
        return paginate(views, page, page_size, max_size)

    def get_product(self, product_id: str) -> Optional[Product]:
        return self._catalog.get(product_id)

    def get_product_view(self, product_id: str) -> Optional[ProductView]:
        product = self._catalog.get(product_id)
        return self._view(product) if product else None

    def product_views(self, include_archived: bool = False) -> Tuple[ProductView, ...]:
        return tuple(
            self._view(p) for p in self._catalog.all_products()
            if include_archived or not p.is_archived
        )

    def current_stock(self, product_id: str, batch_id: Optional[str] = None) -> int:
        return self._projector.current_stock(product_id, batch_id)

    def history(
        self, product_id: str, batch_id: Optional[str] = None
    ) -> Tuple[StockTransaction, ...]:
        """Ledger entries for a product in (created_at, sequence) order."""
        return tuple(self._ledger.for_product(product_id, batch_id))

    def transactions(
        self,
        filters: Optional[TransactionFilters] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> Page[StockTransaction]:
        if page_size is None:
            page_size = self._settings.default_page_size
        page, page_size = normalize(page, page_size, self._settings.max_page_size)
        return self._ledger.query(filters, page, page_size)

    def inventory_summary(self) -> InventorySummary:
        views = self.product_views()
        inventory_value = Decimal("0")
        revenue = Decimal("0")
        for view in views:
            inventory_value += view.product.average_cost * view.quantity
            revenue += view.product.price * view.quantity
        return InventorySummary(
            total_products=len(views),
            total_inventory_value=inventory_value,
            potential_revenue=revenue,
            low_stock_count=sum(
                1 for v in views if v.stock_status is StockStatus.LOW_STOCK
            ),
            out_of_stock_count=sum(
                1 for v in views if v.stock_status is StockStatus.OUT_OF_STOCK
            ),
        )

    def _view(self, product: Product) -> ProductView:
        quantity = self._projector.current_stock(product.product_id)
        reorder_point = product.effective_reorder_point(
            self._settings.default_reorder_point
        )
        return ProductView(
            product=product,
            quantity=quantity,
            reorder_point=reorder_point,
            stock_status=StockStatus.classify(quantity, reorder_point),
        )

    # ══════════════════════════════════════════════════════════
    # COMMANDS
    # ══════════════════════════════════════════════════════════

    def adjust_stock(
        self,
        product_id: str,
        delta: int,
        transaction_type: Union[TransactionType, str],
        user_id: str,
        batch_id: Optional[str] = None,
        reason: Optional[str] = None,
        related_order_id: Optional[str] = None,
        related_return_id: Optional[str] = None,
        related_po_item_id: Optional[str] = None,
    ) -> StockTransaction:
        """
        Record one stock movement and return the stored transaction.

        Raises:
            UnknownProduct:     product_id not in the current catalog
            InsufficientStock:  outbound change would go below zero
            InvalidAdjustment:  any other validation failure
        """
        line = AdjustmentLine(
            product_id=product_id,
            delta=delta,
            transaction_type=transaction_type,
            batch_id=batch_id,
            reason=reason,
            related_order_id=related_order_id,
            related_return_id=related_return_id,
            related_po_item_id=related_po_item_id,
        )
        self._catalog.all_products()
        with self._write_lock:
            entry = self._validate(line, user_id, pending={})
            txn = self._ledger.append(entry)
            self._projector.apply(txn)
            balance = self._projector.current_stock(txn.product_id)

        logger.info(
            f"Stock {txn.transaction_type.value} {txn.quantity_change:+d} "
            f"for '{txn.product_id}' by {txn.user_id} (now {balance})"
        )
        return txn

    def bulk_adjust(
        self,
        lines: Sequence[AdjustmentLine],
        user_id: str,
        reason: Optional[str] = None,
    ) -> Tuple[StockTransaction, ...]:
        """
        All-or-nothing batch of adjustments.

        Every line is validated (against stock already claimed by earlier
        lines) before anything is appended. A line without its own reason
        takes the shared one.
        """
        if not lines:
            raise InvalidAdjustment("bulk adjustment has no lines")

        self._catalog.all_products()
        with self._write_lock:
            pending: Dict[_StockKey, int] = {}
            entries: List[StockTransactionInput] = []
            for index, line in enumerate(lines, start=1):
                if reason is not None and line.reason is None:
                    line = replace(line, reason=reason)
                try:
                    entries.append(self._validate(line, user_id, pending))
                except (InvalidAdjustment, UnknownProduct):
                    logger.warning(
                        f"Bulk adjustment rejected at line {index} of {len(lines)}"
                    )
                    raise

            stored = []
            for entry in entries:
                txn = self._ledger.append(entry)
                self._projector.apply(txn)
                stored.append(txn)

        logger.info(f"Bulk adjustment of {len(stored)} lines by {user_id}")
        return tuple(stored)

    def record_stock_count(
        self,
        items: Sequence[Union[CountLine, Tuple[str, Optional[str], int]]],
        user_id: str,
        reason: Optional[str] = None,
    ) -> StockCount:
        """
        Reconcile a physical count against the projection.

        Items are CountLine values or (product_id, batch_id, counted)
        tuples. Expected quantities are read under the write lock, and
        every non-zero variance becomes one ADJUSTMENT entry. All lines
        are validated before anything is appended. Lines that match
        the projection record no entry.
        """
        lines = [i if isinstance(i, CountLine) else CountLine(*i) for i in items]
        if not lines:
            raise InvalidAdjustment("stock count has no lines")
        _require_user(user_id)

        count_id = str(uuid.uuid4())
        self._catalog.all_products()

        with self._write_lock:
            pending: Dict[_StockKey, int] = {}
            seen = set()
            planned: List[Tuple[CountLine, int, Optional[StockTransactionInput]]] = []
            for index, line in enumerate(lines, start=1):
                try:
                    expected = self._check_count_line(line, seen, pending)
                    entry = None
                    variance = line.counted_quantity - expected
                    if variance:
                        note = line.notes or reason or "no notes"
                        entry = self._validate(AdjustmentLine(
                            product_id=line.product_id,
                            delta=variance,
                            transaction_type=TransactionType.ADJUSTMENT,
                            batch_id=line.batch_id,
                            reason=f"Stock count {count_id}: {note}",
                        ), user_id, pending)
                except (InvalidAdjustment, UnknownProduct):
                    logger.warning(
                        f"Stock count rejected at line {index} of {len(lines)}"
                    )
                    raise
                planned.append((line, expected, entry))

            counted: List[CountedItem] = []
            for line, expected, entry in planned:
                txn = None
                if entry is not None:
                    txn = self._ledger.append(entry)
                    self._projector.apply(txn)
                counted.append(CountedItem(
                    product_id=line.product_id,
                    batch_id=line.batch_id,
                    expected_quantity=expected,
                    counted_quantity=line.counted_quantity,
                    notes=line.notes,
                    transaction=txn,
                ))

        result = StockCount(
            count_id=count_id,
            counted_by=user_id,
            counted_at=self._clock.now_utc(),
            notes=reason,
            items=tuple(counted),
        )
        logger.info(
            f"Stock count {count_id} by {user_id}: {len(counted)} lines, "
            f"{len(result.transactions)} adjustments, "
            f"net {result.net_variance:+d}"
        )
        return result

    def _check_count_line(
        self,
        line: CountLine,
        seen: set,
        pending: Dict[_StockKey, int],
    ) -> int:
        """Validate a count line and return its expected quantity."""
        counted = line.counted_quantity
        if isinstance(counted, bool) or not isinstance(counted, int):
            raise InvalidAdjustment(
                f"counted_quantity must be an integer, got {type(counted).__name__}"
            )
        if counted < 0:
            raise InvalidAdjustment("counted_quantity must be >= 0")
        if self._catalog.get(line.product_id) is None:
            raise UnknownProduct(line.product_id)
        if line.batch_id is not None:
            batch = self._catalog.get_batch(line.batch_id)
            if batch is None or batch.product_id != line.product_id:
                raise InvalidAdjustment(
                    f"batch '{line.batch_id}' does not belong to "
                    f"product '{line.product_id}'"
                )

        key = (line.product_id, line.batch_id)
        if key in seen:
            raise InvalidAdjustment(
                f"'{line.product_id}' batch {line.batch_id} counted twice"
            )
        seen.add(key)
        return self._projector.current_stock(*key) + pending.get(key, 0)

    def _validate(
        self,
        line: AdjustmentLine,
        user_id: str,
        pending: Dict[_StockKey, int],
    ) -> StockTransactionInput:
        try:
            kind = TransactionType.parse(line.transaction_type)
        except ValueError as exc:
            raise InvalidAdjustment(str(exc)) from exc

        delta = line.delta
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise InvalidAdjustment(
                f"delta must be an integer, got {type(delta).__name__}"
            )
        if delta == 0:
            raise InvalidAdjustment("delta must not be zero")

        product = self._catalog.get(line.product_id)
        if product is None:
            raise UnknownProduct(line.product_id)

        if line.batch_id is not None:
            batch = self._catalog.get_batch(line.batch_id)
            if batch is None or batch.product_id != product.product_id:
                raise InvalidAdjustment(
                    f"batch '{line.batch_id}' does not belong to "
                    f"product '{product.product_id}'"
                )

        _require_user(user_id)

        sign = kind.required_sign
        if sign > 0 and delta < 0:
            raise InvalidAdjustment(f"{kind.value} must increase stock")
        if sign < 0 and delta > 0:
            raise InvalidAdjustment(f"{kind.value} must decrease stock")

        keys: List[_StockKey] = [(product.product_id, None)]
        if line.batch_id is not None:
            keys.append((product.product_id, line.batch_id))

        if delta < 0 and not self._settings.allow_negative_stock:
            for pid, bid in keys:
                available = (
                    self._projector.current_stock(pid, bid) + pending.get((pid, bid), 0)
                )
                if available + delta < 0:
                    raise InsufficientStock(pid, bid, available, -delta)

        for key in keys:
            pending[key] = pending.get(key, 0) + delta

        return StockTransactionInput(
            product_id=product.product_id,
            quantity_change=delta,
            transaction_type=kind,
            user_id=user_id,
            batch_id=line.batch_id,
            reason=line.reason,
            related_order_id=line.related_order_id,
            related_return_id=line.related_return_id,
            related_po_item_id=line.related_po_item_id,
        )

    # ══════════════════════════════════════════════════════════
    # MAINTENANCE
    # ══════════════════════════════════════════════════════════

    def refresh_catalog(self, cancel: Optional[threading.Event] = None) -> RefreshResult:
        return self._catalog.refresh(cancel=cancel)

    def verify_projection(self) -> None:
        """Replay the ledger and compare. Raises ReplayMismatch on drift."""
        with self._write_lock:
            try:
                self._projector.verify(self._ledger.all())
            except ReplayMismatch as exc:
                logger.critical(f"Stock projection integrity failure: {exc}")
                raise

    def rebuild_projection(self) -> RebuildResult:
        with self._write_lock:
            return self._projector.rebuild(self._ledger.all())


def _require_user(user_id: str) -> None:
    if not user_id or not isinstance(user_id, str) or not user_id.strip():
        raise InvalidAdjustment("user_id is required")
