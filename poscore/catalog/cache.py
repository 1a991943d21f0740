"""
POS Catalog — Snapshot Cache
============================
Read-through cache for the parsed product catalog.

Lifecycle:
    1. First list()/get() loads the configured source once
    2. The parsed catalog is served from an immutable snapshot
    3. refresh() builds a NEW snapshot and swaps it in atomically
    4. Nothing is re-parsed unless refresh() is called again

Concurrency:
    - refresh() is single-writer (one parse-and-swap in flight)
    - readers take the current snapshot reference without locking,
      so they see either the old or the new catalog, never a mix
    - a failed or cancelled refresh never replaces the snapshot
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from poscore.catalog.errors import (
    CatalogDecodeError,
    CatalogSourceError,
    LoadError,
    RefreshCancelled,
)
from poscore.catalog.models import Product, ProductBatch, RowError
from poscore.catalog.parser import parse, parse_batches
from poscore.catalog.source import CatalogSource
from poscore.pagination import Page, paginate
from poscore.time.clock import Clock, get_default_clock

logger = logging.getLogger("pos.catalog")


# ══════════════════════════════════════════════════════════════
# SNAPSHOT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CatalogSnapshot:
    """
    Immutable view of one successfully loaded catalog.

    Replaced wholesale on refresh. Never partially mutated.
    """

    products: Tuple[Product, ...]
    by_id: Mapping[str, Product]
    batches_by_product: Mapping[str, Tuple[ProductBatch, ...]]
    batches_by_id: Mapping[str, ProductBatch]
    version: int
    loaded_at: Optional[datetime]
    errors: Tuple[RowError, ...] = ()

    @classmethod
    def build(
        cls,
        products: Tuple[Product, ...],
        batches: Tuple[ProductBatch, ...],
        version: int,
        loaded_at: Optional[datetime],
        errors: Tuple[RowError, ...] = (),
    ) -> CatalogSnapshot:
        grouped: Dict[str, List[ProductBatch]] = {}
        for batch in batches:
            grouped.setdefault(batch.product_id, []).append(batch)
        return cls(
            products=products,
            by_id=MappingProxyType({p.product_id: p for p in products}),
            batches_by_product=MappingProxyType(
                {pid: tuple(items) for pid, items in grouped.items()}
            ),
            batches_by_id=MappingProxyType({b.batch_id: b for b in batches}),
            version=version,
            loaded_at=loaded_at,
            errors=errors,
        )


# ══════════════════════════════════════════════════════════════
# REFRESH RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RefreshResult:
    """
    Outcome of one refresh call.

    success=False with error set   → source unreadable, old snapshot kept
    success=False with cancelled   → caller cancelled, old snapshot kept
    row_errors are informational; they never fail the refresh.
    """

    success: bool
    version: int
    product_count: int = 0
    batch_count: int = 0
    row_errors: Tuple[RowError, ...] = ()
    error: Optional[LoadError] = None
    cancelled: bool = False


# ══════════════════════════════════════════════════════════════
# CATALOG CACHE
# ══════════════════════════════════════════════════════════════

class CatalogCache:
    """
    Holds the most recent good catalog and serves paginated reads.

    Owns Product and ProductBatch records exclusively.
    """

    def __init__(
        self,
        source: Optional[CatalogSource] = None,
        batch_source: Optional[CatalogSource] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._source = source
        self._batch_source = batch_source
        self._clock = clock or get_default_clock()
        self._snapshot: Optional[CatalogSnapshot] = None
        self._refresh_lock = threading.Lock()

    # ── Write path ────────────────────────────────────────────

    def refresh(
        self,
        source: Optional[CatalogSource] = None,
        batch_source: Optional[CatalogSource] = None,
        cancel: Optional[threading.Event] = None,
    ) -> RefreshResult:
        """
        Re-read the source, parse, and swap in a new snapshot.

        Callers arriving while another refresh is in flight wait for it
        and then run their own. Returns a RefreshResult; load failures are
        reported in result.error, not raised.
        """
        source = source or self._source
        if source is None:
            raise ValueError("CatalogCache has no source configured.")
        batch_source = batch_source or self._batch_source

        with self._refresh_lock:
            return self._refresh_locked(source, batch_source, cancel)

    def _refresh_locked(
        self,
        source: CatalogSource,
        batch_source: Optional[CatalogSource],
        cancel: Optional[threading.Event],
    ) -> RefreshResult:
        current = self._snapshot
        current_version = current.version if current else 0

        try:
            snapshot = self._load(
                source, batch_source, cancel, version=current_version + 1
            )
        except RefreshCancelled as exc:
            logger.info(f"Catalog refresh cancelled ({exc.stage}); keeping v{current_version}")
            return RefreshResult(
                success=False, version=current_version, cancelled=True
            )
        except LoadError as exc:
            logger.warning(
                f"Catalog refresh failed, keeping v{current_version}: {exc}"
            )
            return RefreshResult(success=False, version=current_version, error=exc)

        self._snapshot = snapshot
        self._source = source
        self._batch_source = batch_source

        for row_error in snapshot.errors:
            logger.warning(f"Catalog {row_error}")
        logger.info(
            f"Catalog v{snapshot.version} loaded from '{source}': "
            f"{len(snapshot.products)} products, "
            f"{len(snapshot.batches_by_id)} batches, "
            f"{len(snapshot.errors)} rejected rows"
        )
        return RefreshResult(
            success=True,
            version=snapshot.version,
            product_count=len(snapshot.products),
            batch_count=len(snapshot.batches_by_id),
            row_errors=snapshot.errors,
        )

    def _load(
        self,
        source: CatalogSource,
        batch_source: Optional[CatalogSource],
        cancel: Optional[threading.Event],
        version: int,
    ) -> CatalogSnapshot:
        raw = _read(source)
        _check_cancel(cancel, "read")

        products, errors = _parse(parse, source, raw)

        batches: Tuple[ProductBatch, ...] = ()
        if batch_source is not None:
            raw_batches = _read(batch_source)
            known = {p.product_id for p in products}
            batches, batch_errors = _parse(
                lambda data: parse_batches(data, known), batch_source, raw_batches
            )
            errors = errors + batch_errors

        _check_cancel(cancel, "parse")

        return CatalogSnapshot.build(
            products=products,
            batches=batches,
            version=version,
            loaded_at=self._clock.now_utc(),
            errors=errors,
        )

    # ── Read path ─────────────────────────────────────────────

    def _current(self) -> CatalogSnapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot

        if self._source is None:
            raise ValueError("CatalogCache has no source configured.")
        with self._refresh_lock:
            if self._snapshot is None:
                result = self._refresh_locked(self._source, self._batch_source, None)
                if result.error is not None:
                    raise result.error
            return self._snapshot

    def list(self, page: int = 1, page_size: int = 20) -> Page[Product]:
        """Offset page of products in catalog order."""
        return paginate(self._current().products, page, page_size)

    def get(self, product_id: str) -> Optional[Product]:
        return self._current().by_id.get(product_id)

    def all_products(self) -> Tuple[Product, ...]:
        return self._current().products

    def batches_for(self, product_id: str) -> Tuple[ProductBatch, ...]:
        return self._current().batches_by_product.get(product_id, ())

    def get_batch(self, batch_id: str) -> Optional[ProductBatch]:
        return self._current().batches_by_id.get(batch_id)

    def all_batches(self) -> Tuple[ProductBatch, ...]:
        return tuple(self._current().batches_by_id.values())

    # ── Introspection ─────────────────────────────────────────

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def version(self) -> int:
        snapshot = self._snapshot
        return snapshot.version if snapshot else 0

    @property
    def loaded_at(self) -> Optional[datetime]:
        snapshot = self._snapshot
        return snapshot.loaded_at if snapshot else None

    @property
    def last_errors(self) -> Tuple[RowError, ...]:
        snapshot = self._snapshot
        return snapshot.errors if snapshot else ()


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def _read(source: CatalogSource) -> bytes:
    """
    Read raw bytes from any source adapter.

    Whatever the adapter raises becomes a CatalogSourceError, so a failed
    read is reported in RefreshResult instead of escaping refresh().
    A str payload is encoded as UTF-8; anything else is rejected.
    """
    try:
        raw = source.read()
    except Exception as exc:
        raise CatalogSourceError(
            source=str(source), detail=f"{type(exc).__name__}: {exc}"
        ) from exc

    if isinstance(raw, str):
        return raw.encode("utf-8")
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    raise CatalogSourceError(
        source=str(source),
        detail=f"read() returned {type(raw).__name__}, expected bytes",
    )


def _parse(parser, source: CatalogSource, raw: bytes):
    try:
        return parser(raw)
    except CatalogDecodeError as exc:
        raise CatalogDecodeError(source=str(source), detail=exc.detail) from exc


def _check_cancel(cancel: Optional[threading.Event], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        raise RefreshCancelled(stage)
