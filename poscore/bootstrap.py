"""
POS Core — Bootstrap
====================
Wires the default inventory stack:

    FileCatalogSource → CatalogCache ┐
                                     ├→ InventoryService
    LedgerStore → QuantityProjector  ┘

If the ledger already holds entries (durable store), the projector is
rebuilt from it before the service is handed out.
"""

from __future__ import annotations

import logging
from typing import Optional

from poscore.catalog.cache import CatalogCache
from poscore.catalog.source import CatalogSource, FileCatalogSource
from poscore.config.settings import InventorySettings, load_settings
from poscore.inventory.service import InventoryService
from poscore.ledger.store import InMemoryLedgerStore, LedgerStore
from poscore.projections.errors import ReplayMismatch
from poscore.projections.stock import QuantityProjector
from poscore.time.clock import Clock, get_default_clock

logger = logging.getLogger("pos.inventory")


def build_inventory(
    settings: Optional[InventorySettings] = None,
    source: Optional[CatalogSource] = None,
    batch_source: Optional[CatalogSource] = None,
    ledger: Optional[LedgerStore] = None,
    clock: Optional[Clock] = None,
) -> InventoryService:
    """
    Build an InventoryService.

    Anything not passed in comes from settings: file sources for the
    catalog paths and an in-memory ledger.
    """
    settings = settings or load_settings()
    clock = clock or get_default_clock()

    if source is None:
        source = FileCatalogSource(settings.catalog_path)
    if batch_source is None and settings.batch_path:
        batch_source = FileCatalogSource(settings.batch_path)
    if ledger is None:
        ledger = InMemoryLedgerStore(clock=clock)

    catalog = CatalogCache(source=source, batch_source=batch_source, clock=clock)
    projector = QuantityProjector()
    if len(ledger):
        projector.rebuild(ledger.all())

    logger.info(
        f"Inventory built: catalog='{source}', "
        f"ledger={type(ledger).__name__} ({len(ledger)} entries)"
    )
    return InventoryService(
        catalog, ledger, projector, settings=settings, clock=clock
    )


def run_self_check(service: InventoryService) -> bool:
    """
    Startup integrity check: replay the ledger against the projection.

    Returns True when they agree. A mismatch is logged at CRITICAL by
    the service and reported as False; state is left as found.
    """
    try:
        service.verify_projection()
    except ReplayMismatch:
        return False
    logger.info("Inventory self-check passed")
    return True
