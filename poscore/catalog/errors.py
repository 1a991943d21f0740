"""
POS Catalog — Errors
====================
Load-level failures for the catalog read path.

Row-level validation problems are NOT exceptions: they are collected
as RowError values (see poscore.catalog.models) and the batch goes on.
"""

from poscore.errors import InventoryError


class LoadError(InventoryError):
    """Catalog source could not be loaded. The previous snapshot is kept."""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(
            f"Catalog load failed for source '{source}': {detail}"
        )


class CatalogSourceError(LoadError):
    """Source unreadable (missing file, permission, I/O failure)."""
    pass


class CatalogDecodeError(LoadError):
    """Source bytes are not valid UTF-8 text."""
    pass


class RefreshCancelled(InventoryError):
    """Refresh was cancelled by the caller before publishing."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Catalog refresh cancelled after {stage}.")
