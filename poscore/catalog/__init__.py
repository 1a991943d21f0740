"""
POS Catalog — Public API
========================
Read path: CatalogSource → parser → CatalogCache.
"""

from poscore.catalog.cache import CatalogCache, CatalogSnapshot, RefreshResult
from poscore.catalog.errors import (
    CatalogDecodeError,
    CatalogSourceError,
    LoadError,
    RefreshCancelled,
)
from poscore.catalog.models import (
    BaseUnit,
    Product,
    ProductBatch,
    RowError,
    StorageRequirement,
)
from poscore.catalog.parser import BatchParseResult, ParseResult, parse, parse_batches
from poscore.catalog.source import CatalogSource, FileCatalogSource, StaticCatalogSource

__all__ = [
    "BaseUnit",
    "BatchParseResult",
    "CatalogCache",
    "CatalogDecodeError",
    "CatalogSnapshot",
    "CatalogSource",
    "CatalogSourceError",
    "FileCatalogSource",
    "LoadError",
    "ParseResult",
    "Product",
    "ProductBatch",
    "RefreshCancelled",
    "RefreshResult",
    "RowError",
    "StaticCatalogSource",
    "StorageRequirement",
    "parse",
    "parse_batches",
]
