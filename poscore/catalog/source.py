"""
POS Catalog — Sources
=====================
A catalog source hands raw bytes to the cache on demand.
The core only requires ``read() -> bytes``; anything else
(object storage, HTTP download, database export) is an adapter.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Union, runtime_checkable


@runtime_checkable
class CatalogSource(Protocol):
    """Supplies the raw catalog blob."""

    def read(self) -> bytes:
        ...  # pragma: no cover


class FileCatalogSource:
    """Delimited catalog file on local disk (e.g. products_master.csv)."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def read(self) -> bytes:
        return self.path.read_bytes()

    def __str__(self) -> str:
        return str(self.path)


class StaticCatalogSource:
    """In-memory catalog blob. Used for bootstrap data and tests."""

    def __init__(self, data: Union[bytes, str], name: str = "static") -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._data = data
        self.name = name

    def read(self) -> bytes:
        return self._data

    def __str__(self) -> str:
        return self.name
