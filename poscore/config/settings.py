"""
POS Core Config — Inventory Settings
====================================
Operator-tunable values for the inventory core.

Usage in config/settings.py:
    POS_INVENTORY = {
        "CATALOG_PATH": "static/products_master.csv",
        "DEFAULT_REORDER_POINT": 20,
        "ALLOW_NEGATIVE_STOCK": False,
    }

Keys are matched case-insensitively against the InventorySettings
fields; unknown keys are ignored. When Django is not configured the
defaults apply, so the core also runs as a plain library.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional


# ══════════════════════════════════════════════════════════════
# SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InventorySettings:
    """
    Inventory core configuration.

    default_reorder_point applies to products whose catalog row leaves
    reorder_point empty. The per-product value always wins.
    """

    catalog_path: str = "static/products_master.csv"
    batch_path: Optional[str] = None
    default_reorder_point: int = 20
    allow_negative_stock: bool = False
    expiry_warning_days: int = 30
    default_page_size: int = 20
    max_page_size: int = 100

    def __post_init__(self) -> None:
        if self.default_reorder_point < 0:
            raise ValueError(
                f"default_reorder_point must be >= 0, "
                f"got {self.default_reorder_point}."
            )
        if self.expiry_warning_days < 0:
            raise ValueError(
                f"expiry_warning_days must be >= 0, "
                f"got {self.expiry_warning_days}."
            )
        if self.default_page_size < 1 or self.max_page_size < 1:
            raise ValueError("page sizes must be >= 1.")
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                "default_page_size cannot exceed max_page_size."
            )

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> InventorySettings:
        known = {f.name for f in fields(cls)}
        picked: Dict[str, Any] = {}
        for key, value in values.items():
            name = str(key).lower()
            if name in known:
                picked[name] = value
        return cls(**picked)

    def with_overrides(self, **overrides: Any) -> InventorySettings:
        return replace(self, **overrides)


# ══════════════════════════════════════════════════════════════
# LOADER
# ══════════════════════════════════════════════════════════════

def load_settings() -> InventorySettings:
    """
    Load settings from Django settings, or defaults outside Django.

    Django settings are lazy: reading POS_INVENTORY imports the module
    named by DJANGO_SETTINGS_MODULE on first access. Only a process with
    no settings at all falls back to the defaults.
    """
    from django.conf import settings
    from django.core.exceptions import ImproperlyConfigured

    try:
        user_settings = getattr(settings, "POS_INVENTORY", None) or {}
    except ImproperlyConfigured:
        return InventorySettings()
    return InventorySettings.from_mapping(user_settings)
