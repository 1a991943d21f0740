"""
POS Core Config — Public API
============================
Inventory settings loaded from the Django ``POS_INVENTORY`` setting.
"""

from poscore.config.settings import (
    InventorySettings,
    load_settings,
)

__all__ = [
    "InventorySettings",
    "load_settings",
]
