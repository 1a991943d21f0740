"""
POS Ledger — App Configuration
==============================
Registers the durable stock ledger table with Django.

This app:
- Persists stock transactions (append-only)
- Refuses updates and deletes at the model layer

This app does NOT:
- Compute stock levels (projections do that)
- Validate business rules (the inventory service does that)
"""

from django.apps import AppConfig


class LedgerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "poscore.ledger"
    label = "pos_ledger"
    verbose_name = "POS Stock Ledger"
