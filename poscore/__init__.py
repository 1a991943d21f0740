"""
POS Inventory Core
==================
Product-catalog cache and append-only stock-transaction ledger for a
retail/pharmacy point of sale.

Answers two questions for the UI/server layer:
- What is in the catalog right now?
- What is currently in stock, and how did it get there?

Usage:
    from poscore.bootstrap import build_inventory

    inventory = build_inventory()
    inventory.adjust_stock("P1", 100, "stock_in", user_id="u-1")
    inventory.current_stock("P1")  # 100
"""

__version__ = "0.1.0"
