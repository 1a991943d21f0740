"""
POS Ledger — Errors
===================
Integrity failures of the append-only store.

The ledger never rejects an entry for business reasons (e.g. stock
going negative). These errors only guard its own invariants:
unique ids and no mutation after append.
"""

from poscore.errors import InventoryError


class LedgerError(InventoryError):
    """Base error for ledger store operations."""
    pass


class DuplicateTransactionError(LedgerError):
    """A transaction with this id is already in the ledger."""

    def __init__(self, transaction_id):
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction {transaction_id} already exists. "
            f"Ledger ids are unique."
        )


class ImmutableTransactionError(LedgerError):
    """Attempt to update or delete a stored transaction."""

    def __init__(self, transaction_id, operation: str):
        self.transaction_id = transaction_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} transaction {transaction_id}: ledger entries "
            f"are immutable. Record a new transaction with the inverse change."
        )
