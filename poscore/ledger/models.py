"""
POS Ledger — Stock Transaction Model
====================================
Durable row for one StockTransaction.

RULES (NON-NEGOTIABLE):
- INSERT only. save() on an existing row and delete() both raise.
- sequence is the auto-increment primary key and orders appends.
- Replay order for a product is (created_at, sequence).

Bulk QuerySet.update()/delete() bypass these guards. Nothing in
poscore calls them.
"""

import uuid

from django.db import models

from poscore.ledger.errors import ImmutableTransactionError
from poscore.ledger.transactions import StockTransaction, TransactionType


class TransactionTypeChoice(models.TextChoices):
    STOCK_IN = "stock_in", "Stock in"
    SALE = "sale", "Sale"
    ADJUSTMENT = "adjustment", "Adjustment"
    RETURN = "return", "Return"
    ASSEMBLY = "assembly", "Assembly"


class StockTransactionRecord(models.Model):
    sequence = models.BigAutoField(primary_key=True)

    transaction_id = models.UUIDField(
        unique=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Public transaction id. Unique across the ledger.",
    )

    product_id = models.CharField(max_length=64)
    batch_id = models.CharField(max_length=64, null=True, blank=True)

    quantity_change = models.IntegerField(
        help_text="Signed change in units. Positive = inbound.",
    )

    transaction_type = models.CharField(
        max_length=20,
        choices=TransactionTypeChoice.choices,
    )

    reason = models.TextField(null=True, blank=True)
    related_order_id = models.CharField(max_length=64, null=True, blank=True)
    related_return_id = models.CharField(max_length=64, null=True, blank=True)
    related_po_item_id = models.CharField(max_length=64, null=True, blank=True)

    created_at = models.DateTimeField()
    user_id = models.CharField(max_length=64)

    class Meta:
        db_table = "pos_stock_transactions"
        ordering = ["sequence"]
        indexes = [
            models.Index(
                fields=["product_id", "created_at", "sequence"],
                name="idx_stx_product_replay",
            ),
            models.Index(
                fields=["transaction_type"],
                name="idx_stx_type",
            ),
            models.Index(
                fields=["created_at"],
                name="idx_stx_created",
            ),
        ]

    # ── Immutability guards ───────────────────────────────────

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableTransactionError(self.transaction_id, "update")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableTransactionError(self.transaction_id, "delete")

    def to_transaction(self) -> StockTransaction:
        return StockTransaction(
            transaction_id=self.transaction_id,
            sequence=self.sequence,
            product_id=self.product_id,
            quantity_change=self.quantity_change,
            transaction_type=TransactionType.parse(self.transaction_type),
            created_at=self.created_at,
            user_id=self.user_id,
            batch_id=self.batch_id,
            reason=self.reason,
            related_order_id=self.related_order_id,
            related_return_id=self.related_return_id,
            related_po_item_id=self.related_po_item_id,
        )

    def __str__(self):
        return (
            f"#{self.sequence} [{self.transaction_type}] "
            f"{self.product_id} {self.quantity_change:+d}"
        )
