import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="StockTransactionRecord",
            fields=[
                ("sequence", models.BigAutoField(primary_key=True, serialize=False)),
                (
                    "transaction_id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        unique=True,
                        help_text="Public transaction id. Unique across the ledger.",
                    ),
                ),
                ("product_id", models.CharField(max_length=64)),
                ("batch_id", models.CharField(blank=True, max_length=64, null=True)),
                (
                    "quantity_change",
                    models.IntegerField(
                        help_text="Signed change in units. Positive = inbound.",
                    ),
                ),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("stock_in", "Stock in"),
                            ("sale", "Sale"),
                            ("adjustment", "Adjustment"),
                            ("return", "Return"),
                            ("assembly", "Assembly"),
                        ],
                        max_length=20,
                    ),
                ),
                ("reason", models.TextField(blank=True, null=True)),
                ("related_order_id", models.CharField(blank=True, max_length=64, null=True)),
                ("related_return_id", models.CharField(blank=True, max_length=64, null=True)),
                ("related_po_item_id", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField()),
                ("user_id", models.CharField(max_length=64)),
            ],
            options={
                "db_table": "pos_stock_transactions",
                "ordering": ["sequence"],
            },
        ),
        migrations.AddIndex(
            model_name="stocktransactionrecord",
            index=models.Index(
                fields=["product_id", "created_at", "sequence"],
                name="idx_stx_product_replay",
            ),
        ),
        migrations.AddIndex(
            model_name="stocktransactionrecord",
            index=models.Index(
                fields=["transaction_type"],
                name="idx_stx_type",
            ),
        ),
        migrations.AddIndex(
            model_name="stocktransactionrecord",
            index=models.Index(
                fields=["created_at"],
                name="idx_stx_created",
            ),
        ),
    ]
