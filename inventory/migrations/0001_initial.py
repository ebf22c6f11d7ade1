from decimal import Decimal

import django.db.models.deletion
import inventory.models
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Location",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=100)),
                ("is_default", models.BooleanField(db_index=True, default=False)),
            ],
            options={"ordering": ["-is_default", "name"]},
        ),
        migrations.CreateModel(
            name="StockBalance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity_on_hand", models.IntegerField(default=0)),
                ("avg_cost", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=15)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="balances",
                        to="inventory.location",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="balances",
                        to="catalog.variant",
                    ),
                ),
            ],
            options={
                "ordering": ["variant_id", "location_id"],
                "indexes": [models.Index(fields=["location", "quantity_on_hand"], name="inv_bal_loc_qty_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("variant", "location"), name="unique_balance_per_variant_location")
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("direction", models.CharField(choices=[("IN", "Inbound"), ("OUT", "Outbound")], max_length=3)),
                (
                    "reason_code",
                    models.CharField(
                        choices=[
                            ("OVERPROD_IN", "Overproduction in"),
                            ("RETURN_IN", "Return in"),
                            ("ADJUSTMENT_IN", "Adjustment in"),
                            ("TRANSFER_IN", "Transfer in"),
                            ("SALES_OUT", "Sales out"),
                            ("GIFT_OUT", "Gift out"),
                            ("ADJUSTMENT_OUT", "Adjustment out"),
                            ("TRANSFER_OUT", "Transfer out"),
                        ],
                        max_length=20,
                    ),
                ),
                ("quantity", models.IntegerField()),
                ("unit", models.CharField(default=inventory.models.default_unit, max_length=10)),
                ("unit_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ("currency", models.CharField(default=inventory.models.default_currency, max_length=3)),
                ("ref_table", models.CharField(blank=True, max_length=50)),
                ("ref_id", models.BigIntegerField(blank=True, null=True)),
                ("ref_code", models.CharField(blank=True, max_length=100)),
                ("note", models.TextField(blank=True)),
                ("pic", models.CharField(blank=True, max_length=100)),
                ("created_by", models.CharField(blank=True, max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="inventory.location",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="catalog.variant",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["variant", "location", "created_at"], name="inv_mv_var_loc_created_idx"),
                    models.Index(fields=["ref_table", "ref_id"], name="inv_mv_ref_idx"),
                    models.Index(fields=["direction", "reason_code"], name="inv_mv_dir_reason_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="movement_quantity_positive"),
                    models.CheckConstraint(
                        condition=models.Q(("direction__in", ["IN", "OUT"])), name="movement_direction_valid"
                    ),
                ],
            },
        ),
    ]
