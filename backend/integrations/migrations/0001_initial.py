from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenant", "0001_initial"),
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Receipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("external_id", models.CharField(help_text="Bill identifier issued by the point-of-sale system", max_length=100)),
                ("bill_number", models.CharField(blank=True, max_length=100)),
                ("sales_point_id", models.CharField(max_length=100)),
                ("table_number", models.CharField(blank=True, max_length=50)),
                ("receipt_date", models.DateTimeField(help_text="When the bill was closed")),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("raw_payload", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="receipts", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Receipt",
                "verbose_name_plural": "Receipts",
                "ordering": ["-receipt_date"],
                "indexes": [models.Index(fields=["tenant", "receipt_date"], name="receipt_tenant_date_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "external_id"), name="receipt_unique_external_id_per_tenant"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReceiptRow",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("row_id_external", models.CharField(max_length=100)),
                ("product_external_id", models.CharField(blank=True, help_text="Point-of-sale product id; empty for discounts and free-text rows", max_length=100, null=True)),
                ("category_external_id", models.CharField(blank=True, max_length=100, null=True)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("quantity", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=12)),
                ("price", models.DecimalField(decimal_places=4, default=Decimal("0"), help_text="Unit price", max_digits=12)),
                ("variation", models.DecimalField(decimal_places=4, default=Decimal("0"), help_text="Price variation applied to the row (modifiers, discounts)", max_digits=12)),
                ("total", models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True)),
                ("total_price_gross", models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True)),
                ("amount", models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True)),
                ("raw_data", models.JSONField(blank=True, default=dict)),
                ("receipt", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="rows", to="integrations.receipt")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="receipt_rows", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Receipt Row",
                "verbose_name_plural": "Receipt Rows",
                "ordering": ["receipt_id", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("receipt", "row_id_external"), name="receipt_row_unique_external_id"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SalesRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("covers_total", models.PositiveIntegerField(default=1)),
                ("revenue_total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("day_of_week", models.PositiveSmallIntegerField(help_text="0 = Sunday ... 6 = Saturday")),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("receipt", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="sales_record", to="integrations.receipt")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sales_records", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Sales Record",
                "verbose_name_plural": "Sales Records",
                "ordering": ["-date"],
            },
        ),
        migrations.CreateModel(
            name="DishSale",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("dish_name", models.CharField(max_length=255)),
                ("quantity_sold", models.DecimalField(decimal_places=3, max_digits=12)),
                ("revenue", models.DecimalField(decimal_places=2, max_digits=12)),
                ("meal_period", models.CharField(choices=[("lunch", "Lunch"), ("dinner", "Dinner"), ("other", "Other")], max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("dish", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="sales", to="inventory.dish")),
                ("receipt_row", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="dish_sale", to="integrations.receiptrow")),
                ("sales_record", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="dish_sales", to="integrations.salesrecord")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="dish_sales", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Dish Sale",
                "verbose_name_plural": "Dish Sales",
            },
        ),
        migrations.CreateModel(
            name="ProcessedBill",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("bill_id_external", models.CharField(max_length=100)),
                ("processed_row_ids", models.JSONField(blank=True, default=list)),
                ("last_updated_at", models.DateTimeField(blank=True, help_text="Closing time reported by the point-of-sale system", null=True)),
                ("processed_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="processed_bills", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Processed Bill",
                "verbose_name_plural": "Processed Bills",
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "bill_id_external"), name="processed_bill_unique_per_tenant"),
                ],
            },
        ),
    ]
