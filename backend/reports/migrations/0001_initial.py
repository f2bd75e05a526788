import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenant", "0001_initial"),
        ("inventory", "0001_initial"),
        ("integrations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="FoodCostAggregate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_external_id", models.CharField(max_length=100)),
                ("dish_name", models.CharField(help_text="Dish name, or the point-of-sale description when the product is unmapped", max_length=255)),
                ("period_start", models.DateField()),
                ("period_end", models.DateField()),
                ("period_type", models.CharField(choices=[("daily", "Daily"), ("weekly", "Weekly"), ("monthly", "Monthly"), ("custom", "Custom"), ("all_time", "All time")], max_length=10)),
                ("total_quantity_sold", models.DecimalField(decimal_places=3, max_digits=14)),
                ("total_revenue", models.DecimalField(decimal_places=2, max_digits=14)),
                ("average_unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("dish", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="food_cost_aggregates", to="inventory.dish")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="food_cost_aggregates", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Food Cost Aggregate",
                "verbose_name_plural": "Food Cost Aggregates",
                "ordering": ["dish_name", "product_external_id"],
                "indexes": [models.Index(fields=["tenant", "period_type", "period_start", "period_end"], name="foodcost_period_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "product_external_id", "period_start", "period_end", "period_type"), name="food_cost_aggregate_unique_period"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SalesHistoryEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("bill_id_external", models.CharField(max_length=100)),
                ("row_id_external", models.CharField(max_length=100)),
                ("product_external_id", models.CharField(max_length=100)),
                ("description", models.CharField(blank=True, help_text="Point-of-sale description, kept for unmapped products", max_length=255)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=12)),
                ("unit_price", models.DecimalField(decimal_places=4, max_digits=12)),
                ("row_total", models.DecimalField(decimal_places=6, max_digits=18)),
                ("sold_at", models.DateTimeField()),
                ("raw_data", models.JSONField(blank=True, default=dict)),
                ("dish", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sales_history", to="inventory.dish")),
                ("receipt", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="history_entries", to="integrations.receipt")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sales_history", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Sales History Entry",
                "verbose_name_plural": "Sales History Entries",
                "ordering": ["sold_at", "id"],
                "indexes": [models.Index(fields=["tenant", "sold_at"], name="sales_history_sold_at_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "bill_id_external", "row_id_external"), name="sales_history_unique_row"),
                ],
            },
        ),
    ]
