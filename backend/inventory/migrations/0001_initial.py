from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenant", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Ingredient",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("unit", models.CharField(help_text="Base unit the cost and the stock counters are expressed in (e.g., kg, l, pz)", max_length=20)),
                ("cost_per_unit", models.DecimalField(decimal_places=4, default=Decimal("0"), help_text="Purchase price per base unit", max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("yield_percentage", models.DecimalField(decimal_places=2, default=Decimal("100"), help_text="Usable fraction after trim and waste, 1-100", max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal("1")), django.core.validators.MaxValueValidator(Decimal("100"))])),
                ("effective_cost_per_unit", models.DecimalField(blank=True, decimal_places=4, help_text="Cost per usable base unit, already adjusted for yield when present", max_digits=12, null=True)),
                ("current_stock", models.DecimalField(decimal_places=3, default=Decimal("0"), help_text="Physical stock on hand, in base units", max_digits=12)),
                ("allocated_stock", models.DecimalField(decimal_places=3, default=Decimal("0"), help_text="Stock reserved against active labels but not yet removed", max_digits=12)),
                ("labeled_stock", models.DecimalField(decimal_places=3, default=Decimal("0"), help_text="Stock committed to ingredient traceability labels", max_digits=12)),
                ("min_stock_threshold", models.DecimalField(decimal_places=3, default=Decimal("0"), help_text="Available stock at or below this value is reported as low", max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="ingredients", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Ingredient",
                "verbose_name_plural": "Ingredients",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["tenant", "name"], name="ingredient_tenant_name_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("allocated_stock__gte", 0)), name="ingredient_allocated_stock_non_negative"),
                    models.CheckConstraint(condition=models.Q(("labeled_stock__gte", 0)), name="ingredient_labeled_stock_non_negative"),
                    models.CheckConstraint(condition=models.Q(("current_stock__gte", models.F("allocated_stock"))), name="ingredient_current_covers_allocated"),
                    models.CheckConstraint(condition=models.Q(("labeled_stock__lte", models.F("current_stock"))), name="ingredient_labeled_within_current"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Recipe",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("portions", models.PositiveIntegerField(default=1, help_text="Number of portions the recipe yields")),
                ("is_semilavorato", models.BooleanField(default=False, help_text="Intermediate preparation usable as an ingredient in other recipes")),
                ("calculated_total_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("calculated_cost_per_portion", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("cost_last_calculated_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="recipes", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Recipe",
                "verbose_name_plural": "Recipes",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="RecipeIngredient",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_semilavorato", models.BooleanField(default=False)),
                ("quantity", models.DecimalField(decimal_places=4, help_text="Quantity in `unit`, or portions of the semilavorato", max_digits=12)),
                ("unit", models.CharField(blank=True, help_text="Unit of the quantity; blank means the ingredient's base unit", max_length=20)),
                ("recipe_yield_percentage", models.DecimalField(blank=True, decimal_places=2, help_text="Yield for this use only, overriding the ingredient's own yield", max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(Decimal("1")), django.core.validators.MaxValueValidator(Decimal("100"))])),
                ("position", models.PositiveIntegerField(default=0)),
                ("ingredient", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="recipe_lines", to="inventory.ingredient")),
                ("recipe", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="inventory.recipe")),
                ("semilavorato", models.ForeignKey(blank=True, help_text="Semi-prepared recipe used as this line's ingredient", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="used_in_lines", to="inventory.recipe")),
            ],
            options={
                "verbose_name": "Recipe Ingredient",
                "verbose_name_plural": "Recipe Ingredients",
                "ordering": ["position", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("ingredient__isnull", True), ("is_semilavorato", True), ("semilavorato__isnull", False)),
                            models.Q(("ingredient__isnull", False), ("is_semilavorato", False), ("semilavorato__isnull", True)),
                            _connector="OR",
                        ),
                        name="recipe_line_single_reference",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Dish",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("external_id", models.CharField(blank=True, help_text="Product identifier on the point-of-sale system", max_length=100, null=True)),
                ("selling_price", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("recipe", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="dishes", to="inventory.recipe")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="dishes", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Dish",
                "verbose_name_plural": "Dishes",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("external_id__isnull", False)), fields=("tenant", "external_id"), name="dish_unique_external_id_per_tenant"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Label",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("label_type", models.CharField(choices=[("ingredient", "Ingredient"), ("semilavorato", "Semilavorato"), ("lavorato", "Lavorato"), ("defrosted", "Defrosted"), ("recipe", "Recipe")], max_length=20)),
                ("status", models.CharField(choices=[("active", "Active"), ("consumed", "Consumed"), ("discarded", "Discarded")], default="active", max_length=20)),
                ("quantity", models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ("unit", models.CharField(blank=True, max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("status_changed_at", models.DateTimeField(blank=True, null=True)),
                ("ingredient", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="labels", to="inventory.ingredient")),
                ("recipe", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="labels", to="inventory.recipe")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="labels", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Label",
                "verbose_name_plural": "Labels",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["tenant", "status"], name="label_tenant_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="IngredientAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("allocated_quantity", models.DecimalField(decimal_places=3, max_digits=12)),
                ("policy", models.CharField(choices=[("reserve", "Reserve"), ("reserve_labeled", "Reserve and label"), ("consume_now", "Consume at preparation")], default="reserve", help_text="Decides which stock counters this allocation moved, and so what closing it returns", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("ingredient", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="allocations", to="inventory.ingredient")),
                ("label", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="allocations", to="inventory.label")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="ingredient_allocations", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Ingredient Allocation",
                "verbose_name_plural": "Ingredient Allocations",
                "constraints": [
                    models.UniqueConstraint(fields=("ingredient", "label"), name="allocation_unique_ingredient_label"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("movement_type", models.CharField(choices=[("allocated", "Allocated"), ("consumed", "Consumed"), ("discarded", "Discarded"), ("restocked", "Restocked"), ("unallocated", "Unallocated")], max_length=20)),
                ("quantity_change", models.DecimalField(decimal_places=3, help_text="Change of current_stock (negative when stock leaves)", max_digits=12)),
                ("quantity_before", models.DecimalField(decimal_places=3, help_text="current_stock before the operation", max_digits=12)),
                ("quantity_after", models.DecimalField(decimal_places=3, help_text="current_stock after the operation", max_digits=12)),
                ("allocated_quantity_change", models.DecimalField(decimal_places=3, default=Decimal("0"), help_text="Change of allocated_stock", max_digits=12)),
                ("notes", models.TextField(blank=True)),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                ("ingredient", models.ForeignKey(help_text="Ingredient whose counters changed", on_delete=django.db.models.deletion.PROTECT, related_name="movements", to="inventory.ingredient")),
                ("label", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="movements", to="inventory.label")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="inventory_movements", to="tenant.tenant")),
            ],
            options={
                "verbose_name": "Inventory Movement",
                "verbose_name_plural": "Inventory Movements",
                "ordering": ["-timestamp", "-id"],
                "indexes": [
                    models.Index(fields=["tenant", "ingredient", "timestamp"], name="movement_ten_ingr_time_idx"),
                    models.Index(fields=["tenant", "label"], name="movement_ten_label_idx"),
                ],
            },
        ),
    ]
