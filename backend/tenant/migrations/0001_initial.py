import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Tenant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(help_text="Display name for the restaurant (e.g., Trattoria da Mario)", max_length=255)),
                ("slug", models.SlugField(help_text="URL-safe identifier sent in the X-Tenant header", unique=True)),
                ("sales_point_id", models.CharField(blank=True, help_text="Cassa in Cloud sales point identifier used to route incoming bills", max_length=100, null=True, unique=True)),
                ("is_active", models.BooleanField(default=True, help_text="Inactive tenants cannot access the system")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "tenants",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["slug"], name="tenants_slug_idx"),
                    models.Index(fields=["is_active"], name="tenants_is_active_idx"),
                ],
            },
        ),
    ]
