import uuid
from django.db import models


class Tenant(models.Model):
    """
    Root entity for multi-tenancy.
    Each restaurant is a tenant; every ingredient, recipe, label, bill and
    aggregate belongs to exactly one.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=255,
        help_text="Display name for the restaurant (e.g., Trattoria da Mario)"
    )
    slug = models.SlugField(
        unique=True,
        help_text="URL-safe identifier sent in the X-Tenant header"
    )

    # Point-of-sale link
    sales_point_id = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        help_text="Cassa in Cloud sales point identifier used to route incoming bills"
    )

    # Status
    is_active = models.BooleanField(
        default=True,
        help_text="Inactive tenants cannot access the system"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tenants'
        ordering = ['name']
        indexes = [
            models.Index(fields=['slug'], name='tenants_slug_idx'),
            models.Index(fields=['is_active'], name='tenants_is_active_idx'),
        ]

    def __str__(self):
        return self.name
