from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from tenant.managers import TenantManager
from inventory.exceptions import ImmutableMovementError


class Ingredient(models.Model):
    """
    A purchasable raw material with its cost, yield and stock counters.

    Stock counters are written only by InventoryService. The database
    enforces current_stock >= allocated_stock >= 0 and
    0 <= labeled_stock <= current_stock.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='ingredients'
    )
    name = models.CharField(max_length=255)
    unit = models.CharField(
        max_length=20,
        help_text=_("Base unit the cost and the stock counters are expressed in (e.g., kg, l, pz)")
    )
    cost_per_unit = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text=_("Purchase price per base unit")
    )
    yield_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('100'),
        validators=[MinValueValidator(Decimal('1')), MaxValueValidator(Decimal('100'))],
        help_text=_("Usable fraction after trim and waste, 1-100")
    )
    effective_cost_per_unit = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        null=True,
        blank=True,
        help_text=_("Cost per usable base unit, already adjusted for yield when present")
    )

    current_stock = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal('0'),
        help_text=_("Physical stock on hand, in base units")
    )
    allocated_stock = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal('0'),
        help_text=_("Stock reserved against active labels but not yet removed")
    )
    labeled_stock = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal('0'),
        help_text=_("Stock committed to ingredient traceability labels")
    )
    min_stock_threshold = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal('0'),
        help_text=_("Available stock at or below this value is reported as low")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Ingredient")
        verbose_name_plural = _("Ingredients")
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                condition=Q(allocated_stock__gte=0),
                name='ingredient_allocated_stock_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(labeled_stock__gte=0),
                name='ingredient_labeled_stock_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(current_stock__gte=F('allocated_stock')),
                name='ingredient_current_covers_allocated',
            ),
            models.CheckConstraint(
                condition=Q(labeled_stock__lte=F('current_stock')),
                name='ingredient_labeled_within_current',
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'name'], name='ingredient_tenant_name_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.unit})"

    @property
    def available_stock(self):
        return self.current_stock - self.allocated_stock


class Recipe(models.Model):
    """
    A recipe producing `portions` portions. Semilavorato recipes can be used
    as a line inside other recipes.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='recipes'
    )
    name = models.CharField(max_length=255)
    portions = models.PositiveIntegerField(
        default=1,
        help_text=_("Number of portions the recipe yields")
    )
    is_semilavorato = models.BooleanField(
        default=False,
        help_text=_("Intermediate preparation usable as an ingredient in other recipes")
    )

    # Cached results of the last cost calculation
    calculated_total_cost = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    calculated_cost_per_portion = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    cost_last_calculated_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Recipe")
        verbose_name_plural = _("Recipes")
        ordering = ['name']

    def __str__(self):
        return self.name


class RecipeIngredient(models.Model):
    """
    One line of a recipe: either an Ingredient or a semilavorato Recipe.
    """

    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.CASCADE,
        related_name='lines'
    )
    ingredient = models.ForeignKey(
        Ingredient,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='recipe_lines'
    )
    semilavorato = models.ForeignKey(
        Recipe,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='used_in_lines',
        help_text=_("Semi-prepared recipe used as this line's ingredient")
    )
    is_semilavorato = models.BooleanField(default=False)
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        help_text=_("Quantity in `unit`, or portions of the semilavorato")
    )
    unit = models.CharField(
        max_length=20,
        blank=True,
        help_text=_("Unit of the quantity; blank means the ingredient's base unit")
    )
    recipe_yield_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('1')), MaxValueValidator(Decimal('100'))],
        help_text=_("Yield for this use only, overriding the ingredient's own yield")
    )
    position = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = _("Recipe Ingredient")
        verbose_name_plural = _("Recipe Ingredients")
        ordering = ['position', 'id']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(is_semilavorato=True, semilavorato__isnull=False, ingredient__isnull=True)
                    | Q(is_semilavorato=False, ingredient__isnull=False, semilavorato__isnull=True)
                ),
                name='recipe_line_single_reference',
            ),
        ]

    def __str__(self):
        target = self.semilavorato if self.is_semilavorato else self.ingredient
        return f"{self.quantity} {self.unit} {target}"


class Dish(models.Model):
    """A menu item sold at the point of sale, optionally backed by a recipe."""

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='dishes'
    )
    name = models.CharField(max_length=255)
    external_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        help_text=_("Product identifier on the point-of-sale system")
    )
    selling_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0')
    )
    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='dishes'
    )

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Dish")
        verbose_name_plural = _("Dishes")
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'external_id'],
                condition=Q(external_id__isnull=False),
                name='dish_unique_external_id_per_tenant',
            ),
        ]

    def __str__(self):
        return self.name


class Label(models.Model):
    """A printed unit of production that stock is allocated against."""

    class LabelType(models.TextChoices):
        INGREDIENT = 'ingredient', _('Ingredient')
        SEMILAVORATO = 'semilavorato', _('Semilavorato')
        LAVORATO = 'lavorato', _('Lavorato')
        DEFROSTED = 'defrosted', _('Defrosted')
        RECIPE = 'recipe', _('Recipe')

    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        CONSUMED = 'consumed', _('Consumed')
        DISCARDED = 'discarded', _('Discarded')

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='labels'
    )
    title = models.CharField(max_length=255)
    label_type = models.CharField(max_length=20, choices=LabelType.choices)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.ACTIVE
    )
    ingredient = models.ForeignKey(
        Ingredient, on_delete=models.SET_NULL, null=True, blank=True, related_name='labels'
    )
    recipe = models.ForeignKey(
        Recipe, on_delete=models.SET_NULL, null=True, blank=True, related_name='labels'
    )
    quantity = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    unit = models.CharField(max_length=20, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    status_changed_at = models.DateTimeField(null=True, blank=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Label")
        verbose_name_plural = _("Labels")
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'status'], name='label_tenant_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} [{self.get_label_type_display()}]"


class IngredientAllocation(models.Model):
    """Quantity of one ingredient currently committed to one label."""

    class Policy(models.TextChoices):
        # Reserve stock for later consumption
        RESERVE = 'reserve', _('Reserve')
        # Reserve stock and count it as committed to a traceability label
        RESERVE_LABELED = 'reserve_labeled', _('Reserve and label')
        # Ingredients leave stock at preparation time; the row is kept for traceability only
        CONSUME_NOW = 'consume_now', _('Consume at preparation')

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='ingredient_allocations'
    )
    ingredient = models.ForeignKey(
        Ingredient, on_delete=models.CASCADE, related_name='allocations'
    )
    label = models.ForeignKey(
        Label, on_delete=models.CASCADE, related_name='allocations'
    )
    allocated_quantity = models.DecimalField(max_digits=12, decimal_places=3)
    policy = models.CharField(
        max_length=20,
        choices=Policy.choices,
        default=Policy.RESERVE,
        help_text=_("Decides which stock counters this allocation moved, and so what closing it returns")
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Ingredient Allocation")
        verbose_name_plural = _("Ingredient Allocations")
        constraints = [
            models.UniqueConstraint(
                fields=['ingredient', 'label'],
                name='allocation_unique_ingredient_label',
            ),
        ]

    def __str__(self):
        return f"{self.allocated_quantity} {self.ingredient} -> {self.label_id}"


class InventoryMovement(models.Model):
    """
    Append-only ledger row written by InventoryService for every stock change.
    Rows cannot be updated or deleted through the model.
    """

    class MovementType(models.TextChoices):
        ALLOCATED = 'allocated', _('Allocated')
        CONSUMED = 'consumed', _('Consumed')
        DISCARDED = 'discarded', _('Discarded')
        RESTOCKED = 'restocked', _('Restocked')
        UNALLOCATED = 'unallocated', _('Unallocated')

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='inventory_movements'
    )
    ingredient = models.ForeignKey(
        Ingredient,
        on_delete=models.PROTECT,
        related_name='movements',
        help_text=_("Ingredient whose counters changed")
    )
    label = models.ForeignKey(
        Label,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements'
    )
    movement_type = models.CharField(max_length=20, choices=MovementType.choices)
    quantity_change = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        help_text=_("Change of current_stock (negative when stock leaves)")
    )
    quantity_before = models.DecimalField(
        max_digits=12, decimal_places=3,
        help_text=_("current_stock before the operation")
    )
    quantity_after = models.DecimalField(
        max_digits=12, decimal_places=3,
        help_text=_("current_stock after the operation")
    )
    allocated_quantity_change = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal('0'),
        help_text=_("Change of allocated_stock")
    )
    notes = models.TextField(blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Inventory Movement")
        verbose_name_plural = _("Inventory Movements")
        ordering = ['-timestamp', '-id']
        indexes = [
            models.Index(fields=['tenant', 'ingredient', 'timestamp'], name='movement_ten_ingr_time_idx'),
            models.Index(fields=['tenant', 'label'], name='movement_ten_label_idx'),
        ]

    def __str__(self):
        return f"{self.get_movement_type_display()} {self.quantity_change} {self.ingredient}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableMovementError(self)
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise ImmutableMovementError(self)
