"""
Tests for InventoryService, the ingredient stock ledger.
"""
import pytest
from unittest.mock import patch
from decimal import Decimal

from inventory.exceptions import (
    ImmutableMovementError,
    InsufficientStockError,
    InvalidLabelActionError,
    InvalidQuantityError,
)
from inventory.models import IngredientAllocation, InventoryMovement, Label, Recipe, RecipeIngredient
from inventory.policies import AllocationPolicy
from inventory.services import InventoryService

LabelType = Label.LabelType
MovementType = InventoryMovement.MovementType


def assert_invariants(ingredient):
    ingredient.refresh_from_db()
    assert ingredient.current_stock >= ingredient.allocated_stock >= 0
    assert ingredient.labeled_stock <= ingredient.current_stock


@pytest.fixture
def flour(make_ingredient):
    return make_ingredient(name="Farina", current_stock=Decimal("10"))


@pytest.mark.django_db
class TestAllocate:

    def test_reserve_labeled(self, flour, make_label):
        label = make_label(LabelType.INGREDIENT)

        movement = InventoryService.allocate(flour, label, Decimal("4"))

        flour.refresh_from_db()
        assert flour.current_stock == Decimal("10")
        assert flour.allocated_stock == Decimal("4")
        assert flour.labeled_stock == Decimal("4")
        assert movement.movement_type == MovementType.ALLOCATED
        assert movement.allocated_quantity_change == Decimal("4")
        assert IngredientAllocation.all_objects.get(label=label).allocated_quantity == Decimal("4")
        assert_invariants(flour)

    def test_reserve_for_defrosted_label(self, flour, make_label):
        InventoryService.allocate(flour, make_label(LabelType.DEFROSTED), Decimal("3"))

        flour.refresh_from_db()
        assert flour.allocated_stock == Decimal("3")
        assert flour.labeled_stock == Decimal("0")

    def test_consume_now_policy(self, flour, make_label):
        label = make_label(LabelType.RECIPE)

        movement = InventoryService.allocate(flour, label, Decimal("2"))

        flour.refresh_from_db()
        assert flour.current_stock == Decimal("8")
        assert flour.allocated_stock == Decimal("0")
        assert movement.movement_type == MovementType.CONSUMED
        assert movement.quantity_before == Decimal("10")
        assert movement.quantity_after == Decimal("8")
        assert movement.quantity_change == Decimal("-2")

    def test_explicit_policy_overrides_label_type(self, flour, make_label):
        InventoryService.allocate(
            flour, make_label(LabelType.INGREDIENT), Decimal("2"), policy=AllocationPolicy.RESERVE
        )

        flour.refresh_from_db()
        assert flour.labeled_stock == Decimal("0")
        assert flour.allocated_stock == Decimal("2")

    def test_insufficient_stock_leaves_state_untouched(self, make_ingredient, make_label):
        ingredient = make_ingredient(
            name="Burro", current_stock=Decimal("10"), allocated_stock=Decimal("6")
        )
        label = make_label(LabelType.DEFROSTED)

        with pytest.raises(InsufficientStockError) as exc_info:
            InventoryService.allocate(ingredient, label, Decimal("5"))

        assert exc_info.value.available == Decimal("4")
        assert exc_info.value.requested == Decimal("5")
        ingredient.refresh_from_db()
        assert ingredient.current_stock == Decimal("10")
        assert ingredient.allocated_stock == Decimal("6")
        assert not IngredientAllocation.all_objects.filter(label=label).exists()
        assert not InventoryMovement.all_objects.filter(ingredient=ingredient).exists()

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1"), "abc"])
    def test_rejects_non_positive_quantity(self, flour, make_label, quantity):
        with pytest.raises(InvalidQuantityError):
            InventoryService.allocate(flour, make_label(), quantity)

    def test_rejects_closed_label(self, flour, make_label):
        label = make_label(status=Label.Status.CONSUMED)

        with pytest.raises(InvalidLabelActionError):
            InventoryService.allocate(flour, label, Decimal("1"))

    def test_repeat_allocation_moves_counters_by_difference(self, flour, make_label):
        label = make_label(LabelType.INGREDIENT)

        InventoryService.allocate(flour, label, Decimal("2"))
        movement = InventoryService.allocate(flour, label, Decimal("3"))

        allocations = IngredientAllocation.all_objects.filter(label=label)
        assert allocations.count() == 1
        assert allocations.get().allocated_quantity == Decimal("3")
        assert movement.allocated_quantity_change == Decimal("1")
        flour.refresh_from_db()
        assert flour.allocated_stock == Decimal("3")
        assert flour.labeled_stock == Decimal("3")

        InventoryService.allocate(flour, label, Decimal("1"))

        flour.refresh_from_db()
        assert flour.allocated_stock == Decimal("1")
        assert flour.labeled_stock == Decimal("1")

        InventoryService.consume_or_discard(label, MovementType.CONSUMED)

        flour.refresh_from_db()
        assert flour.allocated_stock == Decimal("0")
        assert flour.labeled_stock == Decimal("0")
        assert_invariants(flour)

    def test_repeat_allocation_only_needs_free_stock_for_the_increase(self, flour, make_label):
        label = make_label(LabelType.DEFROSTED)
        InventoryService.allocate(flour, label, Decimal("8"))

        InventoryService.allocate(flour, label, Decimal("10"))

        with pytest.raises(InsufficientStockError) as exc_info:
            InventoryService.allocate(flour, label, Decimal("11"))
        assert exc_info.value.available == Decimal("0")
        assert exc_info.value.requested == Decimal("1")
        flour.refresh_from_db()
        assert flour.allocated_stock == Decimal("10")

    def test_allocation_records_its_policy(self, flour, make_label):
        label = make_label(LabelType.RECIPE)

        InventoryService.allocate(flour, label, Decimal("1"))

        assert IngredientAllocation.all_objects.get(label=label).policy == AllocationPolicy.CONSUME_NOW


@pytest.mark.django_db
class TestConsumeOrDiscard:

    def test_consume_ingredient_label_releases_reservation(self, flour, make_label):
        label = make_label(LabelType.INGREDIENT)
        InventoryService.allocate(flour, label, Decimal("4"))

        movements = InventoryService.consume_or_discard(label, MovementType.CONSUMED)

        flour.refresh_from_db()
        label.refresh_from_db()
        assert flour.current_stock == Decimal("10")
        assert flour.allocated_stock == Decimal("0")
        assert flour.labeled_stock == Decimal("0")
        assert label.status == Label.Status.CONSUMED
        assert label.status_changed_at is not None
        assert len(movements) == 1
        assert not IngredientAllocation.all_objects.filter(label=label).exists()

    def test_discard_ingredient_label_reduces_current_stock(self, flour, make_label):
        label = make_label(LabelType.INGREDIENT)
        InventoryService.allocate(flour, label, Decimal("4"))

        InventoryService.consume_or_discard(label, MovementType.DISCARDED)

        flour.refresh_from_db()
        assert flour.current_stock == Decimal("6")
        assert flour.allocated_stock == Decimal("0")
        assert flour.labeled_stock == Decimal("0")
        assert_invariants(flour)

    def test_consume_lavorato_reduces_current_stock(self, flour, make_label):
        label = make_label(LabelType.LAVORATO)
        InventoryService.allocate(flour, label, Decimal("3"))

        movements = InventoryService.consume_or_discard(label, "consumed")

        flour.refresh_from_db()
        assert flour.current_stock == Decimal("7")
        assert flour.allocated_stock == Decimal("0")
        assert movements[0].movement_type == MovementType.CONSUMED
        assert movements[0].quantity_change == Decimal("-3")

    def test_one_movement_per_allocation(self, make_ingredient, make_label):
        first = make_ingredient(name="Zucchero", current_stock=Decimal("5"))
        second = make_ingredient(name="Uova", unit="pz", current_stock=Decimal("12"))
        label = make_label(LabelType.DEFROSTED)
        InventoryService.allocate(first, label, Decimal("1"))
        InventoryService.allocate(second, label, Decimal("6"))

        movements = InventoryService.consume_or_discard(label, MovementType.DISCARDED)

        assert {m.ingredient_id for m in movements} == {first.pk, second.pk}
        first.refresh_from_db()
        second.refresh_from_db()
        assert first.current_stock == Decimal("4")
        assert second.current_stock == Decimal("6")

    def test_rejects_unknown_action(self, make_label):
        with pytest.raises(InvalidLabelActionError):
            InventoryService.consume_or_discard(make_label(), "eaten")

    def test_rejects_non_closing_action(self, make_label):
        with pytest.raises(InvalidLabelActionError):
            InventoryService.consume_or_discard(make_label(), MovementType.RESTOCKED)

    def test_rejects_already_closed_label(self, flour, make_label):
        label = make_label(LabelType.DEFROSTED)
        InventoryService.allocate(flour, label, Decimal("1"))
        InventoryService.consume_or_discard(label, MovementType.CONSUMED)

        with pytest.raises(InvalidLabelActionError):
            InventoryService.consume_or_discard(label, MovementType.DISCARDED)

    def test_closing_a_recipe_label_keeps_other_reservations(self, flour, make_label):
        label_a = make_label(LabelType.INGREDIENT, title="A")
        recipe_label = make_label(LabelType.RECIPE, title="R")
        label_b = make_label(LabelType.INGREDIENT, title="B")

        InventoryService.allocate(flour, label_a, Decimal("6"))
        assert_invariants(flour)

        InventoryService.allocate(flour, recipe_label, Decimal("4"))
        assert_invariants(flour)
        assert flour.current_stock == Decimal("6")
        assert flour.allocated_stock == Decimal("6")

        InventoryService.consume_or_discard(recipe_label, MovementType.CONSUMED)
        assert_invariants(flour)
        assert flour.allocated_stock == Decimal("6")
        assert flour.labeled_stock == Decimal("6")

        with pytest.raises(InsufficientStockError):
            InventoryService.allocate(flour, label_b, Decimal("4"))
        assert_invariants(flour)

        InventoryService.restock(flour, Decimal("4"))
        InventoryService.allocate(flour, label_b, Decimal("4"))
        assert_invariants(flour)
        assert flour.current_stock == Decimal("10")
        assert flour.allocated_stock == Decimal("10")
        assert flour.labeled_stock == Decimal("10")

        InventoryService.consume_or_discard(label_a, MovementType.CONSUMED)
        assert_invariants(flour)
        assert flour.allocated_stock == Decimal("4")
        assert flour.labeled_stock == Decimal("4")

    def test_reserve_policy_on_ingredient_label_leaves_labeled_stock(self, flour, make_label):
        labeled = make_label(LabelType.INGREDIENT, title="Labeled")
        reserved = make_label(LabelType.INGREDIENT, title="Reserved")
        InventoryService.allocate(flour, labeled, Decimal("3"))
        InventoryService.allocate(flour, reserved, Decimal("2"), policy=AllocationPolicy.RESERVE)

        InventoryService.consume_or_discard(reserved, MovementType.CONSUMED)

        assert_invariants(flour)
        assert flour.allocated_stock == Decimal("3")
        assert flour.labeled_stock == Decimal("3")


@pytest.mark.django_db
class TestRelease:

    def test_release_returns_reservation(self, flour, make_label):
        label = make_label(LabelType.INGREDIENT)
        InventoryService.allocate(flour, label, Decimal("4"))

        movements = InventoryService.release(label)

        flour.refresh_from_db()
        label.refresh_from_db()
        assert flour.current_stock == Decimal("10")
        assert flour.allocated_stock == Decimal("0")
        assert flour.labeled_stock == Decimal("0")
        assert label.status == Label.Status.ACTIVE
        assert movements[0].movement_type == MovementType.UNALLOCATED

    def test_release_refused_for_consume_now_labels(self, flour, make_label):
        label = make_label(LabelType.RECIPE)
        InventoryService.allocate(flour, label, Decimal("1"))

        with pytest.raises(InvalidLabelActionError):
            InventoryService.release(label)


@pytest.mark.django_db
class TestAllocateRecipeIngredients:

    @pytest.fixture
    def recipe(self, tenant_a, make_ingredient):
        recipe = Recipe.all_objects.create(tenant=tenant_a, name="Pasta fresca", portions=1)
        self.flour = make_ingredient(name="Farina 00", current_stock=Decimal("10"))
        self.eggs = make_ingredient(name="Uova", unit="pz", current_stock=Decimal("4"))
        RecipeIngredient.objects.create(recipe=recipe, ingredient=self.flour, quantity=Decimal("0.1"), unit="kg")
        RecipeIngredient.objects.create(recipe=recipe, ingredient=self.eggs, quantity=Decimal("1"), unit="pz")
        return recipe

    def test_pulls_ingredients_from_stock(self, recipe, make_label):
        label = make_label(LabelType.RECIPE)

        movements = InventoryService.allocate_recipe_ingredients(recipe, label, 3)

        self.flour.refresh_from_db()
        self.eggs.refresh_from_db()
        assert len(movements) == 2
        assert self.flour.current_stock == Decimal("9.7")
        assert self.eggs.current_stock == Decimal("1")
        assert self.flour.allocated_stock == Decimal("0")
        assert IngredientAllocation.all_objects.filter(label=label).count() == 2

    def test_any_shortfall_allocates_nothing(self, recipe, make_label):
        label = make_label(LabelType.RECIPE)

        with pytest.raises(InsufficientStockError) as exc_info:
            InventoryService.allocate_recipe_ingredients(recipe, label, 5)

        assert exc_info.value.ingredient.pk == self.eggs.pk
        self.flour.refresh_from_db()
        assert self.flour.current_stock == Decimal("10")
        assert not IngredientAllocation.all_objects.filter(label=label).exists()
        assert not InventoryMovement.all_objects.filter(label=label).exists()

    def test_lines_sharing_an_ingredient_are_summed(self, recipe, make_label):
        RecipeIngredient.objects.create(recipe=recipe, ingredient=self.eggs, quantity=Decimal("1"), unit="pz")

        with pytest.raises(InsufficientStockError) as exc_info:
            InventoryService.allocate_recipe_ingredients(recipe, make_label(LabelType.RECIPE), 3)

        assert exc_info.value.requested == Decimal("6")

    def test_line_units_are_converted_to_the_stock_unit(self, recipe, make_label):
        recipe.lines.filter(ingredient=self.flour).update(quantity=Decimal("200"), unit="g")
        label = make_label(LabelType.RECIPE)

        InventoryService.allocate_recipe_ingredients(recipe, label, 1)

        self.flour.refresh_from_db()
        assert self.flour.current_stock == Decimal("9.8")
        allocation = IngredientAllocation.all_objects.get(label=label, ingredient=self.flour)
        assert allocation.allocated_quantity == Decimal("0.2")

    def test_incompatible_line_unit_allocates_raw_quantity(self, recipe, make_label):
        recipe.lines.filter(ingredient=self.eggs).update(unit="ml")

        with patch("inventory.services.logger") as mock_logger:
            InventoryService.allocate_recipe_ingredients(recipe, make_label(LabelType.RECIPE), 2)

        self.eggs.refresh_from_db()
        assert self.eggs.current_stock == Decimal("2")
        assert mock_logger.warning.called

    def test_semilavorato_lines_are_skipped(self, recipe, tenant_a, make_label):
        base = Recipe.all_objects.create(tenant=tenant_a, name="Besciamella", is_semilavorato=True)
        RecipeIngredient.objects.create(
            recipe=recipe, semilavorato=base, is_semilavorato=True, quantity=Decimal("1")
        )

        movements = InventoryService.allocate_recipe_ingredients(recipe, make_label(LabelType.RECIPE), 1)

        assert len(movements) == 2


@pytest.mark.django_db
class TestRestockAndStatus:

    def test_restock(self, flour):
        movement = InventoryService.restock(flour, Decimal("5"), notes="Consegna")

        flour.refresh_from_db()
        assert flour.current_stock == Decimal("15")
        assert movement.movement_type == MovementType.RESTOCKED
        assert movement.quantity_change == Decimal("5")

    def test_stock_status(self, make_ingredient, make_label):
        ingredient = make_ingredient(
            name="Olio", unit="l", current_stock=Decimal("5"), min_stock_threshold=Decimal("2")
        )
        InventoryService.allocate(ingredient, make_label(LabelType.DEFROSTED), Decimal("3"))

        status = InventoryService.get_stock_status(ingredient)

        assert status["available_stock"] == Decimal("2")
        assert status["is_low_stock"] is True

    def test_low_stock_ingredients_scoped_to_tenant(self, tenant_context, make_ingredient, tenant_b):
        low = make_ingredient(name="Sale", current_stock=Decimal("1"), min_stock_threshold=Decimal("2"))
        make_ingredient(name="Pepe", current_stock=Decimal("5"), min_stock_threshold=Decimal("2"))
        make_ingredient(name="Sale B", tenant=tenant_b, current_stock=Decimal("0"), min_stock_threshold=Decimal("2"))

        assert list(InventoryService.get_low_stock_ingredients()) == [low]


@pytest.mark.django_db
class TestMovementLog:

    def test_movements_cannot_be_updated(self, flour):
        movement = InventoryService.restock(flour, Decimal("1"))
        movement.notes = "changed"

        with pytest.raises(ImmutableMovementError):
            movement.save()

    def test_movements_cannot_be_deleted(self, flour):
        movement = InventoryService.restock(flour, Decimal("1"))

        with pytest.raises(ImmutableMovementError):
            movement.delete()


@pytest.mark.django_db
class TestSetupDemoKitchenCommand:

    def test_creates_kitchen_through_the_ledger(self):
        from django.core.management import call_command
        from cogs.services import CostingService
        from inventory.models import Dish, Ingredient
        from tenant.models import Tenant

        call_command("setup_demo_kitchen", "demo-trattoria", "--sales-point", "SP-DEMO")
        # Running twice must not duplicate stock
        call_command("setup_demo_kitchen", "demo-trattoria")

        tenant = Tenant.objects.get(slug="demo-trattoria")
        assert tenant.sales_point_id == "SP-DEMO"
        assert Ingredient.all_objects.filter(tenant=tenant).count() == 5
        assert InventoryMovement.all_objects.filter(
            tenant=tenant, movement_type=MovementType.RESTOCKED
        ).count() == 5

        dish = Dish.all_objects.get(tenant=tenant, external_id="DEMO-SPAGHETTI")
        assert CostingService().cost_per_portion(dish.recipe) > 0
