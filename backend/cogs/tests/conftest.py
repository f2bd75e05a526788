"""
Pytest fixtures for COGS tests.
"""
import pytest
from decimal import Decimal

from inventory.models import Dish, Recipe, RecipeIngredient


@pytest.fixture
def make_recipe(tenant_a):
    def _make(name="Ragù", portions=1, is_semilavorato=False):
        return Recipe.all_objects.create(
            tenant=tenant_a,
            name=name,
            portions=portions,
            is_semilavorato=is_semilavorato,
        )

    return _make


@pytest.fixture
def add_line():
    """Append an ingredient or semilavorato line to a recipe."""

    def _add(recipe, target, quantity, unit="", recipe_yield_percentage=None, position=0):
        if isinstance(target, Recipe):
            return RecipeIngredient.objects.create(
                recipe=recipe,
                semilavorato=target,
                is_semilavorato=True,
                quantity=Decimal(str(quantity)),
                unit=unit,
                position=position,
            )
        return RecipeIngredient.objects.create(
            recipe=recipe,
            ingredient=target,
            quantity=Decimal(str(quantity)),
            unit=unit,
            recipe_yield_percentage=(
                Decimal(str(recipe_yield_percentage)) if recipe_yield_percentage is not None else None
            ),
            position=position,
        )

    return _add


@pytest.fixture
def tomato(make_ingredient):
    """Tomatoes: 10/kg purchase price, 50% yield, effective cost 20/kg."""
    return make_ingredient(
        name="Pomodori",
        unit="kg",
        cost_per_unit="10",
        yield_percentage=Decimal("50"),
        effective_cost_per_unit=Decimal("20"),
    )


@pytest.fixture
def sugo(make_recipe, add_line, tomato):
    """Semilavorato of 4 portions whose ingredients cost 40.00 in total."""
    recipe = make_recipe(name="Sugo di pomodoro", portions=4, is_semilavorato=True)
    add_line(recipe, tomato, "2", unit="kg")
    return recipe


@pytest.fixture
def make_dish(tenant_a):
    def _make(name="Spaghetti al pomodoro", selling_price="12.00", recipe=None, external_id=None):
        return Dish.all_objects.create(
            tenant=tenant_a,
            name=name,
            selling_price=Decimal(selling_price),
            recipe=recipe,
            external_id=external_id,
        )

    return _make
