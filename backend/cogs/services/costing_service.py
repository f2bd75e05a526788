"""
Costing service for COGS.

Turns ingredient prices, yields and units into line, recipe and per-portion
costs.

Yield Resolution Order (exactly one applies per line):
1. Line has a recipe_yield_percentage → divide the unadjusted purchase cost
   by it (never on top of an ingredient-level yield adjustment)
2. Ingredient yield below 100% and no precomputed effective cost → divide
   the base cost by the ingredient yield
3. Otherwise → base cost unchanged

Semilavorato lines cost `cost_per_portion` of the nested recipe times the
line quantity, with no yield logic of their own.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Optional
import logging

from django.utils import timezone

from cogs.exceptions import CyclicRecipeError, RecipeDepthExceededError
from cogs.services.conversion_service import ConversionService
from inventory.models import RecipeIngredient

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
CENT = Decimal("0.01")


class UnitPath(Enum):
    """How a line quantity was reconciled with the ingredient's base unit."""
    SAME_UNIT = "same_unit"
    CONVERTED = "converted"
    # Units are incompatible: the raw quantity is priced against the base-unit cost
    USED_AS_IS = "used_as_is"


@dataclass
class LineCostResult:
    """Result of costing a single recipe line."""
    line_id: int
    name: str
    is_semilavorato: bool
    quantity: Decimal  # Quantity as written on the line
    unit: str  # Unit as written on the line (or the base unit)
    base_quantity: Decimal  # Quantity multiplied by unit_cost
    base_unit: str
    unit_cost: Decimal  # Adjusted cost per base unit, or cost per portion for semilavorati
    extended_cost: Decimal
    unit_path: UnitPath = UnitPath.SAME_UNIT
    yield_source: str = "none"  # "semilavorato" | "recipe_override" | "ingredient" | "precomputed" | "none"
    applied_yield: Optional[Decimal] = None

    @property
    def used_as_is(self) -> bool:
        return self.unit_path is UnitPath.USED_AS_IS


@dataclass
class RecipeCostBreakdown:
    """Complete cost breakdown for a recipe."""
    recipe_id: int
    recipe_name: str
    portions: int
    is_semilavorato: bool
    total_cost: Decimal
    cost_per_portion: Decimal
    lines: List[LineCostResult] = field(default_factory=list)
    unconverted_lines: List[int] = field(default_factory=list)


class CostingService:
    """
    Service for computing recipe line, recipe and per-portion costs.

    Semilavorato nesting is costed recursively. The nesting graph is checked
    for cycles and depth before any recursive evaluation starts.
    """

    # Maximum semilavorato nesting depth
    MAX_NESTING_DEPTH = 5

    def __init__(self, conversion_service: Optional[ConversionService] = None):
        self._conversion_service = conversion_service or ConversionService()

    # ------------------------------------------------------------------
    # Graph checks
    # ------------------------------------------------------------------

    def _semilavorato_children(self, recipe_id, cache: Dict[int, list]) -> list:
        if recipe_id not in cache:
            cache[recipe_id] = list(
                RecipeIngredient.objects.filter(recipe_id=recipe_id, is_semilavorato=True)
                .values_list("semilavorato_id", flat=True)
                .distinct()
            )
        return cache[recipe_id]

    def assert_acyclic(self, recipe) -> int:
        """
        Walk the semilavorato graph below `recipe`.

        Returns:
            The nesting height (0 for a recipe without semilavorati).

        Raises:
            CyclicRecipeError: If a recipe contains itself at any depth.
            RecipeDepthExceededError: If nesting exceeds MAX_NESTING_DEPTH.
        """
        children_cache: Dict[int, list] = {}
        heights: Dict[int, int] = {}

        def height(recipe_id, path):
            if recipe_id in path:
                raise CyclicRecipeError(recipe_id, path=path)
            if recipe_id in heights:
                return heights[recipe_id]
            result = 0
            for child_id in self._semilavorato_children(recipe_id, children_cache):
                result = max(result, 1 + height(child_id, path + [recipe_id]))
            heights[recipe_id] = result
            return result

        nesting = height(recipe.pk, [])
        if nesting > self.MAX_NESTING_DEPTH:
            raise RecipeDepthExceededError(recipe.pk, self.MAX_NESTING_DEPTH)
        return nesting

    # ------------------------------------------------------------------
    # Ingredient cost
    # ------------------------------------------------------------------

    @staticmethod
    def base_cost(ingredient) -> Decimal:
        if ingredient.effective_cost_per_unit is not None:
            return ingredient.effective_cost_per_unit
        return ingredient.cost_per_unit

    @staticmethod
    def is_precomputed_effective_cost(ingredient) -> bool:
        """True when effective_cost_per_unit already embeds the ingredient yield."""
        return (
            ingredient.effective_cost_per_unit is not None
            and ingredient.yield_percentage != HUNDRED
        )

    def adjusted_unit_cost(self, ingredient, recipe_yield_percentage=None):
        """
        Cost per base unit after applying exactly one yield correction.

        Returns:
            Tuple of (cost_per_base_unit, yield_source, applied_yield).
        """
        base_cost = self.base_cost(ingredient)
        precomputed = self.is_precomputed_effective_cost(ingredient)

        if recipe_yield_percentage:
            # Start from the purchase price so two yields never compound
            source_cost = ingredient.cost_per_unit if precomputed else base_cost
            return (
                source_cost / (recipe_yield_percentage / HUNDRED),
                "recipe_override",
                recipe_yield_percentage,
            )

        yield_percentage = ingredient.yield_percentage
        if yield_percentage and yield_percentage < HUNDRED and not precomputed:
            return (
                base_cost / (yield_percentage / HUNDRED),
                "ingredient",
                yield_percentage,
            )

        return base_cost, ("precomputed" if precomputed else "none"), None

    def reconcile_quantity(self, quantity, recipe_unit, base_unit):
        """
        Express a line quantity in the ingredient's base unit.

        Returns:
            Tuple of (quantity, UnitPath). Incompatible units keep the raw
            quantity and report UnitPath.USED_AS_IS.
        """
        convert = self._conversion_service
        if convert.normalize_unit(recipe_unit) == convert.normalize_unit(base_unit):
            return quantity, UnitPath.SAME_UNIT
        if convert.are_units_compatible(recipe_unit, base_unit):
            return convert.convert(quantity, recipe_unit, base_unit), UnitPath.CONVERTED
        return quantity, UnitPath.USED_AS_IS

    # ------------------------------------------------------------------
    # Line and recipe cost
    # ------------------------------------------------------------------

    def cost_of_line(self, line, _path: Optional[List[int]] = None) -> LineCostResult:
        """
        Compute the cost of one recipe line.

        Args:
            line: RecipeIngredient instance.
            _path: Recipe ids on the current recursion path (cycle detection).
        """
        if line.is_semilavorato:
            sub_recipe = line.semilavorato
            if _path is None:
                self.assert_acyclic(sub_recipe)
                _path = [line.recipe_id]
            cost_per_portion = self._cost_per_portion(sub_recipe, _path)
            return LineCostResult(
                line_id=line.pk,
                name=sub_recipe.name,
                is_semilavorato=True,
                quantity=line.quantity,
                unit=line.unit or "porzione",
                base_quantity=line.quantity,
                base_unit="porzione",
                unit_cost=cost_per_portion,
                extended_cost=cost_per_portion * line.quantity,
                yield_source="semilavorato",
            )

        ingredient = line.ingredient
        unit_cost, yield_source, applied_yield = self.adjusted_unit_cost(
            ingredient, line.recipe_yield_percentage
        )

        recipe_unit = line.unit or ingredient.unit
        base_quantity, unit_path = self.reconcile_quantity(
            line.quantity, recipe_unit, ingredient.unit
        )
        if unit_path is UnitPath.USED_AS_IS:
            logger.warning(
                f"Recipe line {line.pk}: unit '{recipe_unit}' is incompatible with "
                f"'{ingredient.unit}' for {ingredient.name}; costing the raw quantity"
            )

        return LineCostResult(
            line_id=line.pk,
            name=ingredient.name,
            is_semilavorato=False,
            quantity=line.quantity,
            unit=recipe_unit,
            base_quantity=base_quantity,
            base_unit=ingredient.unit,
            unit_cost=unit_cost,
            extended_cost=unit_cost * base_quantity,
            unit_path=unit_path,
            yield_source=yield_source,
            applied_yield=applied_yield,
        )

    def _lines(self, recipe):
        return recipe.lines.select_related("ingredient", "semilavorato").order_by("position", "id")

    def _line_results(self, recipe, path: List[int]) -> List[LineCostResult]:
        if recipe.pk in path:
            raise CyclicRecipeError(recipe.pk, path=path)
        if len(path) > self.MAX_NESTING_DEPTH:
            raise RecipeDepthExceededError(recipe.pk, self.MAX_NESTING_DEPTH)
        path = path + [recipe.pk]
        return [self.cost_of_line(line, path) for line in self._lines(recipe)]

    def _cost_per_portion(self, recipe, path: List[int]) -> Decimal:
        if recipe.portions <= 0:
            return Decimal("0")
        total = sum(
            (result.extended_cost for result in self._line_results(recipe, path)),
            Decimal("0"),
        )
        return total / recipe.portions

    def total_cost(self, recipe) -> Decimal:
        """Sum of every line cost, unrounded."""
        self.assert_acyclic(recipe)
        return sum(
            (result.extended_cost for result in self._line_results(recipe, [])),
            Decimal("0"),
        )

    def cost_per_portion(self, recipe) -> Decimal:
        """Total cost divided by portions, unrounded. Zero when portions <= 0."""
        if recipe.portions <= 0:
            return Decimal("0")
        return self.total_cost(recipe) / recipe.portions

    def compute_recipe_cost(self, recipe) -> RecipeCostBreakdown:
        """
        Cost every line of a recipe and round the totals to cents.
        """
        self.assert_acyclic(recipe)
        lines = self._line_results(recipe, [])
        total = sum((result.extended_cost for result in lines), Decimal("0"))
        per_portion = total / recipe.portions if recipe.portions > 0 else Decimal("0")

        return RecipeCostBreakdown(
            recipe_id=recipe.pk,
            recipe_name=recipe.name,
            portions=recipe.portions,
            is_semilavorato=recipe.is_semilavorato,
            total_cost=total.quantize(CENT, rounding=ROUND_HALF_UP),
            cost_per_portion=per_portion.quantize(CENT, rounding=ROUND_HALF_UP),
            lines=lines,
            unconverted_lines=[result.line_id for result in lines if result.used_as_is],
        )

    def refresh_recipe_cost(self, recipe) -> RecipeCostBreakdown:
        """Recompute and store the cached cost fields on the recipe."""
        breakdown = self.compute_recipe_cost(recipe)
        recipe.calculated_total_cost = breakdown.total_cost
        recipe.calculated_cost_per_portion = breakdown.cost_per_portion
        recipe.cost_last_calculated_at = timezone.now()
        recipe.save(update_fields=[
            "calculated_total_cost",
            "calculated_cost_per_portion",
            "cost_last_calculated_at",
        ])
        return breakdown

    # ------------------------------------------------------------------
    # Derived figures
    # ------------------------------------------------------------------

    def scale_recipe(self, recipe, target_portions) -> List[dict]:
        """
        Line quantities needed to produce `target_portions` portions.
        """
        target_portions = Decimal(str(target_portions))
        factor = target_portions / recipe.portions if recipe.portions > 0 else Decimal("0")
        return [
            {
                "line_id": line.pk,
                "name": line.semilavorato.name if line.is_semilavorato else line.ingredient.name,
                "unit": line.unit or ("porzione" if line.is_semilavorato else line.ingredient.unit),
                "original_quantity": line.quantity,
                "scaled_quantity": line.quantity * factor,
            }
            for line in self._lines(recipe)
        ]

    @staticmethod
    def expected_effective_cost(cost_per_unit, yield_percentage=None) -> Decimal:
        yield_percentage = yield_percentage or HUNDRED
        return Decimal(str(cost_per_unit)) / (Decimal(str(yield_percentage)) / HUNDRED)

    @staticmethod
    def validate_ingredient_cost(ingredient, tolerance=CENT) -> dict:
        """
        Check that the stored effective cost agrees with cost and yield.
        """
        expected = CostingService.expected_effective_cost(
            ingredient.cost_per_unit, ingredient.yield_percentage
        )
        actual = CostingService.base_cost(ingredient)
        is_valid = abs(expected - actual) < tolerance
        if not is_valid:
            logger.warning(
                f"Cost inconsistency for {ingredient.name}: expected "
                f"{expected.quantize(CENT, rounding=ROUND_HALF_UP)}, found {actual}"
            )
        return {
            "is_valid": is_valid,
            "expected_effective_cost": expected,
            "actual_effective_cost": actual,
        }

    # Food cost percentage thresholds
    GOOD_THRESHOLD = Decimal("30")
    DEFAULT_CRITICAL_THRESHOLD = Decimal("35")

    def analyze_dish(self, dish, critical_threshold=None) -> dict:
        """
        Food cost, food cost percentage and margin of a dish's recipe.
        """
        critical_threshold = critical_threshold or self.DEFAULT_CRITICAL_THRESHOLD
        food_cost = Decimal("0")
        if dish.recipe_id:
            food_cost = self.cost_per_portion(dish.recipe)

        price = dish.selling_price or Decimal("0")
        percentage = (food_cost / price * HUNDRED) if price > 0 else Decimal("0")

        if percentage > critical_threshold:
            status = "critical"
        elif percentage > self.GOOD_THRESHOLD:
            status = "warning"
        else:
            status = "good"

        return {
            "dish_id": dish.pk,
            "dish_name": dish.name,
            "selling_price": price,
            "food_cost": food_cost.quantize(CENT, rounding=ROUND_HALF_UP),
            "food_cost_percentage": percentage.quantize(CENT, rounding=ROUND_HALF_UP),
            "margin": (price - food_cost).quantize(CENT, rounding=ROUND_HALF_UP),
            "status": status,
        }
