from decimal import Decimal, InvalidOperation, ROUND_UP
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from cogs.services import CostingService, UnitPath
from .exceptions import (
    InsufficientStockError,
    InvalidLabelActionError,
    InvalidQuantityError,
)
from .models import Ingredient, IngredientAllocation, InventoryMovement, Label
from .policies import (
    AllocationPolicy,
    CLOSING_ACTIONS,
    allocation_policy_for,
    effects_of,
    should_reduce_current_stock,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
STOCK_PRECISION = Decimal("0.001")
MovementType = InventoryMovement.MovementType


def _to_quantity(quantity):
    try:
        value = Decimal(str(quantity))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidQuantityError(quantity, message=f"Invalid quantity format: {quantity}")
    if not value.is_finite() or value <= ZERO:
        raise InvalidQuantityError(quantity)
    return value


class InventoryService:
    """
    The only writer of ingredient stock counters.

    Every operation locks the ingredient row, checks and mutates the
    counters, and appends one InventoryMovement per ingredient touched.
    """

    @staticmethod
    def _record_movement(
        ingredient: Ingredient,
        movement_type: str,
        quantity_before: Decimal,
        quantity_after: Decimal,
        allocated_change: Decimal = ZERO,
        label: Label = None,
        notes: str = "",
    ) -> InventoryMovement:
        return InventoryMovement.all_objects.create(
            tenant_id=ingredient.tenant_id,
            ingredient=ingredient,
            label=label,
            movement_type=movement_type,
            quantity_change=quantity_after - quantity_before,
            quantity_before=quantity_before,
            quantity_after=quantity_after,
            allocated_quantity_change=allocated_change,
            notes=notes,
        )

    @staticmethod
    def _lock_ingredient(ingredient_id) -> Ingredient:
        return Ingredient.all_objects.select_for_update().get(pk=ingredient_id)

    @staticmethod
    def _contribution(policy, quantity):
        """(allocated, labeled, consumed) amounts an allocation adds to the counters."""
        effects = effects_of(policy)
        return (
            quantity if effects.increment_allocated else ZERO,
            quantity if effects.increment_labeled else ZERO,
            quantity if effects.reduce_current else ZERO,
        )

    @staticmethod
    @transaction.atomic
    def allocate(
        ingredient: Ingredient,
        label: Label,
        quantity,
        policy: AllocationPolicy = None,
        notes: str = "",
    ) -> InventoryMovement:
        """
        Commit `quantity` of an ingredient to a label.

        The allocation policy defaults to the one registered for the label's
        type. Allocating again on the same label sets the allocation to the
        new quantity and moves the counters by the difference only. Fails
        with InsufficientStockError, leaving every counter untouched, when
        free stock (current_stock - allocated_stock) cannot cover the increase.
        """
        quantity = _to_quantity(quantity)
        if label.status != Label.Status.ACTIVE:
            raise InvalidLabelActionError(label, MovementType.ALLOCATED)

        if policy is None:
            policy = allocation_policy_for(label.label_type)
        policy = AllocationPolicy(policy)
        effects = effects_of(policy)

        locked = InventoryService._lock_ingredient(ingredient.pk)
        previous = (
            IngredientAllocation.all_objects.select_for_update()
            .filter(ingredient=locked, label=label)
            .first()
        )
        previous_quantity = previous.allocated_quantity if previous else ZERO

        needed = quantity - previous_quantity
        available = locked.current_stock - locked.allocated_stock
        if available < needed:
            logger.warning(
                f"Allocation refused for {locked.name}: requested {needed}, available {available}"
            )
            raise InsufficientStockError(locked, available, needed)

        old = (
            InventoryService._contribution(previous.policy, previous_quantity)
            if previous else (ZERO, ZERO, ZERO)
        )
        new = InventoryService._contribution(policy, quantity)
        allocated_change = new[0] - old[0]

        quantity_before = locked.current_stock
        locked.allocated_stock += allocated_change
        locked.labeled_stock += new[1] - old[1]
        locked.current_stock -= new[2] - old[2]
        # labeled stock never exceeds what is physically on hand
        locked.labeled_stock = min(locked.labeled_stock, locked.current_stock)
        locked.save(update_fields=["current_stock", "allocated_stock", "labeled_stock", "updated_at"])

        IngredientAllocation.all_objects.update_or_create(
            ingredient=locked,
            label=label,
            defaults={
                "tenant_id": locked.tenant_id,
                "allocated_quantity": quantity,
                "policy": policy,
            },
        )

        movement = InventoryService._record_movement(
            locked,
            effects.movement_type,
            quantity_before,
            locked.current_stock,
            allocated_change=allocated_change,
            label=label,
            notes=notes,
        )
        logger.info(
            f"Allocated {quantity} {locked.unit} of {locked.name} to label {label.pk} ({policy.value})"
        )
        return movement

    @staticmethod
    def _close_allocation(allocation_id, movement_type: str, reduce_current: bool):
        """
        Return what one allocation moved to the ingredient counters and delete
        the allocation, atomically. Only stock the allocation itself reserved
        or labeled is released. Returns None when the allocation was already
        closed by a concurrent call.
        """
        with transaction.atomic():
            allocation = (
                IngredientAllocation.all_objects.select_for_update()
                .select_related("label")
                .filter(pk=allocation_id)
                .first()
            )
            if allocation is None:
                return None

            ingredient = InventoryService._lock_ingredient(allocation.ingredient_id)
            released = allocation.allocated_quantity
            reserved, labeled, _ = InventoryService._contribution(allocation.policy, released)

            quantity_before = ingredient.current_stock
            allocated_before = ingredient.allocated_stock

            ingredient.allocated_stock = max(ZERO, allocated_before - reserved)
            if reduce_current:
                ingredient.current_stock = max(ZERO, ingredient.current_stock - released)
            ingredient.labeled_stock = max(ZERO, ingredient.labeled_stock - labeled)
            # labeled stock can never exceed what is physically on hand
            ingredient.labeled_stock = min(ingredient.labeled_stock, ingredient.current_stock)
            ingredient.save(update_fields=["current_stock", "allocated_stock", "labeled_stock", "updated_at"])

            movement = InventoryService._record_movement(
                ingredient,
                movement_type,
                quantity_before,
                ingredient.current_stock,
                allocated_change=ingredient.allocated_stock - allocated_before,
                label=allocation.label,
            )
            allocation.delete()
            return movement

    @staticmethod
    def consume_or_discard(label: Label, action: str) -> list:
        """
        Close a label, releasing every allocation on it.

        Allocations are processed one at a time, each in its own transaction,
        and deleted as they are processed. A failure partway leaves the
        already-processed allocations closed and the label still active, so
        calling again finishes only the remaining ones.
        """
        try:
            action = MovementType(action)
        except ValueError:
            raise InvalidLabelActionError(label, action)
        if action not in CLOSING_ACTIONS:
            raise InvalidLabelActionError(label, action)
        if label.status != Label.Status.ACTIVE:
            raise InvalidLabelActionError(label, action)

        reduce_current = should_reduce_current_stock(label.label_type, action)

        movements = []
        allocation_ids = list(
            IngredientAllocation.all_objects.filter(label=label)
            .order_by("ingredient_id")
            .values_list("id", flat=True)
        )
        for allocation_id in allocation_ids:
            movement = InventoryService._close_allocation(
                allocation_id,
                movement_type=action,
                reduce_current=reduce_current,
            )
            if movement is not None:
                movements.append(movement)

        label.status = action.value
        label.status_changed_at = timezone.now()
        label.save(update_fields=["status", "status_changed_at"])

        logger.info(
            f"Label {label.pk} ({label.label_type}) {action.value}: "
            f"{len(movements)} allocation(s) released, current stock reduced={reduce_current}"
        )
        return movements

    @staticmethod
    def release(label: Label) -> list:
        """
        Return a label's reservations to free stock without consuming them.
        The label stays active. Labels whose ingredients already left stock
        at preparation time have nothing to release.
        """
        if label.status != Label.Status.ACTIVE:
            raise InvalidLabelActionError(label, MovementType.UNALLOCATED)
        if not effects_of(allocation_policy_for(label.label_type)).increment_allocated:
            raise InvalidLabelActionError(
                label,
                MovementType.UNALLOCATED,
                message=f"Label '{label.title}' holds no reservation to release",
            )

        movements = []
        allocation_ids = list(
            IngredientAllocation.all_objects.filter(label=label)
            .exclude(policy=AllocationPolicy.CONSUME_NOW)
            .order_by("ingredient_id")
            .values_list("id", flat=True)
        )
        for allocation_id in allocation_ids:
            movement = InventoryService._close_allocation(
                allocation_id,
                movement_type=MovementType.UNALLOCATED,
                reduce_current=False,
            )
            if movement is not None:
                movements.append(movement)

        logger.info(f"Released {len(movements)} allocation(s) from label {label.pk}")
        return movements

    @staticmethod
    @transaction.atomic
    def allocate_recipe_ingredients(recipe, label: Label, portions) -> list:
        """
        Pull every ingredient of `recipe` from stock for `portions` portions.

        The need of each ingredient (line quantity x portions, summed over
        lines sharing an ingredient) is checked against available stock
        before anything is written; the first shortfall aborts the whole
        operation with InsufficientStockError. Semilavorato lines are skipped
        because they hold no ingredient stock of their own.

        Line quantities are expressed in the ingredient's stock unit the same
        way costing does; lines in an incompatible unit use the raw quantity.
        """
        portions = _to_quantity(portions)
        costing = CostingService()

        needs = {}
        lines = (
            recipe.lines.filter(is_semilavorato=False)
            .select_related("ingredient")
            .order_by("position", "id")
        )
        for line in lines:
            ingredient = line.ingredient
            quantity, unit_path = costing.reconcile_quantity(
                line.quantity, line.unit or ingredient.unit, ingredient.unit
            )
            if unit_path is UnitPath.USED_AS_IS:
                logger.warning(
                    f"Recipe line {line.pk}: unit '{line.unit}' is incompatible with "
                    f"'{ingredient.unit}' for {ingredient.name}; allocating the raw quantity"
                )
            needs[line.ingredient_id] = needs.get(line.ingredient_id, ZERO) + quantity * portions
        # Stock counters keep three decimals; round up so a need never disappears
        needs = {
            ingredient_id: needed.quantize(STOCK_PRECISION, rounding=ROUND_UP)
            for ingredient_id, needed in needs.items()
        }

        skipped = recipe.lines.filter(is_semilavorato=True).count()
        if skipped:
            logger.info(f"Skipping {skipped} semilavorato line(s) of recipe {recipe.pk} during allocation")

        # Lock in primary-key order so concurrent recipe allocations cannot deadlock
        locked = {
            ingredient.pk: ingredient
            for ingredient in Ingredient.all_objects.select_for_update()
            .filter(pk__in=needs.keys())
            .order_by("pk")
        }

        for ingredient_id, needed in needs.items():
            ingredient = locked[ingredient_id]
            available = ingredient.current_stock - ingredient.allocated_stock
            if available < needed:
                logger.warning(
                    f"Recipe {recipe.pk} allocation refused: {ingredient.name} "
                    f"needs {needed}, available {available}"
                )
                raise InsufficientStockError(ingredient, available, needed)

        movements = []
        for ingredient_id, needed in needs.items():
            movements.append(
                InventoryService.allocate(
                    locked[ingredient_id],
                    label,
                    needed,
                    policy=AllocationPolicy.CONSUME_NOW,
                    notes=f"Recipe '{recipe.name}' x {portions}",
                )
            )
        return movements

    @staticmethod
    @transaction.atomic
    def restock(ingredient: Ingredient, quantity, notes: str = "") -> InventoryMovement:
        """Add received goods to current_stock."""
        quantity = _to_quantity(quantity)
        locked = InventoryService._lock_ingredient(ingredient.pk)
        quantity_before = locked.current_stock
        locked.current_stock += quantity
        locked.save(update_fields=["current_stock", "updated_at"])

        logger.info(f"Restocked {quantity} {locked.unit} of {locked.name}")
        return InventoryService._record_movement(
            locked, MovementType.RESTOCKED, quantity_before, locked.current_stock, notes=notes
        )

    @staticmethod
    def get_stock_status(ingredient: Ingredient) -> dict:
        ingredient.refresh_from_db(
            fields=["current_stock", "allocated_stock", "labeled_stock", "min_stock_threshold"]
        )
        available = ingredient.current_stock - ingredient.allocated_stock
        return {
            "ingredient_id": ingredient.pk,
            "name": ingredient.name,
            "unit": ingredient.unit,
            "current_stock": ingredient.current_stock,
            "allocated_stock": ingredient.allocated_stock,
            "labeled_stock": ingredient.labeled_stock,
            "available_stock": available,
            "min_stock_threshold": ingredient.min_stock_threshold,
            "is_low_stock": available <= ingredient.min_stock_threshold,
        }

    @staticmethod
    def get_low_stock_ingredients():
        """Ingredients of the current tenant whose free stock is at or below threshold."""
        return (
            Ingredient.objects.annotate(available=F("current_stock") - F("allocated_stock"))
            .filter(available__lte=F("min_stock_threshold"))
            .order_by("available", "name")
        )
