"""
Lookup tables deciding how each label type moves the stock counters.

Every ledger operation derives its behaviour from these tables once, so the
full matrix of label type x action can be read in one place.
"""
from dataclasses import dataclass

from inventory.models import IngredientAllocation, InventoryMovement, Label

LabelType = Label.LabelType
MovementType = InventoryMovement.MovementType


# Stored on each allocation so closing it returns exactly what it moved
AllocationPolicy = IngredientAllocation.Policy


@dataclass(frozen=True)
class AllocationEffects:
    increment_allocated: bool
    increment_labeled: bool
    reduce_current: bool

    @property
    def movement_type(self):
        return MovementType.ALLOCATED if self.increment_allocated else MovementType.CONSUMED


POLICY_EFFECTS = {
    AllocationPolicy.RESERVE: AllocationEffects(
        increment_allocated=True, increment_labeled=False, reduce_current=False
    ),
    AllocationPolicy.RESERVE_LABELED: AllocationEffects(
        increment_allocated=True, increment_labeled=True, reduce_current=False
    ),
    AllocationPolicy.CONSUME_NOW: AllocationEffects(
        increment_allocated=False, increment_labeled=False, reduce_current=True
    ),
}

LABEL_ALLOCATION_POLICY = {
    LabelType.INGREDIENT: AllocationPolicy.RESERVE_LABELED,
    LabelType.DEFROSTED: AllocationPolicy.RESERVE,
    LabelType.LAVORATO: AllocationPolicy.RESERVE,
    LabelType.RECIPE: AllocationPolicy.CONSUME_NOW,
    LabelType.SEMILAVORATO: AllocationPolicy.CONSUME_NOW,
}

# Closing actions a label can undergo
CLOSING_ACTIONS = (MovementType.CONSUMED, MovementType.DISCARDED)

# (label type, action) -> whether current_stock drops when the label is closed.
# Consuming only releases a reservation; discarding destroys product.
# Lavorato stock is always removed when its label closes.
CURRENT_STOCK_REDUCTION = {
    (LabelType.INGREDIENT, MovementType.CONSUMED): False,
    (LabelType.INGREDIENT, MovementType.DISCARDED): True,
    (LabelType.DEFROSTED, MovementType.CONSUMED): False,
    (LabelType.DEFROSTED, MovementType.DISCARDED): True,
    (LabelType.RECIPE, MovementType.CONSUMED): False,
    (LabelType.RECIPE, MovementType.DISCARDED): True,
    (LabelType.SEMILAVORATO, MovementType.CONSUMED): False,
    (LabelType.SEMILAVORATO, MovementType.DISCARDED): True,
    (LabelType.LAVORATO, MovementType.CONSUMED): True,
    (LabelType.LAVORATO, MovementType.DISCARDED): True,
}


def allocation_policy_for(label_type):
    return LABEL_ALLOCATION_POLICY[LabelType(label_type)]


def effects_of(policy):
    return POLICY_EFFECTS[AllocationPolicy(policy)]


def should_reduce_current_stock(label_type, action):
    return CURRENT_STOCK_REDUCTION[(LabelType(label_type), MovementType(action))]
