"""
Custom exceptions for the inventory ledger.
"""


class InventoryError(Exception):
    """Base exception for inventory ledger errors."""
    pass


class InsufficientStockError(InventoryError):
    """Raised when available stock (current - allocated) cannot cover a request."""

    def __init__(self, ingredient, available, requested, message=None):
        self.ingredient = ingredient
        self.available = available
        self.requested = requested
        if message is None:
            message = (
                f"Insufficient stock for '{ingredient.name}'. "
                f"Required: {requested}, Available: {available}"
            )
        super().__init__(message)

    def to_dict(self):
        return {
            "ingredient_id": self.ingredient.id,
            "ingredient_name": self.ingredient.name,
            "available": str(self.available),
            "requested": str(self.requested),
        }


class InvalidQuantityError(InventoryError):
    """Raised when a ledger operation receives a non-positive quantity."""

    def __init__(self, quantity, message=None):
        self.quantity = quantity
        if message is None:
            message = f"Quantity must be greater than zero, got {quantity}"
        super().__init__(message)


class InvalidLabelActionError(InventoryError):
    """Raised when a label cannot undergo the requested action."""

    def __init__(self, label, action, message=None):
        self.label = label
        self.action = action
        if message is None:
            message = f"Cannot apply '{action}' to label '{label.title}' with status '{label.status}'"
        super().__init__(message)


class ImmutableMovementError(InventoryError):
    """Raised on any attempt to change or delete an inventory movement."""

    def __init__(self, movement, message=None):
        self.movement = movement
        if message is None:
            message = f"Inventory movement {movement.pk} is immutable"
        super().__init__(message)
