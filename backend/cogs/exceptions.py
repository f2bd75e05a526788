"""
Custom exceptions for the recipe costing system.
"""


class COGSError(Exception):
    """Base exception for COGS-related errors."""
    pass


class IncompatibleUnitsError(COGSError):
    """Raised when a quantity cannot be converted between two units."""

    def __init__(self, from_unit, to_unit, message=None):
        self.from_unit = from_unit
        self.to_unit = to_unit
        if message is None:
            message = f"Cannot convert from '{from_unit}' to '{to_unit}'"
        super().__init__(message)


class CyclicRecipeError(COGSError):
    """Raised when a semilavorato recipe ends up containing itself."""

    def __init__(self, recipe_id, path=None, message=None):
        self.recipe_id = recipe_id
        self.path = list(path or [])
        if message is None:
            chain = " -> ".join(str(step) for step in self.path + [recipe_id])
            message = f"Cyclic recipe dependency detected: {chain}"
        super().__init__(message)


class RecipeDepthExceededError(COGSError):
    """Raised when semilavorato nesting goes deeper than the supported limit."""

    def __init__(self, recipe_id, max_depth, message=None):
        self.recipe_id = recipe_id
        self.max_depth = max_depth
        if message is None:
            message = f"Recipe {recipe_id} exceeds the maximum nesting depth of {max_depth}"
        super().__init__(message)
