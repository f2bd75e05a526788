"""
Exceptions shared by every app of the food-cost engine.
"""


class ValidationError(Exception):
    """Raised when caller input is missing or malformed."""

    def __init__(self, field=None, message=None):
        self.field = field
        if message is None:
            message = f"Invalid value for '{field}'" if field else "Invalid input"
        super().__init__(message)


class UpstreamStorageError(Exception):
    """Raised when the database rejects a read or write. Never retried internally."""

    def __init__(self, operation, original=None, message=None):
        self.operation = operation
        self.original = original
        if message is None:
            detail = f": {original}" if original else ""
            message = f"Storage failure during {operation}{detail}"
        super().__init__(message)
