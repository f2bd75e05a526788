"""
Exceptions raised while ingesting point-of-sale webhooks.
"""


class SalesIngestionError(Exception):
    """Base exception for sales ingestion errors."""
    pass


class SignatureInvalidError(SalesIngestionError):
    """
    Raised when a webhook cannot be authenticated.

    `status_code` is 401 when the secret or the signature header is missing
    and 403 when the signature does not match.
    """

    def __init__(self, status_code=403, message=None):
        self.status_code = status_code
        if message is None:
            message = "Invalid signature" if status_code == 403 else "Missing signature"
        super().__init__(message)


class PayloadError(SalesIngestionError):
    """Raised when the request body is not a valid bill."""

    def __init__(self, errors=None, message=None):
        self.errors = errors or {}
        if message is None:
            message = "Invalid bill payload"
        super().__init__(message)


class UnmappedRestaurantError(SalesIngestionError):
    """Raised when no restaurant is linked to the bill's sales point."""

    def __init__(self, sales_point_id, message=None):
        self.sales_point_id = sales_point_id
        if message is None:
            message = f"No restaurant mapped to sales point '{sales_point_id}'"
        super().__init__(message)


class AlreadyProcessedError(SalesIngestionError):
    """Raised internally when a bill was ingested before; reported as success."""

    def __init__(self, bill_id, message=None):
        self.bill_id = bill_id
        if message is None:
            message = f"Bill '{bill_id}' already processed"
        super().__init__(message)


class UnmappedProductWarning(UserWarning):
    """
    A bill line whose product matches no dish. Collected and returned with a
    successful ingestion, never raised.
    """

    def __init__(self, item_id, name, product_id=None):
        self.item_id = item_id
        self.name = name
        self.product_id = product_id
        super().__init__(f"Unmapped product: {name} (ID: {product_id or item_id})")
