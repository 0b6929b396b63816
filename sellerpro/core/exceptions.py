"""Exceptions raised by the inventory engine.

Each exception carries an HTTP-ish ``status_code`` so the routers can map it
without a lookup table. Validation failures are raised before anything is
written; persistence failures are raised after the session was rolled back.
"""


class InventoryError(Exception):
    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_detail(self) -> dict:
        detail = {"message": self.message}
        detail.update(self.details)
        return detail


class ValidationError(InventoryError):
    status_code = 400


class InsufficientStockError(ValidationError):
    status_code = 409

    def __init__(self, product_id: int, stock: int):
        super().__init__(
            "Insufficient stock for product {}".format(product_id),
            product_id=product_id,
            stock=stock,
        )


class MergeConfirmationRequired(InventoryError):
    """Creating a line whose (sku, size) already exists needs explicit consent."""

    status_code = 409

    def __init__(self, existing_id: int, sku: str, size: str, stock: int, price: float):
        super().__init__(
            "Product {} size {} already in stock; confirm to merge".format(sku, size),
            existing_id=existing_id,
            sku=sku,
            size=size,
            existing_stock=stock,
            existing_price=price,
        )


class NotFoundError(InventoryError):
    status_code = 404


class ConsistencyError(InventoryError):
    status_code = 500


class PersistenceError(InventoryError):
    status_code = 503


__all__ = [
    "ConsistencyError",
    "InsufficientStockError",
    "InventoryError",
    "MergeConfirmationRequired",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
]
