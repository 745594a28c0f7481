# storefront/errors.py


class StoreError(Exception):
    """Base class for errors raised by the storefront logic."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    status_code = 400


class NotFoundError(StoreError):
    status_code = 404


class DuplicateOrderError(StoreError):
    """An order with the same orderId already exists."""
