"""
Domain exceptions for the storefront workflows
"""
from fastapi import status


class StorefrontError(Exception):
    """Base exception for storefront domain errors"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFoundError(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND


class OrderValidationError(StorefrontError):
    """Raised before any write when an order request is unusable"""
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStock(StorefrontError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_name: str, requested: int, available: int):
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}"
        )


class InvalidStatusTransition(StorefrontError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from {current} to {target}")


class PaymentVerificationError(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
