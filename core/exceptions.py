"""
Business error taxonomy for the order fulfillment core.

Every error carries an HTTP status code and a machine-readable ``code`` so the
API layer can turn it into a structured response without inspecting messages.
Services raise these; ``main.py`` renders them.
"""

from starlette import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "APP_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class InsufficientStockError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(f"Insufficient stock for {product_name}")
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidTransitionError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_TRANSITION"

    def __init__(self, source: str, target: str):
        super().__init__(f"Cannot transition from {source} to {target}")
        self.source = source
        self.target = target


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class ExpiredError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "PROMO_EXPIRED"


class UsageLimitError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "PROMO_USAGE_LIMIT"


class MinOrderError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "PROMO_MIN_ORDER"


class PersistenceError(AppError):
    """Unexpected database failure. Never carries a business meaning."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
