"""
Error taxonomy shared by the ordering services.

Every error carries the HTTP status the API answers with; ``errors_bp``
renders them into the standard JSON envelope.
"""


class OrderServiceError(Exception):
    status_code = 500

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class InvalidRequest(OrderServiceError):
    """Rejected input or an illegal state change. Never retried automatically."""
    status_code = 400


class NotFound(InvalidRequest):
    status_code = 404


class ProductNotFound(NotFound):
    def __init__(self, product_id):
        super().__init__(f"Product {product_id} is not available")
        self.product_id = product_id


class Unauthorized(OrderServiceError):
    """Actor lacks rights over the target record."""
    status_code = 403


class TransientFailure(OrderServiceError):
    """Storage or dependency unavailable. Retry the whole request."""
    status_code = 503


class DuplicateEvent(OrderServiceError):
    """Reconciliation event already applied. Answered with an ack."""
    status_code = 200


class EventRejected(OrderServiceError):
    status_code = 400


__all__ = [
    "OrderServiceError",
    "InvalidRequest",
    "NotFound",
    "ProductNotFound",
    "Unauthorized",
    "TransientFailure",
    "DuplicateEvent",
    "EventRejected",
]
