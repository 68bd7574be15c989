"""
Error taxonomy for the order engine.

Services raise these; the API layer maps them to responses in
core_backend.exceptions.api_exception_handler.
"""


class OrderError(Exception):
    """Base class for every error raised by the order engine."""

    default_message = "Order operation failed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OrderError):
    """Input rejected before anything was written."""

    default_message = "Invalid order data."

    def __init__(self, message=None, detail=None):
        super().__init__(message)
        self.detail = detail or {}


class NotFoundError(OrderError):
    default_message = "Resource not found."


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id=None):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found." if order_id else "Order not found.")


class CafeNotFoundError(NotFoundError):
    def __init__(self, cafe_id=None):
        self.cafe_id = cafe_id
        super().__init__(f"Cafe {cafe_id} not found." if cafe_id else "Cafe not found.")


class InvalidTransitionError(OrderError):
    """The requested status is not reachable from the order's current status."""

    def __init__(self, current_status, requested_status):
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Cannot transition order from {current_status} to {requested_status}."
        )


class AccessDeniedError(OrderError):
    default_message = "You do not have access to this resource."


class StoreError(OrderError):
    """The data store failed or timed out. The surrounding transaction was rolled back."""

    default_message = "Order store operation failed."

    def __init__(self, message=None, operation=None):
        super().__init__(message)
        self.operation = operation


class PublishError(OrderError):
    """A realtime event could not be handed to the channel layer."""

    def __init__(self, topic, event, message=None):
        self.topic = topic
        self.event = event
        super().__init__(message or f"Failed to publish {event} to {topic}.")
