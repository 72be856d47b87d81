"""
Errors raised by the order lifecycle services.

Views translate these into HTTP responses; none of them are retried.
"""


class OrderLifecycleError(Exception):
    """Base class for order lifecycle errors."""

    code = "order_error"

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self):
        data = {"error": self.message, "code": self.code}
        data.update({key: value for key, value in self.context.items() if value is not None})
        return data


class InvalidTransition(OrderLifecycleError, ValueError):
    """The requested status is not reachable from the order's current status."""

    code = "invalid_transition"

    def __init__(self, message, order_id=None, current_status=None, target_status=None):
        super().__init__(
            message,
            order_id=order_id,
            current_status=current_status,
            target_status=target_status,
        )
        self.order_id = order_id
        self.current_status = current_status
        self.target_status = target_status


class StaleOrderState(InvalidTransition):
    """The caller's expected status no longer matches the stored one (another writer got there first)."""

    code = "stale_order_state"


class CancellationNoteRequired(OrderLifecycleError, ValueError):
    code = "cancellation_note_required"


class OrderNotFound(OrderLifecycleError, LookupError):
    code = "not_found"

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} does not exist.", order_id=order_id)
        self.order_id = order_id


class InvalidOrderRequest(OrderLifecycleError, ValueError):
    """Order creation input was rejected (empty cart, inactive product, ...)."""

    code = "invalid_order"


class OrderDeletionNotAllowed(OrderLifecycleError):
    code = "deletion_not_allowed"


class PartialGroupFailure(OrderLifecycleError):
    """Some orders of a grouped transition failed while others were applied."""

    code = "partial_group_failure"

    def __init__(self, result):
        super().__init__(
            f"{len(result.failed)} of {result.total} orders could not be updated."
        )
        self.result = result

    def to_dict(self):
        data = super().to_dict()
        data.update(self.result.to_dict())
        return data
