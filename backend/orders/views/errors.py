from rest_framework import status
from rest_framework.response import Response

from orders.exceptions import (
    CancellationNoteRequired,
    InvalidOrderRequest,
    InvalidTransition,
    OrderNotFound,
    StaleOrderState,
)

# Checked in order, so subclasses come before their parents
ERROR_STATUS_CODES = (
    (StaleOrderState, status.HTTP_409_CONFLICT),
    (InvalidTransition, status.HTTP_400_BAD_REQUEST),
    (OrderNotFound, status.HTTP_404_NOT_FOUND),
    (CancellationNoteRequired, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidOrderRequest, status.HTTP_400_BAD_REQUEST),
)


def status_code_for(error) -> int:
    for error_class, code in ERROR_STATUS_CODES:
        if isinstance(error, error_class):
            return code
    return status.HTTP_400_BAD_REQUEST


def lifecycle_error_response(error) -> Response:
    """Response for an OrderLifecycleError raised by the order services."""
    return Response(error.to_dict(), status=status_code_for(error))
