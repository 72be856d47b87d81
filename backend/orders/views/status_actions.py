import logging

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from orders.exceptions import OrderLifecycleError, PartialGroupFailure
from orders.models import Order
from orders.serializers import (
    BulkOrderStatusSerializer,
    OrderSerializer,
    ReopenOrderSerializer,
    UpdateOrderStatusSerializer,
)
from orders.services import OrderStatusService

from .errors import lifecycle_error_response

logger = logging.getLogger(__name__)


class StatusActionsMixin:
    """
    Mixin for order status transition actions

    This mixin provides action methods for OrderViewSet. All writes go
    through OrderStatusService; errors map to 400/404/409/422.
    """

    @staticmethod
    def _serialize_orders(orders):
        reloaded = Order.objects.with_relations().filter(pk__in=[o.pk for o in orders])
        return OrderSerializer(reloaded, many=True).data

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request: Request, pk=None) -> Response:
        """
        Moves the order to a new status.

        Body: {"status": ..., "note": optional, "expected_status": optional}.
        expected_status makes the write conditional on the status the caller
        last saw; a mismatch returns 409.
        """
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            order = OrderStatusService.transition(
                pk,
                data["status"],
                user=request.user,
                note=data.get("note"),
                expected_status=data.get("expected_status"),
            )
        except OrderLifecycleError as e:
            return lifecycle_error_response(e)

        order = Order.objects.with_relations().get(pk=order.pk)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="reopen")
    def reopen(self, request: Request, pk=None) -> Response:
        """Sends a ready order back to cooking."""
        serializer = ReopenOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderStatusService.reopen(
                pk, user=request.user, note=serializer.validated_data.get("note")
            )
        except OrderLifecycleError as e:
            return lifecycle_error_response(e)

        order = Order.objects.with_relations().get(pk=order.pk)
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["post"], url_path="bulk-status")
    def bulk_status(self, request: Request) -> Response:
        """
        Applies one status to several orders (a grouped kitchen ticket).

        Returns:
        - 200: every order was updated
        - 207: some orders were updated, the rest are listed under "failed"
        - 400: no order was updated
        """
        serializer = BulkOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = OrderStatusService.transition_group(
            data["order_ids"], data["status"], user=request.user, note=data.get("note")
        )

        try:
            body = result.raise_for_failures().to_dict()
            response_status = status.HTTP_200_OK
        except PartialGroupFailure as e:
            body = e.to_dict()
            response_status = (
                status.HTTP_207_MULTI_STATUS if result.is_partial else status.HTTP_400_BAD_REQUEST
            )

        body["orders"] = self._serialize_orders(result.succeeded)
        return Response(body, status=response_status)
