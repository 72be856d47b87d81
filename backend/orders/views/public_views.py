import logging

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from branches.models import RestaurantTable
from orders.exceptions import OrderLifecycleError
from orders.models import Order
from orders.serializers import OrderSerializer, QROrderCreateSerializer
from orders.services import OrderService

from .errors import lifecycle_error_response

logger = logging.getLogger(__name__)


class QRMenuOrderView(APIView):
    """Guest order placed from a table's QR code. No login; the token identifies the table."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request: Request, qr_token: str) -> Response:
        serializer = QROrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderService.place_qr_order(qr_token, serializer.validated_data["items"])
        except RestaurantTable.DoesNotExist:
            logger.warning(f"QR order for unknown or inactive table token {qr_token[:6]}...")
            return Response(
                {"error": "Table not found.", "code": "not_found"},
                status=status.HTTP_404_NOT_FOUND,
            )
        except OrderLifecycleError as e:
            return lifecycle_error_response(e)

        order = Order.objects.with_relations().get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class PublicOrderStatusView(APIView):
    """Current status of one order, polled by the customer page before its websocket connects."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request: Request, pk: int) -> Response:
        order = Order.objects.filter(pk=pk).values("id", "status").first()
        if order is None:
            return Response(
                {"error": f"Order {pk} does not exist.", "code": "not_found"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(order)
