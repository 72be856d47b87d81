import logging

from rest_framework import mixins, status, viewsets
from rest_framework.request import Request
from rest_framework.response import Response

from branches.models import Branch, DeliveryPartner, RestaurantTable
from orders.exceptions import InvalidOrderRequest, OrderLifecycleError
from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import OrderCreateSerializer, OrderDetailSerializer, OrderSerializer
from orders.services import OrderService

from .errors import lifecycle_error_response
from .kitchen_actions import KitchenActionsMixin
from .status_actions import StatusActionsMixin

logger = logging.getLogger(__name__)


class OrderViewSet(
    StatusActionsMixin,
    KitchenActionsMixin,
    mixins.CreateModelMixin,
    viewsets.ReadOnlyModelViewSet,
):
    """
    Staff order API.

    - Order history list and detail (ReadOnlyModelViewSet)
    - POS order creation
    - Status transitions (StatusActionsMixin)
    - Kitchen display, live monitor and statistics (KitchenActionsMixin)

    Orders are never updated or deleted through generic endpoints.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        queryset = Order.objects.with_relations()
        if self.action == "retrieve":
            queryset = queryset.prefetch_related("histories__user")
        return queryset

    def get_serializer_class(self):
        if self.action == "retrieve":
            return OrderDetailSerializer
        if self.action == "create":
            return OrderCreateSerializer
        return OrderSerializer

    @staticmethod
    def _resolve(model, pk, branch, label):
        if pk is None:
            return None
        instance = model.objects.filter(pk=pk, branch=branch, is_active=True).first()
        if instance is None:
            raise InvalidOrderRequest(f"{label} {pk} is not available at branch {branch.pk}.")
        return instance

    def create(self, request: Request, *args, **kwargs) -> Response:
        """Places a POS order. Prices come from the catalogue, never from the request."""
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            branch = Branch.objects.filter(pk=data["branch"], is_active=True).first()
            if branch is None:
                raise InvalidOrderRequest(f"Branch {data['branch']} is not available.")
            order = OrderService.create_order(
                branch=branch,
                items=data["items"],
                order_type=data["order_type"],
                table=self._resolve(RestaurantTable, data.get("table"), branch, "Table"),
                delivery_partner=self._resolve(
                    DeliveryPartner, data.get("delivery_partner"), branch, "Delivery partner"
                ),
                user=request.user,
            )
        except OrderLifecycleError as e:
            return lifecycle_error_response(e)

        order = Order.objects.with_relations().get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)
