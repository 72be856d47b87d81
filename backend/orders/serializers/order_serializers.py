from django.contrib.auth import get_user_model
from rest_framework import serializers

from branches.models import DeliveryPartner, RestaurantTable
from orders.models import Order, OrderHistory

from .order_item_serializers import OrderItemInputSerializer, OrderItemSerializer

User = get_user_model()


class OrderTableSerializer(serializers.ModelSerializer):
    class Meta:
        model = RestaurantTable
        fields = ["id", "table_number"]


class OrderDeliveryPartnerSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryPartner
        fields = ["id", "name"]


class OrderUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username"]


class OrderSerializer(serializers.ModelSerializer):
    """
    Full order representation shared by the REST API and the broadcast
    payloads, so subscribers never need a follow-up fetch.

    Expects the queryset to come from Order.objects.with_relations().
    """

    items = OrderItemSerializer(many=True, read_only=True)
    table = OrderTableSerializer(read_only=True)
    delivery_partner = OrderDeliveryPartnerSerializer(read_only=True)
    user = OrderUserSerializer(read_only=True)
    updated_by = OrderUserSerializer(read_only=True)
    ticket_label = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "branch",
            "order_type",
            "status",
            "subtotal",
            "discount_amount",
            "total",
            "business_date",
            "daily_sequence",
            "version",
            "ticket_label",
            "table",
            "delivery_partner",
            "user",
            "updated_by",
            "items",
            "created_at",
            "updated_at",
            "paid_at",
            "cooking_started_at",
            "ready_at",
            "actual_prep_duration",
        ]
        read_only_fields = fields


class OrderHistorySerializer(serializers.ModelSerializer):
    user = OrderUserSerializer(read_only=True)

    class Meta:
        model = OrderHistory
        fields = ["id", "user", "from_status", "to_status", "note", "created_at"]


class OrderDetailSerializer(OrderSerializer):
    histories = OrderHistorySerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["histories"]
        read_only_fields = fields


class OrderCreateSerializer(serializers.Serializer):
    """POS order input. Pricing is always computed server-side."""

    branch = serializers.IntegerField()
    order_type = serializers.ChoiceField(
        choices=Order.OrderType.choices, default=Order.OrderType.WALK_IN
    )
    table = serializers.IntegerField(required=False, allow_null=True, default=None)
    delivery_partner = serializers.IntegerField(required=False, allow_null=True, default=None)
    items = OrderItemInputSerializer(many=True, allow_empty=False)


class QROrderCreateSerializer(serializers.Serializer):
    items = OrderItemInputSerializer(many=True, allow_empty=False)
