from rest_framework import serializers

from orders.models import Order


class UpdateOrderStatusSerializer(serializers.Serializer):
    """
    Serializer specifically for validating a requested status change.

    Reachability is checked by OrderStatusService, not here, so the caller
    gets the same InvalidTransition error from every entry point.
    """

    status = serializers.ChoiceField(choices=Order.OrderStatus.choices)
    note = serializers.CharField(required=False, allow_blank=True, default="")
    expected_status = serializers.ChoiceField(
        choices=Order.OrderStatus.choices, required=False, allow_null=True, default=None
    )


class ReopenOrderSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, default="")


class BulkOrderStatusSerializer(serializers.Serializer):
    order_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    status = serializers.ChoiceField(choices=Order.OrderStatus.choices)
    note = serializers.CharField(required=False, allow_blank=True, default="")
