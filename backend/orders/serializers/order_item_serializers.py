from rest_framework import serializers

from orders.models import OrderItem
from products.models import Product


class OrderItemProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name"]


class OrderItemSerializer(serializers.ModelSerializer):
    product = OrderItemProductSerializer(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    line_subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "product_name",
            "quantity",
            "base_price",
            "modifier_total_price",
            "item_discount_amount",
            "price",
            "line_subtotal",
            "selected_modifiers",
            "remark",
        ]
        read_only_fields = fields


class OrderItemInputSerializer(serializers.Serializer):
    """One cart line as submitted by the POS or the QR menu."""

    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    selected_modifiers = serializers.ListField(
        child=serializers.IntegerField(), required=False, default=list
    )
    size_name = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    remark = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
