"""
Orders serializers package - modular serializer layer.
"""

# Order item serializers
from .order_item_serializers import (
    OrderItemInputSerializer,
    OrderItemProductSerializer,
    OrderItemSerializer,
)

# Order serializers
from .order_serializers import (
    OrderCreateSerializer,
    OrderDetailSerializer,
    OrderHistorySerializer,
    OrderSerializer,
    QROrderCreateSerializer,
)

# Status serializers
from .status_serializers import (
    BulkOrderStatusSerializer,
    ReopenOrderSerializer,
    UpdateOrderStatusSerializer,
)

__all__ = [
    # Order items
    'OrderItemInputSerializer',
    'OrderItemProductSerializer',
    'OrderItemSerializer',
    # Orders
    'OrderCreateSerializer',
    'OrderDetailSerializer',
    'OrderHistorySerializer',
    'OrderSerializer',
    'QROrderCreateSerializer',
    # Status
    'BulkOrderStatusSerializer',
    'ReopenOrderSerializer',
    'UpdateOrderStatusSerializer',
]
