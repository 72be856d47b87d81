"""
Orders views package - modular view layer with mixins.
"""

from .order_viewset import OrderViewSet
from .public_views import PublicOrderStatusView, QRMenuOrderView

__all__ = [
    'OrderViewSet',
    'PublicOrderStatusView',
    'QRMenuOrderView',
]
