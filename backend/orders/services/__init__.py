"""
Orders services package.

- OrderService: order creation and price snapshots (POS and QR menu)
- OrderStatusService: the status state machine, the only writer of Order.status
- DailySequenceService: per-branch, per-day kitchen ticket numbers
- OrderReportService: kitchen/live snapshots and kitchen statistics
- OrderBroadcastService: channel-layer transport for order events
"""

from .broadcast_service import OrderBroadcastService, broadcast_service
from .order_service import OrderService
from .report_service import OrderReportService
from .sequence_service import DailySequenceService
from .status_service import GroupTransitionResult, OrderStatusService

__all__ = [
    'OrderService',
    'OrderStatusService',
    'GroupTransitionResult',
    'DailySequenceService',
    'OrderReportService',
    'OrderBroadcastService',
    'broadcast_service',
]
