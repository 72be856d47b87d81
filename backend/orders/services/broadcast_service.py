from typing import Any, Dict
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


class OrderBroadcastService:
    """
    Publish/subscribe transport for order events, backed by the channel layer.

    Channels are channel-layer groups named ``branch.<id>`` and
    ``order.<id>``. Delivery is best effort: a failed publish is logged and
    dropped, and subscribers reconcile by refetching.
    """

    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    @staticmethod
    def branch_channel(branch_id) -> str:
        return f"branch.{branch_id}"

    @staticmethod
    def order_channel(order_id) -> str:
        return f"order.{order_id}"

    def publish(self, channel_name: str, event_name: str, payload: Dict[str, Any]) -> bool:
        """Send an event to every subscriber of a channel. Returns False when nothing was sent."""
        layer = self.channel_layer
        if not layer:
            logger.warning(f"No channel layer available, dropping {event_name} for {channel_name}")
            return False

        try:
            logger.debug(f"Publishing {event_name} to {channel_name}")
            async_to_sync(layer.group_send)(
                channel_name,
                {
                    "type": event_name,
                    "event": event_name,
                    "payload": payload,
                },
            )
            return True
        except Exception as e:
            logger.error(f"Error publishing {event_name} to {channel_name}: {e}")
            return False


# Global instance for easy access
broadcast_service = OrderBroadcastService()
