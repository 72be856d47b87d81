import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction

from ..models import Order
from ..serializers import OrderSerializer

logger = logging.getLogger(__name__)

ORDER_CREATED = "order.created"
ORDER_UPDATED = "order.updated"


class OrderEventPublisher:
    """Centralized event publishing for order lifecycle events"""

    @staticmethod
    def serialize_order(order: Order) -> dict:
        """Full order payload as plain JSON types, safe for any channel layer backend"""
        data = OrderSerializer(order).data
        return json.loads(json.dumps(data, cls=DjangoJSONEncoder))

    @classmethod
    def build_created_payload(cls, order: Order) -> dict:
        return {"order": cls.serialize_order(order)}

    @classmethod
    def build_updated_payload(cls, order: Order) -> dict:
        # id and status are repeated at the top level for thin subscribers
        return {
            "order": cls.serialize_order(order),
            "order_id": order.pk,
            "status": order.status,
        }

    @staticmethod
    def _after_commit(callback):
        """Run the callback once the surrounding transaction commits, or right away outside one"""
        if transaction.get_connection().in_atomic_block:
            transaction.on_commit(callback)
        else:
            callback()

    @staticmethod
    def _reload(order: Order) -> Order:
        return Order.objects.with_relations().get(pk=order.pk)

    @classmethod
    def order_created(cls, order: Order):
        """Publish order created event on the branch channel"""
        try:
            logger.info(f"Publishing {ORDER_CREATED} for order {order.pk} (branch {order.branch_id})")
            # Payload is captured while the caller still holds the row
            payload = cls.build_created_payload(cls._reload(order))
            cls._after_commit(lambda: cls._send_order_created(order.pk, order.branch_id, payload))
        except Exception as e:
            logger.error(f"Error publishing {ORDER_CREATED} event: {e}")

    @classmethod
    def order_updated(cls, order: Order):
        """Publish order updated event on the order channel and the branch channel"""
        try:
            logger.info(f"Publishing {ORDER_UPDATED} for order {order.pk}: {order.status}")
            payload = cls.build_updated_payload(cls._reload(order))
            cls._after_commit(lambda: cls._send_order_updated(order.pk, order.branch_id, payload))
        except Exception as e:
            logger.error(f"Error publishing {ORDER_UPDATED} event: {e}")

    @staticmethod
    def _send_order_created(order_id, branch_id, payload):
        from ..services.broadcast_service import broadcast_service

        try:
            broadcast_service.publish(broadcast_service.branch_channel(branch_id), ORDER_CREATED, payload)
        except Exception as e:
            logger.error(f"Error sending {ORDER_CREATED} for order {order_id}: {e}")

    @staticmethod
    def _send_order_updated(order_id, branch_id, payload):
        from ..services.broadcast_service import broadcast_service

        try:
            broadcast_service.publish(broadcast_service.order_channel(order_id), ORDER_UPDATED, payload)
            broadcast_service.publish(broadcast_service.branch_channel(branch_id), ORDER_UPDATED, payload)
        except Exception as e:
            logger.error(f"Error sending {ORDER_UPDATED} for order {order_id}: {e}")
