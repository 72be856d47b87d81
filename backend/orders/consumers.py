from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
import json
import logging

from .models import Order
from .services.broadcast_service import OrderBroadcastService

logger = logging.getLogger(__name__)


class BranchOrdersConsumer(AsyncWebsocketConsumer):
    """
    Admin live monitor feed for one branch.

    Forwards order.created and order.updated unchanged as
    {"event": <name>, "data": <payload>}.
    """

    async def connect(self):
        self.branch_id = self.scope["url_route"]["kwargs"]["branch_id"]
        self.group_name = OrderBroadcastService.branch_channel(self.branch_id)

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.info(f"Branch orders WebSocket connected: branch={self.branch_id}")

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
        logger.info(f"Branch orders WebSocket disconnected: code={close_code}")

    async def forward(self, event):
        await self.send(text_data=json.dumps({"event": event["event"], "data": event["payload"]}))

    async def order_created(self, event):
        await self.forward(event)

    async def order_updated(self, event):
        await self.forward(event)


class OrderStatusConsumer(AsyncWebsocketConsumer):
    """Customer order tracking page: the current status on connect, then every change."""

    async def connect(self):
        self.order_id = self.scope["url_route"]["kwargs"]["order_id"]

        current_status = await self.get_current_status()
        if current_status is None:
            logger.warning(f"OrderStatusConsumer: Order {self.order_id} does not exist. Closing connection.")
            await self.close()
            return

        self.group_name = OrderBroadcastService.order_channel(self.order_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

        await self.send(
            text_data=json.dumps(
                {
                    "event": "order.status",
                    "data": {"order_id": int(self.order_id), "status": current_status},
                }
            )
        )

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    @database_sync_to_async
    def get_current_status(self):
        return Order.objects.filter(pk=self.order_id).values_list("status", flat=True).first()

    async def order_updated(self, event):
        await self.send(text_data=json.dumps({"event": event["event"], "data": event["payload"]}))
