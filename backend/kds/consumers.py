from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
import json
import logging

from branches.models import Branch
from orders.events.publishers import OrderEventPublisher
from orders.exceptions import OrderLifecycleError
from orders.services import OrderReportService, OrderStatusService
from orders.services.broadcast_service import OrderBroadcastService

from .board import KitchenBoard

logger = logging.getLogger(__name__)


class KitchenDisplayConsumer(AsyncWebsocketConsumer):
    """
    WebSocket session for one kitchen display.

    Holds a KitchenBoard seeded from the kitchen snapshot and keeps it in
    step with the branch's order broadcasts. Status changes requested by the
    display go through OrderStatusService; the display learns about the
    result from the broadcast like every other subscriber.
    """

    board_class = KitchenBoard

    async def connect(self):
        """Handle WebSocket connection"""
        self.branch_id = int(self.scope["url_route"]["kwargs"]["branch_id"])
        self.grouping = False
        self.board = self.board_class()

        try:
            snapshot = await self.fetch_snapshot()
        except Branch.DoesNotExist:
            logger.warning(f"KDS WebSocket rejected: branch {self.branch_id} does not exist")
            await self.close()
            return

        self.group_name = OrderBroadcastService.branch_channel(self.branch_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

        self.board.load_snapshot(snapshot["orders"], snapshot["total_count"])
        await self.send_snapshot()
        logger.info(f"KDS WebSocket connected: branch={self.branch_id}, tickets={len(self.board)}")

    async def disconnect(self, close_code):
        """Handle WebSocket disconnection"""
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
        logger.info(f"KDS WebSocket disconnected: branch={self.branch_id}, code={close_code}")

    async def receive(self, text_data):
        """Handle messages from WebSocket"""
        try:
            data = json.loads(text_data)
            if not isinstance(data, dict):
                await self.send_error("Message must be a JSON object")
                return
            action = data.get("action")

            logger.debug(f"Received KDS action: {action} for branch {self.branch_id}")

            if action == "update_status":
                await self.handle_update_status(data)
            elif action == "refresh":
                await self.handle_refresh()
            elif action == "set_grouping":
                self.grouping = bool(data.get("enabled"))
                await self.send_snapshot()
            elif action == "ping":
                await self.send_json({"type": "pong"})
            else:
                await self.send_error(f"Unknown action: {action}")

        except json.JSONDecodeError:
            await self.send_error("Invalid JSON format")
        except Exception as e:
            logger.error(f"Error processing KDS message for branch {self.branch_id}: {e}")
            await self.send_error(f"Error processing request: {e}")

    @database_sync_to_async
    def fetch_snapshot(self):
        branch = Branch.objects.get(pk=self.branch_id)
        snapshot = OrderReportService.kitchen_snapshot(branch)
        return {
            "orders": [OrderEventPublisher.serialize_order(order) for order in snapshot["orders"]],
            "total_count": snapshot["total_count"],
        }

    async def handle_refresh(self):
        snapshot = await self.fetch_snapshot()
        self.board.load_snapshot(snapshot["orders"], snapshot["total_count"])
        await self.send_snapshot()

    async def handle_update_status(self, data):
        """
        Status change for a single ticket ({"order_id"}) or a grouped ticket
        ({"order_ids"}). Each order succeeds or fails on its own.
        """
        target_status = data.get("status")
        requested = data.get("order_ids") or ([data["order_id"]] if data.get("order_id") else [])
        if not isinstance(requested, list):
            requested = [requested]

        if not requested or not target_status:
            await self.send_error("Missing order_id(s) or status")
            return

        results = []
        order_ids = []
        for value in requested:
            order_id = self._parse_order_id(value)
            if order_id is None:
                results.append(
                    {"order_id": value, "ok": False, "error": f"Invalid order id: {value!r}", "code": "invalid_order_id"}
                )
            else:
                order_ids.append(order_id)

        if len(requested) == 1 and order_ids:
            results += await self._transition_one(
                order_ids[0], target_status, data.get("note"), data.get("expected_status")
            )
        elif order_ids:
            results += await self._transition_group(order_ids, target_status, data.get("note"))

        failed = [result for result in results if not result["ok"]]
        await self.send_json(
            {
                "type": "status_result",
                "status": target_status,
                "results": results,
                "all_succeeded": not failed,
                "is_partial": bool(failed) and len(failed) < len(results),
            }
        )

    @staticmethod
    def _parse_order_id(value):
        """Order ids arrive as ints or digit strings; anything else is rejected."""
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        return None

    def _staff_user(self):
        user = self.scope.get("user")
        return user if user is not None and user.is_authenticated else None

    @database_sync_to_async
    def _transition_one(self, order_id, target_status, note, expected_status):
        try:
            OrderStatusService.transition(
                order_id,
                target_status,
                user=self._staff_user(),
                note=note,
                expected_status=expected_status,
            )
        except OrderLifecycleError as e:
            return [{"order_id": order_id, "ok": False, "error": e.message, "code": e.code}]
        return [{"order_id": order_id, "ok": True}]

    @database_sync_to_async
    def _transition_group(self, order_ids, target_status, note):
        result = OrderStatusService.transition_group(
            order_ids, target_status, user=self._staff_user(), note=note
        )
        results = [{"order_id": order.pk, "ok": True} for order in result.succeeded]
        results.extend(
            {"order_id": order_id, "ok": False, "error": error.message, "code": error.code}
            for order_id, error in result.failed.items()
        )
        return results

    # Channel layer events

    async def order_created(self, event):
        change = self.board.apply_created(event["payload"]["order"])
        if change is not None:
            await self.send_change(change)

    async def order_updated(self, event):
        change = self.board.apply_updated(event["payload"]["order"])
        if change is not None:
            await self.send_change(change)

    # Outgoing messages

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content))

    async def send_error(self, message):
        await self.send_json({"type": "error", "message": message})

    def _groups(self):
        return [group.to_dict() for group in self.board.grouped()]

    async def send_snapshot(self):
        message = {
            "type": "snapshot",
            "orders": self.board.orders(),
            "total_count": self.board.sequence.running_count,
            "grouping": self.grouping,
        }
        if self.grouping:
            message["groups"] = self._groups()
        await self.send_json(message)

    async def send_change(self, change):
        message = {"type": f"ticket_{change.kind}", "ticket": change.ticket}
        if self.grouping:
            message["groups"] = self._groups()
        await self.send_json(message)
