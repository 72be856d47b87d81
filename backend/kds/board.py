"""
In-memory kitchen display state for one websocket session.

A board starts from an authoritative snapshot (the kitchen or live monitor
fetch) and then folds in order.created / order.updated broadcasts. Delivery
is best effort, so the board tolerates duplicates and updates for orders it
has never seen; a refresh simply reloads the snapshot.

Orders are handled in their broadcast form: the dicts produced by
OrderSerializer.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from django.utils.dateparse import parse_datetime

from orders.models import ORDER_STATUS_FLOW, Order

COOKING = Order.OrderStatus.COOKING.value

# Cancelled sorts after every live status, so it only wins when all orders are cancelled
STATUS_RANK = {status: rank for rank, status in enumerate(ORDER_STATUS_FLOW)}
STATUS_RANK[Order.OrderStatus.CANCELLED.value] = len(ORDER_STATUS_FLOW)

KITCHEN_REMOVE_STATUSES = frozenset(
    {
        Order.OrderStatus.READY.value,
        Order.OrderStatus.IN_SERVICE.value,
        Order.OrderStatus.PAID.value,
        Order.OrderStatus.CANCELLED.value,
    }
)

ADDED = "added"
UPDATED = "updated"
REMOVED = "removed"


class DailySequenceAssigner:
    """
    Ticket numbers for one session.

    Seeded with the day's order count; each newly seen order id gets the
    next number and keeps it for the rest of the session. A number carried
    by the order itself (assigned server side) always wins.
    """

    def __init__(self, total_count: int = 0):
        self.reset(total_count)

    def reset(self, total_count: int = 0):
        self.running_count = total_count
        self._assigned = {}

    def __contains__(self, order_id):
        return order_id in self._assigned

    def get(self, order_id) -> Optional[int]:
        return self._assigned.get(order_id)

    def assign(self, order_id, server_sequence: Optional[int] = None) -> int:
        if order_id in self._assigned:
            return self._assigned[order_id]

        if server_sequence is not None:
            sequence = server_sequence
            self.running_count = max(self.running_count, sequence)
        else:
            self.running_count += 1
            sequence = self.running_count

        self._assigned[order_id] = sequence
        return sequence


def group_key(order: dict) -> str:
    """Orders for the same table or delivery partner share a ticket; everything else is POS."""
    table = order.get("table")
    if table:
        return f"Table {table['table_number']}"
    partner = order.get("delivery_partner")
    if partner:
        return partner["name"]
    return "POS"


def group_status(statuses) -> str:
    """
    cooking if any order in the group is cooking, otherwise the least
    advanced status among them.
    """
    statuses = list(statuses)
    if COOKING in statuses:
        return COOKING
    return min(statuses, key=lambda status: STATUS_RANK.get(status, -1))


def _timestamp(value):
    if isinstance(value, str):
        return parse_datetime(value) or value
    return value


@dataclass
class BoardChange:
    kind: str
    ticket: dict


@dataclass
class TicketGroup:
    key: str
    orders: List[dict] = field(default_factory=list)

    @property
    def order_ids(self):
        return [order["id"] for order in self.orders]

    @property
    def daily_sequences(self):
        return [order.get("daily_sequence") for order in self.orders]

    @property
    def items(self):
        return [item for order in self.orders for item in order.get("items", [])]

    @property
    def status(self):
        return group_status(order["status"] for order in self.orders)

    @property
    def created_at(self):
        return min((order.get("created_at") for order in self.orders), key=_timestamp)

    def to_dict(self):
        return {
            "key": self.key,
            "status": self.status,
            "order_ids": self.order_ids,
            "daily_sequences": self.daily_sequences,
            "items": self.items,
            "created_at": self.created_at,
        }


class OrderBoard:
    """Working list of orders, newest first, with session ticket numbers."""

    remove_statuses = frozenset()

    def __init__(self, remove_statuses=None):
        if remove_statuses is not None:
            self.remove_statuses = frozenset(remove_statuses)
        self.sequence = DailySequenceAssigner()
        self._orders = []

    def __len__(self):
        return len(self._orders)

    def __contains__(self, order_id):
        return self._index(order_id) is not None

    def _index(self, order_id):
        for index, order in enumerate(self._orders):
            if order["id"] == order_id:
                return index
        return None

    def _ticket(self, order: dict) -> dict:
        ticket = dict(order)
        ticket["daily_sequence"] = self.sequence.assign(order["id"], order.get("daily_sequence"))
        return ticket

    def load_snapshot(self, orders, total_count: int):
        """Replace the working list with a fresh fetch (oldest first, as the API returns it)."""
        self.sequence.reset(total_count)
        self._orders = []
        for order in orders:
            if order["status"] in self.remove_statuses:
                continue
            self._orders.insert(0, self._ticket(order))

    def apply_created(self, order: dict) -> Optional[BoardChange]:
        """
        Prepend a new order. Returns None for an order this session has already
        seen (duplicate delivery, or a race with the snapshot fetch).
        """
        if order["id"] in self.sequence or order["status"] in self.remove_statuses:
            return None
        ticket = self._ticket(order)
        self._orders.insert(0, ticket)
        return BoardChange(ADDED, ticket)

    def apply_updated(self, order: dict) -> Optional[BoardChange]:
        """
        Replace the order in place, or drop it when its new status takes it
        off this board. Unknown orders that belong on the board are added.
        """
        index = self._index(order["id"])

        if order["status"] in self.remove_statuses:
            if index is None:
                return None
            return BoardChange(REMOVED, self._orders.pop(index))

        ticket = self._ticket(order)
        if index is None:
            self._orders.insert(0, ticket)
            return BoardChange(ADDED, ticket)

        self._orders[index] = ticket
        return BoardChange(UPDATED, ticket)

    def get(self, order_id) -> Optional[dict]:
        index = self._index(order_id)
        return None if index is None else self._orders[index]

    def orders(self, status=None, newest_first=True) -> List[dict]:
        orders = [o for o in self._orders if status is None or o["status"] == status]
        return orders if newest_first else list(reversed(orders))

    def grouped(self) -> List[TicketGroup]:
        """Orders merged by table / delivery partner, in order of each group's newest order."""
        groups = {}
        for order in self._orders:
            key = group_key(order)
            groups.setdefault(key, TicketGroup(key=key)).orders.append(order)
        return list(groups.values())


class KitchenBoard(OrderBoard):
    """Kitchen display: tickets leave the board once they are ready."""

    remove_statuses = KITCHEN_REMOVE_STATUSES


class LiveMonitorBoard(OrderBoard):
    """Admin live monitor: every order of the day stays on the board with its latest status."""
