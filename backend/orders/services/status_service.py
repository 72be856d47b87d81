import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from ..events.publishers import OrderEventPublisher
from ..exceptions import (
    CancellationNoteRequired,
    InvalidTransition,
    OrderLifecycleError,
    OrderNotFound,
    PartialGroupFailure,
    StaleOrderState,
)
from ..models import ORDER_STATUS_FLOW, TERMINAL_STATUSES, Order, OrderHistory

logger = logging.getLogger(__name__)


@dataclass
class GroupTransitionResult:
    """Outcome of applying one status change to several orders."""

    target_status: str
    succeeded: list = field(default_factory=list)
    failed: dict = field(default_factory=dict)

    @property
    def total(self):
        return len(self.succeeded) + len(self.failed)

    @property
    def all_succeeded(self):
        return not self.failed

    @property
    def is_partial(self):
        return bool(self.succeeded) and bool(self.failed)

    def to_dict(self):
        return {
            "status": self.target_status,
            "total": self.total,
            "succeeded": [order.pk for order in self.succeeded],
            "failed": [
                {"order_id": order_id, "error": str(error), "code": getattr(error, "code", "error")}
                for order_id, error in self.failed.items()
            ],
            "is_partial": self.is_partial,
        }

    def raise_for_failures(self):
        if self.failed:
            raise PartialGroupFailure(self)
        return self


class OrderStatusService:
    """
    Single writer of Order.status.

    Every change goes through transition() or reopen(), which lock the row,
    validate the move, stamp the kitchen timestamps, write an OrderHistory
    row and publish order.updated once the transaction commits.
    """

    REOPEN_FROM = Order.OrderStatus.READY.value
    REOPEN_TO = Order.OrderStatus.COOKING.value

    @staticmethod
    def allowed_targets(current_status):
        """Statuses reachable from current_status in one transition."""
        if current_status in TERMINAL_STATUSES or current_status not in ORDER_STATUS_FLOW:
            return []
        position = ORDER_STATUS_FLOW.index(current_status)
        return ORDER_STATUS_FLOW[position + 1:] + [Order.OrderStatus.CANCELLED.value]

    @classmethod
    def can_transition(cls, current_status, target_status):
        return target_status in cls.allowed_targets(current_status)

    @staticmethod
    def calculate_prep_duration(start, end):
        """Whole minutes between start and end, rounded half up, never below 1."""
        seconds = Decimal(str((end - start).total_seconds()))
        minutes = (seconds / Decimal(60)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return max(1, int(minutes))

    @staticmethod
    def _lock_order(order_id):
        try:
            return Order.objects.select_for_update().select_related("branch").get(pk=order_id)
        except Order.DoesNotExist:
            raise OrderNotFound(order_id)

    @staticmethod
    def _record(order, from_status, user, note):
        order.version += 1
        order.updated_by = user
        order.save()
        OrderHistory.objects.create(
            order=order,
            user=user,
            from_status=from_status,
            to_status=order.status,
            note=(note or "").strip() or f"Status changed to {order.status}",
        )

    @classmethod
    def transition(cls, order_id, target_status, user=None, note=None, expected_status=None):
        """
        Move an order to target_status.

        Raises OrderNotFound, InvalidTransition, StaleOrderState (when
        expected_status no longer matches) or CancellationNoteRequired.
        """
        order_id = getattr(order_id, "pk", order_id)
        with transaction.atomic():
            order = cls._lock_order(order_id)
            current = order.status

            if expected_status is not None and expected_status != current:
                logger.warning(
                    f"Stale status change for order {order_id}: expected {expected_status}, found {current}"
                )
                raise StaleOrderState(
                    f"Order {order_id} is '{current}', not '{expected_status}'.",
                    order_id=order_id,
                    current_status=current,
                    target_status=target_status,
                )

            if not cls.can_transition(current, target_status):
                logger.warning(f"Rejected transition for order {order_id}: {current} -> {target_status}")
                raise InvalidTransition(
                    f"Cannot transition order from '{current}' to '{target_status}'.",
                    order_id=order_id,
                    current_status=current,
                    target_status=target_status,
                )

            if (
                target_status == Order.OrderStatus.CANCELLED
                and order.branch.requires_cancel_note
                and not (note or "").strip()
            ):
                raise CancellationNoteRequired(
                    "A note is required to cancel orders at this branch.",
                    order_id=order_id,
                )

            now = timezone.now()
            order.status = target_status
            if target_status == Order.OrderStatus.COOKING and order.cooking_started_at is None:
                order.cooking_started_at = now
            elif target_status == Order.OrderStatus.READY:
                order.ready_at = now
                order.actual_prep_duration = cls.calculate_prep_duration(
                    order.cooking_started_at or order.created_at, now
                )
            elif target_status == Order.OrderStatus.PAID and order.paid_at is None:
                order.paid_at = now

            cls._record(order, current, user, note)
            logger.info(f"Order {order_id} transitioned {current} -> {target_status} (version {order.version})")

            OrderEventPublisher.order_updated(order)

        return order

    @classmethod
    def reopen(cls, order_id, user=None, note=None):
        """Send a ready ticket back to the kitchen."""
        order_id = getattr(order_id, "pk", order_id)
        with transaction.atomic():
            order = cls._lock_order(order_id)
            current = order.status
            if current != cls.REOPEN_FROM:
                logger.warning(f"Rejected reopen for order {order_id}: status is {current}")
                raise InvalidTransition(
                    f"Only '{cls.REOPEN_FROM}' orders can be reopened; order is '{current}'.",
                    order_id=order_id,
                    current_status=current,
                    target_status=cls.REOPEN_TO,
                )

            order.status = cls.REOPEN_TO
            order.ready_at = None
            order.actual_prep_duration = None
            cls._record(order, current, user, note)
            logger.info(f"Order {order_id} reopened {current} -> {cls.REOPEN_TO}")

            OrderEventPublisher.order_updated(order)

        return order

    @classmethod
    def transition_group(cls, order_ids, target_status, user=None, note=None):
        """
        Apply the same transition to every order id, each in its own transaction.

        Failures are collected rather than raised; call raise_for_failures()
        on the result to turn them into a PartialGroupFailure.
        """
        result = GroupTransitionResult(target_status=target_status)
        for order_id in dict.fromkeys(order_ids):
            try:
                result.succeeded.append(
                    cls.transition(order_id, target_status, user=user, note=note)
                )
            except OrderLifecycleError as e:
                result.failed[order_id] = e

        if result.failed:
            logger.warning(
                f"Group transition to {target_status}: {len(result.failed)} of {result.total} failed"
            )
        return result
