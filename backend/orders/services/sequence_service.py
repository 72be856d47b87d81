from datetime import date
import logging

from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from branches.models import Branch
from orders.models import Order

logger = logging.getLogger(__name__)


class DailySequenceService:
    """
    Server-assigned kitchen ticket numbers.

    Each branch gets an independent counter per branch-local calendar day,
    starting from 1. Numbers are allocated inside the order-creation
    transaction while holding a lock on the branch row, so two concurrent
    orders at the same branch never receive the same number.
    """

    @staticmethod
    def business_date_for(branch: Branch, moment=None) -> date:
        """Branch-local calendar day for a moment (defaults to now)."""
        moment = moment or timezone.now()
        return timezone.localtime(moment, branch.tzinfo).date()

    @staticmethod
    def next_sequence(branch: Branch, business_date: date) -> int:
        """
        Returns the next free ticket number for the branch and day.

        Must run inside transaction.atomic; the branch row stays locked until
        the surrounding transaction commits.
        """
        Branch.objects.select_for_update().filter(pk=branch.pk).exists()
        current = (
            Order.objects.filter(branch=branch, business_date=business_date)
            .aggregate(highest=Max("daily_sequence"))["highest"]
        )
        return (current or 0) + 1

    @classmethod
    def assign(cls, order: Order) -> Order:
        """Sets business_date and daily_sequence on an unsaved order."""
        order.business_date = cls.business_date_for(order.branch, order.created_at)
        order.daily_sequence = cls.next_sequence(order.branch, order.business_date)
        return order

    @classmethod
    def total_for_day(cls, branch: Branch, business_date: date = None) -> int:
        """Number of orders placed at the branch on the given day, whatever their status."""
        business_date = business_date or cls.business_date_for(branch)
        return Order.objects.filter(branch=branch, business_date=business_date).count()

    @classmethod
    def backfill(cls, branch: Branch = None) -> int:
        """
        Numbers orders that were created without a ticket number.

        Orders are numbered per branch and day in creation order, continuing
        after the highest number already used that day.
        """
        queryset = Order.objects.filter(daily_sequence__isnull=True).select_related("branch")
        if branch is not None:
            queryset = queryset.filter(branch=branch)

        updated = 0
        for order in queryset.order_by("created_at", "id").iterator():
            with transaction.atomic():
                cls.assign(order)
                Order.objects.filter(pk=order.pk).update(
                    business_date=order.business_date,
                    daily_sequence=order.daily_sequence,
                )
            updated += 1

        logger.info(f"Backfilled daily sequence for {updated} orders")
        return updated
