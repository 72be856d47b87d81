from datetime import date
import logging

from django.conf import settings
from django.db.models import Avg, Count, Max, Min, Q
from django.db.models.functions import ExtractHour

from branches.models import Branch

from ..models import KITCHEN_ACTIVE_STATUSES, Order
from .sequence_service import DailySequenceService

logger = logging.getLogger(__name__)


class OrderReportService:
    """Read-side queries for the kitchen display, the live monitor and kitchen statistics."""

    @staticmethod
    def kitchen_snapshot(branch: Branch, business_date: date = None) -> dict:
        """
        Orders the kitchen still has to act on, oldest first, plus the
        day's total order count used to seed ticket numbering.
        """
        business_date = business_date or DailySequenceService.business_date_for(branch)
        orders = (
            Order.objects.for_business_day(branch, business_date)
            .filter(status__in=KITCHEN_ACTIVE_STATUSES)
            .order_by("created_at", "id")
        )
        return {
            "orders": list(orders),
            "total_count": DailySequenceService.total_for_day(branch, business_date),
        }

    @staticmethod
    def live_snapshot(branch: Branch, business_date: date = None) -> dict:
        """Every order of the day, whatever its status, oldest first."""
        business_date = business_date or DailySequenceService.business_date_for(branch)
        orders = Order.objects.for_business_day(branch, business_date).order_by("created_at", "id")
        orders = list(orders)
        return {"orders": orders, "total_count": len(orders)}

    @staticmethod
    def kitchen_stats(branch: Branch, date_from: date = None, date_to: date = None) -> dict:
        """Preparation time statistics over orders that reached ready."""
        efficient_minutes = getattr(settings, "KITCHEN_EFFICIENT_PREP_MINUTES", 15)
        queryset = Order.objects.filter(branch=branch, actual_prep_duration__isnull=False)
        if date_from:
            queryset = queryset.filter(business_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(business_date__lte=date_to)

        stats = queryset.aggregate(
            total_orders=Count("id"),
            avg_prep_time=Avg("actual_prep_duration"),
            fastest_order=Min("actual_prep_duration"),
            slowest_order=Max("actual_prep_duration"),
            efficient_orders=Count("id", filter=Q(actual_prep_duration__lte=efficient_minutes)),
        )
        return {
            "totalOrders": stats["total_orders"] or 0,
            "avgPrepTime": round(stats["avg_prep_time"] or 0),
            "fastestOrder": stats["fastest_order"] or 0,
            "slowestOrder": stats["slowest_order"] or 0,
            "efficientOrders": stats["efficient_orders"] or 0,
        }

    @staticmethod
    def shift_stats(branch: Branch, business_date: date = None) -> dict:
        """Order volume and prep time for one business day, bucketed by branch-local hour."""
        business_date = business_date or DailySequenceService.business_date_for(branch)
        day_orders = Order.objects.filter(branch=branch, business_date=business_date)

        avg_prep = day_orders.filter(actual_prep_duration__isnull=False).aggregate(
            avg=Avg("actual_prep_duration")
        )["avg"]

        hourly = list(
            day_orders.annotate(hour=ExtractHour("created_at", tzinfo=branch.tzinfo))
            .values("hour")
            .annotate(count=Count("id"))
            .order_by("hour")
        )
        busiest = max(hourly, key=lambda row: (row["count"], -row["hour"]), default=None)

        return {
            "business_date": business_date.isoformat(),
            "total_orders": day_orders.count(),
            "avg_prep_time": round(avg_prep or 0, 1),
            "busiest_hour": f"{busiest['hour']}:00" if busiest else "N/A",
            "hourly_data": hourly,
        }
