from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.request import Request
from rest_framework.response import Response
from django.utils.dateparse import parse_date

from branches.models import Branch
from orders.serializers import OrderSerializer
from orders.services import OrderReportService


class KitchenActionsMixin:
    """
    Mixin for kitchen display, live monitor and kitchen statistics reads.

    Every action takes a required ``branch`` query parameter.
    """

    @staticmethod
    def _get_branch(request: Request) -> Branch:
        branch_id = request.query_params.get("branch")
        if not branch_id:
            raise ValidationError({"branch": "This query parameter is required."})
        try:
            return Branch.objects.get(pk=int(branch_id))
        except (ValueError, Branch.DoesNotExist):
            raise NotFound(f"Branch {branch_id} not found.")

    @staticmethod
    def _get_date(request: Request, name: str):
        value = request.query_params.get(name)
        if not value:
            return None
        parsed = parse_date(value)
        if parsed is None:
            raise ValidationError({name: "Use YYYY-MM-DD."})
        return parsed

    def _snapshot_response(self, snapshot) -> Response:
        return Response(
            {
                "orders": OrderSerializer(snapshot["orders"], many=True).data,
                "total_count": snapshot["total_count"],
            }
        )

    @action(detail=False, methods=["get"], url_path="kitchen")
    def kitchen(self, request: Request) -> Response:
        """Active kitchen orders for a day, oldest first, with the day's total order count."""
        branch = self._get_branch(request)
        snapshot = OrderReportService.kitchen_snapshot(branch, self._get_date(request, "date"))
        return self._snapshot_response(snapshot)

    @action(detail=False, methods=["get"], url_path="live")
    def live(self, request: Request) -> Response:
        branch = self._get_branch(request)
        snapshot = OrderReportService.live_snapshot(branch, self._get_date(request, "date"))
        return self._snapshot_response(snapshot)

    @action(detail=False, methods=["get"], url_path="kitchen-stats")
    def kitchen_stats(self, request: Request) -> Response:
        branch = self._get_branch(request)
        return Response(
            OrderReportService.kitchen_stats(
                branch,
                date_from=self._get_date(request, "date_from"),
                date_to=self._get_date(request, "date_to"),
            )
        )

    @action(detail=False, methods=["get"], url_path="shift-stats")
    def shift_stats(self, request: Request) -> Response:
        branch = self._get_branch(request)
        return Response(OrderReportService.shift_stats(branch, self._get_date(request, "date")))
