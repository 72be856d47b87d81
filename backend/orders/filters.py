import django_filters

from .models import Order


class OrderFilter(django_filters.FilterSet):
    """
    Order history filters.

    date_from/date_to match the branch-local business day, not the UTC
    timestamp, so "today" means the same thing as on the kitchen display.
    """

    status = django_filters.MultipleChoiceFilter(choices=Order.OrderStatus.choices)
    order_type = django_filters.ChoiceFilter(choices=Order.OrderType.choices)
    date_from = django_filters.DateFilter(field_name="business_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="business_date", lookup_expr="lte")
    staff = django_filters.NumberFilter(field_name="user_id")
    table = django_filters.NumberFilter(field_name="table_id")

    class Meta:
        model = Order
        fields = ["branch", "status", "order_type", "date_from", "date_to", "staff", "table"]
