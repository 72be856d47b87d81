from django.contrib import admin

from .models import Order, OrderHistory, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("product", "quantity", "price", "item_discount_amount", "remark")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class OrderHistoryInline(admin.TabularInline):
    model = OrderHistory
    extra = 0
    fields = ("created_at", "from_status", "to_status", "user", "note")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-mostly admin for orders. Status changes belong to OrderStatusService,
    so status is not editable here and orders cannot be deleted.
    """

    list_display = (
        "id",
        "daily_sequence",
        "branch",
        "order_type",
        "status",
        "total",
        "business_date",
        "created_at",
    )
    list_filter = ("branch", "status", "order_type", "business_date")
    search_fields = ("id", "table__table_number", "delivery_partner__name")
    date_hierarchy = "created_at"
    readonly_fields = (
        "status",
        "subtotal",
        "discount_amount",
        "total",
        "business_date",
        "daily_sequence",
        "version",
        "created_at",
        "updated_at",
        "paid_at",
        "cooking_started_at",
        "ready_at",
        "actual_prep_duration",
        "updated_by",
    )
    inlines = [OrderItemInline, OrderHistoryInline]

    def has_delete_permission(self, request, obj=None):
        return False
