from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from branches.models import Branch, DeliveryPartner, RestaurantTable
from products.models import Product

from .exceptions import OrderDeletionNotAllowed


class OrderManager(models.Manager):
    """Custom manager for orders with the eager-loading used by every read path"""

    def with_relations(self):
        """Orders with items, products, table, delivery partner and staff attached"""
        return self.select_related(
            "branch", "table", "delivery_partner", "user", "updated_by"
        ).prefetch_related("items__product")

    def for_business_day(self, branch, business_date):
        return self.with_relations().filter(branch=branch, business_date=business_date)


class Order(models.Model):
    # --- Status Fields ---
    class OrderStatus(models.TextChoices):
        PENDING = "pending", _("Pending")  # Placed from POS or QR scan
        CONFIRMED = "confirmed", _("Confirmed")  # Accepted by staff
        COOKING = "cooking", _("Cooking")
        READY = "ready", _("Ready")  # Food ready to be served
        IN_SERVICE = "in_service", _("In Service")  # Served, guests eating
        PAID = "paid", _("Paid")  # Bill settled, order closed
        CANCELLED = "cancelled", _("Cancelled")

    class OrderType(models.TextChoices):
        WALK_IN = "walk_in", _("Walk-in")
        DELIVERY = "delivery", _("Delivery")
        QR_SCAN = "qr_scan", _("QR Scan")
        TAKEAWAY = "takeaway", _("Takeaway")

    branch = models.ForeignKey(Branch, on_delete=models.PROTECT, related_name="orders")
    table = models.ForeignKey(
        RestaurantTable,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    delivery_partner = models.ForeignKey(
        DeliveryPartner,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders_placed",
        help_text=_("Staff member who placed the order (POS). Empty for QR orders."),
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders_updated",
        help_text=_("Staff member who last changed the status."),
    )

    order_type = models.CharField(
        max_length=20, choices=OrderType.choices, default=OrderType.WALK_IN
    )
    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING
    )

    # --- Financial Fields ---
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    # --- Kitchen ticket numbering ---
    business_date = models.DateField(
        null=True,
        blank=True,
        help_text=_("Branch-local calendar day the order was placed on."),
    )
    daily_sequence = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Per-branch, per-day ticket number shown to kitchen staff."),
    )
    version = models.PositiveIntegerField(
        default=0,
        help_text=_("Incremented on every status change."),
    )

    # --- Timestamps ---
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    cooking_started_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    actual_prep_duration = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Minutes from cooking start (or creation) to ready."),
    )

    objects = OrderManager()

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        indexes = [
            models.Index(fields=["branch", "status"], name="order_branch_status_idx"),
            models.Index(fields=["branch", "business_date"], name="order_branch_day_idx"),
            models.Index(fields=["branch", "created_at"], name="order_branch_created_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["branch", "business_date", "daily_sequence"],
                condition=models.Q(daily_sequence__isnull=False),
                name="unique_daily_sequence_per_branch",
            ),
        ]

    def __str__(self):
        if self.daily_sequence:
            return f"Order #{self.daily_sequence} ({self.pk}) - {self.status}"
        return f"Order {self.pk} - {self.status}"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @property
    def ticket_label(self):
        """Label used to group kitchen tickets by table or delivery partner."""
        if self.table_id:
            return f"Table {self.table.table_number}"
        if self.delivery_partner_id:
            return self.delivery_partner.name
        return "POS"

    def clean(self):
        errors = {}
        if self.discount_amount < 0:
            errors["discount_amount"] = _("Discount cannot be negative")
        if self.total != self.subtotal - self.discount_amount:
            errors["total"] = _("Total must equal subtotal minus discount")
        elif self.total < 0:
            errors["total"] = _("Total cannot be negative")
        if self.table_id and self.table.branch_id != self.branch_id:
            errors["table"] = _("Table belongs to a different branch")
        if self.delivery_partner_id and self.delivery_partner.branch_id != self.branch_id:
            errors["delivery_partner"] = _("Delivery partner belongs to a different branch")
        if errors:
            raise ValidationError(errors)

    def delete(self, *args, **kwargs):
        raise OrderDeletionNotAllowed(
            f"Order {self.pk} cannot be deleted; cancel it instead."
        )


# Forward path of the order lifecycle. Position in this list is the order's progress.
ORDER_STATUS_FLOW = [
    Order.OrderStatus.PENDING.value,
    Order.OrderStatus.CONFIRMED.value,
    Order.OrderStatus.COOKING.value,
    Order.OrderStatus.READY.value,
    Order.OrderStatus.IN_SERVICE.value,
    Order.OrderStatus.PAID.value,
]

TERMINAL_STATUSES = frozenset({Order.OrderStatus.PAID.value, Order.OrderStatus.CANCELLED.value})

# Statuses the kitchen still has to act on
KITCHEN_ACTIVE_STATUSES = [
    Order.OrderStatus.PENDING.value,
    Order.OrderStatus.CONFIRMED.value,
    Order.OrderStatus.COOKING.value,
    Order.OrderStatus.READY.value,
]


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="order_items")
    quantity = models.PositiveIntegerField(default=1)

    # Price snapshot, frozen at order time
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    modifier_total_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    item_discount_amount = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Unit price at the time of order (base price plus modifiers)."),
    )
    selected_modifiers = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Modifiers chosen at order time as {id, name, price} entries."),
    )
    remark = models.CharField(
        max_length=500,
        blank=True,
        help_text=_("Kitchen remark, e.g. '[Size: L] + Extra cheese no onions'"),
    )

    created_at = models.DateTimeField(auto_now_add=True)

    IMMUTABLE_FIELDS = ("price", "selected_modifiers")

    class Meta:
        ordering = ["id"]
        verbose_name = _("Order Item")
        verbose_name_plural = _("Order Items")

    def __str__(self):
        return f"{self.quantity} x {self.product.name} in Order {self.order_id}"

    @property
    def line_subtotal(self):
        return self.price * self.quantity

    def save(self, *args, **kwargs):
        if not self._state.adding and self.pk:
            original = (
                OrderItem.objects.filter(pk=self.pk)
                .values(*self.IMMUTABLE_FIELDS)
                .first()
            )
            if original is not None:
                changed = [
                    field
                    for field in self.IMMUTABLE_FIELDS
                    if original[field] != getattr(self, field)
                ]
                if changed:
                    raise ValidationError(
                        {field: _("This value is frozen once the order is placed.") for field in changed}
                    )
        super().save(*args, **kwargs)


class OrderHistory(models.Model):
    """Audit trail row written for every status change."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="histories")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_histories",
    )
    from_status = models.CharField(max_length=20, choices=Order.OrderStatus.choices)
    to_status = models.CharField(max_length=20, choices=Order.OrderStatus.choices)
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name = _("Order History")
        verbose_name_plural = _("Order Histories")

    def __str__(self):
        return f"Order {self.order_id}: {self.from_status} -> {self.to_status}"
