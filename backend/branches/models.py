import secrets
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


def generate_qr_token():
    return secrets.token_urlsafe(24)


def default_branch_timezone():
    return settings.TIME_ZONE


class Branch(models.Model):
    """A single physical restaurant location."""

    name = models.CharField(max_length=150)
    slug = models.SlugField(max_length=160, unique=True)
    timezone = models.CharField(
        max_length=64,
        default=default_branch_timezone,
        help_text=_("IANA timezone name. Daily ticket numbering resets at local midnight."),
    )
    requires_cancel_note = models.BooleanField(
        default=False,
        help_text=_("Staff must give a reason when cancelling an order."),
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name = _("Branch")
        verbose_name_plural = _("Branches")

    def __str__(self):
        return self.name

    def clean(self):
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError({"timezone": _("Unknown timezone '%(tz)s'") % {"tz": self.timezone}})

    @property
    def tzinfo(self):
        return ZoneInfo(self.timezone)


class RestaurantTable(models.Model):
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="tables")
    table_number = models.CharField(max_length=20)
    qr_code_token = models.CharField(
        max_length=64, unique=True, default=generate_qr_token, editable=False
    )
    capacity = models.PositiveIntegerField(default=4)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["branch", "table_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["branch", "table_number"], name="unique_table_number_per_branch"
            ),
        ]

    def __str__(self):
        return f"Table {self.table_number} ({self.branch})"


class DeliveryPartner(models.Model):
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="delivery_partners")
    name = models.CharField(max_length=100)
    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text=_("Order-level discount granted on this partner's orders."),
    )
    is_discount_active = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def effective_discount_percentage(self):
        if self.is_discount_active and self.discount_percentage > 0:
            return self.discount_percentage
        return Decimal("0.00")
