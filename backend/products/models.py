from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Product(models.Model):
    name = models.CharField(max_length=200)
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    has_active_discount = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        verbose_name = _("Product")
        verbose_name_plural = _("Products")

    def __str__(self):
        return self.name

    @property
    def effective_discount_percentage(self):
        """Discount applied to the base price only, never to modifiers."""
        if self.has_active_discount and self.discount_percentage > 0:
            return self.discount_percentage
        return Decimal("0.00")


class Modifier(models.Model):
    """A paid or free add-on selectable for a product (extra cheese, no onion, ...)."""

    name = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    is_available = models.BooleanField(default=True)
    products = models.ManyToManyField(Product, related_name="modifiers", blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} (+{self.price})"
