from decimal import ROUND_HALF_UP, Decimal
import logging

from django.db import transaction
from django.utils import timezone

from branches.models import Branch, DeliveryPartner, RestaurantTable
from products.models import Modifier, Product

from ..events.publishers import OrderEventPublisher
from ..exceptions import InvalidOrderRequest
from ..models import Order, OrderItem
from .sequence_service import DailySequenceService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def quantize_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def build_item_remark(size_name="", modifier_names=None, note="") -> str:
    """
    Kitchen remark for one line, e.g. "[Size: L] + Extra cheese, Bacon no onions".
    """
    parts = []
    if size_name:
        parts.append(f"[Size: {size_name}]")
    if modifier_names:
        parts.append("+ " + ", ".join(modifier_names))
    if note:
        parts.append(note.strip())
    return " ".join(parts)


class OrderService:
    """Order creation for the POS and the QR menu. Prices are always taken from the catalogue."""

    @staticmethod
    def _price_line(product: Product, item: dict) -> dict:
        quantity = int(item.get("quantity", 1))
        if quantity < 1:
            raise InvalidOrderRequest(
                f"Quantity for '{product.name}' must be at least 1.", product_id=product.pk
            )

        modifier_ids = item.get("selected_modifiers") or []
        modifiers = list(
            Modifier.objects.filter(pk__in=modifier_ids, is_available=True).order_by("id")
        )
        if len(modifiers) != len(set(modifier_ids)):
            logger.warning(
                f"Skipping unavailable modifiers for product {product.pk}: "
                f"requested {sorted(set(modifier_ids))}, using {[m.pk for m in modifiers]}"
            )

        base_price = quantize_money(product.base_price)
        modifier_total = quantize_money(sum((m.price for m in modifiers), Decimal("0")))
        # Product discounts apply to the base price only
        item_discount = quantize_money(
            base_price * product.effective_discount_percentage / HUNDRED * quantity
        )
        unit_price = base_price + modifier_total

        return {
            "product": product,
            "quantity": quantity,
            "base_price": base_price,
            "modifier_total_price": modifier_total,
            "item_discount_amount": item_discount,
            "price": unit_price,
            "selected_modifiers": [
                {"id": m.pk, "name": m.name, "price": str(quantize_money(m.price))}
                for m in modifiers
            ],
            "remark": build_item_remark(
                item.get("size_name", ""), [m.name for m in modifiers], item.get("remark", "")
            ),
        }

    @classmethod
    def price_items(cls, items) -> list:
        """Resolve products and snapshot prices for every requested line."""
        if not items:
            raise InvalidOrderRequest("An order needs at least one item.")

        product_ids = {item.get("product_id") for item in items}
        products = Product.objects.filter(pk__in=product_ids, is_active=True).in_bulk()

        lines = []
        for item in items:
            product = products.get(item.get("product_id"))
            if product is None:
                raise InvalidOrderRequest(
                    f"Product {item.get('product_id')} is not available.",
                    product_id=item.get("product_id"),
                )
            lines.append(cls._price_line(product, item))
        return lines

    @staticmethod
    def calculate_totals(lines, delivery_partner: DeliveryPartner = None) -> dict:
        """
        Order totals from priced lines.

        The delivery partner discount is taken on what remains after item
        discounts; the combined discount never exceeds the subtotal.
        """
        subtotal = sum((line["price"] * line["quantity"] for line in lines), Decimal("0.00"))
        item_discounts = sum((line["item_discount_amount"] for line in lines), Decimal("0.00"))

        partner_discount = Decimal("0.00")
        if delivery_partner is not None:
            partner_discount = quantize_money(
                (subtotal - item_discounts) * delivery_partner.effective_discount_percentage / HUNDRED
            )

        discount = min(item_discounts + partner_discount, subtotal)
        return {
            "subtotal": quantize_money(subtotal),
            "discount_amount": quantize_money(discount),
            "total": quantize_money(subtotal - discount),
        }

    @classmethod
    def create_order(
        cls,
        branch: Branch,
        items,
        order_type: str = Order.OrderType.WALK_IN,
        table: RestaurantTable = None,
        delivery_partner: DeliveryPartner = None,
        user=None,
    ) -> Order:
        """
        Creates a priced order with its items and kitchen ticket number.

        Args:
            branch: Branch the order is placed at
            items: list of {"product_id", "quantity", "selected_modifiers", "size_name", "remark"}
            order_type: One of Order.OrderType
            table: Optional table (must belong to the branch)
            delivery_partner: Optional partner (must belong to the branch)
            user: Staff member placing the order, None for QR orders

        Raises:
            InvalidOrderRequest: If the cart is empty or references something unusable
        """
        if table is not None and table.branch_id != branch.pk:
            raise InvalidOrderRequest(f"Table {table.pk} does not belong to branch {branch.pk}.")
        if delivery_partner is not None:
            if delivery_partner.branch_id != branch.pk or not delivery_partner.is_active:
                raise InvalidOrderRequest(
                    f"Delivery partner {delivery_partner.pk} is not available at branch {branch.pk}."
                )

        lines = cls.price_items(items)
        totals = cls.calculate_totals(lines, delivery_partner)

        with transaction.atomic():
            order = Order(
                branch=branch,
                order_type=order_type,
                table=table,
                delivery_partner=delivery_partner,
                user=user,
                created_at=timezone.now(),
                **totals,
            )
            order.clean()
            DailySequenceService.assign(order)
            order.save()

            OrderItem.objects.bulk_create(OrderItem(order=order, **line) for line in lines)

            logger.info(
                f"Created {order_type} order {order.pk} #{order.daily_sequence} "
                f"at branch {branch.pk}, total {order.total}"
            )
            OrderEventPublisher.order_created(order)

        return order

    @classmethod
    def place_qr_order(cls, qr_token: str, items) -> Order:
        """
        Creates a qr_scan order for the table behind a QR code.

        Raises:
            RestaurantTable.DoesNotExist: If the token is unknown or the table is inactive
        """
        table = RestaurantTable.objects.select_related("branch").get(
            qr_code_token=qr_token, is_active=True, branch__is_active=True
        )
        return cls.create_order(
            branch=table.branch,
            items=items,
            order_type=Order.OrderType.QR_SCAN,
            table=table,
        )
