"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

User = get_user_model()


# ============================================================================
# BROADCAST FIXTURES
# ============================================================================

class RecordingChannelLayer:
    """Stand-in channel layer that records every group_send instead of delivering it."""

    def __init__(self):
        self.sent = []

    async def group_send(self, group, message):
        self.sent.append((group, message))

    def events(self, group=None):
        return [
            (sent_group, message["type"], message["payload"])
            for sent_group, message in self.sent
            if group is None or sent_group == group
        ]


@pytest.fixture
def channel_layer():
    """
    Replace the broadcast transport's channel layer with a recorder.

    Usage:
        def test_publish(channel_layer):
            ...
            assert channel_layer.events("branch.1")
    """
    from orders.services.broadcast_service import broadcast_service

    layer = RecordingChannelLayer()
    with patch.object(broadcast_service, "_channel_layer", layer):
        yield layer


# ============================================================================
# REFERENCE DATA FIXTURES
# ============================================================================

@pytest.fixture
def branch(db):
    from branches.models import Branch

    return Branch.objects.create(name="Downtown", slug="downtown", timezone="UTC")


@pytest.fixture
def other_branch(db):
    from branches.models import Branch

    return Branch.objects.create(name="Harbour", slug="harbour", timezone="UTC")


@pytest.fixture
def table(branch):
    from branches.models import RestaurantTable

    return RestaurantTable.objects.create(branch=branch, table_number="5")


@pytest.fixture
def delivery_partner(branch):
    from branches.models import DeliveryPartner

    return DeliveryPartner.objects.create(
        branch=branch,
        name="GrabFood",
        discount_percentage=Decimal("10.00"),
        is_discount_active=True,
    )


@pytest.fixture
def burger(db):
    from products.models import Product

    return Product.objects.create(name="Burger", base_price=Decimal("10.00"))


@pytest.fixture
def fries(db):
    from products.models import Product

    return Product.objects.create(
        name="Fries",
        base_price=Decimal("4.00"),
        discount_percentage=Decimal("25.00"),
        has_active_discount=True,
    )


@pytest.fixture
def extra_cheese(burger):
    from products.models import Modifier

    modifier = Modifier.objects.create(name="Extra cheese", price=Decimal("1.50"))
    modifier.products.add(burger)
    return modifier


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(username="kitchen", password="test123")


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def make_order(branch, burger):
    """
    Factory creating orders through OrderService, optionally moved to a status.

    Usage:
        def test_something(make_order):
            order = make_order(status="cooking", table=table)
    """
    from orders.models import Order
    from orders.services import OrderService

    def _make_order(status=None, items=None, **kwargs):
        kwargs.setdefault("branch", branch)
        order = OrderService.create_order(
            items=items or [{"product_id": burger.pk, "quantity": 1}],
            **kwargs,
        )
        if status is not None and status != order.status:
            Order.objects.filter(pk=order.pk).update(status=status)
            order.refresh_from_db()
        return order

    return _make_order


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Unauthenticated API client.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/health/')
    """
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, staff_user):
    """
    API client logged in as a kitchen staff member.

    Usage:
        def test_protected_endpoint(authenticated_client):
            response = authenticated_client.get('/api/orders/')
    """
    api_client.force_authenticate(user=staff_user)
    return api_client
