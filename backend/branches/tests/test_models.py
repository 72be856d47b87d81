from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError

from branches.models import Branch, DeliveryPartner, RestaurantTable


@pytest.mark.django_db
class TestBranch:

    def test_timezone_defaults_to_project_timezone(self, settings):
        settings.TIME_ZONE = "Asia/Manila"

        branch = Branch.objects.create(name="Makati", slug="makati")

        assert branch.timezone == "Asia/Manila"
        assert str(branch.tzinfo) == "Asia/Manila"

    def test_unknown_timezone_is_rejected(self):
        branch = Branch(name="Nowhere", slug="nowhere", timezone="Mars/Olympus")

        with pytest.raises(ValidationError):
            branch.clean()


@pytest.mark.django_db
class TestRestaurantTable:

    def test_qr_tokens_are_generated_and_unique(self, branch):
        first = RestaurantTable.objects.create(branch=branch, table_number="1")
        second = RestaurantTable.objects.create(branch=branch, table_number="2")

        assert len(first.qr_code_token) >= 24
        assert first.qr_code_token != second.qr_code_token

    def test_table_numbers_are_unique_per_branch(self, branch, other_branch):
        RestaurantTable.objects.create(branch=branch, table_number="1")
        RestaurantTable.objects.create(branch=other_branch, table_number="1")

        with pytest.raises(IntegrityError):
            RestaurantTable.objects.create(branch=branch, table_number="1")


@pytest.mark.django_db
class TestDeliveryPartner:

    def test_discount_only_when_active(self, branch):
        partner = DeliveryPartner.objects.create(
            branch=branch, name="Foodpanda", discount_percentage=Decimal("15.00")
        )
        assert partner.effective_discount_percentage == Decimal("0.00")

        partner.is_discount_active = True
        assert partner.effective_discount_percentage == Decimal("15.00")
