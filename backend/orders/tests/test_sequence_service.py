"""
Daily Sequence Service Tests

Ticket numbers are per branch and per branch-local calendar day.
"""
from datetime import date, datetime, timedelta, timezone as dt_timezone
from io import StringIO

import pytest
from django.core.management import call_command

from branches.models import Branch
from orders.models import Order
from orders.services import DailySequenceService


@pytest.mark.django_db
class TestBusinessDate:

    def test_business_date_uses_branch_timezone(self, db):
        tokyo = Branch.objects.create(name="Tokyo", slug="tokyo", timezone="Asia/Tokyo")
        moment = datetime(2024, 3, 1, 20, 30, tzinfo=dt_timezone.utc)

        # 05:30 on the next day in Tokyo
        assert DailySequenceService.business_date_for(tokyo, moment) == date(2024, 3, 2)

    def test_business_date_in_utc_branch(self, branch):
        moment = datetime(2024, 3, 1, 20, 30, tzinfo=dt_timezone.utc)

        assert DailySequenceService.business_date_for(branch, moment) == date(2024, 3, 1)


@pytest.mark.django_db
class TestNextSequence:

    def test_first_order_of_the_day_is_one(self, branch):
        assert DailySequenceService.next_sequence(branch, date(2024, 3, 1)) == 1

    def test_numbering_restarts_each_day(self, make_order, branch):
        order = make_order()
        tomorrow = order.business_date + timedelta(days=1)

        assert DailySequenceService.next_sequence(branch, order.business_date) == 2
        assert DailySequenceService.next_sequence(branch, tomorrow) == 1

    def test_total_for_day_counts_every_status(self, make_order, branch):
        make_order()
        make_order(status="paid")
        make_order(status="cancelled")

        assert DailySequenceService.total_for_day(branch) == 3


@pytest.mark.django_db
class TestBackfill:
    """Orders created before ticket numbering existed get numbers in creation order."""

    def _unnumbered(self, branch, created_at):
        order = Order(branch=branch, created_at=created_at)
        order.save()
        return order

    def test_backfill_numbers_in_creation_order(self, branch):
        base = datetime(2024, 3, 1, 9, 0, tzinfo=dt_timezone.utc)
        late = self._unnumbered(branch, base + timedelta(hours=3))
        early = self._unnumbered(branch, base)
        next_day = self._unnumbered(branch, base + timedelta(days=1))

        assert DailySequenceService.backfill() == 3

        late.refresh_from_db()
        early.refresh_from_db()
        next_day.refresh_from_db()
        assert (early.daily_sequence, late.daily_sequence) == (1, 2)
        assert early.business_date == date(2024, 3, 1)
        assert next_day.daily_sequence == 1
        assert next_day.business_date == date(2024, 3, 2)

    def test_backfill_command(self, branch):
        self._unnumbered(branch, datetime(2024, 3, 1, 9, 0, tzinfo=dt_timezone.utc))
        out = StringIO()

        call_command("backfill_daily_sequences", "--branch", str(branch.pk), stdout=out)

        assert "Numbered 1 orders" in out.getvalue()
        assert not Order.objects.filter(daily_sequence__isnull=True).exists()

    def test_backfill_command_dry_run(self, branch):
        self._unnumbered(branch, datetime(2024, 3, 1, 9, 0, tzinfo=dt_timezone.utc))
        out = StringIO()

        call_command("backfill_daily_sequences", "--dry-run", stdout=out)

        assert "1 orders would be numbered" in out.getvalue()
        assert Order.objects.filter(daily_sequence__isnull=True).count() == 1
