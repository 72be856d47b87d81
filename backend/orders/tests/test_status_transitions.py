"""
Order Status Transition Tests

This module tests OrderStatusService, the single writer of Order.status.

Test Categories:
1. Transition table (every current/target pair)
2. Kitchen timestamps and prep duration
3. Concurrency guard (expected_status, version)
4. Cancellation notes, reopen and audit history
5. Grouped transitions (partial failure reporting)

Run with: pytest backend/orders/tests/test_status_transitions.py -v
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from orders.exceptions import (
    CancellationNoteRequired,
    InvalidTransition,
    OrderNotFound,
    PartialGroupFailure,
    StaleOrderState,
)
from orders.models import Order, OrderHistory
from orders.services import OrderStatusService

ALL_STATUSES = [choice for choice, _ in Order.OrderStatus.choices]

VALID_TARGETS = {
    "pending": {"confirmed", "cooking", "ready", "in_service", "paid", "cancelled"},
    "confirmed": {"cooking", "ready", "in_service", "paid", "cancelled"},
    "cooking": {"ready", "in_service", "paid", "cancelled"},
    "ready": {"in_service", "paid", "cancelled"},
    "in_service": {"paid", "cancelled"},
    "paid": set(),
    "cancelled": set(),
}

VALID_PAIRS = [(c, t) for c in ALL_STATUSES for t in ALL_STATUSES if t in VALID_TARGETS[c]]
INVALID_PAIRS = [(c, t) for c in ALL_STATUSES for t in ALL_STATUSES if t not in VALID_TARGETS[c]]


def frozen_now(moment):
    return patch("orders.services.status_service.timezone.now", return_value=moment)


# ============================================================================
# TRANSITION TABLE TESTS
# ============================================================================

@pytest.mark.django_db
class TestTransitionTable:
    """Every (current, target) pair either succeeds or is rejected with the status untouched."""

    @pytest.mark.parametrize("current,target", VALID_PAIRS)
    def test_valid_transition_succeeds(self, make_order, current, target):
        order = make_order(status=current)

        updated = OrderStatusService.transition(order.pk, target)

        order.refresh_from_db()
        assert updated.status == target
        assert order.status == target
        assert order.version == 1

    @pytest.mark.parametrize("current,target", INVALID_PAIRS)
    def test_invalid_transition_is_rejected(self, make_order, current, target):
        order = make_order(status=current)

        with pytest.raises(InvalidTransition) as exc_info:
            OrderStatusService.transition(order.pk, target)

        order.refresh_from_db()
        assert order.status == current
        assert order.version == 0
        assert exc_info.value.current_status == current
        assert exc_info.value.target_status == target
        assert not OrderHistory.objects.filter(order=order).exists()

    def test_reentering_current_status_is_rejected(self, make_order):
        """
        HIGH: Re-entry into the same status is an explicit error, not a silent no-op.

        Value: A double tap on the kitchen display cannot restamp timestamps.
        """
        order = make_order(status="cooking")

        with pytest.raises(InvalidTransition):
            OrderStatusService.transition(order.pk, "cooking")

    def test_unknown_status_is_rejected(self, make_order):
        order = make_order()

        with pytest.raises(InvalidTransition):
            OrderStatusService.transition(order.pk, "flying")

    def test_unknown_order_raises_not_found(self, db):
        with pytest.raises(OrderNotFound) as exc_info:
            OrderStatusService.transition(987654, "cooking")

        assert exc_info.value.order_id == 987654

    def test_ready_to_pending_is_rejected(self, make_order):
        """
        CRITICAL: Backward moves are not allowed.

        Scenario:
        - Order is ready
        - Attempt to move it back to pending
        - Expected: InvalidTransition, order stays ready
        """
        order = make_order(status="ready")

        with pytest.raises(InvalidTransition):
            OrderStatusService.transition(order.pk, "pending")

        order.refresh_from_db()
        assert order.status == "ready"

    def test_allowed_targets_for_terminal_statuses_is_empty(self):
        assert OrderStatusService.allowed_targets("paid") == []
        assert OrderStatusService.allowed_targets("cancelled") == []
        assert OrderStatusService.allowed_targets("unknown") == []


# ============================================================================
# TIMESTAMP AND PREP DURATION TESTS
# ============================================================================

class TestPrepDuration:
    """actual_prep_duration is whole minutes, rounded half up, never below 1."""

    @pytest.mark.parametrize(
        "elapsed,expected",
        [
            (timedelta(seconds=0), 1),
            (timedelta(seconds=29), 1),
            (timedelta(seconds=89), 1),
            (timedelta(seconds=90), 2),
            (timedelta(minutes=12), 12),
            (timedelta(minutes=12, seconds=29), 12),
            (timedelta(minutes=12, seconds=30), 13),
            (timedelta(hours=2, minutes=5), 125),
        ],
    )
    def test_rounding_and_clamp(self, elapsed, expected):
        start = timezone.now()
        assert OrderStatusService.calculate_prep_duration(start, start + elapsed) == expected


@pytest.mark.django_db
class TestKitchenTimestamps:
    """Timestamps are stamped on entering a status and never overwritten afterwards."""

    def test_pending_to_cooking_to_ready_twelve_minutes(self, make_order):
        """
        CRITICAL: Cooking start and ready time give the prep duration.

        Scenario:
        - pending -> cooking at T
        - cooking -> ready at T + 12 minutes
        - Expected: cooking_started_at = T, ready_at = T + 12m, prep = 12
        """
        order = make_order()
        started = timezone.now()

        with frozen_now(started):
            OrderStatusService.transition(order.pk, "cooking")
        with frozen_now(started + timedelta(minutes=12)):
            OrderStatusService.transition(order.pk, "ready")

        order.refresh_from_db()
        assert order.cooking_started_at == started
        assert order.ready_at == started + timedelta(minutes=12)
        assert order.actual_prep_duration == 12

    def test_ready_without_cooking_measures_from_creation(self, make_order):
        order = make_order()

        with frozen_now(order.created_at + timedelta(minutes=7, seconds=10)):
            OrderStatusService.transition(order.pk, "ready")

        order.refresh_from_db()
        assert order.cooking_started_at is None
        assert order.actual_prep_duration == 7

    def test_paid_sets_paid_at(self, make_order):
        order = make_order(status="in_service")
        moment = timezone.now()

        with frozen_now(moment):
            OrderStatusService.transition(order.pk, "paid")

        order.refresh_from_db()
        assert order.paid_at == moment
        assert order.is_terminal

    def test_later_transitions_keep_earlier_timestamps(self, make_order):
        order = make_order()
        started = timezone.now()

        with frozen_now(started):
            OrderStatusService.transition(order.pk, "cooking")
        with frozen_now(started + timedelta(minutes=5)):
            OrderStatusService.transition(order.pk, "ready")
        with frozen_now(started + timedelta(minutes=30)):
            OrderStatusService.transition(order.pk, "in_service")
            OrderStatusService.transition(order.pk, "paid")

        order.refresh_from_db()
        assert order.cooking_started_at == started
        assert order.ready_at == started + timedelta(minutes=5)
        assert order.actual_prep_duration == 5
        assert order.version == 4


# ============================================================================
# CONCURRENCY GUARD TESTS
# ============================================================================

@pytest.mark.django_db
class TestExpectedStatus:
    """A writer holding a stale view of the order fails instead of overwriting."""

    def test_matching_expected_status_succeeds(self, make_order):
        order = make_order()

        OrderStatusService.transition(order.pk, "confirmed", expected_status="pending")

        order.refresh_from_db()
        assert order.status == "confirmed"

    def test_stale_expected_status_is_rejected(self, make_order):
        """
        HIGH: Two staff members race to advance the same ticket.

        Scenario:
        - Both see the order as pending
        - The first moves it to cooking
        - The second asks pending -> confirmed
        - Expected: StaleOrderState, order stays cooking
        """
        order = make_order()
        OrderStatusService.transition(order.pk, "cooking", expected_status="pending")

        with pytest.raises(StaleOrderState) as exc_info:
            OrderStatusService.transition(order.pk, "confirmed", expected_status="pending")

        order.refresh_from_db()
        assert order.status == "cooking"
        assert order.version == 1
        assert exc_info.value.current_status == "cooking"
        assert isinstance(exc_info.value, InvalidTransition)


# ============================================================================
# CANCELLATION, REOPEN AND HISTORY TESTS
# ============================================================================

@pytest.mark.django_db
class TestCancellationAndReopen:

    def test_cancel_requires_note_when_branch_demands_it(self, make_order, branch):
        branch.requires_cancel_note = True
        branch.save()
        order = make_order()

        with pytest.raises(CancellationNoteRequired):
            OrderStatusService.transition(order.pk, "cancelled", note="  ")

        order.refresh_from_db()
        assert order.status == "pending"

    def test_cancel_with_note_is_recorded(self, make_order, branch, staff_user):
        branch.requires_cancel_note = True
        branch.save()
        order = make_order(status="cooking")

        OrderStatusService.transition(order.pk, "cancelled", user=staff_user, note="Guest left")

        history = OrderHistory.objects.get(order=order)
        assert history.from_status == "cooking"
        assert history.to_status == "cancelled"
        assert history.note == "Guest left"
        assert history.user == staff_user

    @pytest.mark.parametrize("note", [None, "", "   "])
    def test_history_note_defaults_to_status_change(self, make_order, note):
        order = make_order()

        OrderStatusService.transition(order.pk, "cooking", note=note)

        history = OrderHistory.objects.get(order=order)
        assert history.note == "Status changed to cooking"

    def test_reopen_sends_ready_order_back_to_cooking(self, make_order):
        order = make_order()
        started = timezone.now()
        with frozen_now(started):
            OrderStatusService.transition(order.pk, "cooking")
        with frozen_now(started + timedelta(minutes=4)):
            OrderStatusService.transition(order.pk, "ready")

        OrderStatusService.reopen(order.pk, note="Wrong sauce")

        order.refresh_from_db()
        assert order.status == "cooking"
        assert order.ready_at is None
        assert order.actual_prep_duration is None
        assert order.cooking_started_at == started

        with frozen_now(started + timedelta(minutes=10)):
            OrderStatusService.transition(order.pk, "ready")
        order.refresh_from_db()
        assert order.actual_prep_duration == 10

    @pytest.mark.parametrize("current", ["pending", "cooking", "in_service", "paid", "cancelled"])
    def test_reopen_only_from_ready(self, make_order, current):
        order = make_order(status=current)

        with pytest.raises(InvalidTransition):
            OrderStatusService.reopen(order.pk)

        order.refresh_from_db()
        assert order.status == current

    def test_history_records_every_transition(self, make_order, staff_user):
        order = make_order()

        OrderStatusService.transition(order.pk, "confirmed", user=staff_user)
        OrderStatusService.transition(order.pk, "cooking", user=staff_user)
        OrderStatusService.transition(order.pk, "ready", user=staff_user)
        OrderStatusService.reopen(order.pk, user=staff_user)

        steps = list(order.histories.values_list("from_status", "to_status"))
        assert steps == [
            ("pending", "confirmed"),
            ("confirmed", "cooking"),
            ("cooking", "ready"),
            ("ready", "cooking"),
        ]
        order.refresh_from_db()
        assert order.updated_by == staff_user


# ============================================================================
# GROUPED TRANSITION TESTS
# ============================================================================

@pytest.mark.django_db
class TestGroupTransition:
    """Grouped tickets fan out to each order; failures are reported per order."""

    def test_partial_failure_reports_each_outcome(self, make_order, table):
        """
        CRITICAL: One cancelled order does not sink the rest of the table.

        Scenario:
        - Three orders at one table, the second already cancelled
        - Group transition pending -> cooking
        - Expected: orders 1 and 3 cooking, order 2 reported as InvalidTransition
        """
        first = make_order(table=table)
        second = make_order(table=table, status="cancelled")
        third = make_order(table=table)

        result = OrderStatusService.transition_group([first.pk, second.pk, third.pk], "cooking")

        assert [order.pk for order in result.succeeded] == [first.pk, third.pk]
        assert list(result.failed) == [second.pk]
        assert isinstance(result.failed[second.pk], InvalidTransition)
        assert result.total == 3
        assert result.is_partial
        assert not result.all_succeeded

        statuses = dict(Order.objects.filter(table=table).values_list("id", "status"))
        assert statuses == {first.pk: "cooking", second.pk: "cancelled", third.pk: "cooking"}

        with pytest.raises(PartialGroupFailure) as exc_info:
            result.raise_for_failures()
        body = exc_info.value.to_dict()
        assert body["succeeded"] == [first.pk, third.pk]
        assert body["failed"][0]["order_id"] == second.pk
        assert body["failed"][0]["code"] == "invalid_transition"

    def test_all_succeeded(self, make_order):
        orders = [make_order(), make_order()]

        result = OrderStatusService.transition_group([o.pk for o in orders], "confirmed")

        assert result.all_succeeded
        assert not result.is_partial
        assert result.raise_for_failures() is result

    def test_unknown_ids_are_reported_not_raised(self, make_order):
        order = make_order()

        result = OrderStatusService.transition_group([order.pk, 987654], "cooking")

        assert [o.pk for o in result.succeeded] == [order.pk]
        assert isinstance(result.failed[987654], OrderNotFound)

    def test_duplicate_ids_are_applied_once(self, make_order):
        order = make_order()

        result = OrderStatusService.transition_group([order.pk, order.pk], "cooking")

        assert result.total == 1
        assert result.all_succeeded
