"""
Unit Tests - Order Eligibility
"""
from datetime import date, datetime

import pytest
from pydantic import ValidationError

from bought_together.analytics import EligibilityPolicy, Order, filter_eligible, is_eligible


class TestEligibilityPolicy:
    """Tests for EligibilityPolicy"""

    def test_statuses_normalized(self):
        policy = EligibilityPolicy(accepted_statuses=["Completed", " processing ", "completed"])

        assert policy.accepted_statuses == ("completed", "processing")

    def test_empty_statuses_rejected(self):
        with pytest.raises(ValidationError):
            EligibilityPolicy(accepted_statuses=[])

    def test_date_only_bounds_cover_whole_days(self):
        policy = EligibilityPolicy(date_from=date(2025, 1, 1), date_to="2025-01-31")

        assert policy.date_from == datetime(2025, 1, 1, 0, 0, 0)
        assert policy.date_to.date() == date(2025, 1, 31)
        assert policy.date_to.hour == 23

    def test_aware_bounds_become_utc(self):
        policy = EligibilityPolicy(date_from="2025-01-01T02:00:00+02:00")

        assert policy.date_from == datetime(2025, 1, 1, 0, 0, 0)

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            EligibilityPolicy(date_from="2025-02-01", date_to="2025-01-01")


class TestIsEligible:
    """Tests for is_eligible"""

    def test_completed_order_is_eligible(self, make_order, make_line):
        order = Order.from_raw(make_order(1, [make_line(1, "Coffee")]))

        assert is_eligible(order, EligibilityPolicy())

    def test_pending_order_excluded_under_strict_policy(self, make_order, make_line):
        order = Order.from_raw(make_order(1, [make_line(1, "Coffee")], status="pending"))

        assert not is_eligible(order, EligibilityPolicy(accepted_statuses=["completed"]))

    def test_status_match_is_case_insensitive(self, make_order, make_line):
        order = Order.from_raw(make_order(1, [make_line(1, "Coffee")], status="COMPLETED"))

        assert is_eligible(order, EligibilityPolicy())

    def test_fully_refunded_order_excluded(self, make_order, make_line):
        order = Order.from_raw(
            make_order(1, [make_line(1, "Coffee")], total="25.00", total_refunded="25.00")
        )

        assert not is_eligible(order, EligibilityPolicy())

    def test_negative_refund_amount_compared_by_magnitude(self, make_order, make_line):
        order = Order.from_raw(
            make_order(1, [make_line(1, "Coffee")], total="25.00", total_refunded="-25.00")
        )

        assert not is_eligible(order, EligibilityPolicy())

    def test_partially_refunded_order_eligible(self, make_order, make_line):
        order = Order.from_raw(
            make_order(1, [make_line(1, "Coffee")], total="25.00", total_refunded="5.00")
        )

        assert is_eligible(order, EligibilityPolicy())

    def test_zero_total_excluded(self, make_order, make_line):
        order = Order.from_raw(make_order(1, [make_line(1, "Coffee")], total="0"))

        assert not is_eligible(order, EligibilityPolicy())

    def test_date_range(self, make_order, make_line):
        policy = EligibilityPolicy(date_from="2025-01-01", date_to="2025-01-31")
        inside = Order.from_raw(make_order(1, [], date_created="2025-01-31T23:30:00"))
        before = Order.from_raw(make_order(2, [], date_created="2024-12-31T23:59:59"))
        after = Order.from_raw(make_order(3, [], date_created="2025-02-01T00:00:00"))

        assert is_eligible(inside, policy)
        assert not is_eligible(before, policy)
        assert not is_eligible(after, policy)

    def test_order_without_date_stays_eligible(self, make_order):
        policy = EligibilityPolicy(date_from="2025-01-01", date_to="2025-01-31")
        order = Order.from_raw(make_order(1, [], date_created="not a date"))

        assert order.resolve_date(policy.date_fields) is None
        assert is_eligible(order, policy)

    def test_date_preference_order(self, make_order):
        policy = EligibilityPolicy(date_from="2025-03-01")
        order = Order.from_raw(
            make_order(1, [], date_paid="2025-03-02T08:00:00", date_created="2025-02-27T08:00:00")
        )

        assert order.resolve_date(policy.date_fields) == datetime(2025, 3, 2, 8, 0, 0)
        assert is_eligible(order, policy)

    def test_filter_eligible(self, sample_orders):
        orders = [Order.from_raw(raw) for raw in sample_orders]

        kept = list(filter_eligible(orders, EligibilityPolicy()))

        assert [o.id for o in kept] == [101, 102, 103, 104]
