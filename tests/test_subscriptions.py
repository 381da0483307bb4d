from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from models import InvalidDateError, SubscriptionStatus
from subscriptions import (
    classify_subscription,
    compute_dashboard_metrics,
    days_until,
    filter_members,
    renewal_percentage,
)
from tests.conftest import NOW, make_member


# ── Status classifier ────────────────────────────────────────────────────
class TestClassifySubscription:
    def test_expires_today(self):
        result = classify_subscription(date(2024, 6, 15), NOW)
        assert result.state == SubscriptionStatus.EXPIRES_TODAY
        assert result.text == "Expires today"
        assert result.days == 0

    def test_expiring_soon(self):
        result = classify_subscription(date(2024, 6, 20), NOW)
        assert result.state == SubscriptionStatus.EXPIRING_SOON
        assert result.text == "Expires in 5 days"

    def test_expired(self):
        result = classify_subscription(date(2024, 6, 10), NOW)
        assert result.state == SubscriptionStatus.EXPIRED
        assert result.text == "Expired 5 days ago"
        assert result.days == -5

    def test_active(self):
        result = classify_subscription(date(2024, 7, 1), NOW)
        assert result.state == SubscriptionStatus.ACTIVE
        assert result.text == "Active"

    def test_seven_days_is_expiring_eight_is_active(self):
        assert classify_subscription(NOW + timedelta(days=7), NOW).state == SubscriptionStatus.EXPIRING_SOON
        assert classify_subscription(NOW + timedelta(days=8), NOW).state == SubscriptionStatus.ACTIVE

    def test_yesterday_is_expired_one_day(self):
        result = classify_subscription(NOW - timedelta(days=1), NOW)
        assert result.state == SubscriptionStatus.EXPIRED
        assert result.text == "Expired 1 days ago"

    def test_time_of_day_is_ignored(self):
        late = datetime(2024, 6, 15, 23, 59, 59)
        assert classify_subscription(date(2024, 6, 15), late).state == SubscriptionStatus.EXPIRES_TODAY
        assert classify_subscription(datetime(2024, 6, 16, 0, 1), late).days == 1

    def test_accepts_iso_strings(self):
        assert classify_subscription("2024-06-20", "2024-06-15").days == 5
        assert classify_subscription("2024-06-20T08:30:00", NOW).days == 5

    def test_invalid_date_raises(self):
        with pytest.raises(InvalidDateError):
            classify_subscription("2024-13-45", NOW)
        with pytest.raises(InvalidDateError):
            classify_subscription(None, NOW)

    def test_defaults_to_wall_clock(self):
        assert days_until(date.today()) == 0
        assert classify_subscription(date.today() + timedelta(days=30)).state == SubscriptionStatus.ACTIVE

    def test_exactly_one_state_per_offset(self):
        for offset in range(-30, 31):
            state = classify_subscription(NOW + timedelta(days=offset), NOW).state
            assert state in SubscriptionStatus.ALL
            if offset < 0:
                assert state == SubscriptionStatus.EXPIRED
            elif offset == 0:
                assert state == SubscriptionStatus.EXPIRES_TODAY
            elif offset <= 7:
                assert state == SubscriptionStatus.EXPIRING_SOON
            else:
                assert state == SubscriptionStatus.ACTIVE


# ── Dashboard metrics ────────────────────────────────────────────────────
class TestDashboardMetrics:
    def test_empty_list(self):
        metrics = compute_dashboard_metrics([], NOW)
        assert metrics.total == 0
        assert metrics.renewal_percentage == 0
        assert metrics.renewals_today == []
        assert metrics.upcoming_renewals == []
        assert metrics.expired == []
        assert metrics.expired_this_week == []
        assert metrics.active_members == []
        assert metrics.renewed_this_month == []

    def test_buckets(self):
        a = make_member(date(2024, 6, 15), first_name="A")
        b = make_member(date(2024, 6, 20), first_name="B")
        c = make_member(date(2024, 6, 10), first_name="C")
        d = make_member(date(2024, 7, 1), first_name="D", start=date(2024, 6, 1))

        metrics = compute_dashboard_metrics([a, b, c, d], NOW)

        assert metrics.total == 4
        assert metrics.renewals_today == [a]
        assert metrics.upcoming_renewals == [b]
        assert metrics.expired == [c]
        assert metrics.expired_this_week == [c]
        assert metrics.active_members == [a, b, d]
        assert metrics.renewed_this_month == [d]
        assert metrics.renewal_percentage == 25

    def test_upcoming_window_boundary(self):
        seven = make_member(NOW + timedelta(days=7), first_name="Seven")
        eight = make_member(NOW + timedelta(days=8), first_name="Eight")
        metrics = compute_dashboard_metrics([seven, eight], NOW)
        assert metrics.upcoming_renewals == [seven]

    def test_today_is_not_expired(self):
        today = make_member(NOW)
        metrics = compute_dashboard_metrics([today], datetime(2024, 6, 15, 18, 0))
        assert metrics.renewals_today == [today]
        assert metrics.expired == []
        assert metrics.active_members == [today]

    def test_expired_this_week_boundary(self):
        week = make_member(NOW - timedelta(days=7), first_name="Week")
        older = make_member(NOW - timedelta(days=8), first_name="Older")
        metrics = compute_dashboard_metrics([week, older], NOW)
        assert metrics.expired == [week, older]
        assert metrics.expired_this_week == [week]

    def test_expired_and_active_partition_members(self):
        members = [make_member(NOW + timedelta(days=n), first_name=f"M{n}") for n in range(-10, 11)]
        metrics = compute_dashboard_metrics(members, NOW)
        assert len(metrics.expired) + len(metrics.active_members) == len(members)
        assert not set(m.id for m in metrics.expired) & set(m.id for m in metrics.active_members)

    def test_renewal_percentage_thirty(self):
        members = [
            make_member(date(2024, 12, 31), start=date(2024, 6, 1 + n) if n < 3 else date(2024, 5, 1),
                        first_name=f"M{n}")
            for n in range(10)
        ]
        metrics = compute_dashboard_metrics(members, NOW)
        assert len(metrics.renewed_this_month) == 3
        assert metrics.renewal_percentage == 30

    def test_keeps_input_order(self):
        members = [make_member(NOW - timedelta(days=n), first_name=f"M{n}") for n in (3, 1, 20, 2)]
        metrics = compute_dashboard_metrics(members, NOW)
        assert [m.first_name for m in metrics.expired] == ["M3", "M1", "M20", "M2"]

    def test_invalid_member_date_propagates(self):
        bad = make_member("2024-02-30")
        with pytest.raises(InvalidDateError):
            compute_dashboard_metrics([bad], NOW)


class TestRenewalPercentage:
    def test_zero_total(self):
        assert renewal_percentage(0, 0) == 0

    def test_rounds_half_up(self):
        assert renewal_percentage(1, 8) == 13
        assert renewal_percentage(1, 3) == 33
        assert renewal_percentage(2, 3) == 67

    def test_bounds(self):
        assert renewal_percentage(5, 5) == 100
        assert renewal_percentage(0, 5) == 0


# ── Member filter ────────────────────────────────────────────────────────
class TestFilterMembers:
    @pytest.fixture
    def members(self):
        return [
            make_member(NOW, first_name="Ahmed", last_name="Hassan"),
            make_member(NOW + timedelta(days=3), first_name="Mona", last_name="Ali"),
            make_member(NOW - timedelta(days=2), first_name="Omar", last_name="Samy", email="omar@gym.io"),
            make_member(NOW + timedelta(days=60), first_name="Sara", last_name="Nabil"),
        ]

    def test_all(self, members):
        assert filter_members(members, now=NOW) == members

    def test_search_is_case_insensitive(self, members):
        assert [m.first_name for m in filter_members(members, "ALI", now=NOW)] == ["Mona"]
        assert [m.first_name for m in filter_members(members, "gym.io", now=NOW)] == ["Omar"]
        assert [m.first_name for m in filter_members(members, "  sara ", now=NOW)] == ["Sara"]

    def test_active_includes_today_and_expiring(self, members):
        names = [m.first_name for m in filter_members(members, status_filter="active", now=NOW)]
        assert names == ["Ahmed", "Mona", "Sara"]

    def test_expired(self, members):
        names = [m.first_name for m in filter_members(members, status_filter="expired", now=NOW)]
        assert names == ["Omar"]

    def test_search_and_status_combined(self, members):
        assert filter_members(members, "omar", "active", now=NOW) == []

    def test_unknown_filter(self, members):
        with pytest.raises(ValueError):
            filter_members(members, status_filter="expiring", now=NOW)
