"""Tests for the pay schedule generator."""

from datetime import date
from decimal import Decimal

from payplan.core.paychecks import first_pay_date, generate_paychecks, paychecks_between
from payplan.models.schedule import Frequency, PaySchedule


class TestGeneratePaychecks:
    """Tests for generate_paychecks."""

    def test_biweekly_from_anchor(self):
        """Test biweekly pay steps 14 days from the anchor."""
        schedule = PaySchedule(
            frequency=Frequency.BIWEEKLY,
            pay_amount=Decimal("1000"),
            next_pay_date=date(2024, 1, 5),
        )
        events = generate_paychecks(schedule, 3, date(2024, 1, 5))
        assert [e.date for e in events] == [date(2024, 1, 5), date(2024, 1, 19), date(2024, 2, 2)]
        assert all(e.amount == Decimal("1000.00") for e in events)

    def test_biweekly_past_anchor_never_before_today(self):
        """Test a stale anchor is stepped forward past today."""
        schedule = PaySchedule(frequency=Frequency.BIWEEKLY, next_pay_date=date(2023, 12, 1))
        events = generate_paychecks(schedule, 4, date(2024, 1, 10))
        assert events[0].date == date(2024, 1, 12)
        assert all(e.date >= date(2024, 1, 10) for e in events)

    def test_dates_non_decreasing(self):
        """Test the sequence is ordered."""
        schedule = PaySchedule(frequency=Frequency.WEEKLY, next_pay_date=date(2024, 1, 3))
        dates = [e.date for e in generate_paychecks(schedule, 6, date(2024, 1, 1))]
        assert dates == sorted(dates)
        assert len(dates) == 6

    def test_semimonthly_default_anchors(self):
        """Test semimonthly pay uses the 1st and 15th by default."""
        schedule = PaySchedule(frequency=Frequency.SEMIMONTHLY, pay_amount=Decimal("1500"))
        events = generate_paychecks(schedule, 4, date(2024, 1, 20))
        assert [e.date for e in events] == [
            date(2024, 2, 1),
            date(2024, 2, 15),
            date(2024, 3, 1),
            date(2024, 3, 15),
        ]

    def test_semimonthly_custom_default_anchors(self):
        """Test configured default anchors apply when the schedule has none."""
        schedule = PaySchedule(frequency=Frequency.SEMIMONTHLY)
        events = generate_paychecks(schedule, 2, date(2024, 1, 20), default_anchors=(5, 20))
        assert [e.date for e in events] == [date(2024, 1, 20), date(2024, 2, 5)]

    def test_monthly_day_of_month(self):
        """Test monthly pay on a fixed day with no anchor date."""
        schedule = PaySchedule(frequency=Frequency.MONTHLY, day_of_month=31)
        events = generate_paychecks(schedule, 3, date(2024, 1, 31))
        assert [e.date for e in events] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]

    def test_no_anchor_returns_empty(self):
        """Test a schedule without an anchor yields nothing."""
        assert generate_paychecks(PaySchedule(frequency=Frequency.BIWEEKLY), 4, date(2024, 1, 1)) == []
        assert generate_paychecks(PaySchedule(frequency=Frequency.MONTHLY), 4, date(2024, 1, 1)) == []
        assert first_pay_date(PaySchedule(frequency=Frequency.WEEKLY), date(2024, 1, 1)) is None

    def test_no_schedule_returns_empty(self):
        """Test a missing schedule yields nothing."""
        assert generate_paychecks(None, 4, date(2024, 1, 1)) == []


class TestPaychecksBetween:
    """Tests for paychecks_between."""

    def test_biweekly_month_with_three_checks(self):
        """Test a month that holds three biweekly paychecks."""
        schedule = PaySchedule(frequency=Frequency.BIWEEKLY, next_pay_date=date(2024, 1, 5))
        events = paychecks_between(schedule, date(2024, 3, 1), date(2024, 3, 31))
        assert [e.date for e in events] == [date(2024, 3, 1), date(2024, 3, 15), date(2024, 3, 29)]

    def test_empty_range(self):
        """Test an inverted range yields nothing."""
        schedule = PaySchedule(frequency=Frequency.WEEKLY, next_pay_date=date(2024, 1, 5))
        assert paychecks_between(schedule, date(2024, 2, 1), date(2024, 1, 1)) == []
