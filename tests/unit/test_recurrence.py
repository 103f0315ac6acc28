"""Unit tests for next-occurrence projection"""

from datetime import datetime, timedelta
from decimal import Decimal
from safespend.domain.models import Bill
from safespend.domain.recurrence import is_lapsed, next_occurrence_on_or_after


def make_bill(due_date: datetime, repeat: str = "none", status: str = "unpaid") -> Bill:
    return Bill(id="b1", amount=Decimal("10.00"), due_date=due_date, repeat=repeat, account_id="a1", status=status)


def test_one_off_future_anchor_returned_unchanged():
    """Test non-recurring bill returns its anchor while still ahead"""
    anchor = datetime(2026, 11, 3, 14, 45)
    assert next_occurrence_on_or_after(make_bill(anchor), datetime(2026, 10, 19, 10, 0)) == anchor


def test_one_off_earlier_today_still_counts():
    """Test reference is normalized to midnight (day granularity)"""
    anchor = datetime(2026, 10, 19, 8, 0)
    assert next_occurrence_on_or_after(make_bill(anchor), datetime(2026, 10, 19, 22, 0)) == anchor


def test_one_off_past_anchor_is_none():
    """Test expired one-off bill has no next occurrence"""
    anchor = datetime(2026, 10, 18, 23, 59)
    assert next_occurrence_on_or_after(make_bill(anchor), datetime(2026, 10, 19, 0, 0)) is None


def test_monthly_later_this_month():
    """Test monthly candidate in the reference month keeps anchor time"""
    bill = make_bill(datetime(2025, 6, 25, 7, 30), repeat="monthly")
    assert next_occurrence_on_or_after(bill, datetime(2026, 10, 19, 12, 0)) == datetime(2026, 10, 25, 7, 30)


def test_monthly_rolls_to_next_month():
    """Test monthly candidate already past moves one month ahead"""
    bill = make_bill(datetime(2025, 6, 5), repeat="monthly")
    assert next_occurrence_on_or_after(bill, datetime(2026, 10, 19)) == datetime(2026, 11, 5)


def test_monthly_rolls_over_year_end():
    bill = make_bill(datetime(2025, 1, 10), repeat="monthly")
    assert next_occurrence_on_or_after(bill, datetime(2026, 12, 20)) == datetime(2027, 1, 10)


def test_monthly_day_31_clamps_to_month_end():
    """Test short months clamp to their last day instead of rolling over"""
    bill = make_bill(datetime(2026, 1, 31), repeat="monthly")

    assert next_occurrence_on_or_after(bill, datetime(2026, 11, 5)) == datetime(2026, 11, 30)
    assert next_occurrence_on_or_after(bill, datetime(2027, 2, 1)) == datetime(2027, 2, 28)
    # Clamping never drifts the following months
    assert next_occurrence_on_or_after(bill, datetime(2027, 3, 1)) == datetime(2027, 3, 31)


def test_monthly_day_30_in_february():
    """Test a day missing only in February clamps there and recovers in March"""
    bill = make_bill(datetime(2026, 1, 30), repeat="monthly")

    assert next_occurrence_on_or_after(bill, datetime(2027, 2, 10)) == datetime(2027, 2, 28)
    assert next_occurrence_on_or_after(bill, datetime(2027, 2, 28, 23, 0)) == datetime(2027, 2, 28)
    assert next_occurrence_on_or_after(bill, datetime(2027, 3, 1)) == datetime(2027, 3, 30)


def test_monthly_result_is_earliest_matching_day():
    """Test every reference in a year yields the earliest day-15 date on/after it"""
    bill = make_bill(datetime(2024, 3, 15, 18, 0), repeat="monthly")
    reference = datetime(2026, 1, 1, 9, 0)

    for offset in range(365):
        ref = reference + timedelta(days=offset)
        result = next_occurrence_on_or_after(bill, ref)
        start = ref.replace(hour=0, minute=0)

        assert result.day == 15
        assert result >= start
        assert result.hour == 18
        # No earlier day-15 date is on/after the reference
        previous = result.replace(month=result.month - 1) if result.month > 1 else result.replace(
            year=result.year - 1, month=12
        )
        assert previous < start


def test_yearly_this_year_and_next():
    bill = make_bill(datetime(2020, 12, 1, 9, 15), repeat="yearly")
    assert next_occurrence_on_or_after(bill, datetime(2026, 10, 19)) == datetime(2026, 12, 1, 9, 15)

    bill = make_bill(datetime(2020, 3, 1), repeat="yearly")
    assert next_occurrence_on_or_after(bill, datetime(2026, 10, 19)) == datetime(2027, 3, 1)


def test_yearly_leap_day_clamps_in_common_years():
    bill = make_bill(datetime(2024, 2, 29), repeat="yearly")
    assert next_occurrence_on_or_after(bill, datetime(2026, 1, 10)) == datetime(2026, 2, 28)
    assert next_occurrence_on_or_after(bill, datetime(2027, 12, 1)) == datetime(2028, 2, 29)


def test_is_lapsed_only_for_owed_one_off_bills():
    reference = datetime(2026, 10, 19)
    past = datetime(2026, 9, 1)

    assert is_lapsed(make_bill(past), reference) is True
    assert is_lapsed(make_bill(past, status="scheduled"), reference) is True
    assert is_lapsed(make_bill(past, status="paid"), reference) is False
    assert is_lapsed(make_bill(past, repeat="monthly"), reference) is False
    assert is_lapsed(make_bill(datetime(2026, 10, 20)), reference) is False
