from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from fleet_api.services.schedule import generate_schedule, schedule_total


START = date(2023, 1, 1)


def test_amount_bound_splits_total_into_full_rents():
    schedule = generate_schedule(START, None, 500, 1500)

    assert [i.amount for i in schedule] == [Decimal("500")] * 3
    assert [i.due_date for i in schedule] == [date(2023, 1, 1), date(2023, 2, 1), date(2023, 3, 1)]
    assert [i.number for i in schedule] == [1, 2, 3]


def test_last_installment_is_clipped_to_remaining_balance():
    schedule = generate_schedule(START, None, 500, 1300)

    assert [i.amount for i in schedule] == [Decimal("500"), Decimal("500"), Decimal("300")]
    assert schedule_total(schedule) == Decimal("1300.00")


def test_end_date_caps_the_amount_bound():
    start = date(2023, 1, 15)
    end = date(2023, 3, 15)

    schedule = generate_schedule(start, end, 500, 10000)

    assert len(schedule) <= 3
    # 59 days -> two 30-day periods
    assert [i.due_date for i in schedule] == [date(2023, 1, 15), date(2023, 2, 15)]


def test_year_long_lease_with_end_date():
    schedule = generate_schedule(START, date(2023, 12, 31), Decimal("1500"), Decimal("18000"))

    assert len(schedule) == 12
    assert schedule[-1].due_date == date(2023, 12, 1)
    assert schedule_total(schedule) == Decimal("18000.00")


def test_due_dates_never_pass_end_date():
    end = date(2023, 2, 10)
    schedule = generate_schedule(START, end, 100, 10000)

    assert all(i.due_date <= end for i in schedule)
    assert len(schedule) == 2


def test_month_end_start_clamps_to_shorter_months():
    schedule = generate_schedule(date(2024, 1, 31), None, 100, 400)

    assert [i.due_date for i in schedule] == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


def test_sum_never_exceeds_total():
    schedule = generate_schedule(START, None, Decimal("333.33"), Decimal("1000"))

    assert schedule_total(schedule) == Decimal("1000.00")
    assert schedule[-1].amount == Decimal("0.01")
    assert all(i.amount >= 0 for i in schedule)


def test_zero_total_yields_no_installments():
    assert generate_schedule(START, None, 500, 0) == []


def test_end_date_equal_to_start_yields_no_installments():
    assert generate_schedule(START, START, 500, 1500) == []


@pytest.mark.parametrize("rent", [0, -10])
def test_non_positive_rent_is_rejected(rent):
    with pytest.raises(ValueError):
        generate_schedule(START, None, rent, 1500)


def test_negative_total_is_rejected():
    with pytest.raises(ValueError):
        generate_schedule(START, None, 500, -1)


def test_generation_is_repeatable():
    first = generate_schedule(START, date(2023, 6, 30), 700, 5000)
    second = generate_schedule(START, date(2023, 6, 30), 700, 5000)

    assert first == second


def test_installments_are_immutable():
    inst = generate_schedule(START, None, 500, 500)[0]

    with pytest.raises(ValidationError):
        inst.amount = Decimal("1")
