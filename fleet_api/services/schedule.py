from __future__ import annotations

import math
from datetime import date
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field

from fleet_api.services.money import ZERO, quantize_money

# approximate month used to bound the schedule by lease length
DAYS_PER_PERIOD = 30


class Installment(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1)
    due_date: date
    amount: Decimal = Field(ge=0)


def add_months(d: date, months: int) -> date:
    # relativedelta clamps to the last day of shorter months (Jan 31 -> Feb 28)
    return d + relativedelta(months=months)


def _amount_bound(total: Decimal, rent: Decimal) -> int:
    return math.ceil(total / rent)


def _time_bound(start_date: date, end_date: date) -> int:
    days = (end_date - start_date).days
    return max(0, math.ceil(days / DAYS_PER_PERIOD))


def generate_schedule(
    start_date: date,
    end_date: Optional[date],
    rent_amount,
    total_amount,
) -> list[Installment]:
    """
    Monthly installments for a lease.

    At most ceil(total / rent) installments are produced, further capped by
    ceil(days / 30) when the lease has an end date. Each installment is the
    rent or whatever is left of the total, whichever is smaller. Generation
    stops once the balance is allocated or a due date would pass end_date.

    Due dates are always computed from start_date (start + i months), so a
    lease starting on the 31st keeps returning to the 31st where it exists.
    """
    rent = quantize_money(rent_amount)
    total = quantize_money(total_amount)

    if rent <= 0:
        raise ValueError("rent_amount must be greater than zero.")
    if total < 0:
        raise ValueError("total_amount cannot be negative.")
    if total == 0:
        return []

    count = _amount_bound(total, rent)
    if end_date is not None:
        count = min(count, _time_bound(start_date, end_date))

    remaining = total
    installments: list[Installment] = []

    for i in range(count):
        if remaining <= ZERO:
            break

        due = add_months(start_date, i)
        if end_date is not None and due > end_date:
            break

        amount = min(rent, remaining)
        installments.append(Installment(number=i + 1, due_date=due, amount=amount))
        remaining = quantize_money(remaining - amount)

    return installments


def schedule_total(installments: list[Installment]) -> Decimal:
    return quantize_money(sum((i.amount for i in installments), ZERO))
