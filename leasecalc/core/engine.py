"""IFRS 16 lease calculation engine.

Measures the lease liability as the present value of the level monthly
payments (plus any guaranteed residual value), recognises a right-of-use asset
from it and runs both down over the term: the liability with the effective
interest method, the asset straight-line.

Every function here is pure. Callers that need reproducible schedules must
pass a ``lease_start_date``; without one the schedule is dated from today.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import List, Optional, Union

from dateutil.relativedelta import relativedelta

from leasecalc.domain.validation import ComputationError
from leasecalc.schemas.lease import (
    AmortizationPeriod,
    CalculationResult,
    LeaseContract,
    Pagination,
    SchedulePage,
)


def monthly_rate_from_annual(annual_rate_percent: float) -> float:
    return annual_rate_percent / 100 / 12


def present_value_of_annuity(payment: float, rate: float, periods: int) -> float:
    """Value today of ``periods`` equal payments made at the end of each period."""
    if rate == 0:
        return payment * periods
    return payment * (1 - (1 + rate) ** -periods) / rate


def derive_monthly_payment(contract: LeaseContract) -> float:
    """Level monthly payment for the contract.

    An explicit ``monthly_payment`` wins. Otherwise the nominal contract value
    is spread evenly over the term.
    """
    if contract.monthly_payment is not None:
        return float(contract.monthly_payment)

    term_months = contract.contract_term_months or 0
    if term_months <= 0:
        return 0.0
    return (contract.contract_value or 0.0) / term_months


def _require_rate(contract: LeaseContract) -> float:
    if contract.implicit_interest_rate is None:
        raise ComputationError("implicit_interest_rate is required to discount lease payments")
    return monthly_rate_from_annual(contract.implicit_interest_rate)


def _check_finite(label: str, value: float) -> float:
    if not math.isfinite(value):
        raise ComputationError(f"{label} is not a finite number ({value!r})")
    return value


def initial_lease_liability(contract: LeaseContract) -> float:
    term_months = contract.contract_term_months or 0
    if term_months <= 0:
        return 0.0

    rate = _require_rate(contract)
    payment = derive_monthly_payment(contract)
    liability = present_value_of_annuity(payment, rate, term_months)

    residual = contract.guaranteed_residual_value or 0.0
    if residual:
        liability += residual * (1 + rate) ** -term_months

    return _check_finite("lease liability", liability)


def initial_right_of_use_asset(contract: LeaseContract, liability: Optional[float] = None) -> float:
    """ROU asset = lease liability + initial direct costs - lease incentives."""
    if liability is None:
        liability = initial_lease_liability(contract)
    asset = liability + (contract.initial_direct_costs or 0.0) - (contract.lease_incentives or 0.0)
    return _check_finite("right-of-use asset", asset)


def period_date(start: dt.date, period: int) -> dt.date:
    # relativedelta clamps to the month end (31 Jan + 1 month -> 28/29 Feb)
    return start + relativedelta(months=period - 1)


def generate_amortization_schedule(
    contract: LeaseContract,
    liability: float,
    asset: float,
) -> List[AmortizationPeriod]:
    term_months = contract.contract_term_months or 0
    if term_months <= 0:
        return []

    rate = _require_rate(contract)
    payment = derive_monthly_payment(contract)
    start = contract.lease_start_date or dt.date.today()
    amortization = asset / term_months

    schedule: List[AmortizationPeriod] = []
    current_liability = liability
    current_asset = asset

    for period in range(1, term_months + 1):
        interest = current_liability * rate
        if period == term_months:
            # true-up: retire whatever rounding drift has accumulated
            principal = current_liability
        else:
            principal = min(payment - interest, current_liability)

        ending_liability = 0.0 if period == term_months else current_liability - principal
        ending_asset = current_asset - amortization

        schedule.append(
            AmortizationPeriod(
                period=period,
                date=period_date(start, period),
                beginning_liability=current_liability,
                interest_expense=interest,
                principal_payment=principal,
                ending_liability=ending_liability,
                beginning_asset=current_asset,
                amortization=amortization,
                ending_asset=ending_asset,
            )
        )

        current_liability = ending_liability
        current_asset = ending_asset

    return schedule


def calculate_all(contract: LeaseContract) -> CalculationResult:
    """Run the full IFRS 16 measurement for ``contract``.

    The contract should already have passed ``validate_lease_terms``. A
    non-positive term still yields an empty schedule rather than a division
    by zero; a missing rate raises ``ComputationError``.
    """
    liability = initial_lease_liability(contract)
    asset = initial_right_of_use_asset(contract, liability)
    schedule = generate_amortization_schedule(contract, liability, asset)

    total_interest = sum(row.interest_expense for row in schedule)
    total_principal = sum(row.principal_payment for row in schedule)
    first = schedule[0] if schedule else None

    annual_rate = contract.implicit_interest_rate or 0.0

    return CalculationResult(
        lease_liability_initial=liability,
        right_of_use_asset_initial=asset,
        lease_liability_current=liability,
        right_of_use_asset_current=asset,
        monthly_payment=derive_monthly_payment(contract),
        monthly_interest_expense=first.interest_expense if first else 0.0,
        monthly_principal_payment=first.principal_payment if first else 0.0,
        monthly_amortization=first.amortization if first else 0.0,
        total_interest_expense=total_interest,
        total_principal_payments=total_principal,
        total_lease_payments=total_interest + total_principal,
        effective_interest_rate_annual=annual_rate,
        effective_interest_rate_monthly=monthly_rate_from_annual(annual_rate) * 100,
        amortization_schedule=schedule,
    )


def balances_as_of(result: CalculationResult, as_of: Union[dt.date, int]) -> CalculationResult:
    """Return a copy of ``result`` with the current balances for ``as_of``.

    ``as_of`` is either a calendar date or a 1-based period index. The current
    balances are the opening balances of that period; before the first
    period they equal the initial measurement, after the last period they are
    the closing balances of the schedule.
    """
    schedule = result.amortization_schedule
    if not schedule:
        return result

    if isinstance(as_of, dt.datetime):
        as_of = as_of.date()

    if isinstance(as_of, dt.date):
        if as_of >= schedule[-1].date + relativedelta(months=1):
            period = len(schedule) + 1
        else:
            period = sum(1 for row in schedule if row.date <= as_of)
    else:
        period = int(as_of)

    if period < 1:
        liability, asset = result.lease_liability_initial, result.right_of_use_asset_initial
    elif period > len(schedule):
        liability, asset = schedule[-1].ending_liability, schedule[-1].ending_asset
    else:
        row = schedule[period - 1]
        liability, asset = row.beginning_liability, row.beginning_asset

    return result.model_copy(
        update={"lease_liability_current": liability, "right_of_use_asset_current": asset}
    )


def paginate_schedule(result: CalculationResult, page: int = 1, limit: int = 12) -> SchedulePage:
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be >= 1")

    schedule = result.amortization_schedule
    total_items = len(schedule)
    total_pages = math.ceil(total_items / limit)
    offset = (page - 1) * limit

    return SchedulePage(
        data=schedule[offset : offset + limit],
        pagination=Pagination(
            total_items=total_items,
            total_pages=total_pages,
            current_page=page,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        ),
    )
