from __future__ import annotations

import datetime as dt

import pytest

from leasecalc.core.engine import balances_as_of, calculate_all, paginate_schedule
from leasecalc.schemas.lease import LeaseContract


@pytest.fixture()
def result():
    contract = LeaseContract(
        contract_value=36000.0,
        contract_term_months=36,
        implicit_interest_rate=6.0,
        lease_start_date=dt.date(2024, 1, 1),
    )
    return calculate_all(contract)


def test_as_of_period_uses_opening_balances_of_that_period(result):
    moved = balances_as_of(result, 13)
    row = result.amortization_schedule[12]

    assert moved.lease_liability_current == row.beginning_liability
    assert moved.right_of_use_asset_current == row.beginning_asset
    # the original result is untouched
    assert result.lease_liability_current == result.lease_liability_initial
    assert moved.lease_liability_initial == result.lease_liability_initial


def test_as_of_date_finds_the_period_it_falls_in(result):
    moved = balances_as_of(result, dt.date(2024, 3, 15))
    assert moved.lease_liability_current == result.amortization_schedule[2].beginning_liability


def test_as_of_before_start_returns_initial_values(result):
    assert balances_as_of(result, dt.date(2023, 12, 31)).lease_liability_current == result.lease_liability_initial
    assert balances_as_of(result, 0).right_of_use_asset_current == result.right_of_use_asset_initial


def test_as_of_after_last_period_returns_closing_balances(result):
    last = result.amortization_schedule[-1]

    after_date = balances_as_of(result, dt.date(2027, 1, 1))
    after_period = balances_as_of(result, 37)

    assert after_date.lease_liability_current == 0.0
    assert after_period.lease_liability_current == 0.0
    assert after_period.right_of_use_asset_current == last.ending_asset


def test_as_of_last_period_day_is_still_inside_the_schedule(result):
    moved = balances_as_of(result, dt.date(2026, 12, 31))
    assert moved.lease_liability_current == result.amortization_schedule[-1].beginning_liability


def test_paginate_middle_and_last_pages(result):
    middle = paginate_schedule(result, page=2, limit=12)
    assert [row.period for row in middle.data] == list(range(13, 25))
    assert middle.pagination.total_items == 36
    assert middle.pagination.total_pages == 3
    assert middle.pagination.has_next_page is True
    assert middle.pagination.has_previous_page is True

    last = paginate_schedule(result, page=3, limit=12)
    assert last.data[-1].period == 36
    assert last.pagination.has_next_page is False


def test_paginate_uneven_and_out_of_range(result):
    uneven = paginate_schedule(result, page=4, limit=10)
    assert [row.period for row in uneven.data] == [31, 32, 33, 34, 35, 36]
    assert uneven.pagination.total_pages == 4

    beyond = paginate_schedule(result, page=5, limit=10)
    assert beyond.data == []
    assert beyond.pagination.has_previous_page is True


@pytest.mark.parametrize("page,limit", [(0, 12), (1, 0)])
def test_paginate_rejects_non_positive_arguments(result, page, limit):
    with pytest.raises(ValueError):
        paginate_schedule(result, page=page, limit=limit)
