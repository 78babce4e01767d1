from __future__ import annotations

from math import isclose

from leasecalc.core.engine import calculate_all, present_value_of_annuity
from leasecalc.schemas.lease import LeaseContract


def test_zero_rate_liability_is_undiscounted_sum_of_payments():
    """
    With a 0% rate nothing is discounted: the liability is just payment x term and no interest accrues.
    """
    contract = LeaseContract(
        title="Interest-free printer lease",
        contract_value=1200.0,
        contract_term_months=12,
        implicit_interest_rate=0.0,
        lease_start_date="2024-06-01",
    )

    result = calculate_all(contract)

    assert result.monthly_payment == 100.0
    assert result.lease_liability_initial == 100.0 * 12
    assert result.total_interest_expense == 0.0
    assert result.effective_interest_rate_monthly == 0.0
    for row in result.amortization_schedule:
        assert row.interest_expense == 0.0
        assert isclose(row.principal_payment, 100.0, abs_tol=1e-9)
    assert result.amortization_schedule[-1].ending_liability == 0.0


def test_zero_rate_with_residual_adds_residual_at_face_value():
    contract = LeaseContract(
        contract_value=3600.0,
        contract_term_months=36,
        implicit_interest_rate=0.0,
        guaranteed_residual_value=400.0,
        lease_start_date="2024-06-01",
    )

    result = calculate_all(contract)

    assert result.lease_liability_initial == 3600.0 + 400.0
    # the residual is settled with the last payment
    assert isclose(result.amortization_schedule[-1].principal_payment, 500.0, abs_tol=1e-9)


def test_annuity_helper_uses_plain_multiplication_at_zero_rate():
    assert present_value_of_annuity(250.0, 0.0, 48) == 12000.0
