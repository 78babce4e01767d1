from __future__ import annotations

import pytest

from conftest import lease_payload
from leasecalc.domain.validation import (
    INTEREST_RATE_MAX,
    TERM_MAX_MONTHS,
    LeaseValidationError,
    ensure_valid,
    validate_lease_terms,
)
from leasecalc.schemas.lease import LeaseContract


def validate(**overrides):
    return validate_lease_terms(LeaseContract.model_validate(lease_payload(**overrides)))


def test_reference_contract_is_valid():
    result = validate()
    assert result.valid
    assert result.errors == []


@pytest.mark.parametrize("term", [0, -12, None])
def test_non_positive_or_missing_term_is_rejected(term):
    result = validate(contract_term_months=term)
    assert not result.valid
    assert result.errors == ["Contract term must be greater than 0 months"]


@pytest.mark.parametrize("rate", [-0.5, None])
def test_negative_or_missing_rate_is_rejected(rate):
    result = validate(implicit_interest_rate=rate)
    assert result.errors == ["Implicit interest rate must be provided and non-negative"]


def test_zero_rate_is_accepted():
    assert validate(implicit_interest_rate=0).valid


def test_negative_amounts_are_rejected():
    result = validate(
        guaranteed_residual_value=-1,
        initial_direct_costs=-5,
        lease_incentives=-10,
    )
    assert result.errors == [
        "Guaranteed residual value must be non-negative",
        "Initial direct costs must be non-negative",
        "Lease incentives must be non-negative",
    ]


def test_contract_value_required_unless_payment_is_explicit():
    assert validate(contract_value=0).errors == ["Contract value must be greater than 0"]
    assert validate(contract_value=None, monthly_payment=2500).valid
    assert validate(contract_value=None, monthly_payment=0).errors == ["Monthly payment must be greater than 0"]


def test_end_date_must_follow_start_date():
    result = validate(lease_start_date="2024-01-01", lease_end_date="2023-12-31")
    assert result.errors == ["Lease end date must be after the start date"]


def test_all_problems_are_reported_together():
    result = validate(contract_value=-1, contract_term_months=0, implicit_interest_rate=None)
    assert len(result.errors) == 3


def test_ensure_valid_raises_with_every_error():
    contract = LeaseContract.model_validate(lease_payload(contract_term_months=0, implicit_interest_rate=-1))

    with pytest.raises(LeaseValidationError) as excinfo:
        ensure_valid(contract)

    assert excinfo.value.errors == [
        "Contract term must be greater than 0 months",
        "Implicit interest rate must be provided and non-negative",
    ]
    assert isinstance(excinfo.value, ValueError)


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
@pytest.mark.parametrize(
    "field_name, label",
    [
        ("contract_value", "Contract value"),
        ("implicit_interest_rate", "Implicit interest rate"),
        ("monthly_payment", "Monthly payment"),
        ("guaranteed_residual_value", "Guaranteed residual value"),
    ],
)
def test_non_finite_amounts_are_rejected(field_name, label, bad):
    result = validate(**{field_name: bad})
    assert not result.valid
    assert result.errors == [f"{label} must be a finite number"]


def test_term_is_capped_at_fifty_years():
    assert validate(contract_term_months=TERM_MAX_MONTHS).valid
    result = validate(contract_term_months=5_000_000)
    assert result.errors == ["Contract term must not exceed 600 months"]


def test_rate_is_capped_at_one_hundred_percent():
    assert validate(implicit_interest_rate=INTEREST_RATE_MAX).valid
    result = validate(implicit_interest_rate=5000)
    assert result.errors == ["Implicit interest rate must not exceed 100%"]


def test_negative_purchase_option_is_rejected():
    assert validate(purchase_option_price=0).valid
    assert validate(purchase_option_price=-250).errors == ["Purchase option price must be non-negative"]
