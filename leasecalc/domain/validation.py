from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Set

from leasecalc.schemas.lease import LeaseContract

TERM_MAX_MONTHS = 600  # 50 years
INTEREST_RATE_MAX = 100  # percent per year

_AMOUNT_LABELS = {
    "contract_value": "Contract value",
    "monthly_payment": "Monthly payment",
    "implicit_interest_rate": "Implicit interest rate",
    "guaranteed_residual_value": "Guaranteed residual value",
    "purchase_option_price": "Purchase option price",
    "initial_direct_costs": "Initial direct costs",
    "lease_incentives": "Lease incentives",
}
_NON_NEGATIVE_AMOUNTS = (
    "guaranteed_residual_value",
    "purchase_option_price",
    "initial_direct_costs",
    "lease_incentives",
)


class LeaseCalcError(Exception):
    """Base class for errors raised by the calculation core."""


class LeaseValidationError(LeaseCalcError, ValueError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class ComputationError(LeaseCalcError, ArithmeticError):
    """Raised when the engine cannot produce a finite, meaningful result."""


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def validate_lease_terms(contract: LeaseContract) -> ValidationResult:
    """Check the business invariants a contract must satisfy before calculation."""
    errors: List[str] = []

    # NaN compares False against every bound, so non-finite amounts are
    # reported once here and skipped by the range checks below
    non_finite: Set[str] = set()
    for name, label in _AMOUNT_LABELS.items():
        value = getattr(contract, name)
        if value is not None and not math.isfinite(value):
            errors.append(f"{label} must be a finite number")
            non_finite.add(name)

    has_explicit_payment = contract.monthly_payment is not None
    if has_explicit_payment:
        if "monthly_payment" not in non_finite and contract.monthly_payment <= 0:
            errors.append("Monthly payment must be greater than 0")
    elif "contract_value" not in non_finite and (not contract.contract_value or contract.contract_value <= 0):
        errors.append("Contract value must be greater than 0")

    if not contract.contract_term_months or contract.contract_term_months <= 0:
        errors.append("Contract term must be greater than 0 months")
    elif contract.contract_term_months > TERM_MAX_MONTHS:
        errors.append(f"Contract term must not exceed {TERM_MAX_MONTHS} months")

    rate = contract.implicit_interest_rate
    if "implicit_interest_rate" not in non_finite:
        if rate is None or rate < 0:
            errors.append("Implicit interest rate must be provided and non-negative")
        elif rate > INTEREST_RATE_MAX:
            errors.append(f"Implicit interest rate must not exceed {INTEREST_RATE_MAX}%")

    for name in _NON_NEGATIVE_AMOUNTS:
        value = getattr(contract, name)
        if name not in non_finite and value is not None and value < 0:
            errors.append(f"{_AMOUNT_LABELS[name]} must be non-negative")

    if (
        contract.lease_start_date is not None
        and contract.lease_end_date is not None
        and contract.lease_end_date <= contract.lease_start_date
    ):
        errors.append("Lease end date must be after the start date")

    return ValidationResult(valid=not errors, errors=errors)


def ensure_valid(contract: LeaseContract) -> None:
    result = validate_lease_terms(contract)
    if not result.valid:
        raise LeaseValidationError(result.errors)
