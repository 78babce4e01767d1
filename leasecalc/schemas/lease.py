"""Data contracts for IFRS 16 lease calculations."""

from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PaymentFrequency = Literal["monthly", "quarterly", "semi-annual", "annual"]


class LeaseContract(BaseModel):
    """Lease terms as supplied by the contract store.

    Only field types are enforced here. Business rules (positive term,
    non-negative rate, ...) are checked by ``validate_lease_terms`` so that
    every problem with a record can be reported at once.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = ""
    description: Optional[str] = None

    contract_value: Optional[float] = Field(
        default=None,
        description="Nominal sum of the lease payments.",
    )
    contract_term_months: Optional[int] = Field(
        default=None,
        description="Lease term in whole months.",
    )
    implicit_interest_rate: Optional[float] = Field(
        default=None,
        description="Annual implicit/discount rate in percent (e.g. 8.5 for 8.5%).",
    )
    guaranteed_residual_value: Optional[float] = None
    monthly_payment: Optional[float] = Field(
        default=None,
        description="Explicit level payment. Derived from contract_value / term when absent.",
    )
    initial_direct_costs: Optional[float] = None
    lease_incentives: Optional[float] = None
    purchase_option_price: Optional[float] = None

    lease_start_date: Optional[dt.date] = None
    lease_end_date: Optional[dt.date] = None
    payment_frequency: Optional[PaymentFrequency] = None
    updated_at: Optional[dt.datetime] = None


# Fields whose change must force a recalculation. Anything else (title,
# description) is cosmetic and must not affect the cache key.
CALCULATION_FIELDS = (
    "contract_value",
    "contract_term_months",
    "implicit_interest_rate",
    "guaranteed_residual_value",
    "monthly_payment",
    "initial_direct_costs",
    "lease_incentives",
    "purchase_option_price",
    "lease_start_date",
    "lease_end_date",
    "payment_frequency",
    "updated_at",
)


class AmortizationPeriod(BaseModel):
    """Single row of a lease amortization schedule."""

    model_config = ConfigDict(frozen=True)

    period: int = Field(..., ge=1)
    date: dt.date
    beginning_liability: float
    interest_expense: float
    principal_payment: float
    ending_liability: float
    beginning_asset: float
    amortization: float
    ending_asset: float


class CalculationResult(BaseModel):
    """Initial measurement and full schedule for one lease."""

    model_config = ConfigDict(frozen=True)

    lease_liability_initial: float
    right_of_use_asset_initial: float
    lease_liability_current: float
    right_of_use_asset_current: float
    monthly_payment: float
    monthly_interest_expense: float
    monthly_principal_payment: float
    monthly_amortization: float
    total_interest_expense: float
    total_principal_payments: float
    total_lease_payments: float
    effective_interest_rate_annual: float
    effective_interest_rate_monthly: float
    amortization_schedule: List[AmortizationPeriod] = Field(default_factory=list)


class Pagination(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int
    has_next_page: bool
    has_previous_page: bool


class SchedulePage(BaseModel):
    """One page of an amortization schedule."""

    data: List[AmortizationPeriod]
    pagination: Pagination
