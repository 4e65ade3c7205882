"""Data models for the credit calculators.

This module defines dataclasses for the inputs and outputs of both engines:
the revolving (credit card) balance simulation and the amortizing mortgage
simulation. Inputs are built by the caller, already validated; outputs are
plain records that can be serialized verbatim with
:func:`credit_calc.utils.to_jsonable`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


# Revolving credit


INTEREST_METHODS = ("average_daily_balance", "simple_monthly_apr", "daily_compounding")
MIN_PAYMENT_FORMULAS = ("percent_only", "percent_plus_interest_and_fees")


@dataclass
class RevolvingInput:
    """Configuration of a revolving balance simulation.

    Attributes
    ----------
    principal: Decimal
        Balance at the start of the first cycle.
    apr: Decimal
        Annual percentage rate as a decimal fraction (``0.60`` is 60 %).
    cycle_days: int
        Length of a billing cycle in days.
    min_payment_percent: Decimal
        Share of the statement balance due every cycle.
    interest_method: str
        One of :data:`INTEREST_METHODS`.
    min_payment_formula: str
        One of :data:`MIN_PAYMENT_FORMULAS`.
    min_payment_floor: Decimal, optional
        Lowest minimum payment the issuer accepts. ``None`` disables the floor,
        which is how the target-months variant is configured.
    target_months: int, optional
        When set, the engine pays towards a payoff within this many cycles
        instead of paying the plain minimum.
    """

    principal: Decimal
    apr: Decimal
    cycle_days: int
    min_payment_percent: Decimal
    interest_method: str
    min_payment_formula: str
    min_payment_floor: Optional[Decimal] = None
    fees_per_cycle: Decimal = Decimal("0")
    new_charges_per_cycle: Decimal = Decimal("0")
    target_months: Optional[int] = None
    # presentation only
    locale: Optional[str] = None
    currency: Optional[str] = None


@dataclass
class PaymentScheduleItem:
    """One billing cycle of a revolving schedule.

    ``principal_paid`` is ``payment - interest_accrued - fees`` and may be zero
    or negative; such cycles carry ``only_interest_covered=True``.
    """

    cycle: int
    starting_balance: Decimal
    interest_accrued: Decimal
    fees: Decimal
    payment: Decimal
    principal_paid: Decimal
    ending_balance: Decimal
    only_interest_covered: bool


@dataclass
class RevolvingTotals:
    months: int
    total_paid: Decimal
    total_interest: Decimal
    total_fees: Decimal
    total_principal_paid: Decimal
    final_balance: Decimal


@dataclass
class RevolvingCalculationResult:
    id: str
    name: str
    input: RevolvingInput
    schedule: List[PaymentScheduleItem]
    totals: RevolvingTotals
    created_at: datetime
    preset_id: Optional[str] = None


# Mortgages


PRODUCT_TYPES = (
    "hipoteca_fija",
    "hipoteca_creciente",
    "muda",
    "remodela",
    "tu_opcion_mexico",
    "terreno",
    "liquidez",
)
GROWING_PRODUCT = "hipoteca_creciente"
PREPAYMENT_MODES = ("reduce_term", "reduce_installment")


@dataclass
class InterestBand:
    """Annual rate applied from ``from_month`` through ``to_month`` inclusive.

    Months are 1-based. A band without ``to_month`` runs to the end of the loan.
    """

    from_month: int
    annual_rate: Decimal
    to_month: Optional[int] = None


@dataclass
class GrowthSettings:
    """Installment growth for the growing-payment product.

    The base payment rises by ``annual_increase_pct`` once per elapsed year
    until ``increase_end_year``, after which it is re-amortized as a level
    payment. ``initial_payment_per_thousand`` seeds the month-1 payment.
    """

    annual_increase_pct: Decimal = Decimal("0")
    increase_end_year: int = 0
    initial_payment_per_thousand: Optional[Decimal] = None


@dataclass
class CostSettings:
    opening_commission_pct: Decimal = Decimal("0")
    admin_deferred_monthly_pct: Decimal = Decimal("0")  # of the original principal
    appraisal_cost: Decimal = Decimal("0")
    notary_cost: Decimal = Decimal("0")
    preorigination_cost: Decimal = Decimal("0")


@dataclass
class InsuranceSettings:
    life_annual_rate_on_balance: Decimal = Decimal("0")
    hazard_annual_rate_on_insured_value: Decimal = Decimal("0")
    insured_value_factor: Decimal = Decimal("1")  # 0.8 when the land is excluded
    reindex_insured_value_annual_pct: Decimal = Decimal("0")


@dataclass
class Prepayment:
    """An extra payment applied to principal in ``month`` (1-based)."""

    month: int
    amount: Decimal


@dataclass
class MortgageInput:
    """Configuration of a mortgage.

    ``principal`` overrides ``property_value * ltv`` when given. ``growth``
    is only read for :data:`GROWING_PRODUCT`; every other product prices as a
    fixed level payment. ``start_date`` is optional and only stamps rows with
    their calendar month.
    """

    product: str
    property_value: Decimal
    ltv: Decimal
    term_months: int
    bands: List[InterestBand]
    costs: CostSettings = field(default_factory=CostSettings)
    insurance: InsuranceSettings = field(default_factory=InsuranceSettings)
    prepayments: List[Prepayment] = field(default_factory=list)
    prepayment_mode: str = "reduce_term"
    principal: Optional[Decimal] = None
    growth: Optional[GrowthSettings] = None
    rounding_mode: Optional[str] = None
    start_date: Optional[date] = None


@dataclass
class AmortizationRow:
    """One month of a mortgage schedule.

    ``base_payment`` is principal plus interest; ``total_payment`` adds
    insurance, the administrative commission and any prepayment.
    """

    month: int
    opening_balance: Decimal
    interest: Decimal
    principal: Decimal
    base_payment: Decimal
    insurance: Decimal
    admin_commission: Decimal
    total_payment: Decimal
    prepayment: Decimal
    closing_balance: Decimal
    date: Optional[date] = None


@dataclass
class MortgageTotals:
    interest_total: Decimal
    principal_total: Decimal
    base_total: Decimal
    insurance_total: Decimal
    admin_commission_total: Decimal
    grand_total: Decimal
    payment_per_thousand: Decimal
    initial_disbursement_required: Decimal
    opening_commission: Decimal
    down_payment: Decimal


@dataclass
class MortgageResult:
    input: MortgageInput
    rows: List[AmortizationRow]
    totals: MortgageTotals


@dataclass
class MortgageCalculationResult:
    id: str
    name: str
    input: MortgageInput
    rows: List[AmortizationRow]
    totals: MortgageTotals
    created_at: datetime
    preset_id: Optional[str] = None
