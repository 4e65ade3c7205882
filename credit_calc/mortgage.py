"""Amortizing loan engine.

This module builds month-by-month mortgage schedules, including life and
hazard insurance, a deferred administrative commission, piecewise interest
rate bands and prepayments that either shorten the term or lower the
installment. It also supports the growing-installment product, whose base
payment rises once a year for a configured window and is then re-amortized
as a level payment.

The base payment is driven by an explicit policy value carried through the
loop (see :func:`resolve_base_payment`) rather than by a mutable closure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .data_models import (
    GROWING_PRODUCT,
    PREPAYMENT_MODES,
    AmortizationRow,
    GrowthSettings,
    InterestBand,
    MortgageCalculationResult,
    MortgageInput,
    MortgageResult,
    MortgageTotals,
)
from .exceptions import InvalidConfiguration, InsufficientPayment
from .utils import (
    ROUNDING_MODES,
    add_months,
    annuity_payment,
    monthly_rate_for_month,
    round_currency,
    to_decimal,
)

logger = logging.getLogger(__name__)

# Balances at or below half a cent count as paid off.
PAYOFF_THRESHOLD = Decimal("0.005")
# Month-1 payment of a growing loan without a payment per thousand, as a share
# of the fixed annuity. A deliberate under-estimate the caller is meant to tune.
GROWING_FALLBACK_SHARE = Decimal("0.9")

PRODUCT_LABELS = {
    "hipoteca_fija": "Hipoteca Fija",
    "hipoteca_creciente": "Hipoteca Creciente",
    "muda": "Muda",
    "remodela": "Remodela",
    "tu_opcion_mexico": "Tu Opción México",
    "terreno": "Terreno",
    "liquidez": "Liquidez",
}


# Base payment policies


@dataclass(frozen=True)
class FixedPayment:
    amount: Decimal


@dataclass(frozen=True)
class GrowingPayment:
    """Growth phase of the growing product.

    For months up to ``months_of_growth`` the payment is
    ``initial * (1 + annual_increase_pct) ** year_index``.
    """

    initial: Decimal
    annual_increase_pct: Decimal
    months_of_growth: int


@dataclass(frozen=True)
class FixedAfterGrowth:
    amount: Decimal


@dataclass(frozen=True)
class ReinstalledFixed:
    """Level payment installed by a reduce-installment prepayment."""

    amount: Decimal


BasePaymentPolicy = Union[FixedPayment, GrowingPayment, FixedAfterGrowth, ReinstalledFixed]


def resolve_base_payment(
    policy: BasePaymentPolicy,
    month: int,
    balance: Decimal,
    bands: Sequence[InterestBand],
    term_months: int,
) -> Tuple[Decimal, BasePaymentPolicy]:
    """Return the base payment for ``month`` and the policy for later months.

    A growing policy past its window converts here, using the simulated
    ``balance`` of that month, into a level payment over the months left.
    """
    if isinstance(policy, GrowingPayment):
        if month <= policy.months_of_growth:
            year_index = (month - 1) // 12
            return policy.initial * (1 + policy.annual_increase_pct) ** year_index, policy
        months_left = term_months - (month - 1)
        rate = monthly_rate_for_month(bands, month)
        fixed = FixedAfterGrowth(annuity_payment(balance, rate, months_left))
        logger.debug("Growth window over at month %d; level payment %s", month, fixed.amount)
        return fixed.amount, fixed
    return policy.amount, policy


def resolve_input(raw: MortgageInput) -> MortgageInput:
    """Fill in defaults: principal, growth settings and rounding mode."""
    if raw.prepayment_mode not in PREPAYMENT_MODES:
        raise InvalidConfiguration(f"Unknown prepayment mode: {raw.prepayment_mode}")
    rounding = raw.rounding_mode or "round"
    if rounding not in ROUNDING_MODES:
        raise InvalidConfiguration(f"Unknown rounding mode: {rounding}")
    if raw.principal is not None:
        principal = round_currency(raw.principal, rounding)
    else:
        principal = round_currency(to_decimal(raw.property_value) * to_decimal(raw.ltv), "round")
    return replace(
        raw,
        principal=principal,
        growth=raw.growth or GrowthSettings(),
        rounding_mode=rounding,
        prepayments=list(raw.prepayments),
        bands=list(raw.bands),
    )


def _initial_policy(config: MortgageInput) -> BasePaymentPolicy:
    principal = config.principal
    term = config.term_months
    fixed_amount = annuity_payment(principal, monthly_rate_for_month(config.bands, 1), term)
    if config.product != GROWING_PRODUCT:
        return FixedPayment(fixed_amount)

    growth = config.growth
    if growth.initial_payment_per_thousand:
        initial = principal / 1000 * to_decimal(growth.initial_payment_per_thousand)
    else:
        initial = fixed_amount * GROWING_FALLBACK_SHARE
    return GrowingPayment(
        initial=initial,
        annual_increase_pct=to_decimal(growth.annual_increase_pct),
        months_of_growth=min(term, growth.increase_end_year * 12),
    )


def _prepayments_by_month(config: MortgageInput) -> Dict[int, Decimal]:
    mapping: Dict[int, Decimal] = {}
    for prepayment in config.prepayments:
        mapping[prepayment.month] = mapping.get(prepayment.month, Decimal("0")) + to_decimal(prepayment.amount)
    return mapping


def simulate_mortgage(raw: MortgageInput) -> MortgageResult:
    """Compute the amortization schedule and totals for a mortgage.

    Parameters
    ----------
    raw: MortgageInput
        The loan configuration. Optional fields are defaulted first and the
        resolved input is echoed in the result.

    Returns
    -------
    MortgageResult
        Resolved input, one row per month actually paid and aggregate totals.

    Raises
    ------
    InsufficientPayment
        If a base payment does not cover the month's interest.
    """
    config = resolve_input(raw)
    rounding = config.rounding_mode
    principal0 = config.principal
    term = config.term_months
    costs = config.costs
    insurance = config.insurance

    down_payment = round_currency(to_decimal(config.property_value) - principal0, rounding)
    opening_commission = round_currency(principal0 * to_decimal(costs.opening_commission_pct), rounding)
    initial_disbursement = round_currency(
        down_payment
        + to_decimal(costs.notary_cost)
        + to_decimal(costs.appraisal_cost)
        + to_decimal(costs.preorigination_cost)
        + opening_commission,
        rounding,
    )
    admin_pct = to_decimal(costs.admin_deferred_monthly_pct)
    monthly_admin = round_currency(principal0 * admin_pct, rounding)

    property_value = to_decimal(config.property_value)
    insured_factor = to_decimal(insurance.insured_value_factor)
    reindex_pct = to_decimal(insurance.reindex_insured_value_annual_pct)
    life_rate = to_decimal(insurance.life_annual_rate_on_balance)
    hazard_rate = to_decimal(insurance.hazard_annual_rate_on_insured_value)

    policy = _initial_policy(config)
    prepay_by_month = _prepayments_by_month(config)

    rows: List[AmortizationRow] = []
    balance = principal0
    interest_total = Decimal("0")
    base_total = Decimal("0")
    insurance_total = Decimal("0")

    for month in range(1, term + 1):
        if balance <= PAYOFF_THRESHOLD:
            break
        base, policy = resolve_base_payment(policy, month, balance, config.bands, term)

        rate = monthly_rate_for_month(config.bands, month)
        interest = balance * rate
        principal = base - interest
        if principal < 0:
            raise InsufficientPayment(month, round_currency(base), round_currency(interest))

        # Last installment adjustment
        if principal > balance:
            principal = balance
            base = interest + principal

        year_index = (month - 1) // 12
        insured_value = property_value * insured_factor * (1 + reindex_pct) ** year_index
        life = balance * life_rate / 12
        hazard = insured_value * hazard_rate / 12

        interest = round_currency(interest, rounding)
        principal = round_currency(principal, rounding)
        base = round_currency(base, rounding)
        insurance_amount = round_currency(life + hazard, rounding)

        prepayment = round_currency(prepay_by_month.get(month, 0), rounding)
        if prepayment > balance - principal:
            prepayment = round_currency(balance - principal, rounding)

        closing = round_currency(balance - principal - prepayment, rounding)

        if prepayment > 0 and config.prepayment_mode == "reduce_installment":
            months_left = term - month
            if months_left > 0:
                next_rate = monthly_rate_for_month(config.bands, month + 1)
                policy = ReinstalledFixed(annuity_payment(closing, next_rate, months_left))
                logger.debug("Prepayment in month %d; installment now %s", month, policy.amount)

        total_payment = round_currency(base + insurance_amount + monthly_admin + prepayment, rounding)

        rows.append(
            AmortizationRow(
                month=month,
                date=add_months(config.start_date, month - 1) if config.start_date else None,
                opening_balance=balance,
                interest=interest,
                principal=principal,
                base_payment=base,
                insurance=insurance_amount,
                admin_commission=monthly_admin,
                total_payment=total_payment,
                prepayment=prepayment,
                closing_balance=closing,
            )
        )

        balance = closing
        interest_total += interest
        base_total += base
        insurance_total += insurance_amount

    # Only months actually paid carry the admin commission.
    admin_total = round_currency(admin_pct * principal0 * len(rows), rounding)
    payment_per_thousand = (
        round_currency(rows[0].base_payment / (principal0 / 1000), "round") if rows else Decimal("0.00")
    )

    totals = MortgageTotals(
        interest_total=round_currency(interest_total, rounding),
        principal_total=round_currency(principal0, rounding),
        base_total=round_currency(base_total, rounding),
        insurance_total=round_currency(insurance_total, rounding),
        admin_commission_total=admin_total,
        grand_total=round_currency(base_total + insurance_total + admin_total, rounding),
        payment_per_thousand=payment_per_thousand,
        initial_disbursement_required=initial_disbursement,
        opening_commission=opening_commission,
        down_payment=down_payment,
    )
    return MortgageResult(input=config, rows=rows, totals=totals)


def generate_mortgage_name(config: MortgageInput) -> str:
    """Build a default display name such as ``"Hipoteca Fija - 4,770,000"``."""
    label = PRODUCT_LABELS.get(config.product, config.product)
    if config.principal is not None:
        principal = to_decimal(config.principal)
    else:
        principal = to_decimal(config.property_value) * to_decimal(config.ltv)
    return f"{label} - {principal:,.0f}"


def create_mortgage_calculation(
    config: MortgageInput,
    name: Optional[str] = None,
    preset_id: Optional[str] = None,
    *,
    calculation_id: str,
    created_at: datetime,
) -> MortgageCalculationResult:
    """Run the simulation and wrap it in a result record with caller identity."""
    result = simulate_mortgage(config)
    return MortgageCalculationResult(
        id=calculation_id,
        name=name or generate_mortgage_name(config),
        preset_id=preset_id,
        input=result.input,
        rows=result.rows,
        totals=result.totals,
        created_at=created_at,
    )
