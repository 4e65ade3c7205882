"""Revolving balance engine.

Simulates a credit-card-like balance cycle by cycle under a chosen interest
accrual method and minimum payment formula, until the balance is paid off or a
safety cap is reached. Two operating modes share the same loop:

* minimum-payment mode, where every cycle pays the formula's minimum;
* target-payoff mode (``target_months`` set), where a heuristic payment aims to
  clear the balance within the target horizon.

Results are returned as a list of ``PaymentScheduleItem`` objects along with a
``RevolvingTotals`` record.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from .data_models import (
    PaymentScheduleItem,
    RevolvingCalculationResult,
    RevolvingInput,
    RevolvingTotals,
)
from .exceptions import InvalidConfiguration
from .utils import Number, round_currency, to_decimal

logger = logging.getLogger(__name__)

# Heuristic policy constants, not actuarially derived.
MAX_CYCLES = 600
RUNAWAY_GUARD_CYCLES = 12
BALANCE_EPSILON = Decimal("0.01")
FINAL_PAYMENT_SNAP_FACTOR = Decimal("1.1")
EARLY_STOP_FACTOR = Decimal("1.02")
EARLY_STOP_MIN_TARGET = 12


def get_daily_rate(apr: Number, cycle_days: Optional[int] = None) -> Decimal:
    """Return the daily rate for ``apr``.

    For a cycle other than 365 days the APR is spread over the cycle instead.
    """
    if cycle_days and cycle_days != 365:
        return to_decimal(apr) / cycle_days
    return to_decimal(apr) / 365


def approximate_average_daily_balance_interest(balance: Decimal, apr: Decimal) -> Decimal:
    """Approximate average-daily-balance interest as ``(APR / 12) * balance``.

    This is not an integration over daily balances: the cycle's starting
    balance stands in for the average daily balance.
    """
    return (apr / 12) * balance


def compute_cycle_interest(balance: Number, apr: Number, method: str, cycle_days: int) -> Decimal:
    """Compute the interest accrued over one cycle.

    Raises
    ------
    InvalidConfiguration
        If ``method`` is not a known interest method.
    """
    balance = to_decimal(balance)
    apr = to_decimal(apr)
    if method == "average_daily_balance":
        return approximate_average_daily_balance_interest(balance, apr)
    if method == "simple_monthly_apr":
        return balance * (apr / 12)
    if method == "daily_compounding":
        return balance * ((1 + get_daily_rate(apr)) ** cycle_days - 1)
    raise InvalidConfiguration(f"Unknown interest method: {method}")


def compute_minimum_payment(
    config: RevolvingInput,
    statement_balance: Number,
    interest: Number,
    fees: Number,
) -> Decimal:
    """Return the minimum payment due for a cycle, rounded to cents.

    With ``percent_only`` the payment is ``percent * statement_balance``; with
    ``percent_plus_interest_and_fees`` the cycle's interest and fees are added.
    A configured floor raises the payment, but never above what is owed.
    """
    statement_balance = to_decimal(statement_balance)
    interest = to_decimal(interest)
    fees = to_decimal(fees)
    percent = to_decimal(config.min_payment_percent)
    formula = config.min_payment_formula
    if formula == "percent_only":
        payment = percent * statement_balance
    elif formula == "percent_plus_interest_and_fees":
        payment = percent * statement_balance + interest + fees
    else:
        raise InvalidConfiguration(f"Unknown minimum payment formula: {formula}")

    if config.min_payment_floor is not None:
        floor = to_decimal(config.min_payment_floor)
        if payment < floor:
            payment = min(floor, statement_balance + interest + fees)

    return max(Decimal("0"), round_currency(payment))


def calculate_optimal_min_payment(principal: Number, apr: Number, target_months: int) -> Decimal:
    """Estimate the level payment that clears ``principal`` in ``target_months``.

    Total interest is approximated from the average balance over the horizon
    (``principal * monthly_rate * months / 2``), so the result is a heuristic,
    not an annuity.
    """
    if target_months <= 0:
        raise ValueError("Target months must be positive")
    principal = to_decimal(principal)
    monthly_rate = to_decimal(apr) / 12
    estimated_total_interest = principal * monthly_rate * target_months / 2
    return round_currency((principal + estimated_total_interest) / target_months)


def calculate_required_payment(remaining_balance: Number, apr: Number, remaining_months: int) -> Decimal:
    """Payment needed to catch up with the target horizon.

    Uses the same averaging heuristic as :func:`calculate_optimal_min_payment`
    on what is left; with no months left the whole balance is due.
    """
    if remaining_months <= 0:
        return to_decimal(remaining_balance)
    return calculate_optimal_min_payment(remaining_balance, apr, remaining_months)


def simulate_revolving(config: RevolvingInput) -> Tuple[List[PaymentScheduleItem], RevolvingTotals]:
    """Compute the payment schedule and totals for a revolving balance.

    Parameters
    ----------
    config: RevolvingInput
        Validated input. ``target_months`` selects target-payoff mode.

    Returns
    -------
    schedule: List[PaymentScheduleItem]
        One item per cycle, until the balance is cleared, the runaway guard
        trips or :data:`MAX_CYCLES` cycles have been produced.
    totals: RevolvingTotals
        Sums over the schedule.
    """
    principal = to_decimal(config.principal)
    apr = to_decimal(config.apr)
    fees = to_decimal(config.fees_per_cycle)
    new_charges = to_decimal(config.new_charges_per_cycle)
    target_months = config.target_months

    # Fail on an unknown method before the loop, even for a zero balance.
    compute_cycle_interest(Decimal("0"), apr, config.interest_method, config.cycle_days)

    if target_months:
        logger.debug("Revolving simulation in target-payoff mode (%s months)", target_months)
        monthly_rate = apr / 12
        initial_optimal_payment = principal / target_months + principal * monthly_rate
    else:
        logger.debug("Revolving simulation in minimum-payment mode")
        initial_optimal_payment = Decimal("0")

    first_payment_threshold = compute_minimum_payment(config, principal, 0, fees)

    schedule: List[PaymentScheduleItem] = []
    balance = principal
    cycle = 0
    while balance > 0 and cycle < MAX_CYCLES:
        starting_balance = balance
        balance_with_charges = starting_balance + new_charges
        interest = compute_cycle_interest(
            balance_with_charges, apr, config.interest_method, config.cycle_days
        )
        min_payment = compute_minimum_payment(config, balance_with_charges, interest, fees)

        if target_months and cycle < target_months:
            payment = max(min_payment, round_currency(initial_optimal_payment))
            required = calculate_required_payment(
                balance_with_charges + interest + fees, apr, target_months - cycle
            )
            payment = max(payment, required)
        else:
            payment = min_payment

        principal_paid = payment - interest - fees
        ending_balance = round_currency(balance_with_charges + interest + fees - payment)
        item = PaymentScheduleItem(
            cycle=cycle,
            starting_balance=round_currency(starting_balance),
            interest_accrued=round_currency(interest),
            fees=round_currency(fees),
            payment=payment,
            principal_paid=round_currency(principal_paid),
            ending_balance=ending_balance,
            only_interest_covered=principal_paid <= 0,
        )

        if target_months:
            # Once what is left falls within 10 % of the first minimum payment,
            # this payment clears the balance and the cycle's interest is
            # waived.
            if (
                ending_balance <= first_payment_threshold * FINAL_PAYMENT_SNAP_FACTOR
                or ending_balance <= BALANCE_EPSILON
            ):
                remaining = balance_with_charges + fees
                item.payment = round_currency(remaining)
                item.interest_accrued = Decimal("0.00")
                item.principal_paid = round_currency(remaining - fees)
                item.ending_balance = Decimal("0.00")
                item.only_interest_covered = False

        schedule.append(item)
        balance = item.ending_balance
        cycle += 1

        # Unreachable while the 10 % snap above is terminal: any balance within
        # 2 % of the threshold has already been snapped to zero.
        if target_months and ending_balance <= first_payment_threshold * EARLY_STOP_FACTOR and (
            cycle >= target_months or target_months > EARLY_STOP_MIN_TARGET
        ):
            break
        if balance <= BALANCE_EPSILON:
            break
        if ending_balance > starting_balance and cycle > RUNAWAY_GUARD_CYCLES:
            logger.warning(
                "Balance still growing after %d cycles (%s > %s); stopping", cycle, ending_balance, starting_balance
            )
            break
    else:
        if balance > 0:
            logger.warning("Revolving schedule hit the %d cycle cap with %s outstanding", MAX_CYCLES, balance)

    return schedule, summarize_schedule(schedule)


def summarize_schedule(schedule: List[PaymentScheduleItem]) -> RevolvingTotals:
    """Aggregate a revolving schedule into totals."""
    return RevolvingTotals(
        months=len(schedule),
        total_paid=round_currency(sum(item.payment for item in schedule)),
        total_interest=round_currency(sum(item.interest_accrued for item in schedule)),
        total_fees=round_currency(sum(item.fees for item in schedule)),
        total_principal_paid=round_currency(sum(item.principal_paid for item in schedule)),
        final_balance=schedule[-1].ending_balance if schedule else Decimal("0.00"),
    )


def generate_calculation_name(config: RevolvingInput) -> str:
    """Build a default display name from the input."""
    apr_percent = round(to_decimal(config.apr) * 100)
    min_percent = round(to_decimal(config.min_payment_percent) * 100)
    return f"{to_decimal(config.principal):,.2f} @ {apr_percent}% APR, {min_percent}% min"


def create_calculation(
    config: RevolvingInput,
    name: Optional[str] = None,
    preset_id: Optional[str] = None,
    *,
    calculation_id: str,
    created_at: datetime,
) -> RevolvingCalculationResult:
    """Run the simulation and wrap it in a result record.

    Identity and timestamp come from the caller; the engine never generates
    them.
    """
    schedule, totals = simulate_revolving(config)
    return RevolvingCalculationResult(
        id=calculation_id,
        name=name or generate_calculation_name(config),
        preset_id=preset_id,
        input=config,
        schedule=schedule,
        totals=totals,
        created_at=created_at,
    )
