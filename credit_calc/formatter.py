"""Output helpers for the credit calculators.

This module renders schedules and totals in a plain tabular text format for
the command line. Amounts are printed with two decimals and no currency or
locale formatting.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import AmortizationRow, MortgageTotals, PaymentScheduleItem, RevolvingTotals
from .presets import Preset


def print_revolving_summary(totals: RevolvingTotals) -> None:
    """Print revolving totals in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Cycles             : {totals.months}")
    print(f"Total paid         : {totals.total_paid:.2f}")
    print(f"Total interest     : {totals.total_interest:.2f}")
    if totals.total_fees:
        print(f"Total fees         : {totals.total_fees:.2f}")
    print(f"Principal paid     : {totals.total_principal_paid:.2f}")
    print(f"Final balance      : {totals.final_balance:.2f}")
    print("-" * 72)


def print_revolving_schedule(schedule: Iterable[PaymentScheduleItem]) -> None:
    """Print a revolving schedule; cycles that do not reduce principal are marked."""
    headers = ["Cycle", "StartBal", "Interest", "Fees", "Payment", "Principal", "EndBal", "InterestOnly"]
    print("\t".join(headers))
    for item in schedule:
        row = [
            str(item.cycle + 1),
            f"{item.starting_balance:.2f}",
            f"{item.interest_accrued:.2f}",
            f"{item.fees:.2f}",
            f"{item.payment:.2f}",
            f"{item.principal_paid:.2f}",
            f"{item.ending_balance:.2f}",
            "Yes" if item.only_interest_covered else "No",
        ]
        print("\t".join(row))


def print_mortgage_summary(totals: MortgageTotals) -> None:
    """Print mortgage totals and the up-front costs."""
    print("Summary")
    print("-" * 72)
    print(f"Principal          : {totals.principal_total:.2f}")
    print(f"Payment per 1000   : {totals.payment_per_thousand:.2f}")
    print(f"Total interest     : {totals.interest_total:.2f}")
    print(f"Total base payments: {totals.base_total:.2f}")
    print(f"Total insurance    : {totals.insurance_total:.2f}")
    print(f"Total admin fee    : {totals.admin_commission_total:.2f}")
    print(f"Grand total        : {totals.grand_total:.2f}")
    print(f"Down payment       : {totals.down_payment:.2f}")
    print(f"Opening commission : {totals.opening_commission:.2f}")
    print(f"Initial outlay     : {totals.initial_disbursement_required:.2f}")
    print("-" * 72)


def print_mortgage_schedule(rows: Iterable[AmortizationRow]) -> None:
    """Print a mortgage schedule as a simple table.

    The date column only appears for rows stamped with a calendar month.
    """
    rows = list(rows)
    with_dates = any(row.date for row in rows)
    headers = ["Month"]
    if with_dates:
        headers.append("Date")
    headers += ["OpenBal", "Interest", "Principal", "Base", "Insurance", "Admin", "Prepay", "Total", "CloseBal"]
    print("\t".join(headers))
    for row in rows:
        cells = [str(row.month)]
        if with_dates:
            cells.append(row.date.strftime("%Y-%m") if row.date else "")
        cells += [
            f"{row.opening_balance:.2f}",
            f"{row.interest:.2f}",
            f"{row.principal:.2f}",
            f"{row.base_payment:.2f}",
            f"{row.insurance:.2f}",
            f"{row.admin_commission:.2f}",
            f"{row.prepayment:.2f}",
            f"{row.total_payment:.2f}",
            f"{row.closing_balance:.2f}",
        ]
        print("\t".join(cells))


def print_presets(presets: Iterable[Preset]) -> None:
    """Print the preset catalog."""
    print(f"{'Id':26s} {'Bank':15s} {'APR':>7s} {'Min%':>6s} {'Floor':>8s}  Method / formula")
    print("=" * 96)
    for preset in presets:
        print(
            f"{preset.id:26s} {preset.bank_id:15s} {preset.apr * 100:6.1f}% {preset.min_payment_percent * 100:5.1f}% "
            f"{preset.min_payment_floor:8.2f}  {preset.interest_method} / {preset.min_payment_formula}"
        )
