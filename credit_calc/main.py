"""Command-line interface for the credit calculators.

This module uses the ``click`` library to implement a multi-command interface.
Users can simulate a revolving (credit card) balance, build a mortgage
amortization schedule or list the built-in card presets. Results can be
printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import click

from .data_models import (
    INTEREST_METHODS,
    MIN_PAYMENT_FORMULAS,
    PRODUCT_TYPES,
    CostSettings,
    GrowthSettings,
    InsuranceSettings,
    InterestBand,
    MortgageInput,
    Prepayment,
    RevolvingInput,
)
from .exceptions import CalculationError
from .formatter import (
    print_mortgage_schedule,
    print_mortgage_summary,
    print_presets,
    print_revolving_schedule,
    print_revolving_summary,
)
from .mortgage import simulate_mortgage
from .presets import DEFAULT_PRESETS, apply_preset, get_preset_by_id, get_presets_by_bank
from .revolving import simulate_revolving
from .utils import decimal_from_str, parse_year_month, to_jsonable

logger = logging.getLogger(__name__)

MAX_PRINTED_ROWS = 120


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain floats ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a float.
    """
    value = value.strip().lower().replace(",", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    try:
        return float(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_percent(value: str) -> float:
    """Parse a percentage string (e.g. "60", "60%" or "0.6") into a fraction."""
    value = value.strip()
    if value.endswith("%"):
        value = value[:-1]
    try:
        p = float(value)
    except ValueError:
        raise click.BadParameter(f"Invalid percentage: {value}")
    # If the user enters a number like 60, treat it as 60%
    if p > 1:
        p = p / 100
    return p


def _amount(value: Optional[str]):
    if value is None:
        return None
    return decimal_from_str(str(parse_amount(value)))


def _fraction(value: Optional[str]):
    if value is None:
        return None
    return decimal_from_str(str(parse_percent(value)))


def parse_percent_points(value: str):
    """Parse a rate always given in percent (e.g. "1", "0.72" or "0.008%") into a fraction.

    Insurance and commission rates are small enough that the ``> 1`` rule of
    :func:`parse_percent` cannot tell a percentage from a fraction.
    """
    value = value.strip()
    if value.endswith("%"):
        value = value[:-1]
    try:
        return decimal_from_str(value) / 100
    except ValueError:
        raise click.BadParameter(f"Invalid percentage: {value}")


def parse_band_strings(values: Sequence[str]) -> List[InterestBand]:
    """Parse ``FROM[-TO]:RATE`` band strings, e.g. ``1-60:10.1`` or ``61:11``."""
    bands: List[InterestBand] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(f"Rate band must be in FROM[-TO]:RATE format; got {item}")
        months, rate = parts
        try:
            if "-" in months:
                start, end = months.split("-", 1)
                from_month, to_month = int(start), int(end)
            else:
                from_month, to_month = int(months), None
        except ValueError:
            raise click.BadParameter(f"Invalid month range in rate band: {item}")
        bands.append(InterestBand(from_month=from_month, to_month=to_month, annual_rate=_fraction(rate)))
    return bands


def parse_prepayment_strings(values: Sequence[str]) -> List[Prepayment]:
    """Parse ``MONTH:AMOUNT`` prepayment strings, e.g. ``12:250k``."""
    prepayments: List[Prepayment] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(f"Prepayment must be in MONTH:AMOUNT format; got {item}")
        try:
            month = int(parts[0])
        except ValueError:
            raise click.BadParameter(f"Invalid prepayment month: {parts[0]}")
        prepayments.append(Prepayment(month=month, amount=_amount(parts[1])))
    return prepayments


def build_revolving_config(
    principal: str,
    apr: Optional[str],
    cycle_days: Optional[int],
    min_percent: Optional[str],
    min_floor: Optional[str],
    fees: Optional[str],
    new_charges: Optional[str],
    method: Optional[str],
    formula: Optional[str],
    target_months: Optional[int],
    preset_id: Optional[str] = None,
) -> RevolvingInput:
    overrides: Dict[str, Any] = {
        "apr": _fraction(apr),
        "cycle_days": cycle_days,
        "min_payment_percent": _fraction(min_percent),
        "min_payment_floor": _amount(min_floor),
        "fees_per_cycle": _amount(fees),
        "new_charges_per_cycle": _amount(new_charges),
        "interest_method": method,
        "min_payment_formula": formula,
        "target_months": target_months,
    }
    if preset_id:
        preset = get_preset_by_id(preset_id)
        if preset is None:
            raise click.BadParameter(f"Unknown preset: {preset_id}")
        return apply_preset(preset, _amount(principal), **overrides)

    missing = [name for name in ("apr", "min_payment_percent", "interest_method", "min_payment_formula")
               if overrides[name] is None]
    if missing:
        raise click.BadParameter(f"Missing {', '.join(missing)} (or use --preset)")
    values = {key: value for key, value in overrides.items() if value is not None}
    values.setdefault("cycle_days", 30)
    return RevolvingInput(principal=_amount(principal), **values)


def export_to_json(path: Path, payload: Dict[str, Any]) -> None:
    """Export a result payload to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(to_jsonable(payload), f, indent=2)


def export_to_csv(path: Path, rows: Sequence[Any]) -> None:
    """Export schedule rows to a CSV file, one column per record field."""
    data = [to_jsonable(row) for row in rows]
    with path.open("w", newline="", encoding="utf-8") as f:
        if not data:
            return
        writer = csv.DictWriter(f, fieldnames=list(data[0].keys()))
        writer.writeheader()
        writer.writerows(data)


def _write_output(output: str, payload: Dict[str, Any], rows: Sequence[Any]) -> None:
    path = Path(output)
    if path.suffix.lower() == ".json":
        export_to_json(path, payload)
    elif path.suffix.lower() == ".csv":
        export_to_csv(path, rows)
    else:
        raise click.BadParameter("Unsupported output format; use .json or .csv")
    click.echo(f"Schedule exported to {path}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log engine decisions to stderr")
def cli(verbose: bool) -> None:
    """A command-line calculator for credit card debt and mortgages."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Starting balance")
@click.option("--apr", "-r", "apr", help="Annual percentage rate (e.g. 60 or 0.6)")
@click.option("--cycle-days", "cycle_days", type=click.IntRange(1, 366), help="Days per billing cycle [30]")
@click.option("--min-percent", "min_percent", help="Minimum payment percent of the statement balance")
@click.option("--min-floor", "min_floor", help="Lowest minimum payment accepted")
@click.option("--fees", "fees", help="Fees charged every cycle")
@click.option("--new-charges", "new_charges", help="New purchases added every cycle")
@click.option("--method", "method", type=click.Choice(INTEREST_METHODS), help="Interest accrual method")
@click.option("--formula", "formula", type=click.Choice(MIN_PAYMENT_FORMULAS), help="Minimum payment formula")
@click.option("--target-months", "target_months", type=click.IntRange(1, 600), help="Pay off within this many cycles")
@click.option("--preset", "preset_id", help="Fill the card terms from a built-in preset")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def revolving(
    principal: str,
    apr: Optional[str],
    cycle_days: Optional[int],
    min_percent: Optional[str],
    min_floor: Optional[str],
    fees: Optional[str],
    new_charges: Optional[str],
    method: Optional[str],
    formula: Optional[str],
    target_months: Optional[int],
    preset_id: Optional[str],
    output: Optional[str],
) -> None:
    """Simulate paying down a credit card balance."""
    config = build_revolving_config(
        principal, apr, cycle_days, min_percent, min_floor, fees, new_charges, method, formula, target_months, preset_id
    )
    try:
        schedule, totals = simulate_revolving(config)
    except CalculationError as exc:
        raise click.ClickException(str(exc))
    if output:
        _write_output(output, {"input": config, "totals": totals, "schedule": schedule}, schedule)
        return
    print_revolving_summary(totals)
    if any(item.only_interest_covered for item in schedule):
        click.echo("Warning: some payments do not cover interest and fees; the balance is not shrinking.")
    if len(schedule) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(schedule)} rows; showing first {MAX_PRINTED_ROWS} rows.")
    print_revolving_schedule(schedule[:MAX_PRINTED_ROWS])


@cli.command()
@click.option("--product", "product", type=click.Choice(PRODUCT_TYPES), default="hipoteca_fija", help="Mortgage product")
@click.option("--property-value", "property_value", required=True, help="Property value")
@click.option("--ltv", "ltv", default="0.9", help="Loan-to-value ratio (e.g. 90 or 0.9)")
@click.option("--principal", "-p", "principal", help="Loan amount (overrides property value x LTV)")
@click.option("--term", "-t", "term", required=True, type=click.IntRange(12, 480), help="Loan term in months")
@click.option("--band", "band", multiple=True, required=True, help="Rate band in FROM[-TO]:RATE format")
@click.option("--growth-pct", "growth_pct", help="Annual installment increase (growing product)")
@click.option("--growth-end-year", "growth_end_year", type=click.IntRange(0, 40), default=0, help="Last year of growth")
@click.option("--payment-per-thousand", "payment_per_thousand", help="Initial payment per 1000 of principal")
@click.option("--opening-commission", "opening_commission", default="0", help="Opening commission, percent of principal (e.g. 1)")
@click.option("--admin-monthly", "admin_monthly", default="0", help="Monthly admin commission, percent of original principal (e.g. 0.008)")
@click.option("--appraisal", "appraisal", default="0", help="Appraisal cost")
@click.option("--notary", "notary", default="0", help="Notary cost")
@click.option("--preorigination", "preorigination", default="0", help="Pre-origination cost")
@click.option("--life-rate", "life_rate", default="0", help="Annual life insurance rate, percent of balance (e.g. 0.72)")
@click.option("--hazard-rate", "hazard_rate", default="0", help="Annual hazard insurance rate, percent of insured value (e.g. 0.23)")
@click.option("--insured-factor", "insured_factor", default="1", help="Share of property value insured, as a factor (e.g. 0.8)")
@click.option("--reindex", "reindex", default="0", help="Annual reindexing of insured value, percent (e.g. 4)")
@click.option("--prepayment", "prepayment", multiple=True, help="Prepayment in MONTH:AMOUNT format")
@click.option("--prepayment-mode", "prepayment_mode", type=click.Choice(["reduce_term", "reduce_installment"]), default="reduce_term")
@click.option("--rounding", "rounding", type=click.Choice(["round", "floor", "ceil"]), default="round")
@click.option("--start-date", "-s", "start_date", help="First payment date (YYYY-MM)")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def mortgage(
    product: str,
    property_value: str,
    ltv: str,
    principal: Optional[str],
    term: int,
    band: Tuple[str, ...],
    growth_pct: Optional[str],
    growth_end_year: int,
    payment_per_thousand: Optional[str],
    opening_commission: str,
    admin_monthly: str,
    appraisal: str,
    notary: str,
    preorigination: str,
    life_rate: str,
    hazard_rate: str,
    insured_factor: str,
    reindex: str,
    prepayment: Tuple[str, ...],
    prepayment_mode: str,
    rounding: str,
    start_date: Optional[str],
    output: Optional[str],
) -> None:
    """Compute a mortgage amortization schedule."""
    try:
        start = parse_year_month(start_date) if start_date else None
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    growth = None
    if product == "hipoteca_creciente":
        growth = GrowthSettings(
            annual_increase_pct=_fraction(growth_pct) or decimal_from_str("0"),
            increase_end_year=growth_end_year,
            initial_payment_per_thousand=decimal_from_str(payment_per_thousand) if payment_per_thousand else None,
        )
    config = MortgageInput(
        product=product,
        property_value=_amount(property_value),
        ltv=_fraction(ltv),
        principal=_amount(principal),
        term_months=term,
        bands=parse_band_strings(band),
        growth=growth,
        costs=CostSettings(
            opening_commission_pct=parse_percent_points(opening_commission),
            admin_deferred_monthly_pct=parse_percent_points(admin_monthly),
            appraisal_cost=_amount(appraisal),
            notary_cost=_amount(notary),
            preorigination_cost=_amount(preorigination),
        ),
        insurance=InsuranceSettings(
            life_annual_rate_on_balance=parse_percent_points(life_rate),
            hazard_annual_rate_on_insured_value=parse_percent_points(hazard_rate),
            insured_value_factor=decimal_from_str(insured_factor),
            reindex_insured_value_annual_pct=parse_percent_points(reindex),
        ),
        prepayments=parse_prepayment_strings(prepayment),
        prepayment_mode=prepayment_mode,
        rounding_mode=rounding,
        start_date=start,
    )
    try:
        result = simulate_mortgage(config)
    except CalculationError as exc:
        raise click.ClickException(str(exc))
    if output:
        _write_output(output, {"input": result.input, "totals": result.totals, "rows": result.rows}, result.rows)
        return
    print_mortgage_summary(result.totals)
    if len(result.rows) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(result.rows)} rows; showing first {MAX_PRINTED_ROWS} rows.")
    print_mortgage_schedule(result.rows[:MAX_PRINTED_ROWS])


@cli.command()
@click.option("--bank", "bank", help="Only show presets for this bank id")
def presets(bank: Optional[str]) -> None:
    """List the built-in credit card presets."""
    print_presets(get_presets_by_bank(bank) if bank else DEFAULT_PRESETS)


if __name__ == "__main__":
    cli()
