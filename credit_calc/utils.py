"""Shared helpers for the calculation engines.

This module holds the money arithmetic both engines rely on (cent rounding,
piecewise rate lookup and the level-payment formula) together with helpers for
parsing user input, stepping dates by whole months and turning result records
into plain JSON-friendly data.
"""

from __future__ import annotations

import calendar
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, getcontext
from typing import Any, Sequence, Union

from .exceptions import InvalidConfiguration

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

ROUNDING_MODES = ("round", "floor", "ceil")

_CENT = Decimal("0.01")
_DECIMAL_ROUNDING = {
    "round": ROUND_HALF_UP,
    "floor": ROUND_FLOOR,
    "ceil": ROUND_CEILING,
}

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Return ``value`` as a ``Decimal`` without picking up binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_currency(value: Number, mode: str = "round") -> Decimal:
    """Round ``value`` to cents.

    ``mode`` is one of ``"round"`` (half away from zero), ``"floor"`` or
    ``"ceil"``; anything else falls back to ``"round"``.
    """
    rounding = _DECIMAL_ROUNDING.get(mode, ROUND_HALF_UP)
    return to_decimal(value).quantize(_CENT, rounding=rounding)


def monthly_rate_for_month(bands: Sequence[Any], month: int) -> Decimal:
    """Return the monthly rate that applies in ``month`` (1-based).

    The first band whose ``[from_month, to_month]`` range contains ``month``
    wins; a band without ``to_month`` is open-ended. When no band matches, the
    last band in the list applies. Bands are expected in ascending order.
    """
    if not bands:
        raise InvalidConfiguration("At least one interest rate band is required")
    for band in bands:
        if month >= band.from_month and (band.to_month is None or month <= band.to_month):
            return to_decimal(band.annual_rate) / 12
    return to_decimal(bands[-1].annual_rate) / 12


def annuity_payment(present_value: Number, periodic_rate: Number, periods: int) -> Decimal:
    """Return the level payment that amortizes ``present_value``.

    The formula is:

        payment = PV * r / (1 - (1 + r)^-n)

    When the rate is exactly zero the payment is simply ``PV / n``.
    """
    if periods <= 0:
        raise ValueError("Term must be positive")
    pv = to_decimal(present_value)
    rate = to_decimal(periodic_rate)
    if rate == 0:
        return pv / Decimal(periods)
    return pv * rate / (1 - (1 + rate) ** -periods)


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.split("-")
        if len(parts) < 2:
            raise ValueError
        return date(int(parts[0]), int(parts[1]), 1)
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        return Decimal(value.replace(",", "").strip())
    except Exception as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def to_jsonable(value: Any) -> Any:
    """Convert result records into JSON-serialisable data.

    Dataclasses become dicts, ``Decimal`` becomes ``float`` and dates become
    ISO strings. Tuples and lists are converted element-wise.
    """
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value
