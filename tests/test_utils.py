from datetime import date
from decimal import Decimal

import pytest

from credit_calc.data_models import InterestBand, RevolvingTotals
from credit_calc.exceptions import InvalidConfiguration
from credit_calc.utils import (
    add_months,
    annuity_payment,
    decimal_from_str,
    monthly_rate_for_month,
    parse_year_month,
    round_currency,
    to_jsonable,
)


def test_round_currency_to_cents():
    assert round_currency(Decimal("123.456")) == Decimal("123.46")
    assert round_currency(Decimal("123.444")) == Decimal("123.44")
    assert round_currency(Decimal("123.5")) == Decimal("123.5")


def test_round_currency_accepts_floats_without_binary_noise():
    assert round_currency(123.456) == Decimal("123.46")
    assert round_currency(1.005) == Decimal("1.01")


@pytest.mark.parametrize(
    "mode, expected",
    [
        ("round", Decimal("10.13")),
        ("floor", Decimal("10.12")),
        ("ceil", Decimal("10.13")),
    ],
)
def test_round_currency_modes(mode, expected):
    assert round_currency(Decimal("10.125"), mode) == expected


def test_floor_and_ceil_on_exact_cents_are_unchanged():
    assert round_currency(Decimal("7.10"), "floor") == Decimal("7.10")
    assert round_currency(Decimal("7.10"), "ceil") == Decimal("7.10")


def test_monthly_rate_first_matching_band_wins():
    bands = [
        InterestBand(from_month=1, to_month=60, annual_rate=Decimal("0.12")),
        InterestBand(from_month=61, annual_rate=Decimal("0.06")),
    ]
    assert monthly_rate_for_month(bands, 1) == Decimal("0.01")
    assert monthly_rate_for_month(bands, 60) == Decimal("0.01")
    assert monthly_rate_for_month(bands, 61) == Decimal("0.005")
    assert monthly_rate_for_month(bands, 480) == Decimal("0.005")


def test_monthly_rate_falls_back_to_last_band():
    bands = [
        InterestBand(from_month=1, to_month=12, annual_rate=Decimal("0.12")),
        InterestBand(from_month=13, to_month=24, annual_rate=Decimal("0.24")),
    ]
    assert monthly_rate_for_month(bands, 25) == Decimal("0.02")


def test_monthly_rate_requires_a_band():
    with pytest.raises(InvalidConfiguration):
        monthly_rate_for_month([], 1)


def test_annuity_payment_matches_closed_form():
    rate = Decimal("0.101") / 12
    expected = 4770000 * float(rate) / (1 - (1 + float(rate)) ** -240)
    assert float(annuity_payment(Decimal("4770000"), rate, 240)) == pytest.approx(expected, abs=1e-6)


def test_annuity_payment_zero_rate_divides_evenly():
    assert annuity_payment(Decimal("1200"), Decimal("0"), 12) == Decimal("100")


def test_annuity_payment_rejects_non_positive_term():
    with pytest.raises(ValueError):
        annuity_payment(Decimal("1000"), Decimal("0.01"), 0)


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)


def test_parse_year_month():
    assert parse_year_month("2025-03") == date(2025, 3, 1)
    with pytest.raises(ValueError):
        parse_year_month("March")


def test_decimal_from_str_strips_commas():
    assert decimal_from_str("4,770,000.50") == Decimal("4770000.50")
    with pytest.raises(ValueError):
        decimal_from_str("abc")


def test_to_jsonable_converts_records():
    totals = RevolvingTotals(
        months=2,
        total_paid=Decimal("10.50"),
        total_interest=Decimal("0.50"),
        total_fees=Decimal("0"),
        total_principal_paid=Decimal("10"),
        final_balance=Decimal("0"),
    )
    data = to_jsonable({"totals": totals, "when": date(2025, 1, 1), "rows": (Decimal("1.25"),)})
    assert data == {
        "totals": {
            "months": 2,
            "total_paid": 10.5,
            "total_interest": 0.5,
            "total_fees": 0.0,
            "total_principal_paid": 10.0,
            "final_balance": 0.0,
        },
        "when": "2025-01-01",
        "rows": [1.25],
    }
