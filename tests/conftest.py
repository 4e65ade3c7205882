import os
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

# The web app builds its store at import time; point it at a throwaway file.
_DB_DIR = Path(tempfile.mkdtemp(prefix="credit-calc-tests-"))
os.environ.setdefault("CREDIT_CALC_DATABASE_URL", f"sqlite:///{_DB_DIR / 'app.sqlite3'}")

from credit_calc.data_models import (  # noqa: E402
    CostSettings,
    GrowthSettings,
    InsuranceSettings,
    InterestBand,
    MortgageInput,
    RevolvingInput,
)


@pytest.fixture
def card_input() -> RevolvingInput:
    return RevolvingInput(
        principal=Decimal("10000"),
        apr=Decimal("0.60"),
        cycle_days=30,
        min_payment_percent=Decimal("0.05"),
        min_payment_floor=Decimal("200"),
        interest_method="average_daily_balance",
        min_payment_formula="percent_only",
        locale="es-MX",
        currency="MXN",
    )


@pytest.fixture
def fixed_mortgage() -> MortgageInput:
    return MortgageInput(
        product="hipoteca_fija",
        property_value=Decimal("5300000"),
        ltv=Decimal("0.9"),
        term_months=240,
        bands=[InterestBand(from_month=1, annual_rate=Decimal("0.101"))],
        costs=CostSettings(
            opening_commission_pct=Decimal("0.01"),
            admin_deferred_monthly_pct=Decimal("0.00008"),
            appraisal_cost=Decimal("15000"),
            notary_cost=Decimal("250000"),
            preorigination_cost=Decimal("3000"),
        ),
        insurance=InsuranceSettings(
            life_annual_rate_on_balance=Decimal("0.0072"),
            hazard_annual_rate_on_insured_value=Decimal("0.0023"),
            insured_value_factor=Decimal("1"),
            reindex_insured_value_annual_pct=Decimal("0.04"),
        ),
    )


@pytest.fixture
def growing_mortgage(fixed_mortgage) -> MortgageInput:
    fixed_mortgage.product = "hipoteca_creciente"
    fixed_mortgage.growth = GrowthSettings(
        annual_increase_pct=Decimal("0.022"),
        increase_end_year=14,
    )
    return fixed_mortgage


def mortgage_payload(**overrides) -> dict:
    payload = {
        "product": "hipoteca_fija",
        "property_value": 5300000,
        "ltv": 0.9,
        "term_months": 240,
        "bands": [{"from_month": 1, "annual_rate": 0.101}],
        "costs": {
            "opening_commission_pct": 0.01,
            "admin_deferred_monthly_pct": 0.00008,
            "appraisal_cost": 15000,
            "notary_cost": 250000,
            "preorigination_cost": 3000,
        },
        "insurance": {
            "life_annual_rate_on_balance": 0.0072,
            "hazard_annual_rate_on_insured_value": 0.0023,
            "insured_value_factor": 1,
            "reindex_insured_value_annual_pct": 0.04,
        },
        "prepayments": [],
        "prepayment_mode": "reduce_term",
    }
    payload.update(overrides)
    return payload


def revolving_payload(**overrides) -> dict:
    payload = {
        "principal": 10000,
        "apr": 0.6,
        "cycle_days": 30,
        "min_payment_percent": 0.05,
        "min_payment_floor": 200,
        "interest_method": "simple_monthly_apr",
        "min_payment_formula": "percent_plus_interest_and_fees",
    }
    payload.update(overrides)
    return payload
