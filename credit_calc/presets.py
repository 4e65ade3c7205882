"""Built-in revolving credit presets.

Each preset bundles the billing terms of a typical card so a simulation only
needs a principal. The figures are illustrative examples, not bank data;
verify them against a real statement.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, List, Optional

from .data_models import RevolvingInput
from .utils import to_decimal

BANK_IDS = (
    "BBVA_MX",
    "Santander_MX",
    "Banorte_MX",
    "CitiBanamex_MX",
    "HSBC_MX",
    "Scotiabank_MX",
    "Other",
)


@dataclass(frozen=True)
class Preset:
    id: str
    bank_id: str
    name: str
    apr: Decimal
    cycle_days: int
    min_payment_percent: Decimal
    min_payment_floor: Decimal
    interest_method: str
    min_payment_formula: str
    fees_per_cycle: Decimal = Decimal("0")
    locale: Optional[str] = "es-MX"
    notes: Optional[str] = "Example only. Verify with your statement."


def _preset(preset_id, bank_id, name, apr, min_percent, floor, method, formula, **kwargs) -> Preset:
    return Preset(
        id=preset_id,
        bank_id=bank_id,
        name=name,
        apr=Decimal(apr),
        cycle_days=30,
        min_payment_percent=Decimal(min_percent),
        min_payment_floor=Decimal(floor),
        interest_method=method,
        min_payment_formula=formula,
        **kwargs,
    )


DEFAULT_PRESETS: List[Preset] = [
    _preset("bbva_mx_preset_1", "BBVA_MX", "BBVA Preset 1 (Example)",
            "0.60", "0.05", "200", "average_daily_balance", "percent_plus_interest_and_fees"),
    _preset("santander_mx_preset_1", "Santander_MX", "Santander Preset 1 (Example)",
            "0.55", "0.06", "150", "simple_monthly_apr", "percent_only"),
    _preset("banorte_mx_preset_1", "Banorte_MX", "Banorte Preset 1 (Example)",
            "0.65", "0.05", "250", "daily_compounding", "percent_plus_interest_and_fees"),
    _preset("citibanamex_mx_preset_1", "CitiBanamex_MX", "CitiBanamex Preset 1 (Example)",
            "0.58", "0.07", "200", "average_daily_balance", "percent_only"),
    _preset("hsbc_mx_preset_1", "HSBC_MX", "HSBC Preset 1 (Example)",
            "0.62", "0.05", "180", "simple_monthly_apr", "percent_plus_interest_and_fees"),
    _preset("scotiabank_mx_preset_1", "Scotiabank_MX", "Scotiabank Preset 1 (Example)",
            "0.59", "0.06", "220", "average_daily_balance", "percent_only"),
    _preset("other_custom_preset", "Other", "Other (Custom)",
            "0.50", "0.05", "200", "average_daily_balance", "percent_plus_interest_and_fees",
            notes="Custom preset. Adjust values as needed."),
]


def get_preset_by_id(preset_id: str) -> Optional[Preset]:
    return next((preset for preset in DEFAULT_PRESETS if preset.id == preset_id), None)


def get_presets_by_bank(bank_id: str) -> List[Preset]:
    return [preset for preset in DEFAULT_PRESETS if preset.bank_id == bank_id]


def get_all_bank_ids() -> List[str]:
    return list(BANK_IDS)


def apply_preset(preset: Preset, principal: Any, **overrides: Any) -> RevolvingInput:
    """Build a ``RevolvingInput`` from ``preset`` for the given principal.

    Keyword arguments override individual fields; ``None`` values are ignored
    so CLI options left unset keep the preset's figures.
    """
    config = RevolvingInput(
        principal=to_decimal(principal),
        apr=preset.apr,
        cycle_days=preset.cycle_days,
        min_payment_percent=preset.min_payment_percent,
        min_payment_floor=preset.min_payment_floor,
        fees_per_cycle=preset.fees_per_cycle,
        interest_method=preset.interest_method,
        min_payment_formula=preset.min_payment_formula,
        locale=preset.locale,
    )
    changes = {key: value for key, value in overrides.items() if value is not None}
    return replace(config, **changes)
