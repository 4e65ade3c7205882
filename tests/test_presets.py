from decimal import Decimal

from credit_calc.data_models import INTEREST_METHODS, MIN_PAYMENT_FORMULAS
from credit_calc.presets import (
    BANK_IDS,
    DEFAULT_PRESETS,
    apply_preset,
    get_all_bank_ids,
    get_preset_by_id,
    get_presets_by_bank,
)
from credit_calc.revolving import simulate_revolving


def test_presets_are_consistent():
    ids = [preset.id for preset in DEFAULT_PRESETS]
    assert len(ids) == len(set(ids))
    for preset in DEFAULT_PRESETS:
        assert preset.bank_id in BANK_IDS
        assert preset.interest_method in INTEREST_METHODS
        assert preset.min_payment_formula in MIN_PAYMENT_FORMULAS
        assert preset.cycle_days == 30


def test_lookup_by_id_and_bank():
    preset = get_preset_by_id("bbva_mx_preset_1")
    assert preset is not None
    assert preset.apr == Decimal("0.60")
    assert get_preset_by_id("missing") is None
    assert get_presets_by_bank("HSBC_MX") == [get_preset_by_id("hsbc_mx_preset_1")]
    assert get_presets_by_bank("Nowhere") == []
    assert get_all_bank_ids()[-1] == "Other"


def test_apply_preset_copies_terms():
    preset = get_preset_by_id("santander_mx_preset_1")
    config = apply_preset(preset, "15000")
    assert config.principal == Decimal("15000")
    assert config.apr == Decimal("0.55")
    assert config.min_payment_floor == Decimal("150")
    assert config.interest_method == "simple_monthly_apr"
    assert config.target_months is None


def test_apply_preset_overrides_skip_none():
    preset = get_preset_by_id("banorte_mx_preset_1")
    config = apply_preset(preset, Decimal("5000"), apr=Decimal("0.40"), cycle_days=None, target_months=24)
    assert config.apr == Decimal("0.40")
    assert config.cycle_days == 30
    assert config.target_months == 24


def test_every_preset_simulates():
    for preset in DEFAULT_PRESETS:
        schedule, totals = simulate_revolving(apply_preset(preset, Decimal("20000")))
        assert totals.months == len(schedule) > 0
