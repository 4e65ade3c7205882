from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from credit_calc.exceptions import InvalidConfiguration
from credit_calc.revolving import (
    MAX_CYCLES,
    calculate_optimal_min_payment,
    calculate_required_payment,
    compute_cycle_interest,
    compute_minimum_payment,
    create_calculation,
    generate_calculation_name,
    get_daily_rate,
    simulate_revolving,
)


def test_daily_rate():
    assert get_daily_rate(Decimal("0.60")) == Decimal("0.60") / 365
    assert get_daily_rate(Decimal("0.60"), 30) == Decimal("0.02")


def test_average_daily_balance_is_flat_monthly_approximation():
    interest = compute_cycle_interest(Decimal("10000"), Decimal("0.60"), "average_daily_balance", 30)
    assert interest == Decimal("500")


def test_simple_monthly_apr():
    interest = compute_cycle_interest(Decimal("2400"), Decimal("0.24"), "simple_monthly_apr", 31)
    assert interest == Decimal("48")


def test_daily_compounding_exceeds_simple_interest():
    compounded = compute_cycle_interest(Decimal("10000"), Decimal("0.60"), "daily_compounding", 30)
    expected = 10000 * ((1 + 0.60 / 365) ** 30 - 1)
    assert float(compounded) == pytest.approx(expected, rel=1e-9)
    assert compounded > Decimal("10000") * Decimal("0.60") * 30 / 365


def test_unknown_interest_method():
    with pytest.raises(InvalidConfiguration):
        compute_cycle_interest(Decimal("100"), Decimal("0.5"), "continuous", 30)


def test_minimum_payment_percent_only_ignores_interest_and_fees(card_input):
    no_floor = replace(card_input, min_payment_floor=None)
    assert compute_minimum_payment(no_floor, Decimal("10000"), Decimal("500"), Decimal("0")) == Decimal("500.00")
    assert compute_minimum_payment(no_floor, Decimal("10000"), Decimal("0"), Decimal("99")) == Decimal("500.00")


def test_minimum_payment_percent_plus_interest_and_fees(card_input):
    config = replace(card_input, min_payment_formula="percent_plus_interest_and_fees")
    payment = compute_minimum_payment(config, Decimal("10000"), Decimal("500"), Decimal("25"))
    assert payment == Decimal("1025.00")


def test_minimum_payment_floor_is_capped_at_amount_owed(card_input):
    assert compute_minimum_payment(card_input, Decimal("1000"), Decimal("50"), Decimal("0")) == Decimal("200.00")
    assert compute_minimum_payment(card_input, Decimal("120"), Decimal("6"), Decimal("0")) == Decimal("126.00")


def test_minimum_payment_never_negative(card_input):
    config = replace(card_input, min_payment_floor=None)
    assert compute_minimum_payment(config, Decimal("0"), Decimal("0"), Decimal("0")) == Decimal("0")


def test_unknown_minimum_payment_formula(card_input):
    config = replace(card_input, min_payment_formula="interest_only")
    with pytest.raises(InvalidConfiguration):
        compute_minimum_payment(config, Decimal("100"), Decimal("1"), Decimal("0"))
    with pytest.raises(InvalidConfiguration):
        simulate_revolving(config)


def test_simulation_fails_fast_on_unknown_method(card_input):
    with pytest.raises(InvalidConfiguration):
        simulate_revolving(replace(card_input, interest_method="bogus"))


def test_first_cycle_interest_and_minimum_payment(card_input):
    schedule, _ = simulate_revolving(card_input)
    first = schedule[0]
    assert first.interest_accrued == Decimal("500.00")
    assert first.payment == Decimal("500.00")
    assert first.principal_paid == Decimal("0.00")
    assert first.only_interest_covered is True


def test_interest_only_schedule_runs_to_cycle_cap(card_input):
    schedule, totals = simulate_revolving(card_input)
    assert len(schedule) == MAX_CYCLES
    assert all(item.only_interest_covered for item in schedule)
    assert totals.final_balance == Decimal("10000.00")


def test_runaway_balance_guard_stops_after_twelve_cycles(card_input):
    config = replace(card_input, min_payment_floor=None, new_charges_per_cycle=Decimal("1000"))
    schedule, totals = simulate_revolving(config)
    assert len(schedule) == 13
    assert schedule[-1].ending_balance > schedule[-1].starting_balance
    assert totals.final_balance == Decimal("23000.00")


def test_minimum_payment_mode_pays_off(card_input):
    config = replace(
        card_input,
        principal=Decimal("1000"),
        min_payment_formula="percent_plus_interest_and_fees",
    )
    schedule, totals = simulate_revolving(config)
    assert schedule[-1].ending_balance == Decimal("0.00")
    assert len(schedule) < MAX_CYCLES
    assert not any(item.only_interest_covered for item in schedule)
    for item in schedule:
        assert item.ending_balance >= 0
        assert item.payment <= Decimal("200.00")
    assert totals.months == len(schedule)
    assert totals.final_balance == Decimal("0.00")
    assert totals.total_paid == sum(item.payment for item in schedule)


def test_ending_balance_tracks_cycle_arithmetic(card_input):
    config = replace(
        card_input,
        interest_method="simple_monthly_apr",
        min_payment_formula="percent_plus_interest_and_fees",
        fees_per_cycle=Decimal("35"),
        new_charges_per_cycle=Decimal("100"),
    )
    schedule, _ = simulate_revolving(config)
    for item in schedule:
        expected = (
            item.starting_balance + Decimal("100") + item.interest_accrued + item.fees - item.payment
        )
        assert abs(item.ending_balance - expected) <= Decimal("0.01")
        principal_paid = item.payment - item.interest_accrued - item.fees
        assert abs(item.principal_paid - principal_paid) <= Decimal("0.01")


def test_zero_principal_produces_empty_schedule(card_input):
    schedule, totals = simulate_revolving(replace(card_input, principal=Decimal("0")))
    assert schedule == []
    assert totals.months == 0
    assert totals.final_balance == Decimal("0.00")


def test_optimal_payment_heuristic():
    # (10000 + 10000 * 0.05 * 12 / 2) / 12
    assert calculate_optimal_min_payment(Decimal("10000"), Decimal("0.60"), 12) == Decimal("1083.33")
    with pytest.raises(ValueError):
        calculate_optimal_min_payment(Decimal("10000"), Decimal("0.60"), 0)


def test_required_payment_heuristic_with_no_months_left():
    assert calculate_required_payment(Decimal("812.40"), Decimal("0.60"), 0) == Decimal("812.40")
    assert calculate_required_payment(Decimal("10500"), Decimal("0.60"), 12) == Decimal("1137.50")


def test_target_payoff_heuristic_clears_balance_within_target(card_input):
    config = replace(card_input, min_payment_floor=None, target_months=12)
    schedule, totals = simulate_revolving(config)
    assert len(schedule) <= 12
    assert schedule[0].payment == Decimal("1333.33")
    final = schedule[-1]
    assert final.ending_balance == Decimal("0.00")
    assert final.interest_accrued == Decimal("0.00")
    assert final.payment == final.starting_balance
    assert final.only_interest_covered is False
    assert totals.final_balance == Decimal("0.00")


def test_target_payoff_heuristic_never_pays_less_than_minimum(card_input):
    config = replace(card_input, min_payment_floor=None, target_months=60)
    schedule, _ = simulate_revolving(config)
    for item in schedule[:-1]:
        minimum = Decimal("0.05") * item.starting_balance
        assert item.payment >= minimum.quantize(Decimal("0.01"))


def test_float_inputs_match_decimal_inputs(card_input):
    floats = replace(
        card_input, principal=10000.0, apr=0.6, min_payment_percent=0.05, min_payment_floor=200.0, target_months=18
    )
    assert simulate_revolving(floats) == simulate_revolving(replace(card_input, target_months=18))
    assert compute_minimum_payment(floats, 120.0, 6.0, 0) == Decimal("126.00")


def test_simulation_is_deterministic(card_input):
    config = replace(card_input, target_months=18, min_payment_floor=None)
    assert simulate_revolving(config) == simulate_revolving(config)


def test_create_calculation_wraps_schedule(card_input):
    created_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    result = create_calculation(
        card_input, "Test Calculation", calculation_id="abc123", created_at=created_at
    )
    assert result.id == "abc123"
    assert result.name == "Test Calculation"
    assert result.input == card_input
    assert result.created_at == created_at
    assert result.preset_id is None
    assert result.totals.months == len(result.schedule)


def test_create_calculation_generates_default_name(card_input):
    result = create_calculation(card_input, calculation_id="x", created_at=datetime(2025, 1, 1))
    assert result.name == generate_calculation_name(card_input) == "10,000.00 @ 60% APR, 5% min"
