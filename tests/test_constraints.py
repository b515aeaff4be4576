"""Tests for search config and decay policy validation."""

from __future__ import annotations

import pytest

from fairslot.domain.constraints import (
    DecayPolicy,
    SearchConfig,
    validate_decay_policy,
    validate_search_config,
)


def valid_config(**overrides) -> SearchConfig:
    """Return a valid baseline SearchConfig, optionally overriding fields."""
    defaults = {
        "strategy": "auto",
        "exhaustive_max_free_slots": 8,
        "exhaustive_max_clients": 6,
        "solver_max_time_seconds": 10.0,
        "solver_random_seed": 42,
        "objective_scale": 1000,
        "cp_sat_workers": 1,
    }
    defaults.update(overrides)
    return SearchConfig(**defaults)


def test_valid_config_passes() -> None:
    validate_search_config(valid_config())


@pytest.mark.parametrize("strategy", ["auto", "exhaustive", "cp_sat"])
def test_known_strategies_pass(strategy: str) -> None:
    validate_search_config(valid_config(strategy=strategy))


def test_unknown_strategy_raises() -> None:
    with pytest.raises(ValueError):
        validate_search_config(valid_config(strategy="greedy"))


def test_negative_exhaustive_ceiling_raises() -> None:
    with pytest.raises(ValueError):
        validate_search_config(valid_config(exhaustive_max_free_slots=-1))
    with pytest.raises(ValueError):
        validate_search_config(valid_config(exhaustive_max_clients=-1))


def test_zero_exhaustive_ceiling_passes() -> None:
    """Zero sends every non-empty instance to CP-SAT."""
    validate_search_config(valid_config(exhaustive_max_free_slots=0))


def test_solver_max_time_seconds_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_search_config(valid_config(solver_max_time_seconds=0))


def test_solver_random_seed_negative_raises() -> None:
    with pytest.raises(ValueError):
        validate_search_config(valid_config(solver_random_seed=-1))


def test_objective_scale_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_search_config(valid_config(objective_scale=0))


def test_cp_sat_workers_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_search_config(valid_config(cp_sat_workers=0))


# --- decay policy ---

def test_default_decay_policy_passes() -> None:
    policy = DecayPolicy()
    assert policy.cadence_days == 7.0
    assert policy.decay_factor == 2.5
    validate_decay_policy(policy)


def test_decay_cadence_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_decay_policy(DecayPolicy(cadence_days=0))


def test_decay_factor_not_above_one_raises() -> None:
    with pytest.raises(ValueError):
        validate_decay_policy(DecayPolicy(decay_factor=1.0))
