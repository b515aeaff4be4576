"""Domain-level validation rules for assignment search and score decay."""

from __future__ import annotations

from dataclasses import dataclass


SEARCH_STRATEGIES = ("auto", "exhaustive", "cp_sat")


@dataclass(frozen=True)
class SearchConfig:
    strategy: str
    exhaustive_max_free_slots: int
    exhaustive_max_clients: int
    solver_max_time_seconds: float
    solver_random_seed: int
    objective_scale: int
    cp_sat_workers: int


@dataclass(frozen=True)
class DecayPolicy:
    cadence_days: float = 7.0
    decay_factor: float = 2.5


def validate_search_config(config: SearchConfig) -> None:
    if config.strategy not in SEARCH_STRATEGIES:
        raise ValueError(f"strategy must be one of {', '.join(SEARCH_STRATEGIES)}")
    if config.exhaustive_max_free_slots < 0:
        raise ValueError("exhaustive_max_free_slots must be >= 0")
    if config.exhaustive_max_clients < 0:
        raise ValueError("exhaustive_max_clients must be >= 0")
    if config.solver_max_time_seconds <= 0:
        raise ValueError("solver_max_time_seconds must be > 0")
    if config.solver_random_seed < 0:
        raise ValueError("solver_random_seed must be >= 0")
    if config.objective_scale <= 0:
        raise ValueError("objective_scale must be > 0")
    if config.cp_sat_workers <= 0:
        raise ValueError("cp_sat_workers must be > 0")


def validate_decay_policy(policy: DecayPolicy) -> None:
    if policy.cadence_days <= 0:
        raise ValueError("cadence_days must be > 0")
    if policy.decay_factor <= 1.0:
        raise ValueError("decay_factor must be > 1")
