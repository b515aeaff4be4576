"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    default_missing_penalty: float
    decay_cadence_days: float
    decay_factor: float
    search_strategy: str
    exhaustive_max_free_slots: int
    exhaustive_max_clients: int
    solver_max_time_seconds: float
    solver_random_seed: int
    objective_scale: int
    cp_sat_workers: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment once per process.

    Call `get_settings.cache_clear()` after changing environment variables.
    """
    return Settings(
        app_name=_env_str("FAIRSLOT_APP_NAME", "fairslot"),
        app_version=_env_str("FAIRSLOT_APP_VERSION", "0.1.0"),
        log_level=_env_str("FAIRSLOT_LOG_LEVEL", "INFO"),
        default_missing_penalty=_env_float("FAIRSLOT_DEFAULT_MISSING_PENALTY", 150.0),
        decay_cadence_days=_env_float("FAIRSLOT_DECAY_CADENCE_DAYS", 7.0),
        decay_factor=_env_float("FAIRSLOT_DECAY_FACTOR", 2.5),
        search_strategy=_env_str("FAIRSLOT_SEARCH_STRATEGY", "auto"),
        exhaustive_max_free_slots=_env_int("FAIRSLOT_EXHAUSTIVE_MAX_FREE_SLOTS", 8),
        exhaustive_max_clients=_env_int("FAIRSLOT_EXHAUSTIVE_MAX_CLIENTS", 6),
        solver_max_time_seconds=_env_float("FAIRSLOT_SOLVER_MAX_TIME_SECONDS", 10.0),
        solver_random_seed=_env_int("FAIRSLOT_SOLVER_RANDOM_SEED", 42),
        objective_scale=_env_int("FAIRSLOT_OBJECTIVE_SCALE", 1000),
        cp_sat_workers=_env_int("FAIRSLOT_CP_SAT_WORKERS", 1),
    )
