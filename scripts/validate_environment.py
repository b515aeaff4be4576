#!/usr/bin/env python3
"""Validate that the planning core can run in this environment."""

from __future__ import annotations

import importlib
import sys
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fairslot.domain.models import Client, Slot
from fairslot.services.scheduler_service import SchedulerService
from fairslot.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def _smoke_inputs() -> tuple[list[Slot], list[Client]]:
    start = datetime(2026, 1, 5, 9, 0)
    slots = [
        Slot(slot_id=f"S{index}", start=start + timedelta(hours=index), duration_hours=1.0)
        for index in range(1, 4)
    ]
    clients = [
        Client(client_id="A", requested_quota=1, availability={"S1": 10.0, "S2": 40.0}),
        Client(client_id="B", requested_quota=2, availability={"S1": 5.0, "S3": 20.0}),
    ]
    return slots, clients


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1 — Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2 — Required packages importable
    import_errors: list[str] = []
    for module_name in ("ortools.sat.python.cp_model", "pydantic"):
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 3 — Both search strategies agree on a small instance
    slots, clients = _smoke_inputs()
    try:
        settings = replace(get_settings(), solver_max_time_seconds=5.0)
        service = SchedulerService(settings=settings)
        exhaustive = service.plan(slots, [], clients, strategy="exhaustive")
        cp_sat = service.plan(slots, [], clients, strategy="cp_sat")
        if exhaustive.assignments != cp_sat.assignments:
            raise RuntimeError("exhaustive and cp_sat proposals differ")
        ok, line = _print_result(
            "Smoke plan",
            True,
            f": assigned={len(exhaustive.assignments)} objective={exhaustive.objective_value:.2f}",
        )
    except Exception as exc:
        ok, line = _print_result("Smoke plan", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(" fairslot Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
