"""Exact slot assignment as a CP-SAT integer program.

Used for instances too large for exhaustive enumeration. The fairness
objective is linear in the assignment variables: every assigned slot adds its
cost and removes one unit of missing penalty, so minimizing the mean working
score is the same as minimizing

    sum(x[s, c] * (cost[s, c] - penalty[c]))

under the per-slot and per-client quota constraints. Costs and penalties are
scaled by `objective_scale` and rounded to integers.

The result is made identical to the exhaustive search's tie-break by
lexicographic refinement: once the optimum is known, slots are pinned one at a
time, in input order, to the earliest option (clients in input order, then
unassigned) that still reaches the optimum.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ortools.sat.python import cp_model

from fairslot.domain.constraints import SearchConfig, validate_search_config
from fairslot.domain.models import Client, FixedAssignment, ProposedAssignment, Slot
from fairslot.services.objective import (
    AssignmentValidationError,
    evaluate_objective,
    free_slots,
    validate_planning_inputs,
)
from fairslot.services.search_service import SearchOutcome
from fairslot.utils.logger import get_logger


logger = get_logger(__name__)

# Refinement stops when less than this remains of the overall time budget.
_MIN_SOLVE_SECONDS = 0.01


class SearchTimeoutError(Exception):
    """Raised when CP-SAT finds no solution within the time limit."""


@dataclass(frozen=True)
class BuildArtifacts:
    model: Any
    variables: dict[tuple[int, int], Any]
    objective_expr: Any
    rank_expr: Any


@dataclass(frozen=True)
class SolveOutcome:
    status_name: str
    objective_value: Optional[int]
    choice: list[Optional[int]]


def _slot_options(open_slots: Sequence[Slot], clients: Sequence[Client]) -> list[list[int]]:
    return [
        [
            index
            for index, client in enumerate(clients)
            if client.requested_quota > 0 and client.cost_for(slot.slot_id) is not None
        ]
        for slot in open_slots
    ]


def _scaled(value: float, scale: int) -> int:
    return int(round(value * scale))


def build_model(
    *,
    open_slots: Sequence[Slot],
    clients: Sequence[Client],
    options: Sequence[Sequence[int]],
    config: SearchConfig,
    pinned: Optional[Sequence[Optional[int]]] = None,
    objective_cap: Optional[int] = None,
    rank_slot: Optional[int] = None,
) -> BuildArtifacts:
    """Build the assignment model.

    `pinned` fixes the first len(pinned) slots to a client index or to
    unassigned (None). With `rank_slot`, the model minimizes the enumeration
    position of that slot's choice subject to `objective_cap`; otherwise it
    minimizes the fairness objective.
    """
    model = cp_model.CpModel()
    variables: dict[tuple[int, int], Any] = {}
    terms: list[Any] = []

    for slot_index, slot in enumerate(open_slots):
        for client_index in options[slot_index]:
            client = clients[client_index]
            var = model.NewBoolVar(f"x_slot_{slot_index}_client_{client_index}")
            variables[(slot_index, client_index)] = var
            coefficient = _scaled(client.cost_for(slot.slot_id) or 0.0, config.objective_scale)
            coefficient -= _scaled(client.effective_missing_penalty, config.objective_scale)
            terms.append(coefficient * var)

    for slot_index in range(len(open_slots)):
        slot_vars = [variables[(slot_index, c)] for c in options[slot_index]]
        if slot_vars:
            model.Add(sum(slot_vars) <= 1)

    for client_index, client in enumerate(clients):
        client_vars = [
            var for (_, owner), var in variables.items() if owner == client_index
        ]
        if client_vars:
            model.Add(sum(client_vars) <= client.requested_quota)

    objective_expr = sum(terms) if terms else 0

    for slot_index, choice in enumerate(pinned or []):
        slot_vars = [variables[(slot_index, c)] for c in options[slot_index]]
        if choice is None:
            for var in slot_vars:
                model.Add(var == 0)
        else:
            model.Add(variables[(slot_index, choice)] == 1)

    rank_expr: Any = 0
    if rank_slot is not None:
        slot_options = options[rank_slot]
        slot_vars = [variables[(rank_slot, c)] for c in slot_options]
        unassigned_rank = len(slot_options)
        rank_expr = sum(position * var for position, var in enumerate(slot_vars))
        if slot_vars:
            rank_expr = rank_expr + unassigned_rank * (1 - sum(slot_vars))
        else:
            rank_expr = unassigned_rank

    if objective_cap is not None and terms:
        model.Add(objective_expr <= objective_cap)

    if rank_slot is not None:
        model.Minimize(rank_expr)
    else:
        model.Minimize(objective_expr)

    return BuildArtifacts(
        model=model,
        variables=variables,
        objective_expr=objective_expr,
        rank_expr=rank_expr,
    )


def solve_model(
    *,
    artifacts: BuildArtifacts,
    slot_count: int,
    options: Sequence[Sequence[int]],
    config: SearchConfig,
    max_time_seconds: float,
) -> SolveOutcome:
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = float(max_time_seconds)
    solver.parameters.num_workers = config.cp_sat_workers
    solver.parameters.random_seed = config.solver_random_seed

    status = solver.Solve(artifacts.model)
    status_name = solver.StatusName(status)
    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        return SolveOutcome(status_name=status_name, objective_value=None, choice=[])

    choice: list[Optional[int]] = [None] * slot_count
    for slot_index in range(slot_count):
        for client_index in options[slot_index]:
            if solver.Value(artifacts.variables[(slot_index, client_index)]) == 1:
                choice[slot_index] = client_index
                break

    if isinstance(artifacts.objective_expr, int):
        objective_value = artifacts.objective_expr
    else:
        objective_value = int(solver.Value(artifacts.objective_expr))
    return SolveOutcome(status_name=status_name, objective_value=objective_value, choice=choice)


def cp_sat_search(
    slots: Sequence[Slot],
    fixed_assignments: Sequence[FixedAssignment],
    clients: Sequence[Client],
    config: SearchConfig,
) -> SearchOutcome:
    try:
        validate_search_config(config)
    except ValueError as exc:
        raise AssignmentValidationError(str(exc)) from exc
    validate_planning_inputs(slots, fixed_assignments, clients)
    deadline = time.monotonic() + config.solver_max_time_seconds

    open_slots = free_slots(slots, fixed_assignments)
    options = _slot_options(open_slots, clients)
    slot_count = len(open_slots)

    artifacts = build_model(
        open_slots=open_slots,
        clients=clients,
        options=options,
        config=config,
    )
    first = solve_model(
        artifacts=artifacts,
        slot_count=slot_count,
        options=options,
        config=config,
        max_time_seconds=max(deadline - time.monotonic(), _MIN_SOLVE_SECONDS),
    )
    solves = 1
    if first.objective_value is None:
        logger.warning("CP-SAT assignment solve failed | status=%s", first.status_name)
        raise SearchTimeoutError(
            f"CP-SAT found no assignment within {config.solver_max_time_seconds}s "
            f"(status={first.status_name})"
        )

    optimum = first.objective_value
    best_choice = first.choice
    pinned: list[Optional[int]] = []
    for slot_index in range(slot_count):
        remaining = deadline - time.monotonic()
        if remaining < _MIN_SOLVE_SECONDS:
            logger.warning(
                "Tie-break refinement stopped at deadline | slot_index=%s | solves=%s",
                slot_index,
                solves,
            )
            break
        artifacts = build_model(
            open_slots=open_slots,
            clients=clients,
            options=options,
            config=config,
            pinned=pinned,
            objective_cap=optimum,
            rank_slot=slot_index,
        )
        refined = solve_model(
            artifacts=artifacts,
            slot_count=slot_count,
            options=options,
            config=config,
            max_time_seconds=remaining,
        )
        solves += 1
        if refined.objective_value is None:
            logger.warning(
                "Tie-break refinement stopped early | slot_index=%s | status=%s",
                slot_index,
                refined.status_name,
            )
            break
        best_choice = refined.choice
        pinned.append(refined.choice[slot_index])

    assignments = [
        ProposedAssignment(slot_id=open_slots[i].slot_id, client_id=clients[c].client_id)
        for i, c in enumerate(best_choice)
        if c is not None
    ]
    objective_value = evaluate_objective(clients, assignments)
    logger.debug(
        "CP-SAT search completed | free_slots=%s | clients=%s | solves=%s | objective=%.6f",
        slot_count,
        len(clients),
        solves,
        objective_value,
    )
    return SearchOutcome(
        assignments=assignments,
        objective_value=objective_value,
        candidates_evaluated=solves,
    )
