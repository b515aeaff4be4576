"""Exhaustive fairness-optimal slot assignment with branch-and-bound pruning.

Candidates are enumerated slot by slot in input order. For each slot the
eligible clients are tried in input order and "leave unassigned" is tried
last; the first candidate with the strictly lowest objective wins ties.
The bound only discards branches that cannot strictly beat the incumbent,
so pruning never changes which candidate is returned.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from fairslot.domain.models import Client, FixedAssignment, ProposedAssignment, Slot
from fairslot.services.objective import (
    evaluate_objective,
    free_slots,
    total_working_score,
    validate_planning_inputs,
)
from fairslot.utils.logger import get_logger


logger = get_logger(__name__)

_PRUNE_TOLERANCE = 1e-9


@dataclass(frozen=True)
class SearchOutcome:
    assignments: list[ProposedAssignment]
    objective_value: float
    candidates_evaluated: int


def _slot_options(
    open_slots: Sequence[Slot],
    clients: Sequence[Client],
) -> list[list[Optional[int]]]:
    """Per slot: indexes of clients that declared a cost, then None for unassigned."""
    options: list[list[Optional[int]]] = []
    for slot in open_slots:
        eligible: list[Optional[int]] = [
            index
            for index, client in enumerate(clients)
            if client.requested_quota > 0 and client.cost_for(slot.slot_id) is not None
        ]
        eligible.append(None)
        options.append(eligible)
    return options


def _declared_suffix_counts(
    options: Sequence[Sequence[Optional[int]]],
    client_count: int,
) -> list[list[int]]:
    """suffix[k][c] = number of slots from k onward that client c could take."""
    suffix = [[0] * client_count for _ in range(len(options) + 1)]
    for depth in range(len(options) - 1, -1, -1):
        row = list(suffix[depth + 1])
        for option in options[depth]:
            if option is not None:
                row[option] += 1
        suffix[depth] = row
    return suffix


def exhaustive_search(
    slots: Sequence[Slot],
    fixed_assignments: Sequence[FixedAssignment],
    clients: Sequence[Client],
) -> SearchOutcome:
    validate_planning_inputs(slots, fixed_assignments, clients)
    open_slots = free_slots(slots, fixed_assignments)
    slot_count = len(open_slots)
    client_count = len(clients)

    options = _slot_options(open_slots, clients)
    reachable = _declared_suffix_counts(options, client_count)
    quotas = [client.requested_quota for client in clients]
    penalties = [client.effective_missing_penalty for client in clients]
    costs = [
        [
            clients[option].cost_for(slot.slot_id) if option is not None else 0.0
            for option in slot_options
        ]
        for slot, slot_options in zip(open_slots, options)
    ]

    # Running state for the current partial assignment; restored on backtrack.
    partial_scores = [float(client.score) for client in clients]
    counts = [0] * client_count
    chosen: list[Optional[int]] = [None] * slot_count
    chosen_position = [-1] * slot_count
    next_position = [0] * slot_count

    best_total = math.inf
    best_choice: list[Optional[int]] = []
    evaluated = 0

    def lower_bound(depth: int) -> float:
        bound = 0.0
        for index in range(client_count):
            still_missing = quotas[index] - counts[index] - reachable[depth][index]
            bound += partial_scores[index] + max(0, still_missing) * penalties[index]
        return bound

    def undo(depth: int) -> None:
        client_index = chosen[depth]
        if client_index is not None:
            counts[client_index] -= 1
            partial_scores[client_index] -= costs[depth][chosen_position[depth]]
        chosen[depth] = None
        chosen_position[depth] = -1

    depth = 0
    while depth >= 0:
        if depth == slot_count:
            evaluated += 1
            candidate = [
                ProposedAssignment(slot_id=open_slots[i].slot_id, client_id=clients[c].client_id)
                for i, c in enumerate(chosen)
                if c is not None
            ]
            total = total_working_score(clients, candidate)
            if total < best_total:
                best_total = total
                best_choice = list(chosen)
            depth -= 1
            continue

        undo(depth)
        advanced = False
        while next_position[depth] < len(options[depth]):
            position = next_position[depth]
            next_position[depth] += 1
            client_index = options[depth][position]
            if client_index is not None:
                if counts[client_index] >= quotas[client_index]:
                    continue
                counts[client_index] += 1
                partial_scores[client_index] += costs[depth][position]
            chosen[depth] = client_index
            chosen_position[depth] = position
            if lower_bound(depth + 1) >= best_total + _PRUNE_TOLERANCE:
                undo(depth)
                continue
            advanced = True
            break

        if advanced:
            depth += 1
            if depth < slot_count:
                next_position[depth] = 0
                chosen[depth] = None
                chosen_position[depth] = -1
        else:
            next_position[depth] = 0
            depth -= 1

    assignments = [
        ProposedAssignment(slot_id=open_slots[i].slot_id, client_id=clients[c].client_id)
        for i, c in enumerate(best_choice)
        if c is not None
    ]
    objective_value = evaluate_objective(clients, assignments)
    logger.debug(
        "Exhaustive search completed | free_slots=%s | clients=%s | candidates=%s | objective=%.6f",
        slot_count,
        client_count,
        evaluated,
        objective_value,
    )
    return SearchOutcome(
        assignments=assignments,
        objective_value=objective_value,
        candidates_evaluated=evaluated,
    )


def search(
    slots: Sequence[Slot],
    fixed_assignments: Sequence[FixedAssignment],
    clients: Sequence[Client],
) -> list[ProposedAssignment]:
    """Return the fairness-optimal proposal for every slot not yet fixed."""
    return exhaustive_search(slots, fixed_assignments, clients).assignments
